"""ShippingMethod aggregate and its product links.

Fee tables are stored as JSON text:

- ``area_fees``: ``{area_key: fee}``
- ``size_fees``: ``{box_size_key: {"area_fees": {area_key: fee}, "max_items_per_box": n}}``

Insertion order of ``size_fees`` is significant: the first bucket is the one
used for pricing.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from farmstand.domain import farmstand


class FeeType(Enum):
    UNIFORM = "uniform"
    AREA = "area"
    SIZE = "size"


def _load_table(raw, field_name):
    if not raw:
        return {}
    try:
        table = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field_name: ["Must be a JSON object"]}) from None
    if not isinstance(table, dict):
        raise ValidationError({field_name: ["Must be a JSON object"]})
    return table


def _check_fees(fees, field_name):
    for key, fee in fees.items():
        if not isinstance(fee, int) or isinstance(fee, bool) or fee < 0:
            raise ValidationError({field_name: [f"Fee for '{key}' must be a non-negative integer"]})


@farmstand.entity(part_of="ShippingMethod")
class ProductLink:
    product_id = Identifier(required=True)


@farmstand.aggregate
class ShippingMethod:
    name = String(required=True, max_length=100)
    fee_type = String(choices=FeeType, default=FeeType.UNIFORM.value)
    uniform_fee = Integer(min_value=0)
    area_fees = Text()
    size_fees = Text()
    max_items_per_box = Integer(min_value=1)
    box_size = Integer(min_value=0)
    max_weight_kg = Float(min_value=0.0)
    products = HasMany(ProductLink)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def fee_tables_must_be_well_formed(self):
        _check_fees(self.area_fee_table(), "area_fees")
        for size, bucket in self.size_fee_table().items():
            if not isinstance(bucket, dict):
                raise ValidationError({"size_fees": [f"Bucket '{size}' must be an object"]})
            _check_fees(bucket.get("area_fees") or {}, "size_fees")
            capacity = bucket.get("max_items_per_box")
            if capacity is not None and (not isinstance(capacity, int) or capacity < 1):
                raise ValidationError({"size_fees": [f"Bucket '{size}' needs a positive max_items_per_box"]})

    @classmethod
    def create(cls, name, fee_type, **attributes):
        from farmstand.shipping.events import ShippingMethodCreated

        now = datetime.now(UTC)
        method = cls(name=name, fee_type=fee_type, created_at=now, updated_at=now, **attributes)
        method.raise_(
            ShippingMethodCreated(
                shipping_method_id=str(method.id),
                name=method.name,
                fee_type=method.fee_type,
            )
        )
        return method

    def area_fee_table(self) -> dict[str, int]:
        return _load_table(self.area_fees, "area_fees")

    def size_fee_table(self) -> dict[str, dict]:
        return _load_table(self.size_fees, "size_fees")

    def first_size_bucket(self) -> dict | None:
        return next(iter(self.size_fee_table().values()), None)

    def update(
        self,
        name,
        fee_type,
        uniform_fee=None,
        area_fees=None,
        size_fees=None,
        max_items_per_box=None,
        box_size=None,
        max_weight_kg=None,
    ):
        """Overwrite the method's settings. Tables not used by ``fee_type`` are cleared."""
        from farmstand.shipping.events import ShippingMethodUpdated

        self.name = name
        self.fee_type = fee_type
        self.uniform_fee = uniform_fee if fee_type == FeeType.UNIFORM.value else None
        self.area_fees = area_fees if fee_type == FeeType.AREA.value else None
        self.size_fees = size_fees if fee_type == FeeType.SIZE.value else None
        self.max_items_per_box = max_items_per_box
        self.box_size = box_size
        self.max_weight_kg = max_weight_kg
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingMethodUpdated(
                shipping_method_id=str(self.id),
                name=self.name,
                fee_type=self.fee_type,
            )
        )

    def product_ids(self) -> list[str]:
        return [str(link.product_id) for link in self.products]

    def link_products(self, product_ids):
        """Replace all product links with ``product_ids``."""
        from farmstand.shipping.events import ShippingMethodProductsLinked

        for link in list(self.products):
            self.remove_products(link)
        for product_id in dict.fromkeys(str(p) for p in product_ids):
            self.add_products(ProductLink(product_id=product_id))
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingMethodProductsLinked(
                shipping_method_id=str(self.id),
                product_ids=json.dumps(self.product_ids()),
            )
        )


@farmstand.repository(part_of=ShippingMethod)
class ShippingMethodRepository:
    def methods_by_product(self, product_ids) -> dict[str, list[ShippingMethod]]:
        """Map each requested product id to the shipping methods linked to it."""
        wanted = {str(p) for p in product_ids}
        result = {product_id: [] for product_id in wanted}
        for record in self._dao.query.all().items:
            method = self.get(record.id)
            for product_id in method.product_ids():
                if product_id in wanted:
                    result[product_id].append(method)
        return result
