"""Product aggregate root.

Variant configuration is persisted as JSON text and exposed through
``variant_types()`` as validated models. Stock is only ever reduced by
``decrement_stock``, which the payment webhook drives once per paid order line.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from farmstand.catalogue.stock import StockPool, stock_constraints
from farmstand.catalogue.variants import (
    VariantConfigError,
    VariantType,
    dump_variants_config,
    legacy_variant_types,
    parse_variants_config,
)
from farmstand.domain import farmstand


class ProductStatus(Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


@farmstand.aggregate
class Product:
    title = String(required=True, max_length=255)
    handle = String(max_length=255)
    category = String(max_length=100)
    sku = String(max_length=50)
    description = Text()
    price = Integer(required=True, min_value=0)
    stock = Integer(min_value=0)  # None means stock is not tracked
    has_variants = Boolean(default=False)
    variants_config = Text()  # JSON list of VariantType
    variants = Text()  # Legacy JSON list of labels, read only for migration
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    sold_out = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variants_config_must_be_valid(self):
        try:
            parse_variants_config(self.variants_config)
        except VariantConfigError as exc:
            raise ValidationError({"variants_config": [str(exc)]}) from None

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        title,
        price,
        stock=None,
        handle=None,
        category=None,
        sku=None,
        description=None,
        variants_config=None,
    ):
        from farmstand.catalogue.events import ProductCreated

        types = parse_variants_config(variants_config) if variants_config else []
        now = datetime.now(UTC)
        product = cls(
            title=title,
            price=price,
            stock=stock,
            handle=handle,
            category=category,
            sku=sku,
            description=description,
            has_variants=bool(types),
            variants_config=dump_variants_config(types) if types else None,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                title=title,
                price=price,
                stock=stock,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Variants and pricing
    # -------------------------------------------------------------------
    def variant_types(self) -> list[VariantType]:
        if self.variants_config:
            return parse_variants_config(self.variants_config)
        if self.has_variants and self.variants:
            return legacy_variant_types(json.loads(self.variants))
        return []

    def configure_variants(self, config):
        """Replace the variant configuration. An empty config turns variants off."""
        from farmstand.catalogue.events import ProductVariantsConfigured

        try:
            types = parse_variants_config(config)
        except VariantConfigError as exc:
            raise ValidationError({"variants_config": [str(exc)]}) from None

        self.variants_config = dump_variants_config(types) if types else None
        self.has_variants = bool(types)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductVariantsConfigured(
                product_id=str(self.id),
                variants_config=self.variants_config,
            )
        )

    def price_for(self, selected_options: dict[str, str] | None = None) -> int:
        """Base price plus the adjustments of every selected option."""
        selected = selected_options or {}
        total = self.price
        for variant_type in self.variant_types() if self.has_variants else []:
            option = variant_type.option(selected.get(variant_type.id, ""))
            if option is not None:
                total += option.price_adjustment
        return total

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def set_stock(self, stock):
        from farmstand.catalogue.events import ProductStockSet

        previous = self.stock
        self.stock = stock
        self.sold_out = stock == 0
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductStockSet(
                product_id=str(self.id),
                previous_stock=previous,
                new_stock=stock,
            )
        )

    def decrement_stock(self, selected_options: dict[str, str] | None, quantity: int):
        """Reduce every counter that bounds this selection, or nothing at all.

        Raises ``ValidationError`` when any participating counter holds fewer
        than ``quantity`` units. Untracked stock is left untouched.
        """
        from farmstand.catalogue.events import ProductStockDecremented

        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        constraints = stock_constraints(self, selected_options)
        short = [c for c in constraints if c.stock < quantity]
        if short:
            raise ValidationError(
                {"stock": [f"Cannot take {quantity} from {c.pool.value} stock of {c.stock}" for c in short]}
            )

        types = self.variant_types() if self.has_variants else []
        for constraint in constraints:
            if constraint.pool is StockPool.BASE:
                self.stock = self.stock - quantity
                continue

            index = next(i for i, vt in enumerate(types) if vt.id == constraint.variant_type_id)
            variant_type = types[index]
            if constraint.pool is StockPool.SHARED:
                types[index] = variant_type.model_copy(update={"shared_stock": variant_type.shared_stock - quantity})
            else:
                options = [
                    o.model_copy(update={"stock": o.stock - quantity}) if o.id == constraint.option_id else o
                    for o in variant_type.options
                ]
                types[index] = variant_type.model_copy(update={"options": options})

        if any(c.pool is not StockPool.BASE for c in constraints):
            self.variants_config = dump_variants_config(types)
        if self.stock == 0:
            self.sold_out = True
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductStockDecremented(
                product_id=str(self.id),
                selected_options=json.dumps(selected_options or {}, sort_keys=True),
                quantity=quantity,
                pools=json.dumps(
                    [
                        {"pool": c.pool.value, "variant_type_id": c.variant_type_id, "option_id": c.option_id}
                        for c in constraints
                    ]
                ),
            )
        )
