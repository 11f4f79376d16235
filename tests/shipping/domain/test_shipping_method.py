import json

import pytest
from protean.exceptions import ValidationError

from farmstand.shipping.events import ShippingMethodCreated, ShippingMethodProductsLinked
from farmstand.shipping.method import ShippingMethod


class TestShippingMethod:
    def test_create_raises_event(self):
        method = ShippingMethod.create(name="Flat rate", fee_type="uniform", uniform_fee=700)

        assert isinstance(method._events[0], ShippingMethodCreated)
        assert method._events[0].fee_type == "uniform"

    def test_area_fees_must_be_non_negative_integers(self):
        with pytest.raises(ValidationError) as exc:
            ShippingMethod.create(name="By area", fee_type="area", area_fees=json.dumps({"kanto": -5}))

        assert "area_fees" in exc.value.messages

    def test_size_bucket_needs_positive_capacity(self):
        with pytest.raises(ValidationError) as exc:
            ShippingMethod.create(
                name="By size",
                fee_type="size",
                size_fees=json.dumps({"60": {"area_fees": {"kanto": 900}, "max_items_per_box": 0}}),
            )

        assert "size_fees" in exc.value.messages

    def test_first_size_bucket_follows_insertion_order(self):
        method = ShippingMethod.create(
            name="By size",
            fee_type="size",
            size_fees=json.dumps(
                {
                    "80": {"area_fees": {"kanto": 1200}, "max_items_per_box": 8},
                    "60": {"area_fees": {"kanto": 900}, "max_items_per_box": 5},
                }
            ),
        )

        assert method.first_size_bucket()["max_items_per_box"] == 8

    def test_update_clears_unused_tables(self):
        method = ShippingMethod.create(name="By area", fee_type="area", area_fees=json.dumps({"kanto": 800}))

        method.update(name="Flat", fee_type="uniform", uniform_fee=600, area_fees=json.dumps({"kanto": 800}))

        assert method.uniform_fee == 600
        assert method.area_fees is None
        assert method.area_fee_table() == {}

    def test_link_products_replaces_existing_links(self):
        method = ShippingMethod.create(name="Flat", fee_type="uniform", uniform_fee=600)
        method.link_products(["p1", "p2", "p1"])
        method._events.clear()

        method.link_products(["p3"])

        assert method.product_ids() == ["p3"]
        assert isinstance(method._events[0], ShippingMethodProductsLinked)
        assert json.loads(method._events[0].product_ids) == ["p3"]
