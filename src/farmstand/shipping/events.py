"""Domain events for the ShippingMethod aggregate."""

from protean.fields import Identifier, String, Text

from farmstand.domain import farmstand


@farmstand.event(part_of="ShippingMethod")
class ShippingMethodCreated:
    __version__ = 1

    shipping_method_id = Identifier(required=True)
    name = String(required=True)
    fee_type = String(required=True)


@farmstand.event(part_of="ShippingMethod")
class ShippingMethodUpdated:
    __version__ = 1

    shipping_method_id = Identifier(required=True)
    name = String(required=True)
    fee_type = String(required=True)


@farmstand.event(part_of="ShippingMethod")
class ShippingMethodProductsLinked:
    __version__ = 1

    shipping_method_id = Identifier(required=True)
    product_ids = Text()  # JSON list
