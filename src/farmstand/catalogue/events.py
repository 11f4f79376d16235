"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from farmstand.domain import farmstand


@farmstand.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id = Identifier(required=True)
    title = String(required=True)
    price = Integer(required=True)
    stock = Integer()
    created_at = DateTime()


@farmstand.event(part_of="Product")
class ProductVariantsConfigured:
    __version__ = 1

    product_id = Identifier(required=True)
    variants_config = Text()


@farmstand.event(part_of="Product")
class ProductStockSet:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_stock = Integer()
    new_stock = Integer()


@farmstand.event(part_of="Product")
class ProductStockDecremented:
    """Stock counters were reduced for a paid order line."""

    __version__ = 1

    product_id = Identifier(required=True)
    selected_options = Text()
    quantity = Integer(required=True)
    pools = Text()  # JSON list of the counters that were reduced
