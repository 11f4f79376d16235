"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from farmstand.domain import farmstand


@farmstand.event(part_of="Order")
class OrderDraftSaved:
    """A pre-payment snapshot was written or overwritten for a payment intent."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_intent_id = String(required=True)
    subtotal = Integer(required=True)
    discount = Integer()
    shipping_cost = Integer(required=True)
    total = Integer(required=True)
    item_count = Integer()


@farmstand.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_intent_id = String(required=True)
    total = Integer(required=True)
    payment_method = String()
    paid_at = DateTime(required=True)


@farmstand.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True)


@farmstand.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    total = Integer(required=True)


@farmstand.event(part_of="Order")
class OrderStatusChanged:
    """The back office moved the order through fulfilment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    order_status = String(required=True)
