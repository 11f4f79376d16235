"""Order aggregate.

An order starts life as a draft written before the buyer confirms payment,
keyed by the payment intent id. Only the payment webhook moves it to paid or
failed.

Payment status machine:
    pending → paid | failed
    failed  → paid
    paid    → refunded

Fulfilment status (pending, processing, shipped, delivered, cancelled) is set
freely by the back office and is independent of payment status.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from farmstand.domain import farmstand
from farmstand.ordering.events import (
    OrderDraftSaved,
    OrderPaid,
    OrderPaymentFailed,
    OrderRefunded,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ShippingSpeed(Enum):
    STANDARD = "standard"
    EXPRESS = "express"


_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

# Contact and shipping fields a draft revision may overwrite
CONTACT_FIELDS = (
    "auth_user_id",
    "email",
    "first_name",
    "last_name",
    "phone",
    "shipping_address",
    "shipping_city",
    "shipping_postal_code",
    "shipping_country",
    "shipping_method",
)


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"FS-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@farmstand.entity(part_of="Order")
class OrderItem:
    """Snapshot of a cart line at the time the draft was written."""

    product_id = Identifier(required=True)
    product_title = String(required=True, max_length=255)
    unit_price = Integer(required=True, min_value=0)
    selected_options = Text()  # JSON object with sorted keys
    quantity = Integer(required=True, min_value=1)
    line_total = Integer(required=True, min_value=0)

    def options(self) -> dict[str, str]:
        return json.loads(self.selected_options) if self.selected_options else {}


def _build_items(items_data):
    return [
        OrderItem(
            product_id=str(item["product_id"]),
            product_title=item["product_title"],
            unit_price=item["unit_price"],
            selected_options=json.dumps(item.get("selected_options") or {}, sort_keys=True),
            quantity=item["quantity"],
            line_total=item["unit_price"] * item["quantity"],
        )
        for item in items_data
    ]


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@farmstand.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    payment_intent_id = String(required=True, max_length=255, unique=True)
    auth_user_id = Identifier()
    email = String(max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=20)
    shipping_address = String(max_length=255)
    shipping_city = String(max_length=100)
    shipping_postal_code = String(max_length=10)
    shipping_country = String(max_length=2, default="JP")
    shipping_method = String(choices=ShippingSpeed, default=ShippingSpeed.STANDARD.value)
    items = HasMany(OrderItem)
    subtotal = Integer(default=0, min_value=0)
    discount = Integer(default=0, min_value=0)
    shipping_cost = Integer(default=0, min_value=0)
    total = Integer(default=0, min_value=0)
    coupon_id = Identifier()
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(max_length=50)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_balance(self):
        if self.total != self.subtotal - self.discount + self.shipping_cost:
            raise ValidationError({"total": ["Total must equal subtotal - discount + shipping cost"]})

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if self.discount > self.subtotal:
            raise ValidationError({"discount": ["Discount cannot exceed the subtotal"]})

    # -------------------------------------------------------------------
    # Draft lifecycle
    # -------------------------------------------------------------------
    @classmethod
    def create_draft(cls, payment_intent_id, items_data, shipping_cost, discount=0, coupon_id=None, **contact):
        """Create a pending order for ``payment_intent_id`` from cart line dicts.

        Each item dict carries ``product_id``, ``product_title``, ``unit_price``
        (options included), ``quantity`` and ``selected_options``.
        """
        now = datetime.now(UTC)
        items = _build_items(items_data)
        subtotal = sum(item.line_total for item in items)

        order = cls(
            order_number=generate_order_number(now),
            payment_intent_id=payment_intent_id,
            items=items,
            subtotal=subtotal,
            discount=discount,
            shipping_cost=shipping_cost,
            total=subtotal - discount + shipping_cost,
            coupon_id=coupon_id,
            created_at=now,
            updated_at=now,
            **{name: value for name, value in contact.items() if name in CONTACT_FIELDS and value is not None},
        )
        order._raise_draft_saved()
        return order

    def accepts_draft_updates(self) -> bool:
        return PaymentStatus(self.payment_status) in (PaymentStatus.PENDING, PaymentStatus.FAILED)

    def revise_draft(self, items_data, shipping_cost, discount=0, coupon_id=None, **contact):
        """Overwrite pre-payment fields and replace every item.

        Payment status, payment method and paid timestamp are never touched
        here, so a late draft write cannot undo the webhook's work.
        """
        if not self.accepts_draft_updates():
            raise ValidationError({"payment_status": [f"Cannot revise a {self.payment_status} order"]})

        items = _build_items(items_data)
        subtotal = sum(item.line_total for item in items)

        with atomic_change(self):
            for name, value in contact.items():
                if name in CONTACT_FIELDS and value is not None:
                    setattr(self, name, value)

            for item in list(self.items):
                self.remove_items(item)
            for item in items:
                self.add_items(item)

            self.subtotal = subtotal
            self.discount = discount
            self.shipping_cost = shipping_cost
            self.total = subtotal - discount + shipping_cost
            self.coupon_id = coupon_id
            self.updated_at = datetime.now(UTC)

        self._raise_draft_saved()

    def _raise_draft_saved(self):
        self.raise_(
            OrderDraftSaved(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_intent_id=self.payment_intent_id,
                subtotal=self.subtotal,
                discount=self.discount,
                shipping_cost=self.shipping_cost,
                total=self.total,
                item_count=len(self.items),
            )
        )

    # -------------------------------------------------------------------
    # Payment transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ValidationError({"payment_status": [f"Cannot transition from {current.value} to {target.value}"]})

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def mark_paid(self, payment_method: str | None = None):
        self._assert_can_transition(PaymentStatus.PAID)
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_method = payment_method or "card"
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_intent_id=self.payment_intent_id,
                total=self.total,
                payment_method=self.payment_method,
                paid_at=now,
            )
        )

    def mark_failed(self):
        self._assert_can_transition(PaymentStatus.FAILED)
        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(OrderPaymentFailed(order_id=str(self.id), payment_intent_id=self.payment_intent_id))

    def mark_refunded(self):
        self._assert_can_transition(PaymentStatus.REFUNDED)
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                payment_intent_id=self.payment_intent_id,
                total=self.total,
            )
        )

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def change_status(self, order_status: str) -> bool:
        """Set the fulfilment status. Returns False when it is already ``order_status``."""
        try:
            target = OrderStatus(order_status)
        except ValueError:
            raise ValidationError({"order_status": [f"Unknown order status '{order_status}'"]}) from None
        if target.value == self.order_status:
            return False

        previous = self.order_status
        self.order_status = target.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                order_status=target.value,
            )
        )
        return True

    @property
    def customer_name(self) -> str:
        return " ".join(part for part in (self.last_name, self.first_name) if part)
