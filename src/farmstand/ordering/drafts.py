"""Order draft writing, keyed by payment intent id.

Every time the cart or the shipping selection changes before payment is
confirmed, the draft for the current intent is overwritten so the webhook
reconciles against the final cart. Paid orders are never rewritten.
"""

import json
from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.identity.profile import UpsertProfile
from farmstand.ordering.order import Order

logger = structlog.get_logger(__name__)


@farmstand.command(part_of="Order")
class SaveOrderDraft:
    payment_intent_id = String(required=True, max_length=255)
    items = Text(required=True)  # JSON list of item snapshots
    shipping_cost = Integer(required=True, min_value=0)
    discount = Integer(default=0, min_value=0)
    coupon_id = Identifier()
    auth_user_id = Identifier()
    email = String(max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=20)
    shipping_address = String(max_length=255)
    shipping_city = String(max_length=100)
    shipping_postal_code = String(max_length=10)
    shipping_country = String(max_length=2)
    shipping_method = String(max_length=20)


@farmstand.command_handler(part_of=Order)
class SaveOrderDraftHandler:
    @handle(SaveOrderDraft)
    def save_draft(self, command):
        repo = current_domain.repository_for(Order)
        items_data = json.loads(command.items)
        contact = {
            "auth_user_id": command.auth_user_id,
            "email": command.email,
            "first_name": command.first_name,
            "last_name": command.last_name,
            "phone": command.phone,
            "shipping_address": command.shipping_address,
            "shipping_city": command.shipping_city,
            "shipping_postal_code": command.shipping_postal_code,
            "shipping_country": command.shipping_country,
            "shipping_method": command.shipping_method,
        }

        order = repo.find_by_payment_intent(command.payment_intent_id)
        if order is None:
            order = Order.create_draft(
                payment_intent_id=command.payment_intent_id,
                items_data=items_data,
                shipping_cost=command.shipping_cost,
                discount=command.discount or 0,
                coupon_id=command.coupon_id,
                **contact,
            )
        elif not order.accepts_draft_updates():
            logger.info(
                "Draft write ignored, order already settled",
                order_id=str(order.id),
                payment_intent_id=command.payment_intent_id,
                payment_status=order.payment_status,
            )
            return str(order.id)
        else:
            order.revise_draft(
                items_data=items_data,
                shipping_cost=command.shipping_cost,
                discount=command.discount or 0,
                coupon_id=command.coupon_id,
                **contact,
            )

        repo.add(order)
        return str(order.id)


@dataclass(frozen=True)
class DraftContact:
    email: str
    first_name: str
    last_name: str
    phone: str
    postal_code: str
    address: str
    city: str
    country: str = "JP"
    shipping_method: str = "standard"
    auth_user_id: str | None = None


class OrderDraftWriter:
    """Upserts the order draft for an intent and remembers the buyer's address."""

    def upsert_draft(
        self,
        payment_intent_id: str,
        lines,
        contact: DraftContact,
        shipping_cost: int,
        discount: int = 0,
        coupon_id: str | None = None,
    ) -> str:
        items = [
            {
                "product_id": line.product_id,
                "product_title": line.title,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "selected_options": line.selected_options,
            }
            for line in lines
        ]
        order_id = current_domain.process(
            SaveOrderDraft(
                payment_intent_id=payment_intent_id,
                items=json.dumps(items, ensure_ascii=False),
                shipping_cost=shipping_cost,
                discount=discount,
                coupon_id=coupon_id,
                auth_user_id=contact.auth_user_id,
                email=contact.email,
                first_name=contact.first_name,
                last_name=contact.last_name,
                phone=contact.phone,
                shipping_address=contact.address,
                shipping_city=contact.city,
                shipping_postal_code=contact.postal_code,
                shipping_country=contact.country,
                shipping_method=contact.shipping_method,
            ),
            asynchronous=False,
        )

        if contact.auth_user_id:
            self._remember_profile(contact)
        return order_id

    def _remember_profile(self, contact: DraftContact) -> None:
        try:
            current_domain.process(
                UpsertProfile(
                    auth_user_id=contact.auth_user_id,
                    email=contact.email,
                    first_name=contact.first_name,
                    last_name=contact.last_name,
                    phone=contact.phone,
                    postal_code=contact.postal_code,
                    address=contact.address,
                    city=contact.city,
                    country=contact.country,
                ),
                asynchronous=False,
            )
        except Exception:
            # Best effort, the draft is already saved
            logger.exception("Profile upsert failed", auth_user_id=contact.auth_user_id)
