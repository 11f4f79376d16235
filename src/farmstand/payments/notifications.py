"""Order-log notification for paid orders.

Each newly paid order is posted as JSON to ``ORDER_NOTIFY_URL`` (a spreadsheet
script endpoint). Delivery is best-effort: every failure is logged and
swallowed so the payment outcome is never affected.
"""

import requests
import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from farmstand.config import get_settings
from farmstand.domain import farmstand
from farmstand.ordering.events import OrderPaid
from farmstand.ordering.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)

NOTIFY_TIMEOUT_SECONDS = 7


def order_summary(order) -> dict:
    return {
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "order_number": order.order_number,
        "name": order.customer_name,
        "email": order.email,
        "phone": order.phone,
        "shipping_address": order.shipping_address,
        "shipping_city": order.shipping_city,
        "shipping_postal_code": order.shipping_postal_code,
        "subtotal": order.subtotal,
        "discount": order.discount,
        "shipping_cost": order.shipping_cost,
        "total": order.total,
        "payment_status": PaymentStatus.PAID.value,
        "order_status": order.order_status,
    }


def notify_order_paid(order, url: str | None) -> bool:
    """Post the order summary to ``url``. Returns True when the endpoint accepted it."""
    if not url:
        logger.info("ORDER_NOTIFY_URL not set, skipping order notification", order_number=order.order_number)
        return False

    try:
        response = requests.post(url, json=order_summary(order), timeout=NOTIFY_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        logger.error("Order notification failed", order_number=order.order_number, error=str(exc))
        return False

    if not response.ok:
        logger.error(
            "Order notification rejected",
            order_number=order.order_number,
            status_code=response.status_code,
            body=response.text[:500],
        )
        return False

    logger.info("Order notification sent", order_number=order.order_number)
    return True


@farmstand.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        notify_order_paid(order, get_settings().order_notify_url)
