"""Payment status transitions driven by the payment provider's webhook."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.ordering.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


@farmstand.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    payment_method = String(max_length=50)


@farmstand.command(part_of="Order")
class MarkOrderPaymentFailed:
    payment_intent_id = String(required=True, max_length=255)


@farmstand.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)


@farmstand.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(MarkOrderPaid)
    def mark_paid(self, command):
        """Returns True when this call moved the order to paid."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.payment_status not in (PaymentStatus.PENDING.value, PaymentStatus.FAILED.value):
            return False

        order.mark_paid(payment_method=command.payment_method)
        repo.add(order)
        return True

    @handle(MarkOrderPaymentFailed)
    def mark_failed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_payment_intent(command.payment_intent_id)
        if order is None:
            logger.warning("Payment failure for unknown order", payment_intent_id=command.payment_intent_id)
            return False
        if order.payment_status != PaymentStatus.PENDING.value:
            logger.info(
                "Payment failure ignored",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return False

        order.mark_failed()
        repo.add(order)
        return True

    @handle(RefundOrder)
    def refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_refunded()
        repo.add(order)
