"""Payment provider webhook reconciliation.

The processor is the single place where an order becomes paid and where
stock and coupon usage are consumed. Delivery semantics:

- integrity failures (missing config, missing or bad signature, unparseable
  body) answer non-2xx so the provider redelivers;
- business conditions (duplicate event, unknown order, amount mismatch,
  already paid) answer 200 so the provider stops;
- the event ledger admits each event id once, which bounds stock and coupon
  side effects to one application per successful payment.
"""

from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from farmstand.catalogue.inventory import decrement_product_stock
from farmstand.exceptions import DuplicateWebhookEvent, SignatureVerificationFailed
from farmstand.ordering.coupon import increment_coupon_usage
from farmstand.ordering.order import Order
from farmstand.ordering.payment import MarkOrderPaid, MarkOrderPaymentFailed
from farmstand.payments.ledger import ForgetWebhookEvent, RecordWebhookEvent
from farmstand.utils.logging import operator_alerts

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class SideEffectResult:
    effect: str  # stock_decrement | coupon_usage
    target: str
    success: bool
    failure_reason: str | None = None


@dataclass
class WebhookResult:
    status_code: int
    body: dict | str
    side_effects: list[SideEffectResult] = field(default_factory=list)

    @property
    def failed_side_effects(self) -> list[SideEffectResult]:
        return [effect for effect in self.side_effects if not effect.success]


class PaymentWebhookProcessor:
    def __init__(self, gateway, webhook_secret: str | None) -> None:
        self.gateway = gateway
        self.webhook_secret = webhook_secret

    def process(self, payload: bytes, signature: str | None) -> WebhookResult:
        if not self.webhook_secret:
            logger.error("Webhook secret is not configured")
            return WebhookResult(500, {"error": "Webhook secret is not configured"})
        if not signature:
            return WebhookResult(400, "Missing stripe-signature")

        try:
            event = self.gateway.construct_event(payload, signature, self.webhook_secret)
            event_id = event["id"]
            event_type = event["type"]
            intent = event.get("data", {}).get("object", {})
            if event_type in (PAYMENT_SUCCEEDED, PAYMENT_FAILED) and not intent.get("id"):
                raise ValueError("Event carries no payment intent id")
        except (SignatureVerificationFailed, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Webhook rejected", error=str(exc))
            return WebhookResult(400, f"Webhook Error: {exc}")

        log = logger.bind(event_id=event_id, event_type=event_type)

        try:
            current_domain.process(
                RecordWebhookEvent(event_id=event_id, event_type=event_type),
                asynchronous=False,
            )
        except DuplicateWebhookEvent:
            log.info("Duplicate webhook event skipped")
            return WebhookResult(200, {"received": True, "duplicate": True})

        try:
            if event_type == PAYMENT_SUCCEEDED:
                return self._payment_succeeded(intent, log)
            if event_type == PAYMENT_FAILED:
                current_domain.process(MarkOrderPaymentFailed(payment_intent_id=intent["id"]), asynchronous=False)
                return WebhookResult(200, {"received": True})
            log.debug("Unhandled webhook event type")
            return WebhookResult(200, {"received": True})
        except Exception as exc:
            log.exception("Webhook processing failed")
            current_domain.process(ForgetWebhookEvent(event_id=event_id), asynchronous=False)
            return WebhookResult(500, f"Webhook Error: {exc}")

    def _payment_succeeded(self, intent: dict, log) -> WebhookResult:
        intent_id = intent["id"]
        amount_received = int(intent.get("amount_received") or intent.get("amount") or 0)
        log = log.bind(payment_intent_id=intent_id)

        order = current_domain.repository_for(Order).find_by_payment_intent(intent_id)
        if order is None:
            log.warning("No order draft for payment intent")
            return WebhookResult(200, {"received": True, "warning": "order_not_found"})

        if order.total != amount_received:
            log.error(
                "Amount mismatch",
                order_id=str(order.id),
                order_total=order.total,
                amount_received=amount_received,
            )
            operator_alerts().error(
                "Paid amount does not match order total",
                order_number=order.order_number,
                order_total=order.total,
                amount_received=amount_received,
                payment_intent_id=intent_id,
            )
            return WebhookResult(200, {"received": True, "warning": "amount_mismatch"})

        payment_types = intent.get("payment_method_types") or []
        transitioned = current_domain.process(
            MarkOrderPaid(order_id=str(order.id), payment_method=payment_types[0] if payment_types else "card"),
            asynchronous=False,
        )
        if not transitioned:
            log.info("Order already settled", order_id=str(order.id), payment_status=order.payment_status)
            return WebhookResult(200, {"received": True})

        side_effects = self._consume_stock(order) + self._consume_coupon(order)
        for failure in (effect for effect in side_effects if not effect.success):
            operator_alerts().error(
                "Post-payment side effect failed",
                order_number=order.order_number,
                effect=failure.effect,
                target=failure.target,
                reason=failure.failure_reason,
            )

        log.info("Order paid", order_id=str(order.id), side_effects=len(side_effects))
        return WebhookResult(200, {"received": True}, side_effects)

    def _consume_stock(self, order) -> list[SideEffectResult]:
        results = []
        for item in order.items:
            target = f"{item.product_id}x{item.quantity}"
            try:
                decrement_product_stock(str(item.product_id), item.options(), item.quantity)
            except Exception as exc:
                logger.error("Stock decrement failed", product_id=str(item.product_id), error=str(exc))
                results.append(SideEffectResult("stock_decrement", target, False, str(exc)))
            else:
                results.append(SideEffectResult("stock_decrement", target, True))
        return results

    def _consume_coupon(self, order) -> list[SideEffectResult]:
        if not order.coupon_id:
            return []
        try:
            increment_coupon_usage(str(order.coupon_id))
        except Exception as exc:
            logger.error("Coupon usage increment failed", coupon_id=str(order.coupon_id), error=str(exc))
            return [SideEffectResult("coupon_usage", str(order.coupon_id), False, str(exc))]
        return [SideEffectResult("coupon_usage", str(order.coupon_id), True)]
