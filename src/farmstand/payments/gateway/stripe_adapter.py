"""Stripe adapter built on the stripe-python SDK."""

import json

import stripe
import structlog

from farmstand.exceptions import SignatureVerificationFailed
from farmstand.payments.gateway.port import ConfirmationResult, IntentResult, PaymentGateway

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> IntentResult:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            logger.error("Stripe intent creation failed", amount=amount, error=str(exc))
            return IntentResult(success=False, failure_reason=exc.user_message or str(exc))

        return IntentResult(
            success=True,
            intent_id=intent.id,
            client_secret=intent.client_secret,
            livemode=bool(intent.livemode),
        )

    def confirm_intent(self, intent_id: str, payment_method: str | None = None) -> ConfirmationResult:
        params = {"payment_method": payment_method} if payment_method else {}
        try:
            intent = stripe.PaymentIntent.confirm(intent_id, api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.warning("Stripe confirmation failed", intent_id=intent_id, error=str(exc))
            return ConfirmationResult(success=False, failure_reason=exc.user_message or str(exc))

        succeeded = intent.status in ("succeeded", "processing", "requires_capture")
        return ConfirmationResult(
            success=succeeded,
            status=intent.status,
            failure_reason=None if succeeded else f"Payment {intent.status}",
        )

    def construct_event(self, payload: bytes, signature: str, secret: str) -> dict:
        try:
            stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationFailed(str(exc)) from exc
        return json.loads(payload)
