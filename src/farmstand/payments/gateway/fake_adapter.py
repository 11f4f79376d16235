"""In-process payment gateway for development and tests.

Intents are recorded in memory and every call is appended to ``calls`` so
tests can assert on what checkout asked the provider to do. Webhook payloads
are accepted when signed with ``test-signature``.
"""

import json
from uuid import uuid4

from farmstand.exceptions import SignatureVerificationFailed
from farmstand.payments.gateway.port import ConfirmationResult, IntentResult, PaymentGateway

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.intents: dict[str, dict] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> IntentResult:
        self.calls.append({"method": "create_intent", "amount": amount, "currency": currency, "metadata": metadata})

        if not self.should_succeed:
            return IntentResult(success=False, failure_reason=self.failure_reason)

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        self.intents[intent_id] = {"amount": amount, "currency": currency, "status": "requires_payment_method"}
        return IntentResult(
            success=True,
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            livemode=False,
        )

    def confirm_intent(self, intent_id: str, payment_method: str | None = None) -> ConfirmationResult:
        self.calls.append({"method": "confirm_intent", "intent_id": intent_id, "payment_method": payment_method})

        if not self.should_succeed:
            return ConfirmationResult(
                success=False,
                status="requires_payment_method",
                failure_reason=self.failure_reason,
            )
        if intent_id in self.intents:
            self.intents[intent_id]["status"] = "succeeded"
        return ConfirmationResult(success=True, status="succeeded")

    def construct_event(self, payload: bytes, signature: str, secret: str) -> dict:  # noqa: ARG002
        if signature != TEST_SIGNATURE:
            raise SignatureVerificationFailed("No signatures found matching the expected signature for payload")
        return json.loads(payload)
