"""Payment gateway port.

Checkout and the webhook processor only talk to this interface, so the Stripe
adapter can be swapped for the in-process fake in development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IntentResult:
    """Result of creating a payment intent."""

    success: bool
    intent_id: str | None = None
    client_secret: str | None = None
    livemode: bool = False
    failure_reason: str | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    """Result of confirming a payment intent."""

    success: bool
    status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> IntentResult:
        """Create a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def confirm_intent(self, intent_id: str, payment_method: str | None = None) -> ConfirmationResult:
        """Confirm a previously created intent."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str, secret: str) -> dict:
        """Verify ``signature`` over the raw ``payload`` and return the event.

        Raises ``SignatureVerificationFailed`` when the signature does not match
        and ``ValueError`` when the payload cannot be parsed.
        """
        ...
