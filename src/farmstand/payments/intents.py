"""Payment intent reuse across checkout re-renders.

The checkout page asks for an intent every time it recomputes the total. A
new provider-side intent is only created when the cart length or the rounded
total changed since the cached one; otherwise the cached client secret is
handed back.
"""

from dataclasses import dataclass

import structlog

from farmstand.config import get_settings
from farmstand.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)

INTENT_INIT_ERROR = "Payment could not be initialised. Please reload the page and try again."


@dataclass(frozen=True)
class IntentOutcome:
    client_secret: str | None = None
    intent_id: str | None = None
    livemode: bool = False
    error: str | None = None
    reused: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.intent_id is not None


class PaymentIntentCache:
    def __init__(self, gateway=None, currency: str | None = None) -> None:
        self.gateway = gateway
        self.currency = currency
        self._cached: IntentOutcome | None = None
        self._cache_key: tuple[int, int] | None = None

    def ensure(self, amount, cart_length: int, metadata: dict[str, str] | None = None) -> IntentOutcome:
        """Return a usable intent for ``amount``. Never raises; failures come back as ``error``."""
        total = int(round(amount))
        key = (cart_length, total)
        if self._cached is not None and self._cache_key == key:
            return IntentOutcome(
                client_secret=self._cached.client_secret,
                intent_id=self._cached.intent_id,
                livemode=self._cached.livemode,
                reused=True,
            )

        if total <= 0:
            return IntentOutcome(error="Order total must be greater than zero")

        gateway = self.gateway or get_gateway()
        currency = self.currency or get_settings().currency
        try:
            result = gateway.create_intent(total, currency, metadata or {})
        except Exception:
            logger.exception("Payment intent creation raised", amount=total)
            return IntentOutcome(error=INTENT_INIT_ERROR)

        if not result.success:
            logger.warning("Payment intent creation failed", amount=total, reason=result.failure_reason)
            return IntentOutcome(error=INTENT_INIT_ERROR)

        self._cached = IntentOutcome(
            client_secret=result.client_secret,
            intent_id=result.intent_id,
            livemode=result.livemode,
        )
        self._cache_key = key
        logger.info("Payment intent created", intent_id=result.intent_id, amount=total)
        return self._cached

    def invalidate(self) -> None:
        self._cached = None
        self._cache_key = None
