"""Payment gateway factory.

``get_gateway()`` returns the adapter selected by ``PAYMENT_GATEWAY``
(``fake`` by default, ``stripe`` in production). Tests swap it with
``set_gateway()``.
"""

from farmstand.config import get_settings
from farmstand.exceptions import PaymentGatewayError
from farmstand.payments.gateway.fake_adapter import FakeGateway
from farmstand.payments.gateway.port import PaymentGateway
from farmstand.payments.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        if not settings.stripe_secret_key:
            raise PaymentGatewayError("PAYMENT_GATEWAY=stripe requires STRIPE_SECRET_KEY")
        return StripeGateway(api_key=settings.stripe_secret_key)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
