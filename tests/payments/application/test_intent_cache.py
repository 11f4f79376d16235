from unittest.mock import MagicMock

from farmstand.payments.gateway.fake_adapter import FakeGateway
from farmstand.payments.intents import INTENT_INIT_ERROR, PaymentIntentCache


class TestPaymentIntentCache:
    def test_creates_intent_in_configured_currency(self, fake_gateway):
        outcome = PaymentIntentCache().ensure(10800, 2, {"email": "hanako@example.jp"})

        assert outcome.ok
        assert outcome.reused is False
        assert fake_gateway.calls[0]["currency"] == "jpy"
        assert fake_gateway.calls[0]["amount"] == 10800

    def test_same_length_and_total_reuses_intent(self):
        gateway = FakeGateway()
        cache = PaymentIntentCache(gateway=gateway)

        first = cache.ensure(10800, 2)
        second = cache.ensure(10800.2, 2)

        assert second.reused is True
        assert second.intent_id == first.intent_id
        assert second.client_secret == first.client_secret
        assert len(gateway.calls) == 1

    def test_changed_total_creates_new_intent(self):
        gateway = FakeGateway()
        cache = PaymentIntentCache(gateway=gateway)

        first = cache.ensure(10800, 2)
        second = cache.ensure(11800, 2)

        assert second.intent_id != first.intent_id
        assert len(gateway.calls) == 2

    def test_changed_cart_length_creates_new_intent(self):
        gateway = FakeGateway()
        cache = PaymentIntentCache(gateway=gateway)

        cache.ensure(10800, 2)
        cache.ensure(10800, 3)

        assert len(gateway.calls) == 2

    def test_non_positive_total_is_an_error(self):
        gateway = FakeGateway()

        outcome = PaymentIntentCache(gateway=gateway).ensure(0, 1)

        assert outcome.ok is False
        assert gateway.calls == []

    def test_gateway_failure_is_reported_not_raised(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False)

        outcome = PaymentIntentCache(gateway=gateway).ensure(500, 1)

        assert outcome.error == INTENT_INIT_ERROR

    def test_gateway_exception_is_reported_not_raised(self):
        gateway = MagicMock()
        gateway.create_intent.side_effect = ConnectionError("boom")

        outcome = PaymentIntentCache(gateway=gateway, currency="jpy").ensure(500, 1)

        assert outcome.error == INTENT_INIT_ERROR

    def test_invalidate_forces_new_intent(self):
        gateway = FakeGateway()
        cache = PaymentIntentCache(gateway=gateway)
        cache.ensure(500, 1)

        cache.invalidate()
        cache.ensure(500, 1)

        assert len(gateway.calls) == 2
