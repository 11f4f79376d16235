import pytest
from protean import current_domain

from farmstand.exceptions import DuplicateWebhookEvent
from farmstand.payments.ledger import ForgetWebhookEvent, ProcessedWebhookEvent, RecordWebhookEvent


class TestWebhookLedger:
    def test_record_once(self):
        current_domain.process(
            RecordWebhookEvent(event_id="evt_1", event_type="payment_intent.succeeded"),
            asynchronous=False,
        )

        record = current_domain.repository_for(ProcessedWebhookEvent).get("evt_1")
        assert record.event_type == "payment_intent.succeeded"
        assert record.received_at is not None

    def test_second_record_is_a_duplicate(self):
        current_domain.process(RecordWebhookEvent(event_id="evt_1"), asynchronous=False)

        with pytest.raises(DuplicateWebhookEvent) as exc:
            current_domain.process(RecordWebhookEvent(event_id="evt_1"), asynchronous=False)

        assert exc.value.event_id == "evt_1"

    def test_forget_releases_the_id(self):
        current_domain.process(RecordWebhookEvent(event_id="evt_1"), asynchronous=False)

        current_domain.process(ForgetWebhookEvent(event_id="evt_1"), asynchronous=False)
        current_domain.process(RecordWebhookEvent(event_id="evt_1"), asynchronous=False)

    def test_forget_unknown_id_is_harmless(self):
        current_domain.process(ForgetWebhookEvent(event_id="evt_none"), asynchronous=False)
