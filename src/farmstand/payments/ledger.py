"""Processed webhook event ledger.

A row per provider event id. Recording an id that is already present raises
``DuplicateWebhookEvent``; on SQL providers the identifier column's primary
key is what makes the insert exclusive between concurrent deliveries.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.exceptions import DuplicateWebhookEvent


@farmstand.aggregate
class ProcessedWebhookEvent:
    event_id = Identifier(identifier=True, required=True)
    event_type = String(max_length=100)
    received_at = DateTime()


@farmstand.command(part_of=ProcessedWebhookEvent)
class RecordWebhookEvent:
    event_id = Identifier(required=True)
    event_type = String(max_length=100)


@farmstand.command(part_of=ProcessedWebhookEvent)
class ForgetWebhookEvent:
    event_id = Identifier(required=True)


@farmstand.command_handler(part_of=ProcessedWebhookEvent)
class WebhookLedgerHandler:
    @handle(RecordWebhookEvent)
    def record(self, command):
        repo = current_domain.repository_for(ProcessedWebhookEvent)
        try:
            repo.get(command.event_id)
        except ObjectNotFoundError:
            repo.add(
                ProcessedWebhookEvent(
                    event_id=command.event_id,
                    event_type=command.event_type,
                    received_at=datetime.now(UTC),
                )
            )
            return command.event_id
        raise DuplicateWebhookEvent(command.event_id)

    @handle(ForgetWebhookEvent)
    def forget(self, command):
        """Release an event id so the provider's redelivery is processed again."""
        repo = current_domain.repository_for(ProcessedWebhookEvent)
        try:
            record = repo.get(command.event_id)
        except ObjectNotFoundError:
            return
        repo._dao.delete(record)
