"""Application-level errors.

Domain rule violations use Protean's ``ValidationError``; the errors here
describe conditions at the edges of the domain (user input, external
services, webhook integrity).
"""


class InsufficientStock(Exception):
    """One or more cart lines cannot be fulfilled from current stock."""

    def __init__(self, issues):
        self.issues = list(issues)
        message = "; ".join(f"Insufficient stock for {issue.title}: {issue.message}" for issue in self.issues)
        super().__init__(message)


class CheckoutInputError(Exception):
    """Missing or invalid checkout form fields."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(", ".join(f"{field}: {'; '.join(msgs)}" for field, msgs in errors.items()))


class InvalidPostalCode(Exception):
    """Postal code is not a 7-digit Japanese postal code."""


class PostalLookupUnavailable(Exception):
    """The address lookup service could not be reached."""


class PaymentGatewayError(Exception):
    """The payment provider is misconfigured or could not be reached."""


class SignatureVerificationFailed(Exception):
    """Webhook payload signature did not match the shared secret."""


class DuplicateWebhookEvent(Exception):
    """The webhook event id is already present in the processed-events ledger."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Webhook event {event_id} was already processed")
