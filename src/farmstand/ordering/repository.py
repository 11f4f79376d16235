"""Repository for the Order aggregate."""

from farmstand.domain import farmstand
from farmstand.ordering.order import Order


@farmstand.repository(part_of=Order)
class OrderRepository:
    def find_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        """Return the order drafted for ``payment_intent_id``, items loaded, or None."""
        results = self._dao.query.filter(payment_intent_id=payment_intent_id).all().items
        if not results:
            return None
        return self.get(results[0].id)
