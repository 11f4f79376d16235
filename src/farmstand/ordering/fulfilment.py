"""Back-office order status changes: commands and handler.

The admin moves orders through fulfilment one at a time or in bulk. A bulk
change processes one command per order, so each order is its own unit of
work and an order that cannot be found does not block the others.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.ordering.order import Order, OrderStatus
from farmstand.utils.retry import process_with_retry

logger = structlog.get_logger(__name__)


@farmstand.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    order_status = String(required=True, choices=OrderStatus)


@farmstand.command_handler(part_of=Order)
class OrderFulfilmentHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        """Returns True when the status actually changed."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.change_status(command.order_status)
        if changed:
            repo.add(order)
        return changed


def update_order_status(order_id: str, order_status: str) -> bool:
    return process_with_retry(lambda: UpdateOrderStatus(order_id=order_id, order_status=order_status))


def update_order_statuses(order_ids, order_status: str) -> tuple[list[str], list[str]]:
    """Apply ``order_status`` to every order in ``order_ids``.

    Returns ``(updated, missing)``. Orders already in that status count as
    updated.
    """
    updated, missing = [], []
    for order_id in dict.fromkeys(str(o) for o in order_ids):
        try:
            update_order_status(order_id, order_status)
        except ObjectNotFoundError:
            missing.append(order_id)
            continue
        updated.append(order_id)

    if missing:
        logger.warning("Bulk status update skipped unknown orders", order_ids=missing, order_status=order_status)
    logger.info("Bulk status update applied", count=len(updated), order_status=order_status)
    return updated, missing
