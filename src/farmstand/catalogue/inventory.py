"""Stock decrement for paid order lines.

The handler reads the product, checks every participating counter and writes
the new counts back in one unit of work. The repository write is guarded by
the aggregate version, so two payments racing for the same variant cannot
both succeed against the same snapshot; the loser is retried against fresh
data.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from farmstand.catalogue.product import Product
from farmstand.domain import farmstand
from farmstand.utils.retry import process_with_retry


@farmstand.command(part_of="Product")
class DecrementProductStock:
    product_id = Identifier(required=True)
    selected_options = Text()  # JSON object: variant type id -> option id
    quantity = Integer(required=True, min_value=1)


@farmstand.command_handler(part_of=Product)
class DecrementProductStockHandler:
    @handle(DecrementProductStock)
    def decrement(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        selected = json.loads(command.selected_options) if command.selected_options else {}
        product.decrement_stock(selected, command.quantity)
        repo.add(product)


def decrement_product_stock(product_id: str, selected_options: dict | None, quantity: int) -> None:
    """Decrement stock for one order line.

    Raises ``ValidationError`` when stock is insufficient and
    ``ExpectedVersionError`` when every attempt lost the race.
    """
    payload = json.dumps(selected_options or {}, sort_keys=True)
    process_with_retry(
        lambda: DecrementProductStock(
            product_id=product_id,
            selected_options=payload,
            quantity=quantity,
        )
    )
