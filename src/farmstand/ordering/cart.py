"""Shopping cart held in the buyer's session.

The cart is an explicit object handed to the checkout flow. Prices are frozen
when a line is added, so later catalogue edits do not change what the buyer
saw. ``CartStore`` persists carts in any string key/value storage (the browser
local-storage analogue) and merges a guest cart into the user's cart on sign in.
"""

import json
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass, field

import structlog

from farmstand.catalogue.stock import check_cart_availability
from farmstand.exceptions import InsufficientStock

logger = structlog.get_logger(__name__)

CART_STORAGE_KEY = "farmstand_cart"


@dataclass(frozen=True)
class StockIssue:
    product_id: str
    title: str
    message: str
    available_quantity: int | None = None


@dataclass
class CartLine:
    product_id: str
    title: str
    unit_price: int
    quantity: int
    selected_options: dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> tuple:
        return (self.product_id, tuple(sorted(self.selected_options.items())))

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


class Cart:
    def __init__(self, lines: list[CartLine] | None = None) -> None:
        self.lines: list[CartLine] = list(lines or [])

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def _find(self, product_id, selected_options) -> CartLine | None:
        key = (str(product_id), tuple(sorted((selected_options or {}).items())))
        return next((line for line in self.lines if line.key == key), None)

    def add(self, product, quantity: int = 1, selected_options: dict[str, str] | None = None) -> CartLine:
        """Add ``quantity`` units, merging with an existing line for the same selection.

        Raises ``InsufficientStock`` when the cart would exceed available stock.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        selected = dict(selected_options or {})
        existing = self._find(product.id, selected)

        availability = check_cart_availability(product, selected, quantity, self.held_for(product.id))
        if not availability.available:
            raise InsufficientStock(
                [
                    StockIssue(
                        product_id=str(product.id),
                        title=product.title,
                        message=availability.message,
                        available_quantity=availability.available_quantity,
                    )
                ]
            )

        if existing:
            existing.quantity += quantity
            return existing

        line = CartLine(
            product_id=str(product.id),
            title=product.title,
            unit_price=product.price_for(selected),
            quantity=quantity,
            selected_options=selected,
        )
        self.lines.append(line)
        return line

    def update_quantity(self, product_id, quantity: int, selected_options=None, product=None) -> None:
        """Set a line's quantity; zero or less removes it. Pass ``product`` to re-check stock."""
        line = self._find(product_id, selected_options)
        if line is None:
            return
        if quantity <= 0:
            self.lines.remove(line)
            return

        if product is not None:
            held = self.held_for(product.id, exclude=line)
            availability = check_cart_availability(product, line.selected_options, quantity, held)
            if not availability.available:
                raise InsufficientStock(
                    [
                        StockIssue(
                            product_id=line.product_id,
                            title=line.title,
                            message=availability.message,
                            available_quantity=availability.available_quantity,
                        )
                    ]
                )
        line.quantity = quantity

    def held_for(self, product_id, exclude: CartLine | None = None) -> list[tuple[dict, int]]:
        """Selections and quantities already in the cart for ``product_id``."""
        return [
            (line.selected_options, line.quantity)
            for line in self.lines
            if line.product_id == str(product_id) and line is not exclude
        ]

    def remove(self, product_id, selected_options=None) -> None:
        line = self._find(product_id, selected_options)
        if line is not None:
            self.lines.remove(line)

    def clear(self) -> None:
        self.lines.clear()

    @property
    def subtotal(self) -> int:
        return sum(line.line_total for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def merge(self, other: "Cart") -> None:
        """Fold ``other``'s lines into this cart. Stock is re-checked at checkout."""
        for incoming in other.lines:
            existing = self._find(incoming.product_id, incoming.selected_options)
            if existing:
                existing.quantity += incoming.quantity
            else:
                self.lines.append(CartLine(**asdict(incoming)))

    def to_json(self) -> str:
        return json.dumps([asdict(line) for line in self.lines], ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str | None) -> "Cart":
        if not raw:
            return cls()
        return cls([CartLine(**item) for item in json.loads(raw)])


class CartStore:
    """Persists carts under ``farmstand_cart`` (guest) or ``farmstand_cart:<user id>``."""

    def __init__(self, storage: MutableMapping[str, str]) -> None:
        self.storage = storage

    @staticmethod
    def _key(user_id=None) -> str:
        return f"{CART_STORAGE_KEY}:{user_id}" if user_id else CART_STORAGE_KEY

    def load(self, user_id=None) -> Cart:
        raw = self.storage.get(self._key(user_id))
        try:
            return Cart.from_json(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding unreadable stored cart", user_id=user_id, error=str(exc))
            self.clear(user_id)
            return Cart()

    def save(self, cart: Cart, user_id=None) -> None:
        self.storage[self._key(user_id)] = cart.to_json()

    def clear(self, user_id=None) -> None:
        self.storage.pop(self._key(user_id), None)

    def restore(self, user_id) -> Cart:
        """On sign in, merge the guest cart into the user's saved cart."""
        cart = self.load(user_id)
        guest = self.load()
        if guest.lines:
            cart.merge(guest)
            self.clear()
        self.save(cart, user_id)
        return cart
