"""Effective stock resolution for a product and a variant selection.

A selection is constrained by every selected variant type that manages stock
individually: a type with a shared pool contributes that pool, otherwise the
selected option contributes its own count when it tracks one. The effective
stock is the minimum of those constraints; with no constraint the product's
base stock applies. ``None`` means untracked (unlimited) and ``0`` means out of
stock, so the two must never be conflated.
"""

from dataclasses import dataclass
from enum import Enum

from farmstand.catalogue.variants import StockManagement


class StockPool(Enum):
    BASE = "base"
    SHARED = "shared"
    OPTION = "option"


@dataclass(frozen=True)
class StockConstraint:
    """A stock counter that limits how many units of a selection can be sold."""

    pool: StockPool
    stock: int
    variant_type_id: str | None = None
    option_id: str | None = None

    @property
    def key(self) -> tuple:
        return (self.pool, self.variant_type_id, self.option_id)


@dataclass(frozen=True)
class Availability:
    available: bool
    available_stock: int | None
    available_quantity: int | None
    message: str = ""


def _variant_types(product):
    if not product.has_variants:
        return []
    return product.variant_types()


def stock_constraints(product, selected_options: dict[str, str] | None) -> list[StockConstraint]:
    """Return the counters that bound the selection, base stock included as fallback."""
    selected = selected_options or {}
    constraints = []

    for variant_type in _variant_types(product):
        option_id = selected.get(variant_type.id)
        if option_id is None:
            continue
        if variant_type.stock_management is not StockManagement.INDIVIDUAL:
            continue

        if variant_type.shared_stock is not None:
            constraints.append(
                StockConstraint(
                    pool=StockPool.SHARED,
                    stock=variant_type.shared_stock,
                    variant_type_id=variant_type.id,
                )
            )
            continue

        option = variant_type.option(option_id)
        if option is not None and option.stock is not None:
            constraints.append(
                StockConstraint(
                    pool=StockPool.OPTION,
                    stock=option.stock,
                    variant_type_id=variant_type.id,
                    option_id=option.id,
                )
            )

    if not constraints and product.stock is not None:
        constraints.append(StockConstraint(pool=StockPool.BASE, stock=product.stock))

    return constraints


def effective_stock(product, selected_options: dict[str, str] | None = None) -> int | None:
    """Stock available for this selection, or ``None`` when nothing tracks it."""
    constraints = stock_constraints(product, selected_options)
    if not constraints:
        return None
    return min(c.stock for c in constraints)


def check_availability(
    product,
    selected_options: dict[str, str] | None,
    requested_qty: int,
    current_cart_qty: int = 0,
) -> Availability:
    """Can ``requested_qty`` more units be added on top of what the cart holds?"""
    stock = effective_stock(product, selected_options)
    if stock is None:
        return Availability(available=True, available_stock=None, available_quantity=None)

    remaining = max(0, stock - current_cart_qty)
    if current_cart_qty + requested_qty <= stock:
        return Availability(available=True, available_stock=stock, available_quantity=remaining)

    if remaining > 0:
        message = f"Only {remaining} more can be purchased"
    else:
        message = "Out of stock"
    return Availability(available=False, available_stock=stock, available_quantity=remaining, message=message)


def check_cart_availability(
    product,
    selected_options: dict[str, str] | None,
    requested_qty: int,
    held=(),
) -> Availability:
    """Like ``check_availability``, counting every unit the cart already draws from the same counters.

    ``held`` is an iterable of ``(selected_options, quantity)`` pairs for lines
    of this product already in the cart. Two selections that differ can still
    share the base stock or a shared pool, so usage is summed per counter.
    """
    constraints = stock_constraints(product, selected_options)
    if not constraints:
        return Availability(available=True, available_stock=None, available_quantity=None)

    used: dict[tuple, int] = {}
    for held_options, held_qty in held:
        for constraint in stock_constraints(product, held_options):
            used[constraint.key] = used.get(constraint.key, 0) + held_qty

    stock = min(c.stock for c in constraints)
    remaining = min(max(0, c.stock - used.get(c.key, 0)) for c in constraints)
    if requested_qty <= remaining:
        return Availability(available=True, available_stock=stock, available_quantity=remaining)

    if remaining > 0:
        message = f"Only {remaining} more can be purchased"
    else:
        message = "Out of stock"
    return Availability(available=False, available_stock=stock, available_quantity=remaining, message=message)
