"""Shipping cost calculation.

Each cart line is priced on its own: among the methods linked to the line's
product, the cheapest ``fee * boxes`` wins, and the line costs are summed.
There is no consolidation of several products into one box.
"""

from dataclasses import dataclass
from math import ceil

import structlog
from protean.utils.globals import current_domain

from farmstand.shipping.areas import resolve_area
from farmstand.shipping.method import FeeType, ShippingMethod

logger = structlog.get_logger(__name__)

FALLBACK_FEES = {"standard": 500, "express": 1000}


@dataclass(frozen=True)
class ShippingQuote:
    cost: int
    area: str | None
    used_fallback: bool


def cost_for_method(method, area: str) -> int:
    """Fee for one box of ``method`` delivered to ``area``."""
    fee_type = FeeType(method.fee_type)
    if fee_type is FeeType.UNIFORM:
        return method.uniform_fee or 0
    if fee_type is FeeType.AREA:
        return method.area_fee_table().get(area, 0)

    # Size-based: only the first configured box size is priced
    bucket = method.first_size_bucket()
    if bucket is None:
        return 0
    return (bucket.get("area_fees") or {}).get(area, 0)


def boxes_needed(method, quantity: int) -> int:
    capacity = 1
    if FeeType(method.fee_type) is FeeType.SIZE:
        bucket = method.first_size_bucket() or {}
        capacity = bucket.get("max_items_per_box") or method.max_items_per_box or 1
    return max(1, ceil(quantity / capacity))


def total_shipping_cost(lines, methods_by_product: dict[str, list], area: str) -> int:
    """Sum of the cheapest option per line. Lines without methods cost nothing."""
    total = 0
    for line in lines:
        methods = methods_by_product.get(str(line.product_id)) or []
        if not methods:
            logger.info("No shipping method linked to product", product_id=str(line.product_id))
            continue
        total += min(cost_for_method(m, area) * boxes_needed(m, line.quantity) for m in methods)
    return total


class ShippingCalculator:
    """Quote shipping for a cart against the stored shipping methods."""

    def quote(self, lines, postal_code: str | None, speed: str = "standard") -> ShippingQuote:
        fallback = FALLBACK_FEES.get(speed, FALLBACK_FEES["standard"])

        area = resolve_area(postal_code)
        if area is None:
            return ShippingQuote(cost=fallback, area=None, used_fallback=True)

        repo = current_domain.repository_for(ShippingMethod)
        methods_by_product = repo.methods_by_product(str(line.product_id) for line in lines)
        if not any(methods_by_product.values()):
            return ShippingQuote(cost=fallback, area=area.key, used_fallback=True)

        cost = total_shipping_cost(lines, methods_by_product, area.key)
        logger.debug("Shipping quoted", area=area.key, cost=cost, lines=len(lines))
        return ShippingQuote(cost=cost, area=area.key, used_fallback=False)
