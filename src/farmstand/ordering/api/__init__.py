"""Ordering API package."""

from farmstand.ordering.api.routes import checkout_router, coupon_router, order_admin_router

__all__ = ["checkout_router", "coupon_router", "order_admin_router"]
