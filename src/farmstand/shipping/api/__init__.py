"""Shipping API package."""

from farmstand.shipping.api.routes import postal_router, shipping_admin_router, shipping_router

__all__ = ["shipping_router", "postal_router", "shipping_admin_router"]
