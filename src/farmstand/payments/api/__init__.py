"""Payments API package."""

from farmstand.payments.api.routes import payment_router

__all__ = ["payment_router"]
