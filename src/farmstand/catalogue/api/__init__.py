"""Catalogue API package."""

from farmstand.catalogue.api.routes import product_router

__all__ = ["product_router"]
