"""Farmstand: storefront checkout, shipping and payment reconciliation."""
