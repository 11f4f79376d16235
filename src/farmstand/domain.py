"""Farmstand domain: catalogue, shipping, ordering, payments and identity.

A single Protean domain holds every aggregate so that the payment webhook can
reconcile an order, its stock and its coupon synchronously, one command per
unit of work.
"""

from protean.domain import Domain

farmstand = Domain(name="farmstand")
