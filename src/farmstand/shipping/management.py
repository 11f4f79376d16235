"""Shipping method administration: commands and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from farmstand.domain import farmstand
from farmstand.shipping.method import ShippingMethod


@farmstand.command(part_of="ShippingMethod")
class CreateShippingMethod:
    name = String(required=True, max_length=100)
    fee_type = String(required=True, max_length=20)
    uniform_fee = Integer(min_value=0)
    area_fees = Text()
    size_fees = Text()
    max_items_per_box = Integer(min_value=1)
    box_size = Integer(min_value=0)
    max_weight_kg = Float(min_value=0.0)
    product_ids = Text()  # JSON list


@farmstand.command(part_of="ShippingMethod")
class UpdateShippingMethod:
    shipping_method_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    fee_type = String(required=True, max_length=20)
    uniform_fee = Integer(min_value=0)
    area_fees = Text()
    size_fees = Text()
    max_items_per_box = Integer(min_value=1)
    box_size = Integer(min_value=0)
    max_weight_kg = Float(min_value=0.0)


@farmstand.command(part_of="ShippingMethod")
class LinkShippingMethodProducts:
    """Replace the set of products a shipping method applies to."""

    shipping_method_id = Identifier(required=True)
    product_ids = Text(required=True)  # JSON list


@farmstand.command_handler(part_of=ShippingMethod)
class ShippingMethodManagementHandler:
    @handle(CreateShippingMethod)
    def create_shipping_method(self, command):
        method = ShippingMethod.create(
            name=command.name,
            fee_type=command.fee_type,
            uniform_fee=command.uniform_fee,
            area_fees=command.area_fees,
            size_fees=command.size_fees,
            max_items_per_box=command.max_items_per_box,
            box_size=command.box_size,
            max_weight_kg=command.max_weight_kg,
        )
        if command.product_ids:
            method.link_products(json.loads(command.product_ids))
        current_domain.repository_for(ShippingMethod).add(method)
        return str(method.id)

    @handle(UpdateShippingMethod)
    def update_shipping_method(self, command):
        repo = current_domain.repository_for(ShippingMethod)
        method = repo.get(command.shipping_method_id)
        method.update(
            name=command.name,
            fee_type=command.fee_type,
            uniform_fee=command.uniform_fee,
            area_fees=command.area_fees,
            size_fees=command.size_fees,
            max_items_per_box=command.max_items_per_box,
            box_size=command.box_size,
            max_weight_kg=command.max_weight_kg,
        )
        repo.add(method)

    @handle(LinkShippingMethodProducts)
    def link_products(self, command):
        repo = current_domain.repository_for(ShippingMethod)
        method = repo.get(command.shipping_method_id)
        method.link_products(json.loads(command.product_ids))
        repo.add(method)
