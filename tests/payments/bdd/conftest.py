"""Shared BDD fixtures and step definitions for payment reconciliation."""

import json

from protean import current_domain
from pytest_bdd import given, parsers, then

from farmstand.catalogue.management import CreateProduct
from farmstand.catalogue.product import Product
from farmstand.ordering.cart import CartLine
from farmstand.ordering.drafts import DraftContact, OrderDraftWriter
from farmstand.ordering.order import Order


@given(
    parsers.cfparse('a product "{title}" priced {price:d} with {stock:d} "{option_id}" units in stock'),
    target_fixture="product_id",
)
def _(title, price, stock, option_id):
    config = [
        {
            "id": "polish",
            "name": "Polish",
            "stockManagement": "individual",
            "options": [{"id": option_id, "value": option_id.title(), "stock": stock}],
        }
    ]
    return current_domain.process(
        CreateProduct(title=title, price=price, variants_config=json.dumps(config)),
        asynchronous=False,
    )


@given(
    parsers.cfparse('a pending order for intent "{intent_id}" with {quantity:d} units and shipping {shipping:d}'),
    target_fixture="order_id",
)
def _(product_id, intent_id, quantity, shipping):
    product = current_domain.repository_for(Product).get(product_id)
    option_id = product.variant_types()[0].options[0].id
    contact = DraftContact(
        email="hanako@example.jp",
        first_name="花子",
        last_name="山田",
        phone="090-1234-5678",
        postal_code="1000001",
        address="千代田1-1",
        city="千代田区",
    )
    lines = [CartLine(product_id, product.title, product.price, quantity, {"polish": option_id})]
    return OrderDraftWriter().upsert_draft(intent_id, lines, contact, shipping_cost=shipping)


@then(parsers.cfparse("the webhook answers {status_code:d}"))
def _(result, status_code):
    assert result.status_code == status_code


@then(parsers.cfparse('the order is "{payment_status}"'))
def _(order_id, payment_status):
    assert current_domain.repository_for(Order).get(order_id).payment_status == payment_status


@then(parsers.cfparse('{remaining:d} "{option_id}" units remain'))
def _(product_id, remaining, option_id):
    product = current_domain.repository_for(Product).get(product_id)
    assert product.variant_types()[0].option(option_id).stock == remaining
