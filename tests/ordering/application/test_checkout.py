import json

import pytest
from protean import current_domain

from farmstand.catalogue.management import CreateProduct, SetProductStock
from farmstand.catalogue.product import Product
from farmstand.exceptions import CheckoutInputError, InsufficientStock
from farmstand.ordering.cart import Cart, CartLine
from farmstand.ordering.checkout import SUCCESS_REDIRECT, CheckoutForm, CheckoutOrchestrator
from farmstand.ordering.coupon import CreateCoupon
from farmstand.ordering.order import Order
from farmstand.payments.intents import INTENT_INIT_ERROR
from farmstand.shipping.management import CreateShippingMethod


def _product(stock=10, price=5000):
    product_id = current_domain.process(
        CreateProduct(title="Koshihikari rice", price=price, stock=stock),
        asynchronous=False,
    )
    return current_domain.repository_for(Product).get(product_id)


def _form(**overrides):
    payload = {
        "email": "hanako@example.jp",
        "first_name": "花子",
        "last_name": "山田",
        "phone": "090-1234-5678",
        "postal_code": "100-0001",
        "address": "千代田1-1",
        "city": "千代田区",
    } | overrides
    return CheckoutForm(**payload)


def _cart(product, quantity=2):
    cart = Cart()
    cart.add(product, quantity)
    return cart


def _box_shipping(product, fee=800):
    current_domain.process(
        CreateShippingMethod(
            name="Rice box",
            fee_type="size",
            size_fees=json.dumps({"60": {"area_fees": {"kanto": fee}, "max_items_per_box": 5}}),
            product_ids=json.dumps([str(product.id)]),
        ),
        asynchronous=False,
    )


class TestCheckoutForm:
    def test_collects_every_problem(self):
        form = CheckoutForm(email="not-an-email", phone="12", postal_code="12-34", shipping_method="teleport")

        with pytest.raises(CheckoutInputError) as exc:
            form.validate()

        errors = exc.value.errors
        assert set(errors) >= {"email", "phone", "postal_code", "first_name", "address", "city", "shipping_method"}

    def test_valid_form(self):
        _form().validate()

    def test_contact_normalises_postal_code(self):
        assert _form().contact("auth-1").postal_code == "1000001"


class TestValidateStock:
    def test_passes_when_stock_covers_cart(self):
        product = _product(stock=2)

        CheckoutOrchestrator(_cart(product, 2), _form()).validate_stock()

    def test_uses_fresh_stock(self):
        product = _product(stock=5)
        cart = _cart(product, 3)
        current_domain.process(SetProductStock(product_id=str(product.id), stock=1), asynchronous=False)

        with pytest.raises(InsufficientStock) as exc:
            CheckoutOrchestrator(cart, _form()).validate_stock()

        assert exc.value.issues[0].available_quantity == 1

    def test_deleted_product_is_reported(self):
        product = _product()
        cart = _cart(product, 1)
        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(product.id))

        with pytest.raises(InsufficientStock) as exc:
            CheckoutOrchestrator(cart, _form()).validate_stock()

        assert exc.value.issues[0].message == "No longer available"

    def test_lines_sharing_base_stock_cannot_oversell(self):
        product_id = current_domain.process(
            CreateProduct(
                title="Koshihikari rice",
                price=3000,
                stock=3,
                variants_config=json.dumps(
                    [
                        {
                            "id": "polish",
                            "name": "Polish",
                            "stockManagement": "none",
                            "options": [{"id": "white", "value": "White"}, {"id": "brown", "value": "Brown"}],
                        }
                    ]
                ),
            ),
            asynchronous=False,
        )
        cart = Cart(
            [
                CartLine(product_id, "Koshihikari rice", 3000, 2, {"polish": "white"}),
                CartLine(product_id, "Koshihikari rice", 3000, 2, {"polish": "brown"}),
            ]
        )

        with pytest.raises(InsufficientStock) as exc:
            CheckoutOrchestrator(cart, _form()).prepare()

        assert len(exc.value.issues) == 1
        assert exc.value.issues[0].available_quantity == 1
        assert current_domain.repository_for(Order)._dao.query.all().items == []


class TestQuote:
    def test_subtotal_plus_shipping(self):
        product = _product()
        _box_shipping(product)

        quote = CheckoutOrchestrator(_cart(product, 2), _form()).quote()

        assert (quote.subtotal, quote.discount, quote.shipping_cost, quote.total) == (10000, 0, 800, 10800)
        assert quote.shipping_area == "kanto"

    def test_coupon_discount(self):
        product = _product()
        _box_shipping(product)
        current_domain.process(CreateCoupon(code="HARVEST10", discount_type="percentage", value=10), asynchronous=False)

        quote = CheckoutOrchestrator(_cart(product, 2), _form(coupon_code="harvest10")).quote()

        assert quote.discount == 1000
        assert quote.total == 9800
        assert quote.coupon_id is not None

    def test_unknown_coupon(self):
        product = _product()

        with pytest.raises(CheckoutInputError) as exc:
            CheckoutOrchestrator(_cart(product), _form(coupon_code="NOPE")).quote()

        assert "coupon_code" in exc.value.errors


class TestPrepareAndConfirm:
    def test_prepare_creates_intent_and_draft(self, fake_gateway):
        product = _product()
        _box_shipping(product)
        orchestrator = CheckoutOrchestrator(_cart(product, 2), _form())

        prepared = orchestrator.prepare()

        assert prepared.ready
        assert fake_gateway.calls[0]["amount"] == 10800
        order = current_domain.repository_for(Order).get(prepared.order_id)
        assert order.payment_intent_id == prepared.intent.intent_id
        assert order.total == 10800
        assert order.payment_status == "pending"

    def test_repeated_prepare_reuses_intent_and_draft(self, fake_gateway):
        product = _product()
        orchestrator = CheckoutOrchestrator(_cart(product, 2), _form())

        first = orchestrator.prepare()
        second = orchestrator.prepare()

        assert second.intent.reused is True
        assert second.order_id == first.order_id
        assert len([c for c in fake_gateway.calls if c["method"] == "create_intent"]) == 1

    def test_empty_cart(self):
        with pytest.raises(CheckoutInputError):
            CheckoutOrchestrator(Cart(), _form()).prepare()

    def test_intent_failure_leaves_no_draft(self, fake_gateway):
        fake_gateway.configure(should_succeed=False)
        product = _product()

        prepared = CheckoutOrchestrator(_cart(product), _form()).prepare()

        assert prepared.ready is False
        assert prepared.intent.error == INTENT_INIT_ERROR
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_confirm_clears_cart_without_marking_paid(self, fake_gateway):
        product = _product()
        cart = _cart(product, 2)
        orchestrator = CheckoutOrchestrator(cart, _form())
        prepared = orchestrator.prepare()

        result = orchestrator.confirm("pm_card_visa")

        assert result.success
        assert result.redirect == SUCCESS_REDIRECT
        assert len(cart) == 0
        assert fake_gateway.intents[prepared.intent.intent_id]["status"] == "succeeded"
        assert current_domain.repository_for(Order).get(prepared.order_id).payment_status == "pending"
        assert current_domain.repository_for(Product).get(product.id).stock == 10

    def test_declined_payment_keeps_cart(self, fake_gateway):
        product = _product()
        cart = _cart(product, 1)
        orchestrator = CheckoutOrchestrator(cart, _form())
        orchestrator.prepare()
        fake_gateway.configure(should_succeed=False, failure_reason="Your card was declined.")

        result = orchestrator.confirm()

        assert result.success is False
        assert result.error == "Your card was declined."
        assert len(cart) == 1

    def test_confirm_without_prepare(self):
        result = CheckoutOrchestrator(Cart(), _form()).confirm()

        assert result.success is False
