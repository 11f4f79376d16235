"""Checkout orchestration.

Sequence, each step able to stop the flow:

1. re-validate stock for every cart line against freshly loaded products;
2. make sure a payment intent exists for the current total;
3. make sure the order draft for that intent matches the current cart;
4. confirm the payment with the provider and clear the cart on success.

Marking the order paid and consuming stock is left to the payment webhook.
"""

import re
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from farmstand.catalogue.product import Product
from farmstand.catalogue.stock import check_cart_availability
from farmstand.exceptions import CheckoutInputError, InsufficientStock
from farmstand.ordering.cart import StockIssue
from farmstand.ordering.coupon import Coupon
from farmstand.ordering.drafts import DraftContact, OrderDraftWriter
from farmstand.ordering.order import ShippingSpeed
from farmstand.payments.gateway import get_gateway
from farmstand.payments.intents import IntentOutcome, PaymentIntentCache
from farmstand.shipping.areas import normalize_postal_code
from farmstand.shipping.calculator import ShippingCalculator

logger = structlog.get_logger(__name__)

SUCCESS_REDIRECT = "/checkout/success"

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE = re.compile(r"^[0-9+\-() ]{10,20}$")

REQUIRED_FIELDS = ("email", "last_name", "first_name", "phone", "postal_code", "address", "city")


@dataclass
class CheckoutForm:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    postal_code: str = ""
    address: str = ""
    city: str = ""
    country: str = "JP"
    shipping_method: str = ShippingSpeed.STANDARD.value
    coupon_code: str | None = None

    def validate(self) -> None:
        """Raise ``CheckoutInputError`` listing every missing or malformed field."""
        errors: dict[str, list[str]] = {}
        for name in REQUIRED_FIELDS:
            if not (getattr(self, name) or "").strip():
                errors.setdefault(name, []).append("This field is required")

        if self.email and not _EMAIL.match(self.email.strip()):
            errors.setdefault("email", []).append("Enter a valid email address")
        if self.phone and not _PHONE.match(self.phone.strip()):
            errors.setdefault("phone", []).append("Enter a valid phone number")
        if self.postal_code and normalize_postal_code(self.postal_code) is None:
            errors.setdefault("postal_code", []).append("Postal code must be 7 digits")
        if self.shipping_method not in {speed.value for speed in ShippingSpeed}:
            errors.setdefault("shipping_method", []).append("Unknown shipping method")

        if errors:
            raise CheckoutInputError(errors)

    def contact(self, auth_user_id=None) -> DraftContact:
        return DraftContact(
            email=self.email.strip(),
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            phone=self.phone.strip(),
            postal_code=normalize_postal_code(self.postal_code) or self.postal_code,
            address=self.address.strip(),
            city=self.city.strip(),
            country=self.country or "JP",
            shipping_method=self.shipping_method,
            auth_user_id=auth_user_id,
        )


@dataclass(frozen=True)
class CheckoutQuote:
    subtotal: int
    discount: int
    shipping_cost: int
    total: int
    coupon_id: str | None = None
    shipping_area: str | None = None
    used_fallback_shipping: bool = False


@dataclass(frozen=True)
class PreparedCheckout:
    quote: CheckoutQuote
    intent: IntentOutcome
    order_id: str | None = None

    @property
    def ready(self) -> bool:
        return self.intent.ok and self.order_id is not None


@dataclass(frozen=True)
class CheckoutResult:
    success: bool
    redirect: str | None = None
    error: str | None = None


class CheckoutOrchestrator:
    def __init__(
        self,
        cart,
        form: CheckoutForm,
        auth_user_id: str | None = None,
        gateway=None,
        intent_cache: PaymentIntentCache | None = None,
        calculator: ShippingCalculator | None = None,
        draft_writer: OrderDraftWriter | None = None,
    ) -> None:
        self.cart = cart
        self.form = form
        self.auth_user_id = auth_user_id
        self.gateway = gateway
        self.intent_cache = intent_cache or PaymentIntentCache(gateway=self.gateway)
        self.calculator = calculator or ShippingCalculator()
        self.draft_writer = draft_writer or OrderDraftWriter()
        self.prepared: PreparedCheckout | None = None

    # -------------------------------------------------------------------
    # Step 1: stock
    # -------------------------------------------------------------------
    def validate_stock(self) -> None:
        """Raise ``InsufficientStock`` for lines the current catalogue cannot cover.

        Lines are checked in cart order. Earlier lines claim their units first,
        so two selections drawing on one counter cannot both take its last units.
        """
        repo = current_domain.repository_for(Product)
        products = {}
        held: dict[str, list[tuple[dict, int]]] = {}
        issues = []
        for line in self.cart:
            if line.product_id not in products:
                try:
                    products[line.product_id] = repo.get(line.product_id)
                except ObjectNotFoundError:
                    products[line.product_id] = None
            product = products[line.product_id]
            if product is None:
                issues.append(StockIssue(line.product_id, line.title, "No longer available", 0))
                continue

            claimed = held.setdefault(line.product_id, [])
            availability = check_cart_availability(product, line.selected_options, line.quantity, claimed)
            claimed.append((line.selected_options, line.quantity))
            if not availability.available:
                issues.append(
                    StockIssue(line.product_id, line.title, availability.message, availability.available_quantity)
                )

        if issues:
            logger.info("Checkout blocked by stock", lines=[issue.product_id for issue in issues])
            raise InsufficientStock(issues)

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def _coupon(self):
        code = (self.form.coupon_code or "").strip()
        if not code:
            return None
        coupon = current_domain.repository_for(Coupon).find_by_code(code)
        if coupon is None:
            raise CheckoutInputError({"coupon_code": ["Unknown coupon code"]})
        if not coupon.is_redeemable():
            raise CheckoutInputError({"coupon_code": ["This coupon can no longer be used"]})
        return coupon

    def quote(self) -> CheckoutQuote:
        subtotal = self.cart.subtotal
        coupon = self._coupon()
        discount = coupon.discount_for(subtotal) if coupon else 0
        shipping = self.calculator.quote(self.cart.lines, self.form.postal_code, self.form.shipping_method)
        return CheckoutQuote(
            subtotal=subtotal,
            discount=discount,
            shipping_cost=shipping.cost,
            total=subtotal - discount + shipping.cost,
            coupon_id=str(coupon.id) if coupon else None,
            shipping_area=shipping.area,
            used_fallback_shipping=shipping.used_fallback,
        )

    # -------------------------------------------------------------------
    # Steps 1-3
    # -------------------------------------------------------------------
    def prepare(self) -> PreparedCheckout:
        if not self.cart.lines:
            raise CheckoutInputError({"cart": ["Cart is empty"]})
        self.form.validate()
        self.validate_stock()

        quote = self.quote()
        intent = self.intent_cache.ensure(
            quote.total,
            len(self.cart),
            metadata={"cart_items": str(self.cart.item_count), "email": self.form.email.strip()},
        )
        if not intent.ok:
            self.prepared = PreparedCheckout(quote=quote, intent=intent)
            return self.prepared

        order_id = self.draft_writer.upsert_draft(
            payment_intent_id=intent.intent_id,
            lines=self.cart.lines,
            contact=self.form.contact(self.auth_user_id),
            shipping_cost=quote.shipping_cost,
            discount=quote.discount,
            coupon_id=quote.coupon_id,
        )
        self.prepared = PreparedCheckout(quote=quote, intent=intent, order_id=order_id)
        return self.prepared

    # -------------------------------------------------------------------
    # Step 4
    # -------------------------------------------------------------------
    def confirm(self, payment_method: str | None = None) -> CheckoutResult:
        if self.prepared is None or not self.prepared.ready:
            return CheckoutResult(success=False, error="Checkout is not ready for payment")

        self.validate_stock()
        result = (self.gateway or get_gateway()).confirm_intent(self.prepared.intent.intent_id, payment_method)
        if not result.success:
            logger.info(
                "Payment confirmation failed",
                intent_id=self.prepared.intent.intent_id,
                reason=result.failure_reason,
            )
            return CheckoutResult(success=False, error=result.failure_reason or "Payment failed")

        self.cart.clear()
        self.intent_cache.invalidate()
        logger.info("Payment confirmed", intent_id=self.prepared.intent.intent_id, order_id=self.prepared.order_id)
        return CheckoutResult(success=True, redirect=SUCCESS_REDIRECT)
