"""FastAPI endpoints for checkout, coupon administration and order administration."""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from farmstand.catalogue.product import Product
from farmstand.exceptions import CheckoutInputError, InsufficientStock
from farmstand.ordering.api.schemas import (
    BulkOrderStatusRequest,
    BulkOrderStatusResponse,
    CouponIdResponse,
    CreateCouponRequest,
    DraftRequest,
    DraftResponse,
    OrderStatusResponse,
    QuoteRequest,
    QuoteResponse,
    StatusResponse,
    StockCheckRequest,
    StockCheckResponse,
    StockIssueOut,
    UpdateOrderStatusRequest,
)
from farmstand.ordering.cart import Cart, CartLine
from farmstand.ordering.checkout import CheckoutForm, CheckoutOrchestrator
from farmstand.ordering.coupon import CreateCoupon
from farmstand.ordering.fulfilment import update_order_status, update_order_statuses
from farmstand.ordering.payment import RefundOrder

checkout_router = APIRouter(prefix="/api/checkout", tags=["checkout"])
coupon_router = APIRouter(prefix="/api/admin/coupons", tags=["coupons"])
order_admin_router = APIRouter(prefix="/api/admin/orders", tags=["orders"])


def _priced_cart(lines) -> Cart:
    """Rebuild the cart with prices taken from the current catalogue."""
    repo = current_domain.repository_for(Product)
    cart = Cart()
    for line in lines:
        product = repo.get(line.product_id)
        cart.lines.append(
            CartLine(
                product_id=str(product.id),
                title=product.title,
                unit_price=product.price_for(line.selected_options),
                quantity=line.quantity,
                selected_options=dict(line.selected_options),
            )
        )
    return cart


def _stock_conflict(exc: InsufficientStock) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=[StockIssueOut(**asdict(issue)).model_dump() for issue in exc.issues],
    )


@checkout_router.post("/stock-check", response_model=StockCheckResponse)
async def stock_check(body: StockCheckRequest) -> StockCheckResponse:
    cart = Cart([CartLine(line.product_id, "", 0, line.quantity, dict(line.selected_options)) for line in body.lines])
    orchestrator = CheckoutOrchestrator(cart, CheckoutForm())
    try:
        orchestrator.validate_stock()
    except InsufficientStock as exc:
        return StockCheckResponse(
            available=False,
            issues=[StockIssueOut(**asdict(issue)) for issue in exc.issues],
        )
    return StockCheckResponse(available=True)


@checkout_router.post("/quote", response_model=QuoteResponse)
async def quote(body: QuoteRequest) -> QuoteResponse:
    form = CheckoutForm(
        postal_code=body.postal_code or "",
        shipping_method=body.shipping_method,
        coupon_code=body.coupon_code,
    )
    orchestrator = CheckoutOrchestrator(_priced_cart(body.lines), form)
    try:
        result = orchestrator.quote()
    except CheckoutInputError as exc:
        raise HTTPException(status_code=400, detail=exc.errors) from exc

    return QuoteResponse(
        subtotal=result.subtotal,
        discount=result.discount,
        shipping_cost=result.shipping_cost,
        total=result.total,
        shipping_area=result.shipping_area,
        used_fallback_shipping=result.used_fallback_shipping,
    )


@checkout_router.post("/draft", response_model=DraftResponse)
async def save_draft(body: DraftRequest) -> DraftResponse:
    form = CheckoutForm(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        postal_code=body.postal_code,
        address=body.address,
        city=body.city,
        country=body.country,
        shipping_method=body.shipping_method,
        coupon_code=body.coupon_code,
    )
    orchestrator = CheckoutOrchestrator(_priced_cart(body.lines), form, auth_user_id=body.auth_user_id)
    try:
        form.validate()
        orchestrator.validate_stock()
        result = orchestrator.quote()
    except CheckoutInputError as exc:
        raise HTTPException(status_code=400, detail=exc.errors) from exc
    except InsufficientStock as exc:
        raise _stock_conflict(exc) from exc

    order_id = orchestrator.draft_writer.upsert_draft(
        payment_intent_id=body.payment_intent_id,
        lines=orchestrator.cart.lines,
        contact=form.contact(body.auth_user_id),
        shipping_cost=result.shipping_cost,
        discount=result.discount,
        coupon_id=result.coupon_id,
    )
    return DraftResponse(
        order_id=order_id,
        subtotal=result.subtotal,
        discount=result.discount,
        shipping_cost=result.shipping_cost,
        total=result.total,
    )


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    command = CreateCoupon(
        code=body.code,
        name=body.name,
        discount_type=body.discount_type,
        value=body.value,
        usage_limit=body.usage_limit,
        starts_at=body.starts_at,
        ends_at=body.ends_at,
    )
    result = current_domain.process(command, asynchronous=False)
    return CouponIdResponse(coupon_id=result)


@order_admin_router.put("/status", response_model=BulkOrderStatusResponse)
async def update_order_statuses_in_bulk(body: BulkOrderStatusRequest) -> BulkOrderStatusResponse:
    updated, missing = update_order_statuses(body.order_ids, body.order_status)
    return BulkOrderStatusResponse(updated=updated, missing=missing)


@order_admin_router.put("/{order_id}/status", response_model=OrderStatusResponse)
async def update_single_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderStatusResponse:
    return OrderStatusResponse(changed=update_order_status(order_id, body.order_status))


@order_admin_router.post("/{order_id}/refund", response_model=StatusResponse)
async def refund_order(order_id: str) -> StatusResponse:
    """Record a refund issued from the payment provider's dashboard."""
    current_domain.process(RefundOrder(order_id=order_id), asynchronous=False)
    return StatusResponse()
