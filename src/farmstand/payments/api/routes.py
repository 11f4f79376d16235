"""FastAPI endpoints for payment intents and the payment provider webhook."""

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from farmstand.config import get_settings
from farmstand.payments.api.schemas import CreatePaymentIntentRequest, PaymentIntentResponse
from farmstand.payments.gateway import get_gateway
from farmstand.payments.webhook import PaymentWebhookProcessor

payment_router = APIRouter(prefix="/api", tags=["payments"])


@payment_router.post("/create-payment-intent", response_model=PaymentIntentResponse, response_model_by_alias=True)
def create_payment_intent(body: CreatePaymentIntentRequest) -> PaymentIntentResponse:
    amount = int(round(body.amount))
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than zero")

    result = get_gateway().create_intent(
        amount,
        (body.currency or get_settings().currency).lower(),
        body.metadata,
    )
    if not result.success:
        raise HTTPException(status_code=500, detail=result.failure_reason or "Payment intent creation failed")

    return PaymentIntentResponse(
        client_secret=result.client_secret,
        payment_intent_id=result.intent_id,
        livemode=result.livemode,
    )


@payment_router.post("/stripe-webhook")
async def stripe_webhook(request: Request, stripe_signature: str | None = Header(default=None)):
    """Reconcile a provider event. The raw body is required for signature checks."""
    payload = await request.body()
    processor = PaymentWebhookProcessor(get_gateway(), get_settings().stripe_webhook_secret)
    result = processor.process(payload, stripe_signature)

    if isinstance(result.body, str):
        return PlainTextResponse(result.body, status_code=result.status_code)
    return JSONResponse(result.body, status_code=result.status_code)
