"""Farmstand FastAPI application.

Storefront checkout endpoints, the payment provider webhook and the admin
endpoints, all processed synchronously inside the farmstand domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from farmstand.domain import farmstand
from farmstand.utils.logging import add_context, clear_context, configure_logging, get_logger

configure_logging(log_file_prefix="farmstand")
logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
farmstand.init()
logger.info("Domain initialized", domain=farmstand.name)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Farmstand API",
    description="Storefront checkout, shipping and payment reconciliation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the farmstand domain context for API requests."""
    if not request.url.path.startswith("/api"):
        return await call_next(request)

    add_context(method=request.method, path=request.url.path)
    try:
        with farmstand.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from farmstand.catalogue.api import product_router  # noqa: E402
from farmstand.ordering.api import checkout_router, coupon_router, order_admin_router  # noqa: E402
from farmstand.payments.api import payment_router  # noqa: E402
from farmstand.shipping.api import postal_router, shipping_admin_router, shipping_router  # noqa: E402

app.include_router(payment_router)
app.include_router(checkout_router)
app.include_router(shipping_router)
app.include_router(postal_router)
app.include_router(product_router)
app.include_router(shipping_admin_router)
app.include_router(coupon_router)
app.include_router(order_admin_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": farmstand.name})
