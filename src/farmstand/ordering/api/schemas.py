"""Pydantic request/response schemas for checkout and coupon endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CartLineIn(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    selected_options: dict[str, str] = Field(default_factory=dict)


class StockCheckRequest(BaseModel):
    lines: list[CartLineIn]


class StockIssueOut(BaseModel):
    product_id: str
    title: str
    message: str
    available_quantity: int | None = None


class StockCheckResponse(BaseModel):
    available: bool
    issues: list[StockIssueOut] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    lines: list[CartLineIn]
    postal_code: str | None = None
    shipping_method: str = "standard"
    coupon_code: str | None = None


class QuoteResponse(BaseModel):
    subtotal: int
    discount: int
    shipping_cost: int
    total: int
    shipping_area: str | None = None
    used_fallback_shipping: bool = False


class DraftRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "payment_intent_id": "pi_3PabcXYZ",
                    "lines": [{"product_id": "prod-1", "quantity": 2, "selected_options": {"polish": "white"}}],
                    "email": "hanako@example.jp",
                    "last_name": "山田",
                    "first_name": "花子",
                    "phone": "090-1234-5678",
                    "postal_code": "100-0001",
                    "address": "千代田1-1",
                    "city": "千代田区",
                    "shipping_method": "standard",
                }
            ]
        }
    }

    payment_intent_id: str
    lines: list[CartLineIn]
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    postal_code: str = ""
    address: str = ""
    city: str = ""
    country: str = "JP"
    shipping_method: str = "standard"
    coupon_code: str | None = None
    auth_user_id: str | None = None


class DraftResponse(BaseModel):
    order_id: str
    subtotal: int
    discount: int
    shipping_cost: int
    total: int


class CreateCouponRequest(BaseModel):
    code: str = Field(..., max_length=50)
    name: str | None = Field(None, max_length=255)
    discount_type: str = Field("percentage", pattern="^(percentage|fixed)$")
    value: int = Field(..., ge=0)
    usage_limit: int | None = Field(None, ge=1)
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class CouponIdResponse(BaseModel):
    coupon_id: str


class UpdateOrderStatusRequest(BaseModel):
    order_status: str = Field(..., pattern="^(pending|processing|shipped|delivered|cancelled)$")


class BulkOrderStatusRequest(UpdateOrderStatusRequest):
    order_ids: list[str] = Field(..., min_length=1)


class OrderStatusResponse(BaseModel):
    changed: bool


class BulkOrderStatusResponse(BaseModel):
    updated: list[str]
    missing: list[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str = "ok"
