"""Pydantic request/response schemas for the payments API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreatePaymentIntentRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": 10800,
                    "currency": "jpy",
                    "metadata": {"cart_items": "2", "email": "hanako@example.jp"},
                }
            ]
        }
    }

    amount: float
    currency: str | None = Field(None, max_length=3)
    metadata: dict[str, str] = Field(default_factory=dict)


class PaymentIntentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(..., alias="clientSecret")
    payment_intent_id: str = Field(..., alias="paymentIntentId")
    livemode: bool = False
