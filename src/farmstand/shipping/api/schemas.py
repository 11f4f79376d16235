"""Pydantic request/response schemas for the shipping API."""

from __future__ import annotations

import json

from pydantic import BaseModel, Field


class SizeFeeBucket(BaseModel):
    area_fees: dict[str, int] = Field(default_factory=dict)
    max_items_per_box: int | None = Field(None, ge=1)


class ShippingMethodRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Rice box (60 size)",
                    "fee_type": "size",
                    "size_fees": {
                        "60": {
                            "area_fees": {"kanto": 900, "kansai": 1000, "hokkaido": 1500},
                            "max_items_per_box": 5,
                        }
                    },
                    "box_size": 60,
                    "max_weight_kg": 10,
                }
            ]
        }
    }

    name: str = Field(..., max_length=100)
    fee_type: str = Field("uniform", pattern="^(uniform|area|size)$")
    uniform_fee: int | None = Field(None, ge=0)
    area_fees: dict[str, int] = Field(default_factory=dict)
    size_fees: dict[str, SizeFeeBucket] = Field(default_factory=dict)
    max_items_per_box: int | None = Field(None, ge=1)
    box_size: int | None = Field(None, ge=0)
    max_weight_kg: float | None = Field(None, ge=0)

    def area_fees_json(self) -> str | None:
        return json.dumps(self.area_fees) if self.area_fees else None

    def size_fees_json(self) -> str | None:
        if not self.size_fees:
            return None
        return json.dumps({size: bucket.model_dump() for size, bucket in self.size_fees.items()})


class CreateShippingMethodRequest(ShippingMethodRequest):
    product_ids: list[str] = Field(default_factory=list)


class LinkProductsRequest(BaseModel):
    product_ids: list[str]


class ShippingMethodIdResponse(BaseModel):
    shipping_method_id: str


class AreaResponse(BaseModel):
    postal_code: str
    prefecture: str
    area: str


class PostalAddressResponse(BaseModel):
    postal_code: str
    prefecture: str
    city: str
    town: str


class StatusResponse(BaseModel):
    status: str = "ok"
