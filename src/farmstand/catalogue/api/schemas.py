"""Pydantic request/response schemas for the catalogue admin API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from farmstand.catalogue.variants import VariantType


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Koshihikari rice 5kg",
                    "price": 3200,
                    "stock": 40,
                    "handle": "koshihikari-5kg",
                    "category": "rice",
                    "variants_config": [
                        {
                            "id": "polish",
                            "name": "Type",
                            "stockManagement": "individual",
                            "sharedStock": None,
                            "options": [
                                {"id": "brown", "value": "Brown rice", "priceAdjustment": 0, "stock": 10},
                                {"id": "white", "value": "White rice", "priceAdjustment": 200, "stock": 25},
                            ],
                        }
                    ],
                }
            ]
        }
    }

    title: str = Field(..., max_length=255)
    price: int = Field(..., ge=0)
    stock: int | None = Field(None, ge=0)
    handle: str | None = Field(None, max_length=255)
    category: str | None = Field(None, max_length=100)
    sku: str | None = Field(None, max_length=50)
    description: str | None = None
    variants_config: list[VariantType] = Field(default_factory=list)


class ConfigureVariantsRequest(BaseModel):
    variants_config: list[VariantType] = Field(default_factory=list)


class SetStockRequest(BaseModel):
    stock: int | None = Field(None, ge=0)


class ProductIdResponse(BaseModel):
    product_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
