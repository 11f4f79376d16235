"""FastAPI endpoints for catalogue administration."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from farmstand.catalogue.api.schemas import (
    ConfigureVariantsRequest,
    CreateProductRequest,
    ProductIdResponse,
    SetStockRequest,
    StatusResponse,
)
from farmstand.catalogue.management import ConfigureVariants, CreateProduct, SetProductStock
from farmstand.catalogue.variants import dump_variants_config

product_router = APIRouter(prefix="/api/admin/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        title=body.title,
        price=body.price,
        stock=body.stock,
        handle=body.handle,
        category=body.category,
        sku=body.sku,
        description=body.description,
        variants_config=dump_variants_config(body.variants_config) if body.variants_config else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.put("/{product_id}/variants", response_model=StatusResponse)
async def configure_variants(product_id: str, body: ConfigureVariantsRequest) -> StatusResponse:
    command = ConfigureVariants(
        product_id=product_id,
        variants_config=dump_variants_config(body.variants_config),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def set_stock(product_id: str, body: SetStockRequest) -> StatusResponse:
    command = SetProductStock(product_id=product_id, stock=body.stock)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
