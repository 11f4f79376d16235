"""FastAPI endpoints for shipping areas, postal lookup and method administration."""

import json

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from farmstand.exceptions import InvalidPostalCode, PostalLookupUnavailable
from farmstand.shipping.api.schemas import (
    AreaResponse,
    CreateShippingMethodRequest,
    LinkProductsRequest,
    PostalAddressResponse,
    ShippingMethodIdResponse,
    ShippingMethodRequest,
    StatusResponse,
)
from farmstand.shipping.areas import resolve_area
from farmstand.shipping.management import (
    CreateShippingMethod,
    LinkShippingMethodProducts,
    UpdateShippingMethod,
)
from farmstand.shipping.postal import PostalCodeClient

shipping_router = APIRouter(prefix="/api/shipping", tags=["shipping"])
postal_router = APIRouter(prefix="/api/postal-codes", tags=["shipping"])
shipping_admin_router = APIRouter(prefix="/api/admin/shipping-methods", tags=["shipping"])


@shipping_router.get("/areas/{postal_code}", response_model=AreaResponse)
async def get_area(postal_code: str) -> AreaResponse:
    area = resolve_area(postal_code)
    if area is None:
        raise HTTPException(status_code=404, detail=f"No shipping area for postal code {postal_code}")
    return AreaResponse(postal_code=area.postal_code, prefecture=area.prefecture, area=area.key)


@postal_router.get("/{code}", response_model=PostalAddressResponse)
def lookup_postal_code(code: str) -> PostalAddressResponse:
    try:
        address = PostalCodeClient().lookup(code)
    except InvalidPostalCode as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PostalLookupUnavailable as exc:
        raise HTTPException(status_code=503, detail="Address lookup is temporarily unavailable") from exc

    if address is None:
        raise HTTPException(status_code=404, detail=f"No address registered for {code}")
    return PostalAddressResponse(
        postal_code=address.postal_code,
        prefecture=address.prefecture,
        city=address.city,
        town=address.town,
    )


@shipping_admin_router.post("", status_code=201, response_model=ShippingMethodIdResponse)
async def create_shipping_method(body: CreateShippingMethodRequest) -> ShippingMethodIdResponse:
    command = CreateShippingMethod(
        name=body.name,
        fee_type=body.fee_type,
        uniform_fee=body.uniform_fee,
        area_fees=body.area_fees_json(),
        size_fees=body.size_fees_json(),
        max_items_per_box=body.max_items_per_box,
        box_size=body.box_size,
        max_weight_kg=body.max_weight_kg,
        product_ids=json.dumps(body.product_ids),
    )
    result = current_domain.process(command, asynchronous=False)
    return ShippingMethodIdResponse(shipping_method_id=result)


@shipping_admin_router.put("/{shipping_method_id}", response_model=StatusResponse)
async def update_shipping_method(shipping_method_id: str, body: ShippingMethodRequest) -> StatusResponse:
    command = UpdateShippingMethod(
        shipping_method_id=shipping_method_id,
        name=body.name,
        fee_type=body.fee_type,
        uniform_fee=body.uniform_fee,
        area_fees=body.area_fees_json(),
        size_fees=body.size_fees_json(),
        max_items_per_box=body.max_items_per_box,
        box_size=body.box_size,
        max_weight_kg=body.max_weight_kg,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@shipping_admin_router.put("/{shipping_method_id}/products", response_model=StatusResponse)
async def link_products(shipping_method_id: str, body: LinkProductsRequest) -> StatusResponse:
    command = LinkShippingMethodProducts(
        shipping_method_id=shipping_method_id,
        product_ids=json.dumps(body.product_ids),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
