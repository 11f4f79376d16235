from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers

from farmstand.exceptions import InvalidPostalCode, PostalLookupUnavailable
from farmstand.shipping.api import postal_router, shipping_admin_router, shipping_router
from farmstand.shipping.method import ShippingMethod
from farmstand.shipping.postal import PostalAddress


@pytest.fixture
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(shipping_router)
    app.include_router(postal_router)
    app.include_router(shipping_admin_router)
    return TestClient(app)


class TestAreaEndpoint:
    def test_resolves_area(self, client):
        response = client.get("/api/shipping/areas/100-0001")

        assert response.status_code == 200
        assert response.json() == {"postal_code": "1000001", "prefecture": "東京都", "area": "kanto"}

    def test_unknown_area(self, client):
        response = client.get("/api/shipping/areas/000-0000")

        assert response.status_code == 404


class TestPostalEndpoint:
    def test_found(self, client):
        address = PostalAddress(postal_code="1000001", prefecture="東京都", city="千代田区", town="千代田")
        with patch("farmstand.shipping.api.routes.PostalCodeClient") as client_cls:
            client_cls.return_value.lookup.return_value = address
            response = client.get("/api/postal-codes/1000001")

        assert response.status_code == 200
        assert response.json()["city"] == "千代田区"

    def test_not_found(self, client):
        with patch("farmstand.shipping.api.routes.PostalCodeClient") as client_cls:
            client_cls.return_value.lookup.return_value = None
            response = client.get("/api/postal-codes/0000000")

        assert response.status_code == 404

    def test_invalid(self, client):
        with patch("farmstand.shipping.api.routes.PostalCodeClient") as client_cls:
            client_cls.return_value.lookup.side_effect = InvalidPostalCode("bad")
            response = client.get("/api/postal-codes/12")

        assert response.status_code == 400

    def test_unavailable(self, client):
        with patch("farmstand.shipping.api.routes.PostalCodeClient") as client_cls:
            client_cls.return_value.lookup.side_effect = PostalLookupUnavailable("timeout")
            response = client.get("/api/postal-codes/1000001")

        assert response.status_code == 503


class TestShippingMethodAdmin:
    def test_create_update_and_relink(self, client):
        response = client.post(
            "/api/admin/shipping-methods",
            json={
                "name": "Rice box",
                "fee_type": "size",
                "size_fees": {"60": {"area_fees": {"kanto": 900}, "max_items_per_box": 5}},
                "product_ids": ["rice"],
            },
        )
        assert response.status_code == 201
        method_id = response.json()["shipping_method_id"]

        response = client.put(
            f"/api/admin/shipping-methods/{method_id}",
            json={"name": "Flat", "fee_type": "uniform", "uniform_fee": 650},
        )
        assert response.status_code == 200

        response = client.put(f"/api/admin/shipping-methods/{method_id}/products", json={"product_ids": ["tea"]})
        assert response.status_code == 200

        method = current_domain.repository_for(ShippingMethod).get(method_id)
        assert method.fee_type == "uniform"
        assert method.uniform_fee == 650
        assert method.size_fees is None
        assert method.product_ids() == ["tea"]

    def test_rejects_unknown_fee_type(self, client):
        response = client.post("/api/admin/shipping-methods", json={"name": "Odd", "fee_type": "weight"})

        assert response.status_code == 422
