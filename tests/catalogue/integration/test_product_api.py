import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers

from farmstand.catalogue.api import product_router
from farmstand.catalogue.product import Product


@pytest.fixture
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(product_router)
    return TestClient(app)


def _create(client, **overrides):
    payload = {"title": "Yuzu kosho", "price": 900, "stock": 12} | overrides
    response = client.post("/api/admin/products", json=payload)
    assert response.status_code == 201
    return response.json()["product_id"]


class TestProductApi:
    def test_create_product(self, client):
        product_id = _create(client)

        product = current_domain.repository_for(Product).get(product_id)
        assert product.price == 900

    def test_create_product_with_variants(self, client):
        product_id = _create(
            client,
            variants_config=[
                {
                    "id": "heat",
                    "name": "Heat",
                    "stockManagement": "individual",
                    "options": [{"id": "hot", "value": "Hot", "priceAdjustment": 100, "stock": 3}],
                }
            ],
        )

        product = current_domain.repository_for(Product).get(product_id)
        assert product.price_for({"heat": "hot"}) == 1000

    def test_invalid_payload_is_rejected(self, client):
        response = client.post("/api/admin/products", json={"title": "Bad", "price": -1})

        assert response.status_code == 422

    def test_configure_variants(self, client):
        product_id = _create(client)

        response = client.put(
            f"/api/admin/products/{product_id}/variants",
            json={"variants_config": [{"id": "jar", "name": "Jar", "options": [{"id": "small", "value": "Small"}]}]},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert current_domain.repository_for(Product).get(product_id).has_variants is True

    def test_set_stock(self, client):
        product_id = _create(client)

        response = client.put(f"/api/admin/products/{product_id}/stock", json={"stock": 0})

        assert response.status_code == 200
        assert current_domain.repository_for(Product).get(product_id).sold_out is True

    def test_unknown_product_is_404(self, client):
        response = client.put("/api/admin/products/missing/stock", json={"stock": 1})

        assert response.status_code == 404
