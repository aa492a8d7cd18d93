"""Integration tests for the standard error envelope."""

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


def _assert_envelope(data, code=None):
    assert set(data) == {"type", "errors"}
    assert isinstance(data["errors"], list)
    assert data["errors"]
    error = data["errors"][0]
    assert {"code", "detail", "attr"} <= set(error)
    if code is not None:
        assert error["code"] == code
    return error


class TestStandardizedErrors:
    def test_auth_error(self, api_client):
        response = api_client.get("/api/v1/cart/")
        assert response.status_code == 401
        assert response.json()["type"] == "client_error"
        _assert_envelope(response.json(), "not_authenticated")

    def test_malformed_json(self, auth_client):
        response = auth_client.post(
            "/api/v1/cart/items/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        _assert_envelope(response.json(), "parse_error")

    def test_field_validation_names_the_attribute(self, auth_client):
        response = auth_client.post(
            "/api/v1/cart/items/", {"product_id": "nope"}, format="json"
        )
        assert response.status_code == 400
        data = response.json()
        assert data["type"] == "validation_error"
        assert _assert_envelope(data)["attr"] == "product_id"

    def test_not_found(self, auth_client):
        response = auth_client.post(
            "/api/v1/cart/items/", {"product_id": str(uuid4())}, format="json"
        )
        assert response.status_code == 404
        _assert_envelope(response.json(), "not_found")

    def test_selection_required_carries_attribute(
        self, auth_client, make_product
    ):
        product = make_product(sizes=["P", "M"])
        response = auth_client.post(
            "/api/v1/cart/items/", {"product_id": str(product.id)}, format="json"
        )
        assert response.status_code == 400
        error = _assert_envelope(response.json(), "selection_required")
        assert error["attribute"] == "size"

    def test_insufficient_stock_carries_available_quantity(
        self, auth_client, make_product
    ):
        product = make_product(stock=2)
        response = auth_client.post(
            "/api/v1/cart/items/",
            {"product_id": str(product.id), "quantity": 5},
            format="json",
        )
        assert response.status_code == 409
        error = _assert_envelope(response.json(), "insufficient_stock")
        assert error["available_quantity"] == 2

    def test_forbidden(self, auth_client):
        response = auth_client.post(
            f"/api/v1/orders/{uuid4()}/shipping-label/", {"service_id": 1}, format="json"
        )
        assert response.status_code == 403
        _assert_envelope(response.json(), "permission_denied")
