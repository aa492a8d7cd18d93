"""Integration tests for the Cart Ledger API."""

from decimal import Decimal

import pytest

from modules.cart.models import CartLine

pytestmark = pytest.mark.integration

ITEMS_URL = "/api/v1/cart/items/"


def _add(client, product, quantity=1, **selection):
    return client.post(
        ITEMS_URL,
        {"product_id": str(product.id), "quantity": quantity, **selection},
        format="json",
    )


class TestAddToCart:
    def test_adds_line(self, auth_client, make_product):
        product = make_product(price=Decimal("30.00"))

        response = _add(auth_client, product, 2)

        assert response.status_code == 201
        data = response.json()
        assert data["product_id"] == str(product.id)
        assert data["quantity"] == 2
        assert Decimal(data["subtotal"]) == Decimal("60.00")

    def test_same_unit_merges(self, auth_client, make_product):
        product = make_product()
        _add(auth_client, product, 1)
        _add(auth_client, product, 2)

        cart = auth_client.get("/api/v1/cart/").json()

        assert len(cart["lines"]) == 1
        assert cart["count"] == 3

    def test_merged_quantity_is_checked(self, auth_client, make_product):
        product = make_product(stock=3)
        _add(auth_client, product, 2)

        response = _add(auth_client, product, 2)

        assert response.status_code == 409
        assert response.json()["errors"][0]["available_quantity"] == 3
        assert CartLine.objects.get().quantity == 2

    def test_out_of_stock(self, auth_client, make_product):
        response = _add(auth_client, make_product(stock=0))
        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "out_of_stock"

    def test_blank_selection_means_unset(self, auth_client, make_product):
        response = _add(auth_client, make_product(), size="  ", color="")
        assert response.status_code == 201
        assert response.json()["size"] is None


class TestCartView:
    def test_total_uses_live_prices(self, auth_client, make_product):
        product = make_product(price=Decimal("10.00"))
        _add(auth_client, product, 3)
        product.price = Decimal("12.50")
        product.save()

        cart = auth_client.get("/api/v1/cart/").json()

        assert Decimal(cart["total"]) == Decimal("37.50")

    def test_carts_are_per_user(self, auth_client, api_client, other_user, make_product):
        _add(auth_client, make_product())
        api_client.force_authenticate(user=other_user)

        assert api_client.get("/api/v1/cart/").json()["lines"] == []

    def test_clear(self, auth_client, make_product):
        _add(auth_client, make_product())

        assert auth_client.delete("/api/v1/cart/").status_code == 204
        assert not CartLine.objects.exists()


class TestCartLine:
    def test_update_quantity(self, auth_client, make_product):
        line_id = _add(auth_client, make_product(stock=5)).json()["id"]

        response = auth_client.patch(
            f"{ITEMS_URL}{line_id}/", {"quantity": 4}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["quantity"] == 4

    def test_update_beyond_stock(self, auth_client, make_product):
        line_id = _add(auth_client, make_product(stock=5)).json()["id"]

        response = auth_client.patch(
            f"{ITEMS_URL}{line_id}/", {"quantity": 6}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["available_quantity"] == 5

    def test_zero_quantity_removes(self, auth_client, make_product):
        line_id = _add(auth_client, make_product()).json()["id"]

        response = auth_client.patch(
            f"{ITEMS_URL}{line_id}/", {"quantity": 0}, format="json"
        )

        assert response.status_code == 204
        assert not CartLine.objects.exists()

    def test_other_users_line_is_not_found(
        self, auth_client, api_client, other_user, make_product
    ):
        line_id = _add(auth_client, make_product()).json()["id"]
        api_client.force_authenticate(user=other_user)

        response = api_client.patch(
            f"{ITEMS_URL}{line_id}/", {"quantity": 2}, format="json"
        )

        assert response.status_code == 404

    def test_remove_is_idempotent(self, auth_client, make_product):
        line_id = _add(auth_client, make_product()).json()["id"]

        assert auth_client.delete(f"{ITEMS_URL}{line_id}/").status_code == 204
        assert auth_client.delete(f"{ITEMS_URL}{line_id}/").status_code == 204
