"""Unit tests for CartService (Cart Ledger).

Covers:
- Adding merges into the natural key ``(user, product, size, color)``.
- Stock checks at the boundary (``InsufficientStock`` carries availability).
- ``update_quantity(line, 0)`` behaves like ``remove_from_cart``.
- Clearing an empty cart is a no-op.
- Users never see each other's lines.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.cart.dtos import AddToCartDTO
from modules.cart.exceptions import CartLineNotFound
from modules.cart.models import CartLine
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.catalog.exceptions import (
    InsufficientStock,
    OutOfStock,
    ProductNotFound,
    SelectionAmbiguous,
    SelectionRequired,
)
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.services import CatalogService
from modules.core.exceptions import Unauthenticated

pytestmark = pytest.mark.unit

USER = "user-1"


@pytest.fixture()
def service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        catalog_service=CatalogService(repository=ProductDjangoRepository()),
    )


def _add(service, product, quantity=1, size=None, color=None, user=USER):
    return service.add_to_cart(
        user,
        AddToCartDTO(product_id=product.id, quantity=quantity, size=size, color=color),
    )


class TestAddToCart:
    def test_creates_line(self, service, make_product):
        product = make_product(stock=5)
        line = _add(service, product, quantity=2)
        assert line.quantity == 2
        assert line.user_id == USER
        assert line.size == ""
        assert line.color == ""

    def test_same_key_merges_into_one_line(self, service, make_product):
        product = make_product(stock=5)
        _add(service, product)
        line = _add(service, product, quantity=2)
        assert line.quantity == 3
        assert CartLine.objects.filter(user_id=USER).count() == 1

    def test_flat_stock_boundary(self, service, make_product):
        product = make_product(stock=3)
        _add(service, product)
        _add(service, product)
        _add(service, product)
        with pytest.raises(InsufficientStock) as exc_info:
            _add(service, product)
        assert exc_info.value.available_quantity == 3
        assert CartLine.objects.get(user_id=USER).quantity == 3

    def test_out_of_stock(self, service, make_product):
        with pytest.raises(OutOfStock):
            _add(service, make_product(stock=0))

    def test_inactive_product_is_out_of_stock(self, service, make_product):
        with pytest.raises(OutOfStock):
            _add(service, make_product(stock=10, is_active=False))

    def test_unknown_product(self, service):
        with pytest.raises(ProductNotFound):
            service.add_to_cart(USER, AddToCartDTO(product_id=uuid4()))

    def test_variant_lines_are_keyed_by_selection(
        self, service, make_product, make_variant
    ):
        product = make_product(sizes=["P", "M"], colors=["Azul"])
        make_variant(product, "P", "Azul", stock=2)
        make_variant(product, "M", "Azul", stock=2)
        _add(service, product, size="P", color="Azul")
        _add(service, product, size="M", color="Azul")
        assert CartLine.objects.filter(user_id=USER).count() == 2

    def test_missing_size(self, service, make_product, make_variant):
        product = make_product(sizes=["P"])
        make_variant(product, "P", stock=2)
        with pytest.raises(SelectionRequired):
            _add(service, product)

    def test_combination_not_offered(self, service, make_product, make_variant):
        product = make_product(stock=50, sizes=["P", "M"], colors=["Azul", "Rosa"])
        make_variant(product, "P", "Azul")
        make_variant(product, "M", "Rosa")
        with pytest.raises(SelectionAmbiguous):
            _add(service, product, size="P", color="Rosa")

    def test_requires_user(self, service, make_product):
        with pytest.raises(Unauthenticated):
            _add(service, make_product(), user="")


class TestUpdateQuantity:
    def test_sets_quantity(self, service, make_product):
        line = _add(service, make_product(stock=5))
        updated = service.update_quantity(USER, line.id, 4)
        assert updated.quantity == 4

    def test_above_stock_is_rejected(self, service, make_product):
        line = _add(service, make_product(stock=2))
        with pytest.raises(InsufficientStock) as exc_info:
            service.update_quantity(USER, line.id, 3)
        assert exc_info.value.available_quantity == 2

    def test_zero_removes_the_line(self, service, make_product):
        line = _add(service, make_product(stock=5))
        assert service.update_quantity(USER, line.id, 0) is None
        assert not CartLine.objects.filter(id=line.id).exists()

    def test_zero_is_equivalent_to_remove(self, service, make_product):
        product = make_product(stock=5)
        a = _add(service, product, user="a")
        b = _add(service, product, user="b")
        service.update_quantity("a", a.id, 0)
        service.remove_from_cart("b", b.id)
        assert service.get_cart("a") == service.get_cart("b")

    def test_other_users_line_is_not_found(self, service, make_product):
        line = _add(service, make_product(stock=5), user="owner")
        with pytest.raises(CartLineNotFound):
            service.update_quantity("intruder", line.id, 2)


class TestRemoveAndClear:
    def test_remove_is_idempotent(self, service, make_product):
        line = _add(service, make_product())
        service.remove_from_cart(USER, line.id)
        service.remove_from_cart(USER, line.id)
        assert CartLine.objects.count() == 0

    def test_remove_does_not_touch_other_users(self, service, make_product):
        line = _add(service, make_product(), user="owner")
        service.remove_from_cart("intruder", line.id)
        assert CartLine.objects.filter(id=line.id).exists()

    def test_clear_removes_only_own_lines(self, service, make_product):
        product = make_product(stock=10)
        _add(service, product)
        _add(service, product, user="someone-else")
        assert service.clear_cart(USER) == 1
        assert CartLine.objects.filter(user_id="someone-else").count() == 1

    def test_clear_empty_cart_is_noop(self, service):
        assert service.clear_cart(USER) == 0


class TestGetCart:
    def test_totals_use_live_prices(self, service, make_product):
        product = make_product(price=Decimal("10.00"), stock=10)
        _add(service, product, quantity=3)
        product.price = Decimal("12.50")
        product.save()

        cart = service.get_cart(USER)
        assert cart.count == 3
        assert cart.total == Decimal("37.50")
        assert cart.lines[0].unit_price == Decimal("12.50")

    def test_empty_cart(self, service):
        cart = service.get_cart(USER)
        assert cart.lines == []
        assert cart.total == Decimal("0.00")
        assert cart.count == 0
