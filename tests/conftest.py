from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.catalog.models import Product, ProductVariant
from modules.payments.gateway.fake import FakePaymentGateway
from modules.shipping.provider.fake import FakeShippingProvider

User = get_user_model()

SHIPPING_ADDRESS = {
    "name": "Ana Souza",
    "phone": "11987654321",
    "email": "ana@example.com",
    "document": "39053344705",
    "street": "Rua das Flores",
    "number": "120",
    "complement": "Apto 42",
    "neighborhood": "Jardins",
    "city": "São Paulo",
    "state": "SP",
    "cep": "01415-000",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    return User.objects.create_user(username="buyer", password="testpass123")


@pytest.fixture()
def other_user():
    return User.objects.create_user(username="buyer2", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="operator", password="testpass123", is_staff=True
    )


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated buyer."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def make_product():
    def _make(**overrides) -> Product:
        defaults = {
            "name": "Lenço de Seda",
            "price": Decimal("89.90"),
            "stock": 10,
            "is_active": True,
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def make_variant():
    def _make(product: Product, size: str = "", color: str = "", stock: int = 5):
        return ProductVariant.objects.create(
            product=product, size=size, color=color, stock=stock
        )

    return _make


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def fake_gateway(monkeypatch):
    """Replaces the Mercado Pago client used by the webhook and tasks."""
    gateway = FakePaymentGateway()
    monkeypatch.setattr("modules.payments.services.get_gateway", lambda: gateway)
    return gateway


@pytest.fixture()
def fake_provider(monkeypatch):
    """Replaces the Melhor Envio client used by the label API and task."""
    provider = FakeShippingProvider()
    monkeypatch.setattr("modules.shipping.services.get_provider", lambda: provider)
    return provider


@pytest.fixture()
def make_order(shipping_address):
    """Persist an order snapshot directly, bypassing the cart."""
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    def _make(user_id: str = "buyer-1", lines=(), **status_fields):
        order = OrderDjangoRepository().create(
            {
                "user_id": user_id,
                "shipping_address": shipping_address,
                "lines": [
                    {
                        "product_id": product.id,
                        "variant_id": variant.id if variant else None,
                        "product_name": product.name,
                        "size": variant.size if variant else "",
                        "color": variant.color if variant else "",
                        "quantity": quantity,
                        "unit_price": product.price,
                    }
                    for product, quantity, variant in lines
                ],
            }
        )
        if status_fields:
            type(order).objects.filter(id=order.id).update(**status_fields)
        return OrderDjangoRepository().get_by_id(str(order.id))

    return _make
