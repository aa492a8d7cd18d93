"""Integration tests for /health and request correlation ids."""

import pytest

from modules.core.middleware import CORRELATION_HEADER
from modules.core.outbox import record_events
from modules.orders.events import OrderPlaced

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_reports_dependencies(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["database"]["status"] == "up"
        assert data["services"]["cache"]["status"] == "up"
        assert "timestamp" in data

    def test_reports_outbox_backlog(self, client, make_order):
        order = make_order()
        record_events([OrderPlaced(aggregate_id=order.id)], "orders")

        data = client.get("/health").json()

        assert data["outbox"] == {"pending": 1, "failed": 0}

    def test_cache_down_is_unhealthy(self, client, monkeypatch):
        def broken():
            raise ConnectionError("cache unreachable")

        monkeypatch.setattr("modules.core.views._check_cache", broken)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}


class TestCorrelationId:
    def test_generated_when_missing(self, client):
        response = client.get("/health")
        assert response[CORRELATION_HEADER]

    def test_propagated_from_request(self, api_client_with_correlation):
        client, cid = api_client_with_correlation
        response = client.get("/health")
        assert response[CORRELATION_HEADER] == cid

    def test_present_on_error_responses(self, api_client_with_correlation):
        client, cid = api_client_with_correlation
        response = client.get("/api/v1/cart/")
        assert response.status_code == 401
        assert response[CORRELATION_HEADER] == cid
