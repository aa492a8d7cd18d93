"""Unit tests for the transactional outbox.

Covers:
- ``record_events`` / ``flush_domain_events`` writing rows.
- Payload serialization (UUID, datetime, Decimal).
- OutboxEvent status transitions.
- The relay task rebuilding events and handing them to the bus.
"""

from __future__ import annotations

from uuid import UUID

import pytest
from uuid6 import uuid7

from modules.core.models import EventStatus, OutboxEvent
from modules.core.outbox import flush_domain_events, record_events
from modules.core.tasks import publish_outbox_events
from modules.orders.events import OrderPlaced
from modules.payments.events import PaymentConfirmed
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Collector:
    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    def handle(self, event):
        if self.fail:
            raise RuntimeError("handler exploded")
        self.events.append(event)


@pytest.fixture()
def bus(monkeypatch):
    bus = InMemoryEventBus()
    monkeypatch.setattr("modules.core.tasks.event_bus", bus)
    return bus


class TestRecordEvents:
    def test_one_row_per_event(self):
        order_id = uuid7()
        rows = record_events(
            [
                OrderPlaced(aggregate_id=order_id, user_id="u-1", subtotal="10.00"),
                PaymentConfirmed(aggregate_id=order_id, previous_status="pending"),
            ],
            "payments",
        )

        assert [row.event_type for row in rows] == ["OrderPlaced", "PaymentConfirmed"]
        assert {row.topic for row in rows} == {"payments"}
        assert {row.aggregate_id for row in rows} == {str(order_id)}
        assert all(row.status == EventStatus.PENDING for row in rows)

    def test_payload_is_json_ready(self):
        order_id = uuid7()
        (row,) = record_events([OrderPlaced(aggregate_id=order_id)], "orders")
        row.refresh_from_db()

        assert row.payload["event_name"] == "OrderPlaced"
        assert row.payload["aggregate_id"] == str(order_id)
        assert isinstance(row.payload["occurred_on"], str)
        assert UUID(row.payload["event_id"])

    def test_no_events_no_rows(self):
        assert record_events([], "orders") == []
        assert not OutboxEvent.objects.exists()

    def test_flush_clears_entity_events(self, make_order):
        order = make_order()
        order.add_domain_event(OrderPlaced(aggregate_id=order.id))

        rows = flush_domain_events(order, "orders")

        assert len(rows) == 1
        assert order.domain_events == []


class TestOutboxEventTransitions:
    def test_id_is_uuid7(self):
        (row,) = record_events([OrderPlaced(aggregate_id=uuid7())], "orders")
        assert row.id.version == 7

    def test_mark_as_published(self):
        (row,) = record_events([OrderPlaced(aggregate_id=uuid7())], "orders")
        row.mark_as_published()
        row.refresh_from_db()

        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None

    def test_mark_as_failed_counts_retries(self):
        (row,) = record_events([OrderPlaced(aggregate_id=uuid7())], "orders")
        row.mark_as_failed("Error 1")
        row.mark_as_failed("Error 2")
        row.refresh_from_db()

        assert row.status == EventStatus.FAILED
        assert row.error_message == "Error 2"
        assert row.retry_count == 2

    def test_str(self):
        order_id = uuid7()
        (row,) = record_events([OrderPlaced(aggregate_id=order_id)], "orders")
        assert str(row) == f"OrderPlaced [PENDING] ({order_id})"


class TestRelay:
    def test_publishes_rebuilt_events(self, bus):
        collector = Collector()
        bus.subscribe(PaymentConfirmed, collector)
        order_id = uuid7()
        record_events(
            [PaymentConfirmed(aggregate_id=order_id, resource_id="pay-9")], "payments"
        )

        result = publish_outbox_events()

        assert result == {"published": 1, "failed": 0}
        (event,) = collector.events
        assert isinstance(event, PaymentConfirmed)
        assert event.aggregate_id == order_id
        assert event.resource_id == "pay-9"
        assert OutboxEvent.objects.get().status == EventStatus.PUBLISHED

    def test_handler_failure_marks_row_failed(self, bus):
        bus.subscribe(OrderPlaced, Collector(fail=True))
        good = Collector()
        bus.subscribe(PaymentConfirmed, good)
        record_events([OrderPlaced(aggregate_id=uuid7())], "orders")
        record_events([PaymentConfirmed(aggregate_id=uuid7())], "payments")

        result = publish_outbox_events()

        assert result == {"published": 1, "failed": 1}
        failed = OutboxEvent.objects.get(event_type="OrderPlaced")
        assert failed.status == EventStatus.FAILED
        assert failed.error_message == "handler exploded"
        assert len(good.events) == 1

    def test_batch_size(self, bus):
        for _ in range(3):
            record_events([OrderPlaced(aggregate_id=uuid7())], "orders")

        assert publish_outbox_events(batch_size=2)["published"] == 2
        assert OutboxEvent.objects.filter(status=EventStatus.PENDING).count() == 1

    def test_published_rows_are_not_resent(self, bus):
        collector = Collector()
        bus.subscribe(OrderPlaced, collector)
        record_events([OrderPlaced(aggregate_id=uuid7())], "orders")

        publish_outbox_events()
        publish_outbox_events()

        assert len(collector.events) == 1
