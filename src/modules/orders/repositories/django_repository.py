"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Order + OrderLines are persisted atomically; status changes are
single-statement compare-and-swap ``UPDATE``s instead of row locks.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.outbox import flush_domain_events
from modules.orders.models import Order, OrderLine, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            shipping_address=data.get("shipping_address", {}),
        )
        order.save()

        subtotal = Decimal("0.00")
        lines = data.get("lines", [])
        for line_data in lines:
            line = OrderLine(
                order=order,
                product_id=line_data["product_id"],
                variant_id=line_data.get("variant_id"),
                product_name=line_data["product_name"],
                size=line_data.get("size") or "",
                color=line_data.get("color") or "",
                quantity=line_data["quantity"],
                unit_price=line_data["unit_price"],
            )
            line.save()
            subtotal += line.subtotal

        order.subtotal = subtotal
        order.save(update_fields=["subtotal", "updated_at"])

        logger.info("order.created", order_id=str(order.id), line_count=len(lines))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.prefetch_related("lines", "status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Order.objects.prefetch_related("lines")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its pending domain events to the outbox."""
        entity.save()
        rows = flush_domain_events(entity, OUTBOX_TOPIC)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(rows))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Status writes
    # ------------------------------------------------------------------

    def compare_and_set_payment_status(
        self,
        order_id: UUID,
        expected: str,
        new: str,
        expected_fulfillment: Optional[str] = None,
        **fields: Any,
    ) -> bool:
        conditions = {"id": order_id, "payment_status": expected}
        if expected_fulfillment is not None:
            conditions["fulfillment_status"] = expected_fulfillment
        updated = Order.objects.filter(**conditions).update(
            payment_status=new,
            updated_at=timezone.now(),
            **fields,
        )
        return updated == 1

    def update_fulfillment(
        self, order_id: UUID, expected: str, new: str, **fields: Any
    ) -> bool:
        updated = Order.objects.filter(
            id=order_id, fulfillment_status=expected
        ).update(
            fulfillment_status=new,
            updated_at=timezone.now(),
            **fields,
        )
        return updated == 1

    def add_history(
        self,
        order_id: UUID,
        field: str,
        old_status: Optional[str],
        new_status: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            field=field,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            field=field,
            old_status=old_status,
            new_status=new_status,
        )
        return history
