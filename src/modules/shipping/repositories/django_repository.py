"""Django ORM implementation of the Shipment repository."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.shipping.constants import SHIPMENT_STEPS, ShipmentStatus
from modules.shipping.models import Shipment, ShipmentStepLog
from modules.shipping.repositories.interfaces import IShipmentRepository

logger = structlog.get_logger(__name__)


class ShipmentDjangoRepository(IShipmentRepository):
    def get_by_id(self, id: str) -> Optional[Shipment]:
        try:
            return Shipment.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_order(self, order_id: UUID) -> Optional[Shipment]:
        return Shipment.objects.filter(order_id=order_id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Shipment.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Shipment) -> Shipment:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        deleted, _ = Shipment.objects.filter(id=id).delete()
        return deleted > 0

    @transaction.atomic
    def start(self, order_id: UUID, service_id: int) -> Shipment:
        shipment, created = Shipment.objects.get_or_create(
            order_id=order_id,
            defaults={"service_id": service_id},
        )
        if not created and shipment.status == ShipmentStatus.FAILED:
            shipment.status = ShipmentStatus.IN_PROGRESS
            shipment.failed_step = ""
            shipment.error_payload = None
            shipment.save(
                update_fields=["status", "failed_step", "error_payload", "updated_at"]
            )
        logger.info(
            "shipment.started",
            shipment_id=str(shipment.id),
            order_id=str(order_id),
            resumed=not created,
            completed_step=shipment.completed_step,
        )
        return shipment

    @transaction.atomic
    def record_step(
        self, shipment: Shipment, step_number: int, response: Any, **fields: Any
    ) -> Shipment:
        shipment.completed_step = step_number
        for name, value in fields.items():
            setattr(shipment, name, value)
        shipment.save(update_fields=["completed_step", *fields, "updated_at"])
        ShipmentStepLog.objects.create(
            shipment=shipment,
            step=_step_name(step_number),
            succeeded=True,
            response=response,
        )
        return shipment

    @transaction.atomic
    def record_failure(
        self, shipment: Shipment, step: str, payload: Any, terminal: bool = True
    ) -> Shipment:
        ShipmentStepLog.objects.create(
            shipment=shipment, step=step, succeeded=False, response=payload
        )
        if terminal:
            shipment.status = ShipmentStatus.FAILED
            shipment.failed_step = step
            shipment.error_payload = payload
            shipment.save(
                update_fields=["status", "failed_step", "error_payload", "updated_at"]
            )
        return shipment

    @transaction.atomic
    def set_status(self, shipment: Shipment, status: str, **fields: Any) -> Shipment:
        shipment.status = status
        for name, value in fields.items():
            setattr(shipment, name, value)
        shipment.save(update_fields=["status", *fields, "updated_at"])
        return shipment


def _step_name(step_number: int) -> str:
    return SHIPMENT_STEPS[step_number - 1]
