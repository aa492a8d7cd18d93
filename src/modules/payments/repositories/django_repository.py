"""Django ORM implementation of the notification inbox repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.payments.constants import ReconciliationOutcome
from modules.payments.models import PaymentNotification
from modules.payments.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)


class NotificationDjangoRepository(INotificationRepository):
    def get_by_id(self, id: str) -> Optional[PaymentNotification]:
        try:
            return PaymentNotification.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = PaymentNotification.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: PaymentNotification) -> PaymentNotification:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        deleted, _ = PaymentNotification.objects.filter(id=id).delete()
        return deleted > 0

    def record_delivery(self, topic: str, resource_id: str) -> PaymentNotification:
        key = {"topic": topic, "resource_id": resource_id}
        updated = PaymentNotification.objects.filter(**key).update(
            delivery_count=F("delivery_count") + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            try:
                with transaction.atomic():
                    return PaymentNotification.objects.create(
                        delivery_count=1, **key
                    )
            except IntegrityError:
                PaymentNotification.objects.filter(**key).update(
                    delivery_count=F("delivery_count") + 1,
                    updated_at=timezone.now(),
                )
        return PaymentNotification.objects.get(**key)

    def record_outcome(
        self,
        notification_id: str,
        outcome: str,
        reason: Optional[str],
        external_reference: Optional[str] = None,
        vendor_status: Optional[str] = None,
    ) -> None:
        fields: Dict[str, Any] = {
            "last_outcome": outcome,
            "last_reason": reason or "",
            "processed_at": timezone.now(),
            "updated_at": timezone.now(),
        }
        if external_reference is not None:
            fields["external_reference"] = external_reference
        if vendor_status is not None:
            fields["vendor_status"] = vendor_status
        PaymentNotification.objects.filter(id=notification_id).update(**fields)

    def list_replayable(self, reasons: tuple, limit: int) -> List[PaymentNotification]:
        return list(
            PaymentNotification.objects.filter(
                last_outcome=ReconciliationOutcome.IGNORED,
                last_reason__in=reasons,
            ).order_by("updated_at")[:limit]
        )
