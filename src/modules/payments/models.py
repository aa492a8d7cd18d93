"""Payment notification inbox.

One row per ``(topic, resource_id)``: gateways redeliver the same
notification many times, so the row is upserted on each delivery and keeps
the last normalized data and outcome.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import NotificationTopic, ReconciliationOutcome


class PaymentNotification(BaseModel):
    topic: models.CharField = models.CharField(max_length=32)
    resource_id: models.CharField = models.CharField(max_length=64)
    delivery_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    external_reference: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    vendor_status: models.CharField = models.CharField(
        max_length=32, blank=True, default=""
    )
    last_outcome: models.CharField = models.CharField(
        max_length=20,
        choices=ReconciliationOutcome.choices,
        blank=True,
        default="",
    )
    last_reason: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    processed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payment_notifications"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["topic", "resource_id"],
                name="payment_notifications_unique_resource",
            ),
        ]
        indexes = [
            models.Index(
                fields=["last_outcome", "last_reason"],
                name="payment_notif_outcome_idx",
            ),
        ]

    @property
    def is_known_topic(self) -> bool:
        return self.topic in NotificationTopic.values

    def __str__(self) -> str:
        return f"{self.topic}:{self.resource_id} ({self.last_outcome or 'new'})"
