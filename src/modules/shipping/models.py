"""Shipment and ShipmentStepLog models.

A ``Shipment`` is the persisted state of the label purchase for one order.
Progress is written after every provider step, so the provider's shipment
id and label URL survive a crash and a re-run resumes where the last run
stopped instead of buying a second label.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.shipping.constants import SHIPMENT_STEPS, ShipmentStatus


class Shipment(BaseModel):
    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="shipment",
    )
    service_id: models.PositiveIntegerField = models.PositiveIntegerField()
    status: models.CharField = models.CharField(
        max_length=20,
        choices=ShipmentStatus.choices,
        default=ShipmentStatus.IN_PROGRESS,
    )
    provider_shipment_id: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    completed_step: models.PositiveSmallIntegerField = (
        models.PositiveSmallIntegerField(default=0)
    )
    failed_step: models.CharField = models.CharField(
        max_length=20, blank=True, default=""
    )
    error_payload: models.JSONField = models.JSONField(null=True, blank=True)
    label_url: models.URLField = models.URLField(max_length=500, blank=True, default="")
    tracking_code: models.CharField = models.CharField(  # noqa: DJ01
        max_length=64, null=True, blank=True
    )

    class Meta:
        db_table = "shipments"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(completed_step__lte=len(SHIPMENT_STEPS)),
                name="shipments_completed_step_range",
            ),
        ]

    @property
    def next_step(self) -> str | None:
        if self.completed_step >= len(SHIPMENT_STEPS):
            return None
        return SHIPMENT_STEPS[self.completed_step]

    def __str__(self) -> str:
        return f"Shipment {self.provider_shipment_id or '-'} ({self.status})"


class ShipmentStepLog(BaseModel):
    """One row per provider call attempt, successful or not."""

    shipment: models.ForeignKey = models.ForeignKey(
        "shipping.Shipment",
        on_delete=models.CASCADE,
        related_name="step_logs",
    )
    step: models.CharField = models.CharField(max_length=20)
    succeeded: models.BooleanField = models.BooleanField()
    response: models.JSONField = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "shipment_step_logs"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.step} ({'ok' if self.succeeded else 'failed'})"
