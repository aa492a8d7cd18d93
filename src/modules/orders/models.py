"""Order, OrderLine, and OrderStatusHistory models.

Business rules implemented:
- Two status machines (payment, fulfillment), validated at service layer.
- Each status change generates an append-only history record.
- Order number auto-generated as human-readable identifier.
- OrderLine snapshots name, variant and price at checkout (``unit_price``);
  ``subtotal`` is always ``quantity * unit_price`` (calculated on save).
- ``stock_committed`` flips once, when the confirmation decrement ran.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    FULFILLMENT_TRANSITIONS,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_FULFILLMENT_STATES,
    FulfillmentStatus,
    PaymentStatus,
    StatusField,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is the
    external reference sent to the payment gateway and used for all API
    look-ups.

    ``shipping_address`` keys: name, phone, email, document, street, number,
    complement, neighborhood, city, state, cep.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    user_id: models.CharField = models.CharField(max_length=255, db_index=True)
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNSET,
    )
    fulfillment_status: models.CharField = models.CharField(
        max_length=20,
        choices=FulfillmentStatus.choices,
        default=FulfillmentStatus.PLACED,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    shipping_address: models.JSONField = models.JSONField(default=dict, blank=True)
    payment_reference: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    tracking_code: models.CharField = models.CharField(  # noqa: DJ01
        max_length=64, null=True, blank=True
    )
    stock_committed: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
            models.Index(
                fields=["fulfillment_status"], name="orders_fulfillment_idx"
            ),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.fulfillment_status in TERMINAL_FULFILLMENT_STATES

    def can_transition_fulfillment_to(self, new_status: str) -> bool:
        return new_status in FULFILLMENT_TRANSITIONS.get(self.fulfillment_status, set())

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.all())

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.payment_status}/{self.fulfillment_status})"


class OrderLine(BaseModel):
    """Snapshot of one cart line at checkout.

    ``unit_price`` and ``product_name`` are copied from the catalog and
    never recomputed.  ``variant`` is kept for the stock decrement at
    confirmation; if the variant is later removed the snapshot survives.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    variant: models.ForeignKey = models.ForeignKey(
        "catalog.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_lines",
    )
    product_name: models.CharField = models.CharField(max_length=255)
    size: models.CharField = models.CharField(max_length=20, blank=True, default="")
    color: models.CharField = models.CharField(max_length=50, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for both status machines.

    ``field`` tells which machine moved.  Audit records are immutable:
    they are never edited after creation.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    field: models.CharField = models.CharField(
        max_length=20,
        choices=StatusField.choices,
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(max_length=20)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} {self.field}: {self.old_status} -> {self.new_status}"
