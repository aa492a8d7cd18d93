"""Product and ProductVariant models.

Business rules implemented:
- Price must be greater than zero.
- Stock cannot be negative (flat product stock or per-variant stock).
- A product with at least one variant is in *variant-stock* mode; its flat
  ``stock`` is ignored for sellability.
- Variant ``size``/``color`` are stored as ``""`` when unset so the
  ``(product, color, size)`` unique constraint also covers unset attributes.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product.

    ``sizes`` and ``colors`` are presentation hints, but a non-empty list
    also makes the attribute mandatory when adding to the cart.
    ``stock`` is nullable: ``None`` means "never stocked" and counts as 0.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    original_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )
    stock = models.PositiveIntegerField(null=True, blank=True, default=0)
    sizes = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="products_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": "Stock cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
            )

    def __str__(self) -> str:
        return self.name


class ProductVariant(BaseModel):
    """Sellable (color, size) combination of a product with its own stock."""

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    color = models.CharField(max_length=50, blank=True, default="")
    size = models.CharField(max_length=20, blank=True, default="")
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_variants"
        ordering = ["product", "size", "color"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "color", "size"],
                name="product_variants_unique_combination",
            ),
        ]

    def __str__(self) -> str:
        label = " / ".join(value for value in (self.size, self.color) if value)
        return f"{self.product_id} [{label or 'default'}]"
