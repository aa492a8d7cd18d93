"""CartLine model.

One row per (user, product, size, color) natural key.  Unset size/color
are stored as ``""`` so that the unique constraint treats "no size" as its
own key value: two adds without a size collapse into one line and never
collide with a line that has a concrete size.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class CartLine(BaseModel):
    """A quantity of one sellable unit in a user's cart.

    ``user_id`` is an opaque identity string supplied by the caller; the
    cart does not own users.  Prices are never stored here: totals are
    computed from the live product price on every read.
    """

    user_id = models.CharField(max_length=255, db_index=True)
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="cart_lines",
    )
    size = models.CharField(max_length=20, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "cart_lines"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "product", "size", "color"],
                name="cart_lines_natural_key",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="cart_lines_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.product_id} x{self.quantity}"
