"""Catalog and stock domain exceptions.

Raised by the Inventory Resolver and by every caller that checks stock
(Cart Ledger, checkout, payment confirmation).  The DRF exception handler
renders them with their ``code`` and structured fields.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status

from modules.core.exceptions import DomainError, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist."""

    default_message = "Product not found."


class SelectionRequired(DomainError):
    """A size or color must be chosen for this product."""

    code = "selection_required"

    def __init__(self, attribute: str, product_name: str = "") -> None:
        subject = product_name or "this product"
        super().__init__(f"Select a {attribute} for {subject}.", attribute=attribute)
        self.attribute = attribute


class SelectionAmbiguous(DomainError):
    """The (size, color) selection matches zero or several variants."""

    code = "selection_ambiguous"

    def __init__(
        self, size: Optional[str], color: Optional[str], match_count: int
    ) -> None:
        super().__init__(
            "Select a valid color and size combination.",
            size=size,
            color=color,
            match_count=match_count,
        )
        self.size = size
        self.color = color
        self.match_count = match_count


class OutOfStock(DomainError):
    """Nothing of the resolved unit is available."""

    code = "out_of_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_name: str = "") -> None:
        super().__init__(f"{product_name or 'Product'} is out of stock.")
        self.product_name = product_name


class InsufficientStock(DomainError):
    """The requested quantity exceeds what is available.

    ``available_quantity`` is the exact number of units that can be sold.
    """

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, available_quantity: int, product_name: str = "") -> None:
        super().__init__(
            f"Only {available_quantity} unit(s) of "
            f"{product_name or 'this product'} available.",
            available_quantity=available_quantity,
        )
        self.available_quantity = available_quantity
