"""Cart DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``AddToCartDTO``: input for adding a unit to the cart.
- ``CartLineOutputDTO``: output for a single line (live price).
- ``CartOutputDTO``: output with lines, ``total`` and ``count``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.cart.models import CartLine


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddToCartDTO(BaseModel):
    """Immutable DTO for add-to-cart requests.

    Blank ``size``/``color`` are normalised to ``None``.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = 1
    size: Optional[str] = None
    color: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("size", "color")
    @classmethod
    def blank_means_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CartLineOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    size: Optional[str]
    color: Optional[str]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @classmethod
    def from_entity(cls, line: CartLine) -> CartLineOutputDTO:
        price = line.product.price  # type: ignore[attr-defined]
        return cls(
            id=line.id,
            product_id=line.product_id,
            product_name=line.product.name,  # type: ignore[attr-defined]
            size=line.size or None,
            color=line.color or None,
            quantity=line.quantity,
            unit_price=price,
            subtotal=price * line.quantity,
        )


class CartOutputDTO(BaseModel):
    """Cart view computed on read; ``total`` and ``count`` are never stored."""

    model_config = ConfigDict(frozen=True)

    lines: List[CartLineOutputDTO]
    total: Decimal
    count: int

    @classmethod
    def from_entities(cls, lines: Iterable[CartLine]) -> CartOutputDTO:
        items = [CartLineOutputDTO.from_entity(line) for line in lines]
        return cls(
            lines=items,
            total=sum((item.subtotal for item in items), Decimal("0.00")),
            count=sum(item.quantity for item in items),
        )
