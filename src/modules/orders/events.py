"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when a cart is turned into an order."""

    user_id: str = ""
    subtotal: str = "0.00"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an operator moves the fulfillment status."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""
