"""Shipment repository interface.

Every write is its own unit of work: progress must be durable before the
orchestrator calls the provider again.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.shipping.models import Shipment


class IShipmentRepository(IRepository["Shipment"]):
    @abstractmethod
    def get_for_order(self, order_id: UUID) -> Optional[Shipment]:
        """The order's shipment, if a run ever started."""

    @abstractmethod
    def start(self, order_id: UUID, service_id: int) -> Shipment:
        """Create the shipment, or put an existing one back in progress."""

    @abstractmethod
    def record_step(
        self, shipment: Shipment, step_number: int, response: Any, **fields: Any
    ) -> Shipment:
        """Mark ``step_number`` done and store ``fields`` with it."""

    @abstractmethod
    def record_failure(
        self, shipment: Shipment, step: str, payload: Any, terminal: bool = True
    ) -> Shipment:
        """Log a failed attempt; ``terminal`` marks the shipment failed."""

    @abstractmethod
    def set_status(self, shipment: Shipment, status: str, **fields: Any) -> Shipment:
        """Update the shipment status (and any extra fields)."""
