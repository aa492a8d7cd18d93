"""Domain events for the shipment workflow."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderShipped(DomainEvent):
    """Tracking code obtained and the order moved to ``shipped``."""

    shipment_id: str = ""
    tracking_code: str = ""
    label_url: str = ""


@dataclass(frozen=True)
class ShipmentFailed(DomainEvent):
    """A label purchase step failed; the order is still ``confirmed``."""

    shipment_id: str = ""
    step: str = ""
