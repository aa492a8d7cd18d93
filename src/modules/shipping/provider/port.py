"""Shipping provider port (abstract interface).

One method per label purchase step.  Implementations raise
``UpstreamError`` / ``UpstreamTimeout`` naming the step on failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ShippingProvider(ABC):
    """Abstract label purchase interface."""

    @abstractmethod
    def add_to_cart(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Cart-add: returns the provider's shipment (``id``)."""

    @abstractmethod
    def checkout(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        """Checkout: pay for the label."""

    @abstractmethod
    def generate(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        """Generate: issue the label."""

    @abstractmethod
    def print_label(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Print: returns the public label ``url``."""

    @abstractmethod
    def tracking(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Track: returns ``{shipment_id: {"tracking": code}}``."""
