"""In-memory shipping provider for development and testing.

``fail_at`` maps a step name to the exception that step raises;
``tracking_code = None`` simulates a provider that has no code yet.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from modules.shipping.constants import ShipmentStep
from modules.shipping.provider.port import ShippingProvider


class FakeShippingProvider(ShippingProvider):
    def __init__(
        self,
        shipment_id: str = "me-shipment-1",
        label_url: str = "https://labels.example/me-shipment-1.pdf",
        tracking_code: Optional[str] = "ME123456789BR",
    ) -> None:
        self.shipment_id = shipment_id
        self.label_url = label_url
        self.tracking_code = tracking_code
        self.fail_at: Dict[str, Exception] = {}
        self.calls: List[Dict[str, Any]] = []

    @property
    def steps_called(self) -> List[str]:
        return [call["step"] for call in self.calls]

    def add_to_cart(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        self._record(ShipmentStep.CART_ADD, payload, timeout)
        return {"id": self.shipment_id}

    def checkout(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        self._record(ShipmentStep.CHECKOUT, {"orders": [shipment_id]}, timeout)
        return {"purchase": {"status": "paid"}}

    def generate(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        self._record(ShipmentStep.GENERATE, {"orders": [shipment_id]}, timeout)
        return {shipment_id: {"status": True}}

    def print_label(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        self._record(ShipmentStep.PRINT, {"orders": [shipment_id]}, timeout)
        return {"url": self.label_url}

    def tracking(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        self._record(ShipmentStep.TRACK, {"orders": [shipment_id]}, timeout)
        return {shipment_id: {"tracking": self.tracking_code}}

    def _record(self, step: str, payload: Any, timeout: Optional[float]) -> None:
        self.calls.append({"step": step, "payload": payload, "timeout": timeout})
        error = self.fail_at.get(step)
        if error is not None:
            raise error
