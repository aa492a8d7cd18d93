"""Melhor Envio (API v2) adapter for the shipping provider port (httpx)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from django.conf import settings

from modules.shipping.constants import ShipmentStep
from modules.shipping.provider.port import ShippingProvider
from shared.infrastructure.http import JsonApiClient


class MelhorEnvioClient(JsonApiClient, ShippingProvider):
    """Bearer-token client; Melhor Envio rejects requests without a User-Agent."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://www.melhorenvio.com.br/api/v2",
        user_agent: str = "",
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_key}"}
        if user_agent:
            headers["User-Agent"] = user_agent
        super().__init__(
            base_url, headers=headers, timeout=timeout, transport=transport
        )

    @classmethod
    def from_settings(
        cls, transport: Optional[httpx.BaseTransport] = None
    ) -> MelhorEnvioClient:
        return cls(
            settings.MELHOR_ENVIO_API_KEY,
            base_url=settings.MELHOR_ENVIO_API_URL,
            user_agent=settings.MELHOR_ENVIO_USER_AGENT,
            timeout=settings.SHIPPING_PROVIDER_TIMEOUT,
            transport=transport,
        )

    def add_to_cart(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            ShipmentStep.CART_ADD, "POST", "/me/cart", json=payload, timeout=timeout
        ) or {}

    def checkout(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        return self._request(
            ShipmentStep.CHECKOUT,
            "POST",
            "/me/shipment/checkout",
            json={"orders": [shipment_id]},
            timeout=timeout,
        )

    def generate(self, shipment_id: str, timeout: Optional[float] = None) -> Any:
        return self._request(
            ShipmentStep.GENERATE,
            "POST",
            "/me/shipment/generate",
            json={"orders": [shipment_id]},
            timeout=timeout,
        )

    def print_label(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            ShipmentStep.PRINT,
            "POST",
            "/me/shipment/print",
            json={"mode": "public", "orders": [shipment_id]},
            timeout=timeout,
        ) or {}

    def tracking(
        self, shipment_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            ShipmentStep.TRACK,
            "POST",
            "/me/shipment/tracking",
            json={"orders": [shipment_id]},
            timeout=timeout,
        ) or {}
