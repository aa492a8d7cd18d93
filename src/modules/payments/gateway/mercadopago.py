"""Mercado Pago adapter for the payment gateway port (httpx)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from django.conf import settings

from modules.payments.gateway.port import PaymentGateway
from shared.infrastructure.http import JsonApiClient


class MercadoPagoGateway(JsonApiClient, PaymentGateway):
    """Creates preferences and reads payments and merchant orders.

    Every call carries the Bearer access token.
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, transport: Optional[httpx.BaseTransport] = None
    ) -> MercadoPagoGateway:
        return cls(
            settings.MERCADO_PAGO_ACCESS_TOKEN,
            base_url=settings.MERCADO_PAGO_API_URL,
            timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
            transport=transport,
        )

    def get_payment(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            "GetPayment", "GET", f"/v1/payments/{resource_id}", timeout=timeout
        ) or {}

    def get_merchant_order(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            "GetMerchantOrder",
            "GET",
            f"/merchant_orders/{resource_id}",
            timeout=timeout,
        ) or {}

    def create_preference(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._request(
            "CreatePreference",
            "POST",
            "/checkout/preferences",
            json=payload,
            timeout=timeout,
        )
