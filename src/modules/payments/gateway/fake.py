"""In-memory payment gateway for development and testing.

Resources are registered up front; unknown ids behave like a gateway 404.
Created preferences are kept in ``preferences`` in call order.
``fail_with`` makes every call raise the given error, which is how tests
simulate an unavailable gateway.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from modules.core.exceptions import UpstreamError
from modules.payments.gateway.port import PaymentGateway


class FakePaymentGateway(PaymentGateway):
    def __init__(self) -> None:
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.merchant_orders: Dict[str, Dict[str, Any]] = {}
        self.preferences: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    def add_payment(
        self, resource_id: str, status: str, external_reference: Optional[str]
    ) -> None:
        self.payments[str(resource_id)] = {
            "id": resource_id,
            "status": status,
            "external_reference": external_reference,
        }

    def add_merchant_order(
        self,
        resource_id: str,
        external_reference: Optional[str],
        payment_statuses: List[str],
    ) -> None:
        self.merchant_orders[str(resource_id)] = {
            "id": resource_id,
            "external_reference": external_reference,
            "payments": [{"status": status} for status in payment_statuses],
        }

    def get_payment(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._lookup("GetPayment", self.payments, resource_id, timeout)

    def get_merchant_order(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        return self._lookup(
            "GetMerchantOrder", self.merchant_orders, resource_id, timeout
        )

    def create_preference(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        self.calls.append(
            {"step": "CreatePreference", "resource_id": None, "timeout": timeout}
        )
        if self.fail_with is not None:
            raise self.fail_with
        self.preferences.append(payload)
        preference_id = f"pref-{len(self.preferences)}"
        return {
            "id": preference_id,
            "init_point": f"https://mp.test/checkout?pref_id={preference_id}",
            "sandbox_init_point": (
                f"https://sandbox.mp.test/checkout?pref_id={preference_id}"
            ),
        }

    def _lookup(
        self,
        step: str,
        store: Dict[str, Dict[str, Any]],
        resource_id: str,
        timeout: Optional[float],
    ) -> Dict[str, Any]:
        self.calls.append({"step": step, "resource_id": resource_id, "timeout": timeout})
        if self.fail_with is not None:
            raise self.fail_with
        try:
            return dict(store[str(resource_id)])
        except KeyError:
            raise UpstreamError(
                step=step, payload={"message": "resource not found"}, status_code=404
            ) from None
