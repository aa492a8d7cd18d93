"""Payment gateway port (abstract interface).

The reconciler never trusts the notification body: it only learns the
topic and resource id from it and fetches the authoritative resource
through this contract.  Checkout opens a payment by creating a
preference, which carries the order id as ``external_reference``.  ``FakePaymentGateway`` (tests) and
``MercadoPagoGateway`` (production) implement it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def get_payment(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Fetch a payment (``status``, ``external_reference``)."""

    @abstractmethod
    def get_merchant_order(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Fetch a merchant order (``external_reference``, ``payments``)."""

    @abstractmethod
    def create_preference(
        self, payload: Dict[str, Any], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Create a checkout preference (``id``, ``init_point``)."""
