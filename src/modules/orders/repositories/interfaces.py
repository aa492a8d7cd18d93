"""Order repository interface.

Extends ``IRepository[Order]`` with the writes the payment and shipment
workflows need.  Each status write is a single compare-and-swap
statement: it only applies when the row still holds the status the
caller observed, so concurrent writers cannot overwrite each other.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderLine children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its line snapshots atomically.

        ``data`` must include ``user_id``, ``shipping_address`` and
        ``lines`` (dicts with ``product_id``, ``variant_id``,
        ``product_name``, ``size``, ``color``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched lines and status history."""

    @abstractmethod
    def compare_and_set_payment_status(
        self,
        order_id: UUID,
        expected: str,
        new: str,
        expected_fulfillment: Optional[str] = None,
        **fields: Any,
    ) -> bool:
        """Set ``payment_status`` only if it still equals ``expected``.

        With ``expected_fulfillment`` the write also requires the order
        to still be in that fulfillment status.
        """

    @abstractmethod
    def update_fulfillment(
        self, order_id: UUID, expected: str, new: str, **fields: Any
    ) -> bool:
        """Set ``fulfillment_status`` only if it still equals ``expected``."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        field: str,
        old_status: Optional[str],
        new_status: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
