"""Payment notification inbox repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import PaymentNotification


class INotificationRepository(IRepository["PaymentNotification"]):
    @abstractmethod
    def record_delivery(self, topic: str, resource_id: str) -> PaymentNotification:
        """Create the inbox row or bump its ``delivery_count``."""

    @abstractmethod
    def record_outcome(
        self,
        notification_id: str,
        outcome: str,
        reason: Optional[str],
        external_reference: Optional[str] = None,
        vendor_status: Optional[str] = None,
    ) -> None:
        """Store the result of the latest processing attempt."""

    @abstractmethod
    def list_replayable(self, reasons: tuple, limit: int) -> List[PaymentNotification]:
        """Ignored notifications whose ``last_reason`` is in ``reasons``."""
