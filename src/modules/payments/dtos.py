"""Payment DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ReconciliationResultDTO(BaseModel):
    """What happened to one notification.

    ``outcome`` is one of ``applied``, ``duplicate``, ``rejected``,
    ``ignored``; ``reason`` explains every non-applied outcome.
    """

    model_config = ConfigDict(frozen=True)

    outcome: str
    reason: Optional[str] = None
    order_id: Optional[str] = None
    payment_status: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.outcome == "applied"


class PaymentPreferenceDTO(BaseModel):
    """Checkout preference opened for one order; the buyer pays at ``init_point``."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    preference_id: str
    init_point: str
    sandbox_init_point: Optional[str] = None
