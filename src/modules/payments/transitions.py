"""Topic-agnostic payment transition rules.

Decides what a normalized vendor status means for an order's current
``payment_status``.  No I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modules.orders.constants import PAYMENT_FULFILLMENT_EFFECTS, PAYMENT_TRANSITIONS
from modules.payments.constants import VENDOR_STATUS_MAP, Reason, ReconciliationOutcome


@dataclass(frozen=True)
class TransitionDecision:
    outcome: str
    reason: Optional[str] = None

    @property
    def should_apply(self) -> bool:
        return self.outcome == ReconciliationOutcome.APPLIED


def target_status(vendor_status: Optional[str]) -> Optional[str]:
    """Internal payment status for a vendor status, ``None`` if unrecognized."""
    if vendor_status is None:
        return None
    return VENDOR_STATUS_MAP.get(vendor_status.lower())


def decide(current: str, target: str) -> TransitionDecision:
    """Apply, skip as duplicate, or reject a ``current -> target`` move.

    ``paid`` has no outgoing transitions, so once an order is paid every
    later notification is either a duplicate or rejected.
    """
    if current == target:
        return TransitionDecision(ReconciliationOutcome.DUPLICATE, Reason.SAME_STATUS)
    if target in PAYMENT_TRANSITIONS.get(current, set()):
        return TransitionDecision(ReconciliationOutcome.APPLIED)
    return TransitionDecision(
        ReconciliationOutcome.REJECTED, Reason.TRANSITION_NOT_ALLOWED
    )


def fulfillment_effect(target: str, current_fulfillment: str) -> Optional[str]:
    """Fulfillment status implied by reaching ``target``, if any applies now."""
    effect = PAYMENT_FULFILLMENT_EFFECTS.get(target)
    if effect is None:
        return None
    required, applied = effect
    return applied if current_fulfillment == required else None
