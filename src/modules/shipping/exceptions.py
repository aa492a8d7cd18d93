"""Shipping domain exceptions."""

from __future__ import annotations

from typing import Any, Optional

from rest_framework import status

from modules.core.exceptions import DomainError, UpstreamError


class ShipmentStepFailed(UpstreamError):
    """A label purchase step failed at the provider.

    ``step`` is the step name (e.g. ``"Generate"``) and ``payload`` the raw
    provider response.  Earlier steps stay done; re-running resumes here.
    """

    def __init__(
        self, step: str, payload: Any = None, status_code: Optional[int] = None
    ) -> None:
        super().__init__(
            f"Shipment step {step} failed.",
            step=step,
            payload=payload,
            status_code=status_code,
        )


class SenderRequired(DomainError):
    """The first run of a shipment needs the sender address for Cart-add."""

    code = "sender_required"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "A sender address is required to start a shipment."
