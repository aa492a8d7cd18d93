"""Shipping DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

import re
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SenderDTO(BaseModel):
    """Store address the label is issued from (Melhor Envio ``from`` block)."""

    model_config = ConfigDict(frozen=True)

    name: str
    phone: str = ""
    email: str = ""
    document: str = ""
    address: str
    number: str
    complement: str = ""
    district: str = ""
    city: str
    state_abbr: str
    postal_code: str

    @field_validator("postal_code")
    @classmethod
    def digits_only(cls, v: str) -> str:
        digits = re.sub(r"\D", "", v or "")
        if len(digits) != 8:
            raise ValueError("Postal code must have 8 digits.")
        return digits


class GenerateLabelDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    service_id: int = Field(ge=1)
    sender: Optional[SenderDTO] = None


class LabelResultDTO(BaseModel):
    """Outcome of a label run.

    ``partial`` is true when the label exists but no tracking code was
    obtained yet; the order is still ``confirmed`` in that case.
    """

    model_config = ConfigDict(frozen=True)

    order_id: str
    shipment_id: str
    label_url: Optional[str] = None
    tracking_code: Optional[str] = None
    partial: bool = False
