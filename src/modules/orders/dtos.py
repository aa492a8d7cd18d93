"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: recipient data copied onto the order.
- ``PlaceOrderDTO``: input for checkout.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ShippingAddressDTO(BaseModel):
    """Recipient address as the shipping provider needs it.

    ``cep`` is the Brazilian postal code; it is stored with digits only.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    street: str
    number: str
    city: str
    state: str
    cep: str
    neighborhood: str = ""
    complement: str = ""
    phone: str = ""
    email: str = ""
    document: str = ""

    @field_validator("name", "street", "number", "city", "state")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()

    @field_validator("cep")
    @classmethod
    def cep_must_have_eight_digits(cls, v: str) -> str:
        digits = re.sub(r"\D", "", v or "")
        if len(digits) != 8:
            raise ValueError("CEP must have 8 digits.")
        return digits


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for checkout; the lines come from the user's cart."""

    model_config = ConfigDict(frozen=True)

    shipping_address: ShippingAddressDTO
