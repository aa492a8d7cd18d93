"""Domain events for payment reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentEvent(DomainEvent):
    previous_status: str = ""
    resource_id: str = ""


@dataclass(frozen=True)
class PaymentConfirmed(PaymentEvent):
    """The order moved to ``paid`` and its stock was committed."""


@dataclass(frozen=True)
class PaymentPending(PaymentEvent):
    """The gateway reported the payment as pending."""


@dataclass(frozen=True)
class PaymentFailed(PaymentEvent):
    """The gateway rejected or cancelled the payment."""


@dataclass(frozen=True)
class OrderStockShortage(DomainEvent):
    """A payment was approved but stock ran out before it could be committed.

    The order stays unpaid; an operator must refund or restock.
    """

    resource_id: str = ""
    product_name: str = ""
