"""Topic-specific notification parsing.

A notification only tells us *what changed* (topic + resource id).  The
parsers fetch the resource from the gateway and reduce it to a
``NormalizedNotification`` so the transition layer never sees
topic-specific shapes.

- ``payment``: status and external reference of the payment itself.
- ``merchant_order``: external reference of the merchant order and the
  status of its **last** embedded payment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from modules.payments.constants import NotificationTopic
from modules.payments.gateway.port import PaymentGateway


class UnsupportedTopic(Exception):
    """The notification topic has no parser."""


class UnparseableResource(Exception):
    """The gateway answered with a body that is not the expected resource."""


@dataclass(frozen=True)
class NormalizedNotification:
    topic: str
    resource_id: str
    external_reference: Optional[str]
    vendor_status: Optional[str]


def extract_topic_and_id(
    query: Mapping[str, Any], body: Optional[Mapping[str, Any]] = None
) -> Tuple[Optional[str], Optional[str]]:
    """Read topic (``topic`` or ``type``) and resource id (``id`` or ``data.id``).

    Query parameters win over the JSON body; blank values count as missing.
    """
    body = body if isinstance(body, Mapping) else {}
    data = body.get("data") if isinstance(body.get("data"), Mapping) else {}

    topic = _first(
        query.get("topic"),
        query.get("type"),
        body.get("topic"),
        body.get("type"),
    )
    resource_id = _first(
        query.get("id"),
        query.get("data.id"),
        body.get("id"),
        data.get("id"),
    )
    return topic, resource_id


def normalize(
    topic: str,
    resource_id: str,
    gateway: PaymentGateway,
    timeout: Optional[float] = None,
) -> NormalizedNotification:
    """Fetch the resource behind a notification and normalize it.

    Raises:
        UnsupportedTopic: no parser exists for ``topic``.
        UnparseableResource: the fetched resource is not a JSON object, or
            its embedded payments are malformed.
        UpstreamError / UpstreamTimeout: the gateway call failed.
    """
    parser = TOPIC_PARSERS.get(topic)
    if parser is None:
        raise UnsupportedTopic(topic)
    external_reference, vendor_status = parser(gateway, resource_id, timeout)
    return NormalizedNotification(
        topic=topic,
        resource_id=resource_id,
        external_reference=_clean(external_reference),
        vendor_status=_clean(vendor_status),
    )


def _parse_payment(
    gateway: PaymentGateway, resource_id: str, timeout: Optional[float]
) -> Tuple[Any, Any]:
    payment = gateway.get_payment(resource_id, timeout=timeout)
    if not isinstance(payment, Mapping):
        raise UnparseableResource(NotificationTopic.PAYMENT)
    return payment.get("external_reference"), payment.get("status")


def _parse_merchant_order(
    gateway: PaymentGateway, resource_id: str, timeout: Optional[float]
) -> Tuple[Any, Any]:
    merchant_order = gateway.get_merchant_order(resource_id, timeout=timeout)
    if not isinstance(merchant_order, Mapping):
        raise UnparseableResource(NotificationTopic.MERCHANT_ORDER)
    payments = merchant_order.get("payments") or []
    if not isinstance(payments, list):
        raise UnparseableResource(NotificationTopic.MERCHANT_ORDER)
    if not payments:
        return merchant_order.get("external_reference"), None
    last = payments[-1]
    if not isinstance(last, Mapping):
        raise UnparseableResource(NotificationTopic.MERCHANT_ORDER)
    status = last.get("status")
    return merchant_order.get("external_reference"), status


TOPIC_PARSERS: Dict[
    str, Callable[[PaymentGateway, str, Optional[float]], Tuple[Any, Any]]
] = {
    NotificationTopic.PAYMENT: _parse_payment,
    NotificationTopic.MERCHANT_ORDER: _parse_merchant_order,
}


def _first(*values: Any) -> Optional[str]:
    for value in values:
        cleaned = _clean(value)
        if cleaned:
            return cleaned
    return None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
