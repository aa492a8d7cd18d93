"""Shipment Orchestrator.

Buys a shipping label for a confirmed order through five strictly ordered
provider steps: Cart-add, Checkout, Generate, Print, Track.

- Every successful step is persisted before the next one starts.
- A failure at steps 1 to 4 marks the shipment ``failed``, keeps the work
  already done (a bought label is never rolled back) and raises
  ``ShipmentStepFailed`` or ``UpstreamTimeout`` naming the step.
- A re-run resumes after the last completed step.
- Track is best effort: without a tracking code the run still succeeds as
  ``partial`` and the order stays ``confirmed``.  Only a tracking code
  moves the order to ``shipped``.

No lock is taken here; the Celery task is the single entry point that
schedulers use, one job per order.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.core.exceptions import UpstreamError, UpstreamTimeout
from modules.core.outbox import record_events
from modules.orders.constants import FulfillmentStatus, StatusField
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.shipping.constants import SHIPMENT_STEPS, ShipmentStatus, ShipmentStep
from modules.shipping.dtos import GenerateLabelDTO, LabelResultDTO
from modules.shipping.events import OrderShipped, ShipmentFailed
from modules.shipping.exceptions import SenderRequired, ShipmentStepFailed
from modules.shipping.package import estimate_package
from modules.shipping.provider import get_provider

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.shipping.models import Shipment
    from modules.shipping.provider.port import ShippingProvider
    from modules.shipping.repositories.interfaces import IShipmentRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "shipping"


class ShipmentOrchestrator:
    def __init__(
        self,
        provider: ShippingProvider,
        order_repository: IOrderRepository,
        shipment_repository: IShipmentRepository,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._order_repo = order_repository
        self._shipment_repo = shipment_repository
        self._timeout = timeout

    def generate_label(
        self, dto: GenerateLabelDTO, timeout: Optional[float] = None
    ) -> LabelResultDTO:
        """Run (or resume) the label purchase for ``dto.order_id``.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the order is not ``confirmed``.
            SenderRequired: a first run was started without a sender.
            ShipmentStepFailed: a provider step (1 to 4) failed.
            UpstreamTimeout: a provider step (1 to 4) timed out.
        """
        order = self._order_repo.get_by_id(str(dto.order_id))
        if order is None:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        log = logger.bind(order_id=str(order.id))
        shipment = self._shipment_repo.get_for_order(order.id)

        if shipment is not None and shipment.status == ShipmentStatus.COMPLETED:
            log.info("shipment.already_completed", shipment_id=str(shipment.id))
            return _result(order, shipment)

        if order.fulfillment_status != FulfillmentStatus.CONFIRMED:
            raise InvalidOrderStatus(
                f"Cannot generate a label for an order in "
                f"{order.fulfillment_status} status."
            )

        if (shipment is None or shipment.completed_step == 0) and dto.sender is None:
            raise SenderRequired()

        shipment = self._shipment_repo.start(order.id, dto.service_id)
        log = log.bind(shipment_id=str(shipment.id))
        timeout = timeout if timeout is not None else self._timeout

        for step_number in range(shipment.completed_step + 1, len(SHIPMENT_STEPS)):
            self._run_step(order, shipment, step_number, dto, timeout, log)

        return self._track(order, shipment, timeout, log)

    # ------------------------------------------------------------------
    # Steps 1 to 4
    # ------------------------------------------------------------------

    def _run_step(
        self,
        order: Order,
        shipment: Shipment,
        step_number: int,
        dto: GenerateLabelDTO,
        timeout: Optional[float],
        log: Any,
    ) -> None:
        step = SHIPMENT_STEPS[step_number - 1]
        try:
            response, fields = self._call(step, order, shipment, dto, timeout)
        except UpstreamTimeout:
            self._fail(order, shipment, step, {"error": "timeout"}, log)
            raise
        except UpstreamError as exc:
            self._fail(order, shipment, step, exc.payload, log)
            raise ShipmentStepFailed(
                step, payload=exc.payload, status_code=exc.upstream_status
            ) from exc

        self._shipment_repo.record_step(shipment, step_number, response, **fields)
        log.info("shipment.step_completed", step=step, step_number=step_number)

    def _call(
        self,
        step: str,
        order: Order,
        shipment: Shipment,
        dto: GenerateLabelDTO,
        timeout: Optional[float],
    ) -> tuple[Any, Dict[str, Any]]:
        provider_id = shipment.provider_shipment_id

        if step == ShipmentStep.CART_ADD:
            response = self._provider.add_to_cart(
                build_cart_payload(order, dto), timeout=timeout
            )
            provider_id = (
                str(response.get("id") or "") if isinstance(response, dict) else ""
            )
            if not provider_id:
                raise UpstreamError(step=step, payload=response)
            return response, {"provider_shipment_id": provider_id}

        if step == ShipmentStep.CHECKOUT:
            return self._provider.checkout(provider_id, timeout=timeout), {}

        if step == ShipmentStep.GENERATE:
            return self._provider.generate(provider_id, timeout=timeout), {}

        response = self._provider.print_label(provider_id, timeout=timeout)
        label_url = response.get("url") if isinstance(response, dict) else None
        if not label_url:
            raise UpstreamError(step=step, payload=response)
        return response, {"label_url": label_url}

    def _fail(
        self, order: Order, shipment: Shipment, step: str, payload: Any, log: Any
    ) -> None:
        with transaction.atomic():
            self._shipment_repo.record_failure(shipment, step, payload)
            record_events(
                [
                    ShipmentFailed(
                        aggregate_id=order.id,
                        shipment_id=str(shipment.id),
                        step=step,
                    )
                ],
                OUTBOX_TOPIC,
            )
        log.warning("shipment.step_failed", step=step, payload=payload)

    # ------------------------------------------------------------------
    # Step 5
    # ------------------------------------------------------------------

    def _track(
        self,
        order: Order,
        shipment: Shipment,
        timeout: Optional[float],
        log: Any,
    ) -> LabelResultDTO:
        step = ShipmentStep.TRACK
        provider_id = shipment.provider_shipment_id
        try:
            response = self._provider.tracking(provider_id, timeout=timeout)
        except (UpstreamError, UpstreamTimeout) as exc:
            payload = getattr(exc, "payload", None) or {"error": exc.code}
            self._shipment_repo.record_failure(shipment, step, payload, terminal=False)
            response = None

        tracking_code = _tracking_code(response, provider_id)
        if not tracking_code:
            self._shipment_repo.set_status(shipment, ShipmentStatus.LABEL_READY)
            log.warning("shipment.tracking_unavailable")
            return _result(order, shipment, partial=True)

        with transaction.atomic():
            if not self._order_repo.update_fulfillment(
                order.id,
                FulfillmentStatus.CONFIRMED,
                FulfillmentStatus.SHIPPED,
                tracking_code=tracking_code,
            ):
                log.warning("shipment.order_changed")
                raise InvalidOrderStatus("The order was modified concurrently.")

            self._order_repo.add_history(
                order_id=order.id,
                field=StatusField.FULFILLMENT,
                old_status=FulfillmentStatus.CONFIRMED,
                new_status=FulfillmentStatus.SHIPPED,
                notes=f"Tracking {tracking_code}",
            )
            self._shipment_repo.record_step(
                shipment,
                len(SHIPMENT_STEPS),
                response,
                tracking_code=tracking_code,
                status=ShipmentStatus.COMPLETED,
            )
            record_events(
                [
                    OrderShipped(
                        aggregate_id=order.id,
                        shipment_id=str(shipment.id),
                        tracking_code=tracking_code,
                        label_url=shipment.label_url,
                    )
                ],
                OUTBOX_TOPIC,
            )

        log.info("shipment.completed", tracking_code=tracking_code)
        return _result(order, shipment)


def build_cart_payload(order: Order, dto: GenerateLabelDTO) -> Dict[str, Any]:
    """Cart-add request body: one product line and one volume per order."""
    address = order.shipping_address or {}
    sender = dto.sender
    subtotal = float(order.subtotal)
    package = estimate_package(order.item_count)

    return {
        "service": dto.service_id,
        "from": {
            "name": sender.name,
            "phone": sender.phone,
            "email": sender.email,
            "document": sender.document,
            "address": sender.address,
            "number": sender.number,
            "complement": sender.complement,
            "district": sender.district,
            "city": sender.city,
            "state_abbr": sender.state_abbr,
            "postal_code": _digits(sender.postal_code),
        },
        "to": {
            "name": address.get("name") or "Cliente",
            "phone": address.get("phone", ""),
            "email": address.get("email", ""),
            "document": address.get("document", ""),
            "address": address.get("street", ""),
            "number": address.get("number", ""),
            "complement": address.get("complement", ""),
            "district": address.get("neighborhood", ""),
            "city": address.get("city", ""),
            "state_abbr": address.get("state", ""),
            "postal_code": _digits(address.get("cep", "")),
        },
        "products": [
            {
                "name": f"Pedido #{str(order.id)[:8]}",
                "quantity": 1,
                "unitary_value": subtotal,
            }
        ],
        "volumes": [{**package.as_volume(), "insurance_value": subtotal}],
        "options": {
            "insurance_value": subtotal,
            "receipt": False,
            "own_hand": False,
            "collect": False,
        },
    }


def build_orchestrator(
    provider: Optional[ShippingProvider] = None,
) -> ShipmentOrchestrator:
    from django.conf import settings

    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.shipping.repositories.django_repository import (
        ShipmentDjangoRepository,
    )

    return ShipmentOrchestrator(
        provider=provider or get_provider(),
        order_repository=OrderDjangoRepository(),
        shipment_repository=ShipmentDjangoRepository(),
        timeout=settings.SHIPPING_PROVIDER_TIMEOUT,
    )


def _result(order: Order, shipment: Shipment, partial: bool = False) -> LabelResultDTO:
    return LabelResultDTO(
        order_id=str(order.id),
        shipment_id=str(shipment.id),
        label_url=shipment.label_url or None,
        tracking_code=shipment.tracking_code,
        partial=partial,
    )


def _tracking_code(response: Any, provider_id: str) -> Optional[str]:
    if not isinstance(response, dict):
        return None
    entry = response.get(provider_id)
    if not isinstance(entry, dict):
        return None
    return entry.get("tracking") or None


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")
