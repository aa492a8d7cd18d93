"""Event handlers for Shipping domain events."""

from __future__ import annotations

import structlog

from modules.shipping.events import OrderShipped, ShipmentFailed
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderShippedHandler(IEventHandler[OrderShipped]):
    def handle(self, event: OrderShipped) -> None:
        logger.info(
            f"Pedido {event.aggregate_id} enviado",
            order_id=str(event.aggregate_id),
            tracking_code=event.tracking_code,
        )


class ShipmentFailedHandler(IEventHandler[ShipmentFailed]):
    def handle(self, event: ShipmentFailed) -> None:
        logger.warning(
            f"Falha na etapa {event.step} da etiqueta do pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            shipment_id=event.shipment_id,
            step=event.step,
        )


order_shipped_handler = OrderShippedHandler()
shipment_failed_handler = ShipmentFailedHandler()
