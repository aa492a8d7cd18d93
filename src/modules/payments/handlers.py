"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import (
    OrderStockShortage,
    PaymentConfirmed,
    PaymentFailed,
    PaymentPending,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentConfirmedHandler(IEventHandler[PaymentConfirmed]):
    def handle(self, event: PaymentConfirmed) -> None:
        logger.info(
            f"Pagamento confirmado para o pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            resource_id=event.resource_id,
        )


class PaymentPendingHandler(IEventHandler[PaymentPending]):
    def handle(self, event: PaymentPending) -> None:
        logger.info(
            f"Pagamento pendente para o pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            resource_id=event.resource_id,
        )


class PaymentFailedHandler(IEventHandler[PaymentFailed]):
    def handle(self, event: PaymentFailed) -> None:
        logger.warning(
            f"Pagamento recusado para o pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
        )


class OrderStockShortageHandler(IEventHandler[OrderStockShortage]):
    """Pagamento aprovado sem estoque: exige estorno ou reposição manual."""

    def handle(self, event: OrderStockShortage) -> None:
        logger.error(
            f"Estoque insuficiente para confirmar o pedido {event.aggregate_id}",
            order_id=str(event.aggregate_id),
            resource_id=event.resource_id,
            product=event.product_name,
        )


payment_confirmed_handler = PaymentConfirmedHandler()
payment_pending_handler = PaymentPendingHandler()
payment_failed_handler = PaymentFailedHandler()
order_stock_shortage_handler = OrderStockShortageHandler()
