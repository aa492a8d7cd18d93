"""Stock commit hook run when an order's payment is confirmed.

This is the hard consistency boundary of the engine: cart-level checks
are optimistic, but the decrement here is a conditional ``UPDATE`` per
unit that refuses to go below zero.  Must run inside the transaction
that moves the order to ``paid`` so a shortage rolls the whole
transition back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.catalog.exceptions import OutOfStock

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class StockCommitter:
    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    def commit(self, order: Order) -> None:
        """Decrement stock for every line, ordered by product id.

        Raises:
            OutOfStock: a unit no longer has enough stock.  Earlier
                decrements are only undone if the caller's transaction
                rolls back.
        """
        lines = sorted(
            order.lines.all(),
            key=lambda line: (str(line.product_id), str(line.variant_id or "")),
        )
        for line in lines:
            variant_id = str(line.variant_id) if line.variant_id else None
            ok = self._product_repo.decrement_stock(
                str(line.product_id), variant_id, line.quantity
            )
            if not ok:
                logger.warning(
                    "order.stock_shortage",
                    order_id=str(order.id),
                    product_id=str(line.product_id),
                    variant_id=variant_id,
                    quantity=line.quantity,
                )
                raise OutOfStock(line.product_name)

        logger.info("order.stock_committed", order_id=str(order.id), lines=len(lines))

    def release(self, order: Order) -> None:
        """Give committed stock back (order cancelled after payment)."""
        for line in order.lines.all():
            variant_id = str(line.variant_id) if line.variant_id else None
            self._product_repo.increment_stock(
                str(line.product_id), variant_id, line.quantity
            )
        logger.info("order.stock_released", order_id=str(order.id))
