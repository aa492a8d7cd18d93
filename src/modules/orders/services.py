"""Order service layer (Use Cases).

Checkout turns the user's cart into an order snapshot; operators move the
fulfillment status.  Payment status is owned by the Payment Reconciler
and shipment by the Shipment Orchestrator; neither is written here.

Business rules enforced:
- Checkout requires a non-empty cart and re-validates every line against
  current stock (same errors as the Cart Ledger).
- Line prices and names are snapshotted; the cart is cleared atomically.
- Fulfillment transitions are validated against the state machine and
  recorded in the history.
- Cancelling an order whose stock was committed gives the stock back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.catalog.exceptions import InsufficientStock, OutOfStock
from modules.core.identity import require_user_id
from modules.orders.constants import FulfillmentStatus, StatusField
from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import EmptyCart, InvalidOrderStatus, OrderNotFound

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.catalog.services import CatalogService
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.stock import StockCommitter

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        catalog_service: CatalogService,
        stock_committer: StockCommitter,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._catalog = catalog_service
        self._stock = stock_committer

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, user_id: str, dto: PlaceOrderDTO) -> Order:
        """Create an order from the user's cart.

        Steps:
        1. Load the cart; refuse an empty one.
        2. Re-resolve every line (sorted by product) and snapshot the
           matched variant, name and current price.
        3. Persist order + lines, initial history and ``OrderPlaced``.
        4. Clear the cart.

        Raises:
            EmptyCart: the user's cart has no lines.
            OutOfStock / InsufficientStock: a line can no longer be served.
            SelectionRequired / SelectionAmbiguous: catalog changed shape.
        """
        user_id = require_user_id(user_id)
        log = logger.bind(user_id=user_id)
        log.info("order.checkout_started")

        cart_lines = self._cart_repo.list_for_user(user_id)
        if not cart_lines:
            raise EmptyCart()

        snapshot = []
        for cart_line in sorted(cart_lines, key=lambda line: str(line.product_id)):
            resolved = self._catalog.resolve(
                str(cart_line.product_id),
                cart_line.size or None,
                cart_line.color or None,
            )
            product, resolution = resolved.product, resolved.resolution
            if resolution.available_quantity <= 0:
                raise OutOfStock(product.name)
            if cart_line.quantity > resolution.available_quantity:
                raise InsufficientStock(resolution.available_quantity, product.name)

            snapshot.append(
                {
                    "product_id": product.id,
                    "variant_id": resolution.variant.id if resolution.variant else None,
                    "product_name": product.name,
                    "size": cart_line.size,
                    "color": cart_line.color,
                    "quantity": cart_line.quantity,
                    "unit_price": product.price,
                }
            )

        order = self._order_repo.create(
            {
                "user_id": user_id,
                "shipping_address": dto.shipping_address.model_dump(),
                "lines": snapshot,
            }
        )
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                user_id=user_id,
                subtotal=str(order.subtotal),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            field=StatusField.FULFILLMENT,
            old_status=None,
            new_status=FulfillmentStatus.PLACED,
            notes="Order placed",
        )

        self._cart_repo.clear(user_id)

        log.info("order.placed", order_id=str(order.id), subtotal=str(order.subtotal))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_fulfillment_status(
        self, order_id: UUID | str, new_status: str, notes: str = ""
    ) -> Order:
        """Operator-driven fulfillment transition.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self.get_order(str(order_id))
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.fulfillment_status,
            new_status=new_status,
        )

        if not order.can_transition_fulfillment_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot move fulfillment from {order.fulfillment_status} "
                f"to {new_status}."
            )

        old_status = order.fulfillment_status
        if not self._order_repo.update_fulfillment(order.id, old_status, new_status):
            log.warning("order.transition_conflict")
            raise InvalidOrderStatus("The order was modified concurrently.")

        # Read after the write: a payment applied before it may have
        # committed stock.
        order.refresh_from_db()
        if new_status == FulfillmentStatus.CANCELLED:
            if order.stock_committed:
                self._stock.release(order)
            order.add_domain_event(OrderCancelled(aggregate_id=order.id))
        else:
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=new_status,
                )
            )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            field=StatusField.FULFILLMENT,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )

        log.info("order.fulfillment_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user_id: Optional[str] = None) -> Order:
        """Retrieve a single order; ``user_id`` restricts it to its owner.

        Raises:
            OrderNotFound: the order does not exist or belongs to someone else.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order or (user_id is not None and order.user_id != user_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, user_id: Optional[str] = None) -> QuerySet:
        """Orders of one user, or every order when ``user_id`` is ``None``."""
        filters = {"user_id": user_id} if user_id is not None else None
        return self._order_repo.list(filters)
