"""Cart Ledger service layer (Use Cases).

Keeps each user's cart consistent with current stock.  Every operation
takes an explicit ``user_id``; nothing is read from ambient state.

Stock checks here are optimistic: availability is re-read and validated on
every mutation, but nothing is reserved.  The hard boundary is the atomic
decrement that runs when a payment is confirmed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.cart.dtos import CartOutputDTO
from modules.cart.exceptions import CartLineNotFound
from modules.catalog.exceptions import InsufficientStock, OutOfStock
from modules.core.identity import require_user_id

if TYPE_CHECKING:
    from modules.cart.dtos import AddToCartDTO
    from modules.cart.models import CartLine
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.catalog.services import CatalogService

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for Cart use-cases.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        catalog_service: CatalogService,
    ) -> None:
        self._cart_repo = cart_repository
        self._catalog = catalog_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_to_cart(self, user_id: str, dto: AddToCartDTO) -> CartLine:
        """Add ``dto.quantity`` units, merging into an existing line.

        Raises:
            Unauthenticated: no user identity.
            ProductNotFound: the product does not exist.
            SelectionRequired / SelectionAmbiguous: invalid size/color.
            OutOfStock: nothing available for the selection.
            InsufficientStock: the merged quantity exceeds availability.
        """
        user_id = require_user_id(user_id)
        log = logger.bind(user_id=user_id, product_id=str(dto.product_id))

        resolved = self._catalog.resolve(str(dto.product_id), dto.size, dto.color)
        product, resolution = resolved.product, resolved.resolution
        available = resolution.available_quantity
        if available <= 0:
            log.info("cart.add_rejected", reason="out_of_stock")
            raise OutOfStock(product.name)

        size, color = dto.size or "", dto.color or ""
        existing = self._cart_repo.find_by_key(user_id, str(product.id), size, color)
        desired = (existing.quantity if existing else 0) + dto.quantity
        if desired > available:
            log.info(
                "cart.add_rejected",
                reason="insufficient_stock",
                desired=desired,
                available=available,
            )
            raise InsufficientStock(available, product.name)

        line = self._cart_repo.add_quantity(
            user_id, str(product.id), size, color, dto.quantity
        )
        log.info("cart.line_added", line_id=str(line.id), quantity=line.quantity)
        return line

    @transaction.atomic
    def update_quantity(
        self, user_id: str, line_id: UUID | str, quantity: int
    ) -> Optional[CartLine]:
        """Set a line's quantity; ``quantity <= 0`` removes the line.

        Returns the updated line, or ``None`` when it was removed.

        Raises:
            CartLineNotFound: the line does not exist for this user.
            OutOfStock / InsufficientStock: availability changed.
        """
        user_id = require_user_id(user_id)
        if quantity <= 0:
            self.remove_from_cart(user_id, line_id)
            return None

        line = self._cart_repo.get_line(user_id, str(line_id))
        if not line:
            raise CartLineNotFound(f"Cart item {line_id} not found.")

        resolved = self._catalog.resolve(
            str(line.product_id), line.size or None, line.color or None
        )
        available = resolved.resolution.available_quantity
        log = logger.bind(user_id=user_id, line_id=str(line.id))
        if available <= 0:
            log.info("cart.update_rejected", reason="out_of_stock")
            raise OutOfStock(resolved.product.name)
        if quantity > available:
            log.info(
                "cart.update_rejected",
                reason="insufficient_stock",
                desired=quantity,
                available=available,
            )
            raise InsufficientStock(available, resolved.product.name)

        line = self._cart_repo.set_quantity(line, quantity)
        log.info("cart.quantity_updated", quantity=quantity)
        return line

    def remove_from_cart(self, user_id: str, line_id: UUID | str) -> None:
        """Delete a line. Idempotent: removing a missing line succeeds."""
        user_id = require_user_id(user_id)
        removed = self._cart_repo.delete_line(user_id, str(line_id))
        logger.info(
            "cart.line_removed",
            user_id=user_id,
            line_id=str(line_id),
            removed=removed,
        )

    def clear_cart(self, user_id: str) -> int:
        """Delete every line of the user; returns how many were removed."""
        user_id = require_user_id(user_id)
        removed = self._cart_repo.clear(user_id)
        logger.info("cart.cleared", user_id=user_id, removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: str) -> CartOutputDTO:
        """Lines with ``total`` and ``count`` computed from live prices."""
        user_id = require_user_id(user_id)
        return CartOutputDTO.from_entities(self._cart_repo.list_for_user(user_id))
