"""Django ORM implementation of the Cart repository.

Concurrent adds of the same natural key are merged: the unique constraint
on ``(user_id, product, size, color)`` lets only one insert win, the loser
catches ``IntegrityError`` and increments the winning row with a single
``F()`` update.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from modules.cart.models import CartLine
from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[CartLine]:
        try:
            return CartLine.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_line(self, user_id: str, line_id: str) -> Optional[CartLine]:
        try:
            return (
                CartLine.objects.select_related("product")
                .filter(id=line_id, user_id=user_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def find_by_key(
        self, user_id: str, product_id: str, size: str, color: str
    ) -> Optional[CartLine]:
        return CartLine.objects.filter(
            user_id=user_id,
            product_id=product_id,
            size=size,
            color=color,
        ).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CartLine]:
        queryset = CartLine.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: str) -> List[CartLine]:
        return self.list({"user_id": user_id})

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: CartLine) -> CartLine:
        entity.save()
        return entity

    def add_quantity(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int
    ) -> CartLine:
        key = {
            "user_id": user_id,
            "product_id": product_id,
            "size": size,
            "color": color,
        }
        updated = CartLine.objects.filter(**key).update(
            quantity=F("quantity") + quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            try:
                with transaction.atomic():
                    line = CartLine.objects.create(quantity=quantity, **key)
                logger.info("cart.line_inserted", line_id=str(line.id), **_log_key(key))
                return line
            except IntegrityError:
                logger.info("cart.concurrent_insert_merged", **_log_key(key))
                CartLine.objects.filter(**key).update(
                    quantity=F("quantity") + quantity,
                    updated_at=timezone.now(),
                )

        line = CartLine.objects.select_related("product").get(**key)
        logger.info("cart.line_incremented", line_id=str(line.id), quantity=line.quantity)
        return line

    def set_quantity(self, line: CartLine, quantity: int) -> CartLine:
        line.quantity = quantity
        line.save(update_fields=["quantity"])
        return line

    def delete(self, id: str) -> bool:
        try:
            deleted, _ = CartLine.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def delete_line(self, user_id: str, line_id: str) -> int:
        try:
            deleted, _ = CartLine.objects.filter(id=line_id, user_id=user_id).delete()
        except (ValueError, ValidationError):
            return 0
        return deleted

    def clear(self, user_id: str) -> int:
        deleted, _ = CartLine.objects.filter(user_id=user_id).delete()
        return deleted


def _log_key(key: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "user_id": key["user_id"],
        "product_id": str(key["product_id"]),
        "size": key["size"] or None,
        "color": key["color"] or None,
    }
