"""Django ORM implementation of the catalog repository.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising, the Service Layer decides how to report a missing
product.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.db.models.functions import Coalesce
from django.utils import timezone

from modules.catalog.models import Product, ProductVariant
from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_variants(self, product_id: str) -> List[ProductVariant]:
        return list(ProductVariant.objects.filter(product_id=product_id))

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def decrement_stock(
        self, product_id: str, variant_id: Optional[str], quantity: int
    ) -> bool:
        """Single conditional ``UPDATE ... SET stock = stock - q WHERE stock >= q``.

        The guard in the WHERE clause makes concurrent decrements safe
        without a row lock: at most one of two competing writers can take
        the last unit.
        """
        if variant_id is not None:
            queryset = ProductVariant.objects.filter(
                id=variant_id, product_id=product_id
            )
        else:
            queryset = Product.objects.filter(id=product_id)

        updated = queryset.filter(stock__gte=quantity).update(
            stock=F("stock") - quantity,
            updated_at=timezone.now(),
        )

        log = logger.bind(
            product_id=str(product_id),
            variant_id=str(variant_id) if variant_id else None,
            quantity=quantity,
        )
        if updated != 1:
            log.warning("stock.decrement_refused")
            return False
        log.info("stock.decremented")
        return True

    def increment_stock(
        self, product_id: str, variant_id: Optional[str], quantity: int
    ) -> None:
        if variant_id is not None:
            queryset = ProductVariant.objects.filter(
                id=variant_id, product_id=product_id
            )
        else:
            queryset = Product.objects.filter(id=product_id)
        queryset.update(
            stock=Coalesce(F("stock"), 0) + quantity,
            updated_at=timezone.now(),
        )
        logger.info(
            "stock.incremented",
            product_id=str(product_id),
            variant_id=str(variant_id) if variant_id else None,
            quantity=quantity,
        )
