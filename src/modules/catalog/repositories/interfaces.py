"""Catalog repository interface.

Extends ``IRepository[Product]`` with the reads the Inventory Resolver
needs and the atomic stock decrement used when a payment is confirmed.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product, ProductVariant


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate (with variants)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products with optional filters."""

    @abstractmethod
    def get_variants(self, product_id: str) -> List[ProductVariant]:
        """Return every variant of a product (empty for flat-stock products)."""

    @abstractmethod
    def decrement_stock(
        self, product_id: str, variant_id: Optional[str], quantity: int
    ) -> bool:
        """Atomically subtract ``quantity`` if at least that much is in stock.

        Returns ``False`` (and changes nothing) when stock is short.
        """

    @abstractmethod
    def increment_stock(
        self, product_id: str, variant_id: Optional[str], quantity: int
    ) -> None:
        """Atomically add ``quantity`` back to stock."""
