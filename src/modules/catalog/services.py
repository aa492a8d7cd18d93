"""Catalog service layer.

Loads catalog rows through the repository and runs the Inventory
Resolver on them.  Used by the availability endpoint, the Cart Ledger and
checkout so every stock question goes through the same rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog

from modules.catalog import inventory
from modules.catalog.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.catalog.inventory import StockResolution
    from modules.catalog.models import Product
    from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedProduct:
    product: Product
    resolution: StockResolution


class CatalogService:
    """Application service for catalog reads.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repository = repository

    def get_product(self, product_id: str) -> Product:
        """Raises ``ProductNotFound`` when the product does not exist."""
        product = self._repository.get_by_id(str(product_id))
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        return product

    def resolve(
        self,
        product_id: str,
        size: Optional[str] = None,
        color: Optional[str] = None,
    ) -> ResolvedProduct:
        """Load the product with its variants and resolve the sellable unit."""
        product = self.get_product(product_id)
        variants = self._repository.get_variants(str(product.id))
        resolution = inventory.resolve(product, variants, size=size, color=color)
        logger.debug(
            "inventory.resolved",
            product_id=str(product.id),
            variant_id=str(resolution.variant.id) if resolution.variant else None,
            available_quantity=resolution.available_quantity,
        )
        return ResolvedProduct(product=product, resolution=resolution)
