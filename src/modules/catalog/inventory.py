"""Inventory Resolver.

Answers "how many units of this exact sellable unit exist right now?" for
a (product, size, color) request.  Pure function over catalog rows: it does
not query the database, so callers pass the product and its variants.

Rules, in order:

1. Inactive product -> available quantity 0.
2. Size is required when ``product.sizes`` is non-empty or any variant has a
   size; color likewise.  Size is checked first.
3. No variants -> the product itself is the unit (null stock counts as 0).
4. Variants -> exactly one variant must match, where an unset variant field
   matches any requested value.  Zero or several matches is
   ``SelectionAmbiguous``; there is no fallback to the flat stock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from modules.catalog.exceptions import SelectionAmbiguous, SelectionRequired
from modules.catalog.models import Product, ProductVariant


@dataclass(frozen=True)
class StockResolution:
    unit: Union[Product, ProductVariant]
    available_quantity: int

    @property
    def variant(self) -> Optional[ProductVariant]:
        return self.unit if isinstance(self.unit, ProductVariant) else None

    @property
    def in_stock(self) -> bool:
        return self.available_quantity > 0


def normalize_selection(value: Optional[str]) -> Optional[str]:
    """Blank strings mean "no selection"."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve(
    product: Product,
    variants: Iterable[ProductVariant],
    size: Optional[str] = None,
    color: Optional[str] = None,
) -> StockResolution:
    """Resolve the sellable unit and its available quantity.

    Raises:
        SelectionRequired: a mandatory size/color was not supplied.
        SelectionAmbiguous: the selection does not identify one variant.
    """
    size = normalize_selection(size)
    color = normalize_selection(color)

    if not product.is_active:
        return StockResolution(unit=product, available_quantity=0)

    variant_list: List[ProductVariant] = list(variants)

    size_required = bool(product.sizes) or any(v.size for v in variant_list)
    color_required = bool(product.colors) or any(v.color for v in variant_list)
    if size_required and size is None:
        raise SelectionRequired("size", product.name)
    if color_required and color is None:
        raise SelectionRequired("color", product.name)

    if not variant_list:
        return StockResolution(unit=product, available_quantity=product.stock or 0)

    matches = [
        v
        for v in variant_list
        if _field_matches(v.size, size) and _field_matches(v.color, color)
    ]
    if len(matches) != 1:
        raise SelectionAmbiguous(size=size, color=color, match_count=len(matches))

    variant = matches[0]
    return StockResolution(unit=variant, available_quantity=variant.stock)


def _field_matches(variant_value: str, requested: Optional[str]) -> bool:
    if not variant_value:
        return True
    return variant_value == requested
