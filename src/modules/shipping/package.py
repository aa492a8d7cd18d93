"""Package dimensions estimated from the number of items in an order."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from modules.shipping.constants import (
    PACKAGE_HEIGHT_PER_ITEM_CM,
    PACKAGE_LENGTH_CM,
    PACKAGE_MAX_HEIGHT_CM,
    PACKAGE_WEIGHT_PER_ITEM_KG,
    PACKAGE_WIDTH_CM,
)


@dataclass(frozen=True)
class PackageDimensions:
    width: int
    height: int
    length: int
    weight: Decimal

    def as_volume(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "length": self.length,
            "weight": float(self.weight),
        }


def estimate_package(item_count: int) -> PackageDimensions:
    """Width 20, length 30, height ``min(5 * items, 100)``, weight ``0.3 * items``."""
    return PackageDimensions(
        width=PACKAGE_WIDTH_CM,
        height=min(PACKAGE_HEIGHT_PER_ITEM_CM * item_count, PACKAGE_MAX_HEIGHT_CM),
        length=PACKAGE_LENGTH_CM,
        weight=Decimal(PACKAGE_WEIGHT_PER_ITEM_KG) * item_count,
    )
