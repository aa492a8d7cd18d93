"""Unit tests for the Inventory Resolver.

Covers:
- Inactive products are never available.
- Size / color are required when the product declares them (size first).
- Flat-stock products (null stock counts as zero).
- Variant matching with wildcard attributes, no flat-stock fallback.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.catalog.exceptions import SelectionAmbiguous, SelectionRequired
from modules.catalog.inventory import normalize_selection, resolve
from modules.catalog.models import Product, ProductVariant

pytestmark = pytest.mark.unit


def _product(**overrides) -> Product:
    defaults = {
        "name": "Vestido Midi",
        "price": Decimal("259.90"),
        "stock": 3,
        "sizes": [],
        "colors": [],
        "is_active": True,
    }
    defaults.update(overrides)
    return Product(**defaults)


def _variant(product: Product, size: str = "", color: str = "", stock: int = 2):
    return ProductVariant(product=product, size=size, color=color, stock=stock)


class TestFlatStock:
    def test_returns_product_stock(self):
        product = _product(stock=3)
        resolution = resolve(product, [])
        assert resolution.available_quantity == 3
        assert resolution.unit is product
        assert resolution.variant is None
        assert resolution.in_stock is True

    def test_null_stock_counts_as_zero(self):
        resolution = resolve(_product(stock=None), [])
        assert resolution.available_quantity == 0
        assert resolution.in_stock is False

    def test_inactive_product_is_unavailable(self):
        product = _product(stock=50, is_active=False)
        assert resolve(product, []).available_quantity == 0

    def test_inactive_skips_selection_checks(self):
        product = _product(is_active=False, sizes=["P", "M"])
        assert resolve(product, []).available_quantity == 0


class TestSelectionRequired:
    def test_size_required_when_product_lists_sizes(self):
        with pytest.raises(SelectionRequired) as exc_info:
            resolve(_product(sizes=["P", "M"]), [])
        assert exc_info.value.extra["attribute"] == "size"

    def test_size_checked_before_color(self):
        product = _product(sizes=["P"], colors=["Azul"])
        with pytest.raises(SelectionRequired) as exc_info:
            resolve(product, [])
        assert exc_info.value.extra["attribute"] == "size"

    def test_color_required_after_size_given(self):
        product = _product(sizes=["P"], colors=["Azul"])
        with pytest.raises(SelectionRequired) as exc_info:
            resolve(product, [], size="P")
        assert exc_info.value.extra["attribute"] == "color"

    def test_variant_attribute_makes_selection_required(self):
        product = _product(sizes=[], colors=[])
        variants = [_variant(product, color="Rosa")]
        with pytest.raises(SelectionRequired) as exc_info:
            resolve(product, variants)
        assert exc_info.value.extra["attribute"] == "color"

    def test_blank_selection_counts_as_missing(self):
        with pytest.raises(SelectionRequired):
            resolve(_product(sizes=["P"]), [], size="   ")


class TestVariantStock:
    def test_exact_match(self):
        product = _product(sizes=["P", "M"], colors=["Azul"])
        p_azul = _variant(product, "P", "Azul", stock=4)
        m_azul = _variant(product, "M", "Azul", stock=1)
        resolution = resolve(product, [p_azul, m_azul], size="M", color="Azul")
        assert resolution.variant is m_azul
        assert resolution.available_quantity == 1

    def test_unset_variant_field_matches_any_value(self):
        product = _product(sizes=["P", "M"], colors=[])
        any_size = _variant(product, size="", color="", stock=7)
        resolution = resolve(product, [any_size], size="M")
        assert resolution.variant is any_size
        assert resolution.available_quantity == 7

    def test_unknown_combination_is_ambiguous_not_flat_stock(self):
        product = _product(stock=99, sizes=["P", "M"], colors=["Azul", "Rosa"])
        variants = [_variant(product, "P", "Azul"), _variant(product, "M", "Rosa")]
        with pytest.raises(SelectionAmbiguous) as exc_info:
            resolve(product, variants, size="P", color="Rosa")
        assert exc_info.value.extra["match_count"] == 0

    def test_several_matches_are_ambiguous(self):
        product = _product(sizes=["P"], colors=["Azul"])
        variants = [_variant(product, "P", ""), _variant(product, "", "Azul")]
        with pytest.raises(SelectionAmbiguous) as exc_info:
            resolve(product, variants, size="P", color="Azul")
        assert exc_info.value.extra["match_count"] == 2

    def test_zero_stock_variant_resolves_to_zero(self):
        product = _product(sizes=["G"])
        variant = _variant(product, "G", stock=0)
        resolution = resolve(product, [variant], size="G")
        assert resolution.available_quantity == 0
        assert resolution.in_stock is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("  ", None), (" M ", "M")],
)
def test_normalize_selection(raw, expected):
    assert normalize_selection(raw) == expected
