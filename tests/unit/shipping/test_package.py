from decimal import Decimal

import pytest

from modules.shipping.package import estimate_package

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "items, height, weight",
    [
        (1, 5, Decimal("0.3")),
        (3, 15, Decimal("0.9")),
        (20, 100, Decimal("6.0")),
        (50, 100, Decimal("15.0")),
    ],
)
def test_estimate_package(items, height, weight):
    package = estimate_package(items)

    assert package.width == 20
    assert package.length == 30
    assert package.height == height
    assert package.weight == weight


def test_as_volume_uses_plain_numbers():
    assert estimate_package(2).as_volume() == {
        "width": 20,
        "height": 10,
        "length": 30,
        "weight": 0.6,
    }
