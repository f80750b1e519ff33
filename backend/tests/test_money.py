from decimal import Decimal

import pytest

from retailops.services.errors import InvalidInput
from retailops.utils.money import round2, to_decimal


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("0.005"), Decimal("0.01")),
        (Decimal("-0.005"), Decimal("-0.01")),
        (Decimal("2.675"), Decimal("2.68")),
        (Decimal("0.004"), Decimal("0.00")),
        ("1.115", Decimal("1.12")),
        (1.005, Decimal("1.01")),
        (7, Decimal("7.00")),
    ],
)
def test_round2_is_half_away_from_zero(value, expected):
    assert round2(value) == expected


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None])
def test_non_numbers_are_invalid_input(value):
    with pytest.raises(InvalidInput):
        to_decimal(value, "price")
