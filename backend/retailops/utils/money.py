from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from retailops.services.errors import InvalidInput

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    """Convert to Decimal without going through binary float noise."""
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidInput(f"{field} is not a number", details={"field": field})
    if not d.is_finite():
        raise InvalidInput(f"{field} is not a finite number", details={"field": field})
    return d


def round2(value: Number, field: str = "amount") -> Decimal:
    """Round to 2 decimal places, half away from zero (ROUND_HALF_UP on Decimal)."""
    return to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)
