"""Half-up rounding for monetary and rating values.

Python's ``round`` rounds half to even and works on binary floats, which
turns 0.125 into 0.12. Amounts are pushed through ``Decimal`` with
``ROUND_HALF_UP`` instead.
"""

from decimal import ROUND_HALF_UP, Decimal


def _quantize(value, places: int) -> float:
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round2(value) -> float:
    return _quantize(value, 2)


def round1(value) -> float:
    return _quantize(value, 1)
