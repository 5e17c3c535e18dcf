"""
Decimal Utilities
app/scoring/utils.py

Provides precision-safe decimal math for scoring calculations.

Rounding is ROUND_HALF_UP, which in ``decimal`` rounds ties away from zero
for both signs (2.345 -> 2.35, -2.345 -> -2.35).
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence, Union

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal, places: int) -> Decimal:
    """Round to ``places`` decimals, ties away from zero."""
    if places < 0:
        raise ValueError("places must be >= 0")
    return value.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)


def mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean. Raises ValueError on empty input."""
    if not values:
        raise ValueError("mean of empty sequence")
    return sum(values, Decimal("0")) / Decimal(len(values))


def weighted_mean(values: List[Decimal], weights: List[Decimal]) -> Decimal:
    """
    Calculate weighted mean.

    Formula: Σ(value_i × weight_i) / Σ(weight_i)
    """
    if len(values) != len(weights):
        raise ValueError("values and weights must have same length")

    total_weight = sum(weights, Decimal("0"))
    if total_weight <= 0:
        raise ValueError("weights must sum to a positive value")

    numerator = sum((v * w for v, w in zip(values, weights)), Decimal("0"))
    return numerator / total_weight
