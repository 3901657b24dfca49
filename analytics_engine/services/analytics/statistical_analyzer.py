"""
Descriptive statistics over decimal sequences.

Pure functions; every result is rounded half-up to ``places`` fractional
digits and degenerate inputs (empty, single value, zero spread) yield
zero instead of raising.
"""

import math
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import List, Sequence, Tuple

from analytics_engine.core.utils import ONE, ZERO, round_decimal
from analytics_engine.schemas.analytics.statistics import StatisticalSummary

__all__ = [
    "mean",
    "median",
    "mode",
    "variance",
    "standard_deviation",
    "percentile",
    "skewness",
    "kurtosis",
    "linear_fit",
    "autocorrelation",
    "outlier_indices",
    "summarize",
]

DEFAULT_PLACES = 4


def mean(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    if not values:
        return round_decimal(ZERO, places)
    return round_decimal(sum(values, ZERO) / len(values), places)


def median(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    if not values:
        return round_decimal(ZERO, places)
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    return round_decimal((ordered[middle - 1] + ordered[middle]) / 2, places)


def mode(values: Sequence[Decimal]) -> Decimal:
    """Most frequent value; ties go to the value seen first."""
    if not values:
        return ZERO
    return Counter(values).most_common(1)[0][0]


def variance(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    """Sample variance (n - 1 denominator)."""
    if len(values) <= 1:
        return round_decimal(ZERO, places)
    center = mean(values, places)
    squared = sum(((value - center) ** 2 for value in values), ZERO)
    return round_decimal(squared / (len(values) - 1), places)


def standard_deviation(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    return round_decimal(variance(values, places).sqrt(), places)


def percentile(values: Sequence[Decimal], p: float, places: int = DEFAULT_PLACES) -> Decimal:
    """Nearest-rank percentile: element at ceil(p/100 * n) - 1."""
    if not values:
        return round_decimal(ZERO, places)
    ordered = sorted(values)
    index = math.ceil(Decimal(str(p)) / 100 * len(ordered)) - 1
    index = max(0, min(index, len(ordered) - 1))
    return ordered[index]


def _standardized_moment(values: Sequence[Decimal], power: int, places: int) -> Decimal:
    spread = standard_deviation(values, places)
    if spread == ZERO:
        return ZERO
    center = mean(values, places)
    total = sum(
        (round_decimal((value - center) / spread, places) ** power for value in values),
        ZERO,
    )
    return total / len(values)


def skewness(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    if len(values) < 3:
        return round_decimal(ZERO, places)
    return round_decimal(_standardized_moment(values, 3, places), places)


def kurtosis(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Decimal:
    """Excess kurtosis (fourth standardized moment minus 3)."""
    if len(values) < 4 or standard_deviation(values, places) == ZERO:
        return round_decimal(ZERO, places)
    return round_decimal(_standardized_moment(values, 4, places) - 3, places)


def linear_fit(values: Sequence[Decimal], places: int = DEFAULT_PLACES) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Least-squares line through (i, values[i]) for i = 0..n-1.

    Returns (slope, intercept, r_squared). R-squared is clamped at zero
    and is zero for a flat series; fewer than two values give a zero
    slope through the mean.
    """
    n = len(values)
    if n < 2:
        return round_decimal(ZERO, places), mean(values, places), round_decimal(ZERO, places)

    x_center = Decimal(n - 1) / 2
    y_center = sum(values, ZERO) / n
    s_xy = sum(((i - x_center) * (value - y_center) for i, value in enumerate(values)), ZERO)
    s_xx = sum(((i - x_center) ** 2 for i in range(n)), ZERO)
    total = sum(((value - y_center) ** 2 for value in values), ZERO)

    slope = s_xy / s_xx
    intercept = y_center - slope * x_center
    residual = sum(((value - (slope * i + intercept)) ** 2 for i, value in enumerate(values)), ZERO)
    r_squared = max(ZERO, ONE - residual / total) if total != ZERO else ZERO

    return (
        round_decimal(slope, places),
        round_decimal(intercept, places),
        round_decimal(r_squared, places),
    )


def autocorrelation(values: Sequence[Decimal], lag: int, places: int = DEFAULT_PLACES) -> Decimal:
    """Lag-k autocorrelation; zero when the series is too short or flat."""
    n = len(values)
    if lag <= 0 or n <= lag:
        return round_decimal(ZERO, places)
    center = sum(values, ZERO) / n
    denominator = sum(((value - center) ** 2 for value in values), ZERO)
    if denominator == ZERO:
        return round_decimal(ZERO, places)
    numerator = sum(
        ((values[i] - center) * (values[i - lag] - center) for i in range(lag, n)),
        ZERO,
    )
    return round_decimal(numerator / denominator, places)


def outlier_indices(values: Sequence[Decimal], factor: Decimal = Decimal("1.5")) -> List[int]:
    """
    Positions of values outside the Tukey fences.

    Quartiles are the sorted values at n//4 and 3n//4; fewer than four
    values never have outliers.
    """
    if len(values) < 4:
        return []
    ordered = sorted(values)
    n = len(ordered)
    q1, q3 = ordered[n // 4], ordered[3 * n // 4]
    fence = (q3 - q1) * factor
    lower, upper = q1 - fence, q3 + fence
    return [i for i, value in enumerate(values) if value < lower or value > upper]


def summarize(
    values: Sequence[Decimal],
    calculated_at: datetime,
    places: int = DEFAULT_PLACES,
) -> StatisticalSummary:
    """Full StatisticalSummary of a sequence; empty input gives a zero summary."""
    if not values:
        return StatisticalSummary(sample_size=0, calculated_at=calculated_at)

    q1 = percentile(values, 25, places)
    q3 = percentile(values, 75, places)
    smallest = min(values)
    largest = max(values)
    var = variance(values, places)

    return StatisticalSummary(
        sample_size=len(values),
        mean=mean(values, places),
        median=median(values, places),
        mode=mode(values),
        variance=var,
        standard_deviation=round_decimal(var.sqrt(), places),
        min=smallest,
        max=largest,
        range=largest - smallest,
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
        skewness=skewness(values, places),
        kurtosis=kurtosis(values, places),
        calculated_at=calculated_at,
    )
