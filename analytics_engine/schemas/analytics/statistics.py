# --- File: analytics_engine/schemas/analytics/statistics.py ---
"""
Descriptive statistics over a metric's samples.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, computed_field

from analytics_engine.schemas.common.base import BaseSchema

__all__ = ["StatisticalSummary"]

_ZERO = Decimal("0")


class StatisticalSummary(BaseSchema):
    """
    Summary statistics of a numeric sequence.

    Recomputed on demand from samples; an empty sequence yields a summary
    with ``sample_size`` 0 and every statistic at zero.
    """

    sample_size: int = Field(0, ge=0, description="Number of values summarized")
    mean: Decimal = Field(_ZERO, description="Arithmetic mean")
    median: Decimal = Field(_ZERO, description="Median value")
    mode: Decimal = Field(_ZERO, description="Most frequent value")
    variance: Decimal = Field(_ZERO, ge=0, description="Sample variance (n-1)")
    standard_deviation: Decimal = Field(_ZERO, ge=0, description="Sample standard deviation")
    min: Decimal = Field(_ZERO, description="Smallest value")
    max: Decimal = Field(_ZERO, description="Largest value")
    range: Decimal = Field(_ZERO, ge=0, description="max - min")
    q1: Decimal = Field(_ZERO, description="First quartile (nearest rank)")
    q3: Decimal = Field(_ZERO, description="Third quartile (nearest rank)")
    iqr: Decimal = Field(_ZERO, description="Inter-quartile range")
    skewness: Decimal = Field(_ZERO, description="Third standardized moment")
    kurtosis: Decimal = Field(_ZERO, description="Excess kurtosis")
    calculated_at: datetime = Field(..., description="When the summary was produced")

    @computed_field  # type: ignore[misc]
    @property
    def coefficient_of_variation(self) -> Decimal:
        """Standard deviation relative to the absolute mean."""
        if self.mean == _ZERO:
            return _ZERO
        return round(self.standard_deviation / abs(self.mean), 4)

    @property
    def is_empty(self) -> bool:
        return self.sample_size == 0
