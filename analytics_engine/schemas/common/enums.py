# --- File: analytics_engine/schemas/common/enums.py ---
"""
Enumeration types shared across the analytics engine.

These enums describe how metrics are grouped, measured, calculated and
bucketed in time, plus the aggregation functions and forecasting methods
the engine supports.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from dateutil.relativedelta import relativedelta

__all__ = [
    "MetricCategory",
    "UnitKind",
    "CalculationStrategy",
    "AggregationFunction",
    "ForecastingMethod",
    "TrendDirection",
    "TimeGranularity",
]


class MetricCategory(str, Enum):
    """Business area a metric belongs to."""

    REVENUE = "REVENUE"
    OCCUPANCY = "OCCUPANCY"
    BOOKING = "BOOKING"
    CUSTOMER = "CUSTOMER"
    FINANCIAL = "FINANCIAL"
    CHANNEL = "CHANNEL"
    MARKET = "MARKET"


class UnitKind(str, Enum):
    """Measurement unit of a metric value."""

    CURRENCY = "CURRENCY"
    PERCENTAGE = "PERCENTAGE"
    COUNT = "COUNT"
    SCORE = "SCORE"
    INDEX = "INDEX"


class CalculationStrategy(str, Enum):
    """How base samples are combined into a metric value."""

    SUM = "SUM"
    AVERAGE = "AVERAGE"
    LATEST = "LATEST"
    COUNT = "COUNT"
    PERCENTAGE = "PERCENTAGE"
    RATIO = "RATIO"
    COMPLEX = "COMPLEX"

    @property
    def method_tag(self) -> str:
        """Calculation method tag reported on results."""
        return {
            CalculationStrategy.SUM: "SUMMATION",
            CalculationStrategy.AVERAGE: "ARITHMETIC_MEAN",
            CalculationStrategy.LATEST: "LATEST_VALUE",
            CalculationStrategy.COUNT: "COUNT_AGGREGATION",
            CalculationStrategy.PERCENTAGE: "PERCENTAGE_CALCULATION",
            CalculationStrategy.RATIO: "RATIO_CALCULATION",
            CalculationStrategy.COMPLEX: "COMPLEX_ALGORITHM",
        }[self]


class AggregationFunction(str, Enum):
    """Functions used to combine per-entity values."""

    SUM = "sum"
    AVERAGE = "average"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"
    COUNT = "count"

    @classmethod
    def parse(cls, name: str) -> "AggregationFunction":
        """Resolve a function name; 'mean' is accepted for average."""
        normalized = (name or "").strip().lower()
        if normalized == "mean":
            return cls.AVERAGE
        return cls(normalized)


class ForecastingMethod(str, Enum):
    """Candidate forecasting methods, in evaluation order."""

    SIMPLE_MOVING_AVERAGE = "SIMPLE_MOVING_AVERAGE"
    WEIGHTED_MOVING_AVERAGE = "WEIGHTED_MOVING_AVERAGE"
    SIMPLE_EXPONENTIAL_SMOOTHING = "SIMPLE_EXPONENTIAL_SMOOTHING"
    DOUBLE_EXPONENTIAL_SMOOTHING = "DOUBLE_EXPONENTIAL_SMOOTHING"
    TRIPLE_EXPONENTIAL_SMOOTHING = "TRIPLE_EXPONENTIAL_SMOOTHING"
    LINEAR_REGRESSION = "LINEAR_REGRESSION"
    POLYNOMIAL_REGRESSION = "POLYNOMIAL_REGRESSION"
    SEASONAL_DECOMPOSITION = "SEASONAL_DECOMPOSITION"
    ARIMA = "ARIMA"
    ENSEMBLE = "ENSEMBLE"


class TrendDirection(str, Enum):
    """Direction of a fitted trend line, or why none was fitted."""

    INCREASING = "INCREASING"
    DECREASING = "DECREASING"
    STABLE = "STABLE"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    NO_DATA = "NO_DATA"

    @property
    def has_fit(self) -> bool:
        return self not in (TrendDirection.INSUFFICIENT_DATA, TrendDirection.NO_DATA)


@dataclass(frozen=True)
class GranularitySpec:
    """Static description of a time bucket size."""

    display_name: str
    description: str
    step: relativedelta
    date_format: str
    max_periods: int
    approximate: timedelta


class TimeGranularity(str, Enum):
    """Time bucket sizes samples are aligned to."""

    REAL_TIME = "REAL_TIME"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"

    @property
    def spec(self) -> GranularitySpec:
        return _GRANULARITY_SPECS[self]

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    @property
    def step(self) -> relativedelta:
        return self.spec.step

    @property
    def max_periods(self) -> int:
        return self.spec.max_periods

    def is_finer_than(self, other: "TimeGranularity") -> bool:
        return self.spec.approximate < other.spec.approximate

    def is_coarser_than(self, other: "TimeGranularity") -> bool:
        return self.spec.approximate > other.spec.approximate

    def next_coarser(self) -> Optional["TimeGranularity"]:
        """Next larger bucket in the standard ladder, if any."""
        ladder = _GRANULARITY_LADDER
        if self not in ladder:
            return None
        index = ladder.index(self)
        return ladder[index + 1] if index + 1 < len(ladder) else None

    def next_finer(self) -> Optional["TimeGranularity"]:
        """Next smaller bucket in the standard ladder, if any."""
        ladder = _GRANULARITY_LADDER
        if self not in ladder:
            return None
        index = ladder.index(self)
        return ladder[index - 1] if index > 0 else None

    def advance(self, moment: datetime, periods: int = 1) -> datetime:
        """Move a timestamp forward by whole buckets."""
        return moment + self.step * periods

    def periods_between(self, start: datetime, end: datetime) -> int:
        """Number of whole buckets that fit between two timestamps."""
        if end <= start:
            return 0
        count = 0
        cursor = self.advance(start)
        while cursor <= end:
            count += 1
            cursor = self.advance(start, count + 1)
        return count

    def is_suitable_for(self, duration: timedelta) -> bool:
        """Whether a window of this length stays within the bucket limit."""
        return duration / self.spec.approximate <= self.max_periods

    @classmethod
    def recommended_for(cls, duration: timedelta) -> "TimeGranularity":
        """Finest standard granularity whose bucket count fits the window."""
        for granularity in _GRANULARITY_LADDER:
            if granularity.is_suitable_for(duration):
                return granularity
        return cls.YEARLY


_GRANULARITY_SPECS = {
    TimeGranularity.REAL_TIME: GranularitySpec(
        "Real-time", "Real-time streaming data",
        relativedelta(minutes=5), "%Y-%m-%d %H:%M", 288, timedelta(minutes=5),
    ),
    TimeGranularity.HOURLY: GranularitySpec(
        "Hourly", "Hour-by-hour analysis",
        relativedelta(hours=1), "%Y-%m-%d %H:00", 168, timedelta(hours=1),
    ),
    TimeGranularity.DAILY: GranularitySpec(
        "Daily", "Day-by-day analysis",
        relativedelta(days=1), "%Y-%m-%d", 365, timedelta(days=1),
    ),
    TimeGranularity.WEEKLY: GranularitySpec(
        "Weekly", "Week-by-week analysis",
        relativedelta(weeks=1), "%Y-W%W", 104, timedelta(weeks=1),
    ),
    TimeGranularity.MONTHLY: GranularitySpec(
        "Monthly", "Month-by-month analysis",
        relativedelta(months=1), "%Y-%m", 60, timedelta(days=30),
    ),
    TimeGranularity.QUARTERLY: GranularitySpec(
        "Quarterly", "Quarter-by-quarter analysis",
        relativedelta(months=3), "%Y-Q", 40, timedelta(days=91),
    ),
    TimeGranularity.YEARLY: GranularitySpec(
        "Yearly", "Year-by-year analysis",
        relativedelta(years=1), "%Y", 20, timedelta(days=365),
    ),
    TimeGranularity.CUSTOM: GranularitySpec(
        "Custom Period", "User-defined period",
        relativedelta(days=1), "%Y-%m-%d", 1000, timedelta(days=1),
    ),
}

_GRANULARITY_LADDER: List[TimeGranularity] = [
    TimeGranularity.HOURLY,
    TimeGranularity.DAILY,
    TimeGranularity.WEEKLY,
    TimeGranularity.MONTHLY,
    TimeGranularity.QUARTERLY,
    TimeGranularity.YEARLY,
]
