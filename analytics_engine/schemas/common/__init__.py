from analytics_engine.schemas.common.base import BaseSchema, FrozenSchema, Score
from analytics_engine.schemas.common.enums import (
    AggregationFunction,
    CalculationStrategy,
    ForecastingMethod,
    MetricCategory,
    TimeGranularity,
    TrendDirection,
    UnitKind,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "Score",
    "AggregationFunction",
    "CalculationStrategy",
    "ForecastingMethod",
    "MetricCategory",
    "TimeGranularity",
    "TrendDirection",
    "UnitKind",
]
