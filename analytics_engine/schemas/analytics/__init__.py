from analytics_engine.schemas.analytics.forecast import (
    ConfidenceInterval,
    ForecastResult,
    MetricForecast,
)
from analytics_engine.schemas.analytics.metric_result import (
    ERROR_METHOD,
    MetricComputation,
    MetricResult,
)
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricDefinition, MetricType
from analytics_engine.schemas.analytics.statistics import StatisticalSummary
from analytics_engine.schemas.analytics.trend import MetricTrend, TrendAnalysis

__all__ = [
    "ConfidenceInterval",
    "ForecastResult",
    "MetricForecast",
    "ERROR_METHOD",
    "MetricComputation",
    "MetricResult",
    "MetricSample",
    "MetricDefinition",
    "MetricType",
    "StatisticalSummary",
    "MetricTrend",
    "TrendAnalysis",
]
