"""
Trend analysis schemas.

Provides the per-metric fitted trend with seasonality and outlier
findings, and the multi-metric envelope with the overall direction.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import Field

from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.base import BaseSchema, Score
from analytics_engine.schemas.common.enums import TimeGranularity, TrendDirection

__all__ = [
    "MetricTrend",
    "TrendAnalysis",
]

_ZERO = Decimal("0")


class MetricTrend(BaseSchema):
    """Linear trend fitted to one metric's history."""

    metric_type: MetricType
    direction: TrendDirection
    trend_strength: Score = Field(_ZERO, description="R-squared of the fitted line")
    slope: Decimal = Field(_ZERO, description="Change per period")
    intercept: Decimal = _ZERO
    r_squared: Score = _ZERO
    significance: Score = Field(_ZERO, description="1 - approximate p-value of the slope")
    percentage_change: Decimal = Field(_ZERO, description="Last value relative to the first, in percent")
    average_value: Decimal = _ZERO
    volatility: Decimal = Field(_ZERO, ge=0, description="Sample standard deviation")
    seasonality_detected: bool = False
    seasonality_strength: Decimal = Field(_ZERO, description="Strongest weekly or monthly autocorrelation")
    outlier_indices: List[int] = Field(default_factory=list)
    slope_lower: Decimal = Field(_ZERO, description="Lower 95% bound of the slope")
    slope_upper: Decimal = Field(_ZERO, description="Upper 95% bound of the slope")
    data_points: int = Field(0, ge=0)

    @property
    def outliers_count(self) -> int:
        return len(self.outlier_indices)


class TrendAnalysis(BaseSchema):
    """Trends for a set of metrics over a shared window."""

    analysis_id: UUID = Field(default_factory=uuid4)
    entity_id: Optional[UUID] = None
    metric_trends: List[MetricTrend] = Field(default_factory=list)
    overall_trend: str = Field(..., description="Most common direction, or NO_DATA")
    trend_strength: Score = Field(_ZERO, description="Mean R-squared across fitted metrics")
    confidence: Score = Field(_ZERO, description="Mean significance across fitted metrics")
    period_days: int = Field(0, ge=0)
    granularity: TimeGranularity
    insights: List[str] = Field(default_factory=list)
    analyzed_at: datetime

    def trend_for(self, metric_type: MetricType) -> Optional[MetricTrend]:
        return next((trend for trend in self.metric_trends if trend.metric_type == metric_type), None)
