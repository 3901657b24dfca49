# --- File: analytics_engine/schemas/analytics/forecast.py ---
"""
Forecast schemas.

Provides the per-metric forecast with confidence bands and the
multi-metric forecast envelope with overall accuracy figures.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import Field, computed_field, model_validator

from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.base import BaseSchema, Score

__all__ = [
    "ConfidenceInterval",
    "MetricForecast",
    "ForecastResult",
]


class ConfidenceInterval(BaseSchema):
    """80% and 95% prediction bounds for one forecast period."""

    period: int = Field(..., ge=1, description="1-based forecast period")
    forecast_value: Decimal = Field(..., description="Point forecast")
    confidence_80_lower: Decimal
    confidence_80_upper: Decimal
    confidence_95_lower: Decimal
    confidence_95_upper: Decimal

    @model_validator(mode="after")
    def validate_nesting(self) -> "ConfidenceInterval":
        """The 95% band must contain the 80% band, which must contain the point."""
        if not (
            self.confidence_95_lower
            <= self.confidence_80_lower
            <= self.forecast_value
            <= self.confidence_80_upper
            <= self.confidence_95_upper
        ):
            raise ValueError("confidence bounds are not nested around the forecast value")
        return self

    @computed_field  # type: ignore[misc]
    @property
    def interval_width_95(self) -> Decimal:
        return self.confidence_95_upper - self.confidence_95_lower


class MetricForecast(BaseSchema):
    """Projection of one metric over the forecast horizon."""

    metric_type: Optional[MetricType] = Field(None, description="Forecasted metric, if any")
    forecasted_values: List[Decimal] = Field(
        default_factory=list,
        description="One value per forecast period"
    )
    confidence_intervals: List[ConfidenceInterval] = Field(
        default_factory=list,
        description="One interval per forecast period"
    )
    accuracy: Score = Field(Decimal("0"), description="Expected accuracy of the method")
    confidence: Score = Field(Decimal("0"), description="Base confidence of the method")
    method_used: str = Field(..., description="Forecasting method name")
    seasonality_adjusted: bool = False
    trend_adjusted: bool = False
    model_parameters: Dict[str, Decimal] = Field(default_factory=dict)
    historical_data_points: int = Field(0, ge=0)
    forecast_horizon: int = Field(0, ge=0)

    @model_validator(mode="after")
    def validate_horizon(self) -> "MetricForecast":
        """Values and intervals both cover the full horizon."""
        if len(self.forecasted_values) != self.forecast_horizon:
            raise ValueError("forecasted_values length must equal forecast_horizon")
        if len(self.confidence_intervals) != self.forecast_horizon:
            raise ValueError("confidence_intervals length must equal forecast_horizon")
        return self


class ForecastResult(BaseSchema):
    """Forecasts for a set of metrics over a shared window."""

    forecast_id: UUID = Field(default_factory=uuid4)
    entity_id: Optional[UUID] = Field(None, description="Entity the history belongs to")
    metric_forecasts: Dict[MetricType, MetricForecast] = Field(default_factory=dict)
    forecast_periods: int = Field(..., ge=1)
    forecast_start: datetime
    forecast_end: datetime
    overall_accuracy: Score = Decimal("0")
    overall_confidence: Score = Decimal("0")
    model_used: str = "HYBRID_ENSEMBLE"
    data_points: int = Field(0, ge=0, description="Historical samples across all metrics")
    generated_at: datetime
    assumptions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)

    def forecast_for(self, metric_type: MetricType) -> Optional[MetricForecast]:
        return self.metric_forecasts.get(metric_type)
