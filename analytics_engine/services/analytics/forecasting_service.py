"""
Forecasting service.

Selects a forecasting method by back-testing every candidate on the
history, projects the requested horizon with the winner and attaches
prediction intervals derived from the history's standard deviation.

Flow per series: select method -> generate forecast -> confidence
intervals -> accuracy lookup.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from analytics_engine.config.settings import Settings
from analytics_engine.core.exceptions import SampleStoreError
from analytics_engine.core.utils import Clock, ONE, ZERO, round_decimal, to_decimal
from analytics_engine.repositories.sample_store import SampleStore, query_series
from analytics_engine.schemas.analytics.forecast import (
    ConfidenceInterval,
    ForecastResult,
    MetricForecast,
)
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import ForecastingMethod, TimeGranularity
from analytics_engine.services.analytics.forecasting_methods import (
    MethodForecast,
    SmoothingParameters,
    run_method,
)
from analytics_engine.services.analytics.validation_service import ValidationService
from analytics_engine.services.base import BaseAnalyticsService
import analytics_engine.services.analytics.statistical_analyzer as stats

__all__ = ["ForecastingService", "INSUFFICIENT_DATA"]

INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
DEFAULT_METHOD = ForecastingMethod.SIMPLE_EXPONENTIAL_SMOOTHING

FORECAST_ASSUMPTIONS = [
    "Historical patterns will continue into the forecast period",
    "No major external disruptions or changes in business conditions",
    "Seasonal patterns observed in historical data remain consistent",
    "Market conditions remain relatively stable",
]

FORECAST_LIMITATIONS = [
    "Forecast accuracy decreases for longer time horizons",
    "Unexpected events or changes in business conditions may affect accuracy",
    "Limited historical data may reduce forecast reliability",
    "Seasonal adjustments are based on observed patterns and may not account for new trends",
]


class ForecastingService(BaseAnalyticsService):
    """Multi-method forecasting over historical metric series."""

    def __init__(
        self,
        store: Optional[SampleStore] = None,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(config=config, clock=clock)
        self.store = store
        self.params = SmoothingParameters.from_settings(self.settings)
        self.places = self.settings.DECIMAL_PLACES

    # -------------------------------------------------------------------------
    # Store-backed forecasts
    # -------------------------------------------------------------------------

    def generate_forecast(
        self,
        metric_types: List[MetricType],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        periods: Optional[int] = None,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ForecastResult:
        """Forecast each metric from its stored history; failed metrics are skipped."""
        periods = self._horizon(periods)
        self._logger.info(
            f"Generating forecast for {len(metric_types)} metrics, {periods} periods",
            extra={"entity_id": entity_id, "granularity": granularity.value},
        )

        forecasts: Dict[MetricType, MetricForecast] = {}
        for metric_type in metric_types:
            try:
                history = self.history(metric_type, entity_id, period_start, period_end, granularity)
                forecasts[metric_type] = self.forecast_series(history, periods, metric_type)
            except Exception as e:
                self._logger.warning(
                    f"Failed to generate forecast for metric {metric_type.value}: {e}",
                    extra={"metric_type": metric_type.value, "entity_id": entity_id},
                )

        metric_forecasts = list(forecasts.values())
        return ForecastResult(
            entity_id=entity_id,
            metric_forecasts=forecasts,
            forecast_periods=periods,
            forecast_start=granularity.advance(period_end),
            forecast_end=granularity.advance(period_end, periods),
            overall_accuracy=self._average([f.accuracy for f in metric_forecasts]),
            overall_confidence=self._average([f.confidence for f in metric_forecasts]),
            data_points=sum(f.historical_data_points for f in metric_forecasts),
            generated_at=self.clock(),
            assumptions=list(FORECAST_ASSUMPTIONS),
            limitations=list(FORECAST_LIMITATIONS),
        )

    def history(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> List[Decimal]:
        """Chronological non-null values of the stored samples; empty when the store fails."""
        if self.store is None:
            return []

        try:
            samples = query_series(self.store, metric_type, entity_id, period_start, period_end, granularity)
        except SampleStoreError as e:
            self._logger.warning(
                e.message,
                extra={"metric_type": metric_type.value, "entity_id": entity_id},
            )
            return []

        if not ValidationService.is_time_series_consistent(samples):
            samples.sort(key=lambda sample: sample.period_start)
        return [sample.value for sample in samples if sample.value is not None]

    # -------------------------------------------------------------------------
    # Series forecasts
    # -------------------------------------------------------------------------

    def forecast_series(
        self,
        values: Sequence,
        periods: Optional[int] = None,
        metric_type: Optional[MetricType] = None,
    ) -> MetricForecast:
        """Forecast a caller-supplied chronological series."""
        periods = self._horizon(periods)
        history = [to_decimal(value) for value in values if value is not None]

        if len(history) < self.settings.FORECAST_MIN_HISTORY:
            self._logger.warning(
                f"Insufficient historical data for forecasting ({len(history)} points)",
                extra={"metric_type": metric_type.value if metric_type else None},
            )
            return self.insufficient_data_forecast(periods, metric_type)

        method = self.select_method(history)
        projection = run_method(method, history, periods, self.params)
        self._logger.debug(
            f"Selected {method.value} for {len(history)} points",
            extra={"method": method.value},
        )

        return MetricForecast(
            metric_type=metric_type,
            forecasted_values=projection.values,
            confidence_intervals=self.confidence_intervals(history, projection.values),
            accuracy=self.method_accuracy(method),
            confidence=projection.confidence,
            method_used=method.value,
            seasonality_adjusted=projection.seasonality_adjusted,
            trend_adjusted=projection.trend_adjusted,
            model_parameters=projection.parameters,
            historical_data_points=len(history),
            forecast_horizon=periods,
        )

    def select_method(self, values: Sequence[Decimal]) -> ForecastingMethod:
        """
        Best back-tested method.

        Candidates are evaluated on the worker pool. A method that fails
        scores zero; the default method wins unless another scores
        strictly higher.
        """
        scores = self._run_parallel(
            list(ForecastingMethod),
            lambda method: self.evaluate_method(values, method),
            "forecast method evaluation",
        )

        best = DEFAULT_METHOD
        best_score = scores.get(DEFAULT_METHOD, ZERO)
        for method in ForecastingMethod:
            score = scores.get(method, ZERO)
            if score > best_score:
                best, best_score = method, score
        return best

    def evaluate_method(self, values: Sequence[Decimal], method: ForecastingMethod) -> Decimal:
        """Accuracy score max(0, 1 - MAPE) on a train/test split of the history."""
        if len(values) < self.settings.FORECAST_MIN_EVALUATION_HISTORY:
            return ZERO

        split = int(len(values) * self.settings.FORECAST_TRAIN_SPLIT)
        train, test = list(values[:split]), list(values[split:])
        if not train or not test:
            return ZERO

        forecast: MethodForecast = run_method(method, train, len(test), self.params)

        errors = [
            abs(round_decimal((actual - predicted) / actual, self.places))
            for actual, predicted in zip(test, forecast.values)
            if actual != ZERO
        ]
        if not errors:
            return ZERO

        mape = sum(errors, ZERO) / len(errors)
        return max(ZERO, ONE - mape)

    def confidence_intervals(
        self,
        history: Sequence[Decimal],
        forecast: Sequence[Decimal],
    ) -> List[ConfidenceInterval]:
        """Bands of +/- z * standard deviation of the history around each value."""
        standard_error = stats.standard_deviation(history, self.places)
        margin_80 = standard_error * self.settings.FORECAST_Z_80
        margin_95 = standard_error * self.settings.FORECAST_Z_95

        return [
            ConfidenceInterval(
                period=period,
                forecast_value=value,
                confidence_80_lower=round_decimal(value - margin_80, self.places),
                confidence_80_upper=round_decimal(value + margin_80, self.places),
                confidence_95_lower=round_decimal(value - margin_95, self.places),
                confidence_95_upper=round_decimal(value + margin_95, self.places),
            )
            for period, value in enumerate(forecast, start=1)
        ]

    def method_accuracy(self, method: ForecastingMethod) -> Decimal:
        return self.settings.FORECAST_ACCURACY_TABLE.get(method.value, ZERO)

    def insufficient_data_forecast(
        self,
        periods: int,
        metric_type: Optional[MetricType] = None,
    ) -> MetricForecast:
        zero = round_decimal(ZERO, self.places)
        return MetricForecast(
            metric_type=metric_type,
            forecasted_values=[zero] * periods,
            confidence_intervals=self.confidence_intervals([], [zero] * periods),
            accuracy=ZERO,
            confidence=ZERO,
            method_used=INSUFFICIENT_DATA,
            historical_data_points=0,
            forecast_horizon=periods,
        )

    def _horizon(self, periods: Optional[int]) -> int:
        if periods is None or periods <= 0:
            return self.settings.DEFAULT_FORECAST_PERIODS
        return periods

    def _average(self, scores: List[Decimal]) -> Decimal:
        if not scores:
            return round_decimal(ZERO, self.places)
        return round_decimal(sum(scores, ZERO) / len(scores), self.places)
