"""
Analytics engine facade.

Wires the sample store, external data source, validation and clock into
the calculation, aggregation, forecasting and trend services and exposes them
behind ServiceResult-returning operations. Malformed requests become
validation failures; data problems are reported inside successful
results as sentinel values.
"""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from analytics_engine.config.settings import Settings, get_settings
from analytics_engine.core.utils import Clock, utc_now
from analytics_engine.repositories.external_data import (
    ExternalDataGateway,
    ExternalDataSource,
    StaticExternalDataSource,
)
from analytics_engine.repositories.sample_store import InMemorySampleStore, SampleStore
from analytics_engine.schemas.analytics.forecast import ForecastResult, MetricForecast
from analytics_engine.schemas.analytics.metric_result import MetricResult
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.analytics.statistics import StatisticalSummary
from analytics_engine.schemas.analytics.trend import TrendAnalysis
from analytics_engine.schemas.common.enums import TimeGranularity
from analytics_engine.services.analytics.aggregation_service import AggregationService
from analytics_engine.services.analytics.forecasting_service import ForecastingService
from analytics_engine.services.analytics.metric_calculation_service import MetricCalculationService
from analytics_engine.services.analytics.quality_scoring_service import QualityScoringService
from analytics_engine.services.analytics.trend_analysis_service import TrendAnalysisService
from analytics_engine.services.analytics.validation_service import ValidationCollaborator, ValidationService
from analytics_engine.services.base import BaseAnalyticsService, ServiceResult


class AnalyticsEngineService(BaseAnalyticsService):
    """
    Entry point for metric calculation and forecasting.

    Features:
    - Single, rolling and descriptive metric calculations
    - Cross-entity aggregation on a bounded worker pool
    - Back-tested multi-method forecasting
    - Regression-based trend analysis
    """

    def __init__(
        self,
        store: Optional[SampleStore] = None,
        data_source: Optional[ExternalDataSource] = None,
        validator: Optional[ValidationCollaborator] = None,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        config = config or get_settings()
        clock = clock or utc_now
        super().__init__(config=config, clock=clock)

        self.store = store if store is not None else InMemorySampleStore()
        self.gateway = ExternalDataGateway(
            data_source if data_source is not None else StaticExternalDataSource(),
            timeout_seconds=config.EXTERNAL_SOURCE_TIMEOUT_SECONDS,
            max_workers=self.max_workers,
        )
        self.validator = validator or ValidationService(config)

        self.calculator = MetricCalculationService(
            store=self.store,
            gateway=self.gateway,
            validator=self.validator,
            scorer=QualityScoringService(config),
            config=config,
            clock=clock,
        )
        self.aggregator = AggregationService(self.calculator, config=config, clock=clock)
        self.forecaster = ForecastingService(
            store=self.store,
            config=config,
            clock=clock,
        )
        self.trend_analyzer = TrendAnalysisService(store=self.store, config=config, clock=clock)

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def calculate_metric(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ServiceResult[MetricResult]:
        invalid = self._validate_request(period_start, period_end)
        if invalid is not None:
            return invalid

        result = self.calculator.calculate_metric(
            metric_type, entity_id, period_start, period_end, granularity
        )
        return ServiceResult.success(result, metadata={"is_valid": result.is_valid})

    def calculate_metrics(
        self,
        metric_types: List[MetricType],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ServiceResult[List[MetricResult]]:
        invalid = self._validate_request(period_start, period_end, metric_types)
        if invalid is not None:
            return invalid

        results = [
            self.calculator.calculate_metric(metric_type, entity_id, period_start, period_end, granularity)
            for metric_type in metric_types
        ]
        failed = sum(1 for result in results if result.is_error)
        message = f"Calculated {len(results)} metrics"
        if failed:
            message += f" with {failed} error(s)"
        return ServiceResult.success(results, message=message)

    def calculate_aggregated_metrics(
        self,
        metric_types: List[MetricType],
        entity_ids: List[UUID],
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
        aggregation: Optional[str] = None,
    ) -> ServiceResult[List[MetricResult]]:
        invalid = self._validate_request(period_start, period_end, metric_types)
        if invalid is not None:
            return invalid
        if not entity_ids:
            return ServiceResult.validation_failure("At least one entity is required", field="entity_ids")

        results = self.aggregator.calculate_aggregated_metrics(
            metric_types, entity_ids, period_start, period_end, granularity, aggregation
        )
        return ServiceResult.success(results, metadata={"entities": len(entity_ids)})

    def calculate_moving_averages(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
        window: int = 7,
    ) -> ServiceResult[List[MetricResult]]:
        invalid = self._validate_request(period_start, period_end)
        if invalid is not None:
            return invalid
        if window <= 0:
            return ServiceResult.validation_failure("Window size must be positive", field="window")

        results = self.calculator.calculate_moving_averages(
            metric_type, entity_id, period_start, period_end, granularity, window
        )
        return ServiceResult.success(results)

    def calculate_statistical_analysis(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ServiceResult[StatisticalSummary]:
        invalid = self._validate_request(period_start, period_end)
        if invalid is not None:
            return invalid

        try:
            summary = self.calculator.calculate_statistical_analysis(
                metric_type, entity_id, period_start, period_end, granularity
            )
        except Exception as e:
            return self._handle_exception(e, "calculate statistical analysis", entity_id)
        return ServiceResult.success(summary)

    # -------------------------------------------------------------------------
    # Forecasts
    # -------------------------------------------------------------------------

    def generate_forecast(
        self,
        metric_types: Optional[List[MetricType]],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        periods: Optional[int] = None,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ServiceResult[ForecastResult]:
        """Forecast the given metrics, or every forecastable metric when None."""
        if metric_types is None:
            metric_types = MetricType.forecastable()
        invalid = self._validate_request(period_start, period_end, metric_types)
        if invalid is not None:
            return invalid

        try:
            forecast = self.forecaster.generate_forecast(
                metric_types, entity_id, period_start, period_end, periods, granularity
            )
        except Exception as e:
            return self._handle_exception(e, "generate forecast", entity_id)
        return ServiceResult.success(forecast, message=f"Forecast generated for {len(forecast.metric_forecasts)} metrics")

    def forecast_series(
        self,
        values: Sequence,
        periods: Optional[int] = None,
        metric_type: Optional[MetricType] = None,
    ) -> ServiceResult[MetricForecast]:
        try:
            forecast = self.forecaster.forecast_series(values, periods, metric_type)
        except Exception as e:
            return self._handle_exception(e, "forecast series")
        return ServiceResult.success(forecast)

    # -------------------------------------------------------------------------
    # Trends
    # -------------------------------------------------------------------------

    def analyze_trends(
        self,
        metric_types: Optional[List[MetricType]],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> ServiceResult[TrendAnalysis]:
        """Trends for the given metrics, or every trend-capable metric when None."""
        if metric_types is None:
            metric_types = MetricType.trend_capable()
        invalid = self._validate_request(period_start, period_end, metric_types)
        if invalid is not None:
            return invalid

        try:
            analysis = self.trend_analyzer.analyze_trends(
                metric_types, entity_id, period_start, period_end, granularity
            )
        except Exception as e:
            return self._handle_exception(e, "analyze trends", entity_id)
        return ServiceResult.success(analysis, metadata={"overall_trend": analysis.overall_trend})

    def close(self) -> None:
        self.gateway.close()

    # -------------------------------------------------------------------------
    # Request validation
    # -------------------------------------------------------------------------

    def _validate_request(
        self,
        period_start: datetime,
        period_end: datetime,
        metric_types: Optional[List[MetricType]] = None,
    ) -> Optional[ServiceResult]:
        """First request problem found, or None for a well-formed request."""
        if metric_types is not None:
            invalid = self._validate_metric_types(metric_types)
            if invalid is not None:
                return invalid
        return self._validate_period(period_start, period_end)

    @staticmethod
    def _validate_period(period_start: datetime, period_end: datetime) -> Optional[ServiceResult]:
        if period_start > period_end:
            return ServiceResult.validation_failure(
                "period_start must not be after period_end",
                field="period_start",
                details={"period_start": period_start.isoformat(), "period_end": period_end.isoformat()},
            )
        return None

    @staticmethod
    def _validate_metric_types(metric_types: List[MetricType]) -> Optional[ServiceResult]:
        if not metric_types:
            return ServiceResult.validation_failure("At least one metric type is required", field="metric_types")
        return None
