"""
Trend analysis over stored metric history.

Fits a least-squares line to each metric's chronological values and
reports its direction, strength and an approximate significance, along
with weekly/monthly seasonality, outliers and volatility. Metrics are
analyzed independently on the worker pool.
"""

from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from analytics_engine.config.settings import Settings
from analytics_engine.core.exceptions import SampleStoreError
from analytics_engine.core.utils import Clock, HUNDRED, ONE, ZERO, round_decimal, safe_divide
from analytics_engine.repositories.sample_store import SampleStore, query_series
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.analytics.trend import MetricTrend, TrendAnalysis
from analytics_engine.schemas.common.enums import TimeGranularity, TrendDirection
from analytics_engine.services.analytics.validation_service import ValidationService
from analytics_engine.services.base import BaseAnalyticsService
import analytics_engine.services.analytics.statistical_analyzer as stats

__all__ = ["TrendAnalysisService", "NO_DATA"]

NO_DATA = "NO_DATA"
NO_PATTERNS_INSIGHT = "No significant trends or patterns detected in the analyzed period"

# Weekly and monthly autocorrelation lags
SEASONAL_LAGS = (7, 30)
SEASONALITY_MIN_POINTS = 12
# t statistic at which a slope counts as fully significant
SIGNIFICANCE_T_SCALE = Decimal("10")


class TrendAnalysisService(BaseAnalyticsService):
    """Per-metric and overall trends for one entity."""

    def __init__(
        self,
        store: Optional[SampleStore] = None,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(config=config, clock=clock)
        self.store = store
        self.places = self.settings.DECIMAL_PLACES

    def analyze_trends(
        self,
        metric_types: List[MetricType],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity = TimeGranularity.DAILY,
    ) -> TrendAnalysis:
        """
        Analyze each metric's stored history over the window.

        Metrics that do not declare trend support are skipped with a
        warning, as are metrics without any stored samples. A metric whose
        analysis fails is logged and left out.

        Overall strength and confidence average only the metrics that had
        enough data for a fit.
        """
        self._logger.info(
            f"Analyzing trends for {len(metric_types)} metrics",
            extra={"entity_id": entity_id, "granularity": granularity.value},
        )

        supported = []
        for metric_type in metric_types:
            if metric_type.supports_trend_analysis():
                supported.append(metric_type)
            else:
                self._logger.warning(
                    f"Skipping {metric_type.value}: trend analysis is not supported",
                    extra={"metric_type": metric_type.value, "entity_id": entity_id},
                )

        def analyze(metric_type: MetricType) -> Optional[MetricTrend]:
            samples = self.history(metric_type, entity_id, period_start, period_end, granularity)
            if not samples:
                return None
            return self.analyze_samples(metric_type, samples)

        outcomes = self._run_parallel(supported, analyze, "trend analysis")
        trends = [outcomes[m] for m in supported if outcomes.get(m) is not None]
        fitted = [trend for trend in trends if trend.direction.has_fit]

        return TrendAnalysis(
            entity_id=entity_id,
            metric_trends=trends,
            overall_trend=self.overall_trend(trends),
            trend_strength=stats.mean([trend.trend_strength for trend in fitted], self.places),
            confidence=stats.mean([trend.significance for trend in fitted], self.places),
            period_days=max(0, (period_end - period_start).days),
            granularity=granularity,
            insights=self.insights(trends),
            analyzed_at=self.clock(),
        )

    def history(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> List[MetricSample]:
        """Chronological stored samples; empty when the store fails."""
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
        return samples

    # -------------------------------------------------------------------------
    # Single metric
    # -------------------------------------------------------------------------

    def analyze_samples(self, metric_type: MetricType, samples: Sequence[MetricSample]) -> MetricTrend:
        if len(samples) < 2:
            return MetricTrend(
                metric_type=metric_type,
                direction=TrendDirection.INSUFFICIENT_DATA,
                data_points=len(samples),
            )
        values = [sample.value for sample in samples if sample.has_value]
        if len(values) < 2:
            return MetricTrend(
                metric_type=metric_type,
                direction=TrendDirection.NO_DATA,
                data_points=len(values),
            )
        return self.analyze_values(metric_type, values)

    def analyze_values(self, metric_type: MetricType, values: Sequence[Decimal]) -> MetricTrend:
        """Fit and describe a chronological series of at least two values."""
        places = self.places
        slope, intercept, r_squared = stats.linear_fit(values, places)
        volatility = stats.standard_deviation(values, places)
        seasonal, seasonal_strength = self.seasonality(values)
        margin = round_decimal(volatility * self.settings.FORECAST_Z_95, places)

        return MetricTrend(
            metric_type=metric_type,
            direction=self.direction(slope),
            trend_strength=r_squared,
            slope=slope,
            intercept=intercept,
            r_squared=r_squared,
            significance=self.significance(slope, r_squared, len(values)),
            percentage_change=self._percentage_change(values),
            average_value=stats.mean(values, places),
            volatility=volatility,
            seasonality_detected=seasonal,
            seasonality_strength=seasonal_strength,
            outlier_indices=stats.outlier_indices(values),
            slope_lower=slope - margin,
            slope_upper=slope + margin,
            data_points=len(values),
        )

    def direction(self, slope: Decimal) -> TrendDirection:
        threshold = self.settings.TREND_SLOPE_THRESHOLD
        if slope > threshold:
            return TrendDirection.INCREASING
        if slope < -threshold:
            return TrendDirection.DECREASING
        return TrendDirection.STABLE

    def significance(self, slope: Decimal, r_squared: Decimal, data_points: int) -> Decimal:
        """
        Approximate 1 - p for the slope.

        The t statistic is |slope| over sqrt((1 - R²) / (n - 2)). p stays at 1
        until t reaches half of SIGNIFICANCE_T_SCALE and falls linearly to 0
        at the full scale. A perfect fit is fully significant; fewer than
        three points are not.
        """
        if data_points < 3:
            return round_decimal(ZERO, self.places)
        standard_error = ((ONE - r_squared) / (data_points - 2)).sqrt()
        if standard_error == ZERO:
            return round_decimal(ONE, self.places)
        t_statistic = abs(slope) / standard_error
        p_value = min(ONE, max(ZERO, 2 * (ONE - t_statistic / SIGNIFICANCE_T_SCALE)))
        return round_decimal(ONE - p_value, self.places)

    def seasonality(self, values: Sequence[Decimal]) -> Tuple[bool, Decimal]:
        """Strongest weekly/monthly autocorrelation and whether it passes the threshold."""
        if len(values) < SEASONALITY_MIN_POINTS:
            return False, round_decimal(ZERO, self.places)
        strength = max(stats.autocorrelation(values, lag, self.places) for lag in SEASONAL_LAGS)
        return strength > self.settings.TREND_SEASONALITY_THRESHOLD, strength

    def _percentage_change(self, values: Sequence[Decimal]) -> Decimal:
        first, last = values[0], values[-1]
        return round_decimal(safe_divide(last - first, first, self.places) * HUNDRED, self.places)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    @staticmethod
    def overall_trend(trends: Sequence[MetricTrend]) -> str:
        """Most common direction; ties go to the direction seen first."""
        if not trends:
            return NO_DATA
        return Counter(trend.direction.value for trend in trends).most_common(1)[0][0]

    def insights(self, trends: Sequence[MetricTrend]) -> List[str]:
        strong = self.settings.TREND_STRONG_R_SQUARED
        volatile = self.settings.TREND_HIGH_VOLATILITY

        insights = [
            f"{trend.metric_type.value} shows a strong {trend.direction.value.lower()} trend "
            f"with R² = {trend.trend_strength:.2f}"
            for trend in trends
            if trend.trend_strength > strong
        ]
        insights += [
            f"{trend.metric_type.value} shows high volatility (σ = {trend.volatility:.2f})"
            for trend in trends
            if safe_divide(trend.volatility, abs(trend.average_value), self.places) > volatile
        ]
        insights += [
            f"{trend.metric_type.value} exhibits seasonal patterns"
            for trend in trends
            if trend.seasonality_detected
        ]
        insights += [
            f"{trend.metric_type.value} has {trend.outliers_count} outlier(s) detected"
            for trend in trends
            if trend.outliers_count
        ]
        return insights or [NO_PATTERNS_INSIGHT]
