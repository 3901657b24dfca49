"""
Tests for regression-based trend analysis.
"""

from decimal import Decimal

import pytest

from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.analytics.trend import MetricTrend
from analytics_engine.schemas.common.enums import TimeGranularity, TrendDirection
from analytics_engine.services.analytics.trend_analysis_service import (
    NO_DATA,
    NO_PATTERNS_INSIGHT,
    TrendAnalysisService,
)
from tests.conftest import NOW, PERIOD_END, PERIOD_START, FailingStore, fixed_clock, make_sample

DAILY = TimeGranularity.DAILY
WEEKLY_PATTERN = [10, 10, 10, 10, 10, 30, 30] * 4


def D(*values):
    return [Decimal(str(v)) for v in values]


@pytest.fixture
def analyzer(store, config):
    return TrendAnalysisService(store=store, config=config, clock=fixed_clock)


def analyze(analyzer, metric_types, entity_id):
    return analyzer.analyze_trends(metric_types, entity_id, PERIOD_START, PERIOD_END, DAILY)


class TestAnalyzeValues:
    """Fitted line, direction and significance of one series."""

    def test_decreasing_series(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(50, 40, 30, 20))

        assert trend.direction == TrendDirection.DECREASING
        assert trend.slope == Decimal("-10")
        assert trend.intercept == Decimal("50")
        assert trend.r_squared == trend.trend_strength == Decimal("1")
        assert trend.significance == Decimal("1")
        assert trend.percentage_change == Decimal("-60")
        assert trend.average_value == Decimal("35")
        assert trend.data_points == 4

    def test_flat_series_is_stable_and_not_significant(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(5, 5, 5, 5))

        assert trend.direction == TrendDirection.STABLE
        assert trend.r_squared == 0
        assert trend.significance == 0
        assert trend.volatility == 0
        assert trend.slope_lower == trend.slope_upper == 0

    def test_slope_bounds_surround_slope(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(10, 14, 11, 17, 13, 19))

        assert trend.direction == TrendDirection.INCREASING
        assert trend.slope_lower < trend.slope < trend.slope_upper

    def test_two_points_are_never_significant(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(10, 20))

        assert trend.direction == TrendDirection.INCREASING
        assert trend.significance == 0

    def test_slope_within_threshold_is_stable(self, analyzer):
        assert analyzer.direction(Decimal("0.01")) == TrendDirection.STABLE
        assert analyzer.direction(Decimal("-0.02")) == TrendDirection.DECREASING

    def test_weekly_seasonality(self, analyzer):
        trend = analyzer.analyze_values(MetricType.OCCUPANCY_RATE, D(*WEEKLY_PATTERN))

        assert trend.seasonality_detected
        assert trend.seasonality_strength == Decimal("0.75")
        assert trend.outlier_indices == []

    def test_short_series_skips_seasonality(self, analyzer):
        assert analyzer.seasonality(D(*WEEKLY_PATTERN[:11])) == (False, Decimal("0"))

    def test_outliers_are_located(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(10, 11, 12, 10, 11, 100))

        assert trend.outlier_indices == [5]
        assert trend.outliers_count == 1


class TestAnalyzeSamples:
    """Series too short or empty for a fit."""

    def test_single_sample(self, analyzer, entity_id):
        trend = analyzer.analyze_samples(MetricType.ADR, [make_sample(MetricType.ADR, 100, entity_id)])

        assert trend.direction == TrendDirection.INSUFFICIENT_DATA
        assert not trend.direction.has_fit
        assert trend.data_points == 1

    def test_samples_without_values(self, analyzer, entity_id):
        samples = [make_sample(MetricType.ADR, value, entity_id, day=i) for i, value in enumerate([None, None, 5])]

        trend = analyzer.analyze_samples(MetricType.ADR, samples)

        assert trend.direction == TrendDirection.NO_DATA
        assert trend.data_points == 1


class TestAnalyzeTrends:
    """Multi-metric analysis over stored history."""

    def test_stored_history(self, analyzer, add_samples, entity_id):
        add_samples(MetricType.ADR, [100 + i for i in range(10)])

        analysis = analyze(analyzer, [MetricType.ADR], entity_id)

        trend = analysis.trend_for(MetricType.ADR)
        assert trend.direction == TrendDirection.INCREASING
        assert trend.slope == Decimal("1")
        assert analysis.overall_trend == "INCREASING"
        assert analysis.trend_strength == Decimal("1")
        assert analysis.confidence == Decimal("1")
        assert analysis.period_days == 31
        assert analysis.granularity == DAILY
        assert analysis.analyzed_at == NOW
        assert analysis.entity_id == entity_id

    def test_unsupported_and_empty_metrics_are_skipped(self, analyzer, add_samples, entity_id):
        add_samples(MetricType.TOTAL_REVENUE, [100, 200, 300])
        add_samples(MetricType.ADR, [100, 110, 120])

        analysis = analyze(
            analyzer, [MetricType.TOTAL_REVENUE, MetricType.ADR, MetricType.OCCUPANCY_RATE], entity_id
        )

        assert [trend.metric_type for trend in analysis.metric_trends] == [MetricType.ADR]

    def test_unfitted_metrics_do_not_dilute_strength(self, analyzer, add_samples, entity_id):
        add_samples(MetricType.ADR, [100, 110, 120])
        add_samples(MetricType.OCCUPANCY_RATE, [70])

        analysis = analyze(analyzer, [MetricType.ADR, MetricType.OCCUPANCY_RATE], entity_id)

        assert len(analysis.metric_trends) == 2
        assert analysis.trend_strength == Decimal("1")

    def test_other_granularities_are_ignored(self, analyzer, add_samples, entity_id):
        add_samples(MetricType.ADR, [100, 90, 80])
        add_samples(MetricType.ADR, [1, 2, 3], granularity=TimeGranularity.HOURLY)

        analysis = analyze(analyzer, [MetricType.ADR], entity_id)

        assert analysis.trend_for(MetricType.ADR).direction == TrendDirection.DECREASING

    def test_failing_store_gives_no_data(self, config, entity_id):
        analyzer = TrendAnalysisService(store=FailingStore(), config=config, clock=fixed_clock)

        analysis = analyze(analyzer, [MetricType.ADR], entity_id)

        assert analysis.metric_trends == []
        assert analysis.overall_trend == NO_DATA
        assert analysis.trend_strength == 0
        assert analysis.insights == [NO_PATTERNS_INSIGHT]

    def test_without_store(self, config, entity_id):
        analyzer = TrendAnalysisService(config=config, clock=fixed_clock)

        assert analyze(analyzer, [MetricType.ADR], entity_id).overall_trend == NO_DATA


class TestSummary:
    """Overall direction and insight text."""

    def trend(self, direction, **fields):
        return MetricTrend(metric_type=MetricType.ADR, direction=direction, **fields)

    def test_most_common_direction_wins(self):
        trends = [
            self.trend(TrendDirection.INCREASING),
            self.trend(TrendDirection.DECREASING),
            self.trend(TrendDirection.DECREASING),
        ]

        assert TrendAnalysisService.overall_trend(trends) == "DECREASING"

    def test_tie_goes_to_first_seen(self):
        trends = [self.trend(TrendDirection.STABLE), self.trend(TrendDirection.INCREASING)]

        assert TrendAnalysisService.overall_trend(trends) == "STABLE"

    def test_insights_for_strong_volatile_trend(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(50, 40, 30, 20))

        assert analyzer.insights([trend]) == [
            "ADR shows a strong decreasing trend with R² = 1.00",
            "ADR shows high volatility (σ = 12.91)",
        ]

    def test_insights_for_seasonal_metric(self, analyzer):
        trend = analyzer.analyze_values(MetricType.OCCUPANCY_RATE, D(*WEEKLY_PATTERN))

        assert "OCCUPANCY_RATE exhibits seasonal patterns" in analyzer.insights([trend])

    def test_insights_for_outliers(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(10, 11, 12, 10, 11, 100))

        assert "ADR has 1 outlier(s) detected" in analyzer.insights([trend])

    def test_quiet_series_has_fallback_insight(self, analyzer):
        trend = analyzer.analyze_values(MetricType.ADR, D(5, 5, 5, 5))

        assert analyzer.insights([trend]) == [NO_PATTERNS_INSIGHT]
