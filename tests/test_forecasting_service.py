"""
Tests for method selection, prediction intervals and store-backed forecasts.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from analytics_engine.config.settings import Settings
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import ForecastingMethod, TimeGranularity
from analytics_engine.services.analytics.forecasting_service import INSUFFICIENT_DATA, ForecastingService
from tests.conftest import NOW, PERIOD_END, PERIOD_START, FailingStore, fixed_clock, make_sample


def D(*values):
    return [Decimal(str(v)) for v in values]


LINEAR = D(10, 20, 30, 40, 50, 60, 70, 80)
NOISY = D(10, 12, 11, 13, 12, 14, 13, 15)


@pytest.fixture
def forecaster(store, config):
    return ForecastingService(store=store, config=config, clock=fixed_clock)


class TestForecastSeries:
    """Forecasts of caller-supplied series."""

    def test_horizon_and_interval_counts(self, forecaster):
        forecast = forecaster.forecast_series(NOISY, 5)

        assert forecast.forecast_horizon == 5
        assert len(forecast.forecasted_values) == 5
        assert [ci.period for ci in forecast.confidence_intervals] == [1, 2, 3, 4, 5]
        assert forecast.historical_data_points == 8

    def test_intervals_nest_around_forecast(self, forecaster):
        forecast = forecaster.forecast_series(NOISY, 4)

        for interval in forecast.confidence_intervals:
            assert interval.confidence_95_lower < interval.confidence_80_lower
            assert interval.confidence_80_lower <= interval.forecast_value <= interval.confidence_80_upper
            assert interval.confidence_80_upper < interval.confidence_95_upper

    def test_constant_series_has_zero_width_intervals(self, forecaster):
        forecast = forecaster.forecast_series([10] * 10, 3)

        assert forecast.method_used == ForecastingMethod.SIMPLE_EXPONENTIAL_SMOOTHING.value
        assert forecast.forecasted_values == D(10, 10, 10)
        for interval in forecast.confidence_intervals:
            assert interval.confidence_95_lower == interval.confidence_95_upper == interval.forecast_value
            assert interval.interval_width_95 == 0

    def test_linear_series_selects_trend_method(self, forecaster):
        forecast = forecaster.forecast_series(LINEAR, 3)

        assert forecast.method_used == ForecastingMethod.DOUBLE_EXPONENTIAL_SMOOTHING.value
        assert forecast.forecasted_values == D(90, 100, 110)
        assert forecast.trend_adjusted
        assert forecast.accuracy == Decimal("0.75")

    def test_insufficient_history(self, forecaster):
        forecast = forecaster.forecast_series([1, 2], 5)

        assert forecast.method_used == INSUFFICIENT_DATA
        assert forecast.forecasted_values == D(0, 0, 0, 0, 0)
        assert len(forecast.confidence_intervals) == 5
        assert forecast.accuracy == 0
        assert forecast.confidence == 0
        assert forecast.historical_data_points == 0

    def test_missing_values_are_dropped(self, forecaster):
        forecast = forecaster.forecast_series([1, None, 2], 2)

        assert forecast.method_used == INSUFFICIENT_DATA

    @pytest.mark.parametrize("periods", [None, 0, -3])
    def test_default_horizon(self, forecaster, periods):
        forecast = forecaster.forecast_series(NOISY, periods)

        assert forecast.forecast_horizon == 30
        assert len(forecast.forecasted_values) == 30

    def test_accuracy_table_override(self, store):
        forecaster = ForecastingService(
            store=store,
            config=Settings(MAX_WORKERS=2, FORECAST_ACCURACY_TABLE="SIMPLE_EXPONENTIAL_SMOOTHING=0.9"),
            clock=fixed_clock,
        )

        forecast = forecaster.forecast_series([10] * 10, 3)

        assert forecast.accuracy == Decimal("0.9")


class TestMethodSelection:
    """Back-testing of candidate methods."""

    def test_short_history_scores_zero(self, forecaster):
        assert forecaster.evaluate_method(D(1, 2, 3, 4, 5), ForecastingMethod.LINEAR_REGRESSION) == 0

    def test_exact_method_scores_one(self, forecaster):
        assert forecaster.evaluate_method(LINEAR, ForecastingMethod.LINEAR_REGRESSION) == 1

    def test_scores_are_bounded(self, forecaster):
        for method in ForecastingMethod:
            score = forecaster.evaluate_method(NOISY, method)
            assert 0 <= score <= 1

    def test_ties_keep_default_method(self, forecaster):
        assert forecaster.select_method(D(*([10] * 8))) == ForecastingMethod.SIMPLE_EXPONENTIAL_SMOOTHING

    def test_short_history_keeps_default_method(self, forecaster):
        assert forecaster.select_method(D(1, 2, 3)) == ForecastingMethod.SIMPLE_EXPONENTIAL_SMOOTHING


class TestGenerateForecast:
    """Forecasts built from stored history."""

    def test_multi_metric_forecast(self, forecaster, add_samples, entity_id):
        add_samples(MetricType.ADR, [100, 102, 101, 105, 104, 108, 107, 110, 109, 112])
        add_samples(MetricType.OCCUPANCY_RATE, [70, 72])

        result = forecaster.generate_forecast(
            [MetricType.ADR, MetricType.OCCUPANCY_RATE], entity_id, PERIOD_START, PERIOD_END, 7
        )

        assert set(result.metric_forecasts) == {MetricType.ADR, MetricType.OCCUPANCY_RATE}
        assert result.forecast_periods == 7
        assert result.forecast_start == PERIOD_END + timedelta(days=1)
        assert result.forecast_end == PERIOD_END + timedelta(days=7)
        assert result.model_used == "HYBRID_ENSEMBLE"
        assert result.generated_at == NOW
        assert result.data_points == 10
        assert len(result.assumptions) == 4
        assert len(result.limitations) == 4

        occupancy = result.forecast_for(MetricType.OCCUPANCY_RATE)
        assert occupancy.method_used == INSUFFICIENT_DATA
        adr = result.forecast_for(MetricType.ADR)
        assert adr.metric_type == MetricType.ADR
        assert result.overall_accuracy == (adr.accuracy / 2).quantize(Decimal("0.0001"))

    def test_history_is_filtered_by_granularity(self, forecaster, add_samples, entity_id):
        add_samples(MetricType.ADR, [100, 101, 102])
        add_samples(MetricType.ADR, [500, 501], granularity=TimeGranularity.HOURLY)

        history = forecaster.history(MetricType.ADR, entity_id, PERIOD_START, PERIOD_END, TimeGranularity.DAILY)

        assert history == D(100, 101, 102)

    def test_without_store(self, config, entity_id):
        forecaster = ForecastingService(config=config, clock=fixed_clock)

        result = forecaster.generate_forecast([MetricType.ADR], entity_id, PERIOD_START, PERIOD_END, 3)

        assert result.forecast_for(MetricType.ADR).method_used == INSUFFICIENT_DATA
        assert result.overall_accuracy == 0

    def test_failing_store_gives_insufficient_data(self, config, entity_id):
        forecaster = ForecastingService(store=FailingStore(), config=config, clock=fixed_clock)

        result = forecaster.generate_forecast([MetricType.ADR], entity_id, PERIOD_START, PERIOD_END, 3)

        assert result.forecast_for(MetricType.ADR).method_used == INSUFFICIENT_DATA
        assert forecaster.history(MetricType.ADR, entity_id, PERIOD_START, PERIOD_END, TimeGranularity.DAILY) == []

    def test_history_skips_missing_values_in_order(self, forecaster, store, entity_id):
        for day, value in [(2, 30), (0, 10), (1, None)]:
            store.save(make_sample(MetricType.ADR, value, entity_id, day=day))

        history = forecaster.history(MetricType.ADR, entity_id, PERIOD_START, PERIOD_END, TimeGranularity.DAILY)

        assert history == D(10, 30)
