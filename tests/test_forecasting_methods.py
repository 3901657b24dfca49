"""
Tests for the individual forecasting methods.
"""

from decimal import Decimal

import pytest

from analytics_engine.schemas.common.enums import ForecastingMethod
from analytics_engine.services.analytics import forecasting_methods as fm
from analytics_engine.services.analytics.forecasting_methods import SmoothingParameters, run_method


def D(*values):
    return [Decimal(str(v)) for v in values]


PARAMS = SmoothingParameters()
LINEAR = D(10, 20, 30, 40)


class TestSmoothing:
    """Moving averages and exponential smoothing."""

    def test_constant_series_is_flat(self):
        for forecaster in (fm.simple_moving_average, fm.weighted_moving_average, fm.simple_exponential_smoothing):
            forecast = forecaster(D(10, 10, 10, 10, 10), 3, PARAMS)
            assert forecast.values == D(10, 10, 10)

    def test_weighted_average_favours_recent_values(self):
        forecast = fm.weighted_moving_average(D(1, 2, 3), 2, PARAMS)

        assert forecast.values == [Decimal("2.3333")] * 2
        assert forecast.parameters["windowSize"] == 3

    def test_moving_average_window_is_capped(self):
        forecast = fm.simple_moving_average(D(1, 2, 3, 4, 5, 6, 7), 1, PARAMS)

        assert forecast.values == [Decimal("5.0000")]
        assert forecast.confidence == Decimal("0.6")

    def test_holt_follows_linear_trend(self):
        forecast = fm.double_exponential_smoothing(LINEAR, 3, PARAMS)

        assert forecast.values == D(50, 60, 70)
        assert forecast.trend_adjusted
        assert not forecast.seasonality_adjusted
        assert forecast.parameters["level"] == 40
        assert forecast.parameters["trend"] == 10


class TestHoltWinters:
    """Multiplicative seasonal smoothing."""

    def test_short_series_falls_back_to_holt(self):
        assert fm.triple_exponential_smoothing(LINEAR, 3, PARAMS) == fm.double_exponential_smoothing(LINEAR, 3, PARAMS)

    def test_zero_mean_series_falls_back_to_holt(self):
        forecast = fm.triple_exponential_smoothing([Decimal("0")] * 14, 3, PARAMS)

        assert not forecast.seasonality_adjusted
        assert forecast.values == D(0, 0, 0)

    def test_seasonal_series(self):
        week = [10, 20, 30, 40, 50, 60, 70]
        forecast = fm.triple_exponential_smoothing(D(*(week * 2)), 7, PARAMS)

        assert forecast.seasonality_adjusted
        assert forecast.trend_adjusted
        assert len(forecast.values) == 7
        assert all(value > 0 for value in forecast.values)
        # the seasonal shape carries into the forecast
        assert forecast.values[6] > forecast.values[0]
        assert forecast.parameters["seasonLength"] == 7


class TestRegression:
    """Least squares and the ensemble."""

    def test_linear_regression(self):
        forecast = fm.linear_regression(LINEAR, 3, PARAMS)

        assert forecast.values == D(50, 60, 70)
        assert forecast.parameters == {"slope": Decimal("10"), "intercept": Decimal("10")}

    def test_single_point_falls_back_to_moving_average(self):
        forecast = fm.linear_regression(D(42), 2, PARAMS)

        assert forecast.values == D(42, 42)
        assert "windowSize" in forecast.parameters

    def test_ensemble(self):
        forecast = fm.ensemble(D(10, 10, 10, 10), 4, PARAMS)

        assert forecast.values == D(10, 10, 10, 10)
        assert forecast.confidence == Decimal("0.85")
        assert forecast.parameters["methods"] == 3


class TestRunMethod:
    """Dispatch through the method table."""

    @pytest.mark.parametrize("method", list(ForecastingMethod))
    def test_every_method_fills_the_horizon(self, method):
        forecast = run_method(method, D(12, 15, 11, 18, 16, 20, 19, 23), 5, PARAMS)

        assert len(forecast.values) == 5
        assert 0 < forecast.confidence <= 1

    def test_empty_series_is_rejected(self):
        with pytest.raises(ValueError):
            run_method(ForecastingMethod.SIMPLE_MOVING_AVERAGE, [], 3, PARAMS)
