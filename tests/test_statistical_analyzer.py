"""
Tests for the descriptive statistics functions.
"""

from decimal import Decimal

import pytest

from analytics_engine.services.analytics import statistical_analyzer as stats
from tests.conftest import NOW


def D(*values):
    return [Decimal(str(v)) for v in values]


class TestCentralTendency:
    """Mean, median and mode."""

    def test_mean_rounds_to_four_places(self):
        assert stats.mean(D(1, 2, 3, 4, 5)) == Decimal("3.0000")
        assert str(stats.mean(D(1, 2, 2))) == "1.6667"

    def test_median_even_length_averages_middle_pair(self):
        assert stats.median(D(4, 1, 3, 2)) == Decimal("2.5000")

    def test_median_odd_length_returns_middle(self):
        assert stats.median(D(5, 1, 3)) == Decimal("3")

    def test_mode_returns_most_frequent(self):
        assert stats.mode(D(1, 2, 2, 3)) == Decimal("2")

    def test_empty_input_gives_zero(self):
        assert stats.mean([]) == 0
        assert stats.median([]) == 0
        assert stats.mode([]) == 0


class TestDispersion:
    """Variance, standard deviation and percentiles."""

    def test_sample_variance(self):
        assert stats.variance(D(1, 2, 3, 4, 5)) == Decimal("2.5000")

    def test_standard_deviation_is_root_of_variance(self):
        assert stats.standard_deviation(D(1, 2, 3, 4, 5)) == Decimal("1.5811")

    @pytest.mark.parametrize(
        "values",
        [D(1, 2, 3, 4, 5), D(10, 10, 10), D(-5, 3, 8.5, 0), D(1000, 0.001)],
    )
    def test_variance_non_negative_and_stddev_consistent(self, values):
        var = stats.variance(values)
        assert var >= 0
        assert stats.standard_deviation(values) == var.sqrt().quantize(Decimal("0.0001"), rounding="ROUND_HALF_UP")

    def test_single_value_has_zero_variance(self):
        assert stats.variance(D(7)) == 0
        assert stats.standard_deviation(D(7)) == 0

    def test_percentile_nearest_rank(self):
        assert stats.percentile(D(1, 2, 3, 4, 5), 25) == Decimal("2")
        assert stats.percentile(D(1, 2, 3, 4, 5), 75) == Decimal("4")

    def test_percentile_index_is_clamped(self):
        assert stats.percentile(D(1, 2, 3, 4, 5), 0) == Decimal("1")
        assert stats.percentile(D(1, 2, 3, 4, 5), 100) == Decimal("5")


class TestShape:
    """Skewness and excess kurtosis."""

    def test_symmetric_set_has_zero_skewness(self):
        assert stats.skewness(D(1, 2, 3, 4, 5)) == 0

    def test_right_tail_gives_positive_skewness(self):
        assert stats.skewness(D(1, 1, 1, 1, 10)) > 0

    def test_skewness_needs_three_values(self):
        assert stats.skewness(D(1, 5)) == 0

    def test_kurtosis_needs_four_values(self):
        assert stats.kurtosis(D(1, 5, 9)) == 0

    def test_zero_spread_gives_zero_shape(self):
        assert stats.skewness(D(4, 4, 4, 4)) == 0
        assert stats.kurtosis(D(4, 4, 4, 4)) == 0


class TestSummarize:
    """Full statistical summary."""

    def test_summary_fields(self):
        summary = stats.summarize(D(1, 2, 3, 4, 5), NOW)

        assert summary.sample_size == 5
        assert summary.mean == Decimal("3.0000")
        assert summary.median == Decimal("3")
        assert summary.variance == Decimal("2.5000")
        assert summary.min == Decimal("1")
        assert summary.max == Decimal("5")
        assert summary.range == Decimal("4")
        assert summary.q1 == Decimal("2")
        assert summary.q3 == Decimal("4")
        assert summary.iqr == Decimal("2")
        assert summary.calculated_at == NOW

    def test_empty_summary_is_zeroed(self):
        summary = stats.summarize([], NOW)

        assert summary.is_empty
        assert summary.mean == 0
        assert summary.standard_deviation == 0
        assert summary.coefficient_of_variation == 0


class TestTrendHelpers:
    """Line fitting, autocorrelation and outlier fences."""

    def test_linear_fit_on_exact_line(self):
        slope, intercept, r_squared = stats.linear_fit(D(10, 20, 30, 40, 50, 60, 70, 80, 90, 100))

        assert slope == Decimal("10")
        assert intercept == Decimal("10")
        assert r_squared == Decimal("1")

    def test_flat_series_has_zero_r_squared(self):
        assert stats.linear_fit(D(5, 5, 5, 5)) == (Decimal("0"), Decimal("5"), Decimal("0"))

    def test_single_value_fits_through_mean(self):
        assert stats.linear_fit(D(7)) == (Decimal("0"), Decimal("7"), Decimal("0"))

    def test_weekly_autocorrelation(self):
        values = D(10, 10, 10, 10, 10, 30, 30) * 4

        assert str(stats.autocorrelation(values, 7)) == "0.7500"

    @pytest.mark.parametrize("lag", [0, 4, 9])
    def test_autocorrelation_degenerate_cases(self, lag):
        values = D(1, 2, 3, 4) if lag else D(1, 2, 3, 4, 5)
        assert stats.autocorrelation(values, lag) == 0

    def test_flat_series_has_zero_autocorrelation(self):
        assert stats.autocorrelation(D(3, 3, 3, 3, 3), 1) == 0

    def test_outlier_indices(self):
        assert stats.outlier_indices(D(10, 11, 12, 10, 11, 100)) == [5]

    def test_short_series_has_no_outliers(self):
        assert stats.outlier_indices(D(1, 2, 100)) == []
