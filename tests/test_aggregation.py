"""
Tests for cross-entity aggregation.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from analytics_engine.config.settings import Settings
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import TimeGranularity
from analytics_engine.services.analytics.aggregation_service import AggregationService
from analytics_engine.services.analytics.metric_calculation_service import MetricCalculationService
from tests.conftest import PERIOD_END, PERIOD_START, fixed_clock

DAILY = TimeGranularity.DAILY


@pytest.fixture
def aggregator(calculator):
    return AggregationService(calculator, clock=fixed_clock)


@pytest.fixture
def entities(add_samples):
    first, second = uuid4(), uuid4()
    add_samples(MetricType.TOTAL_REVENUE, [100, 200], entity=first)
    add_samples(MetricType.TOTAL_REVENUE, [500], entity=second)
    return [first, second]


def aggregate(aggregator, entity_ids, function, metrics=(MetricType.TOTAL_REVENUE,)):
    return aggregator.calculate_aggregated_metrics(
        list(metrics), entity_ids, PERIOD_START, PERIOD_END, DAILY, function
    )


class TestAggregationFunctions:
    """Per-entity values combined with each function."""

    @pytest.mark.parametrize(
        "function, expected",
        [
            ("sum", "800"),
            ("average", "400"),
            ("median", "400"),
            ("min", "300"),
            ("max", "500"),
            ("count", "2"),
        ],
    )
    def test_functions(self, aggregator, entities, function, expected):
        [result] = aggregate(aggregator, entities, function)

        assert result.value == Decimal(expected)
        assert result.calculation_method == f"AGGREGATED_{function.upper()}"
        assert result.data_points_count == 3
        assert result.notes == f"Aggregated from 2 properties using {function}"

    def test_mean_is_accepted_for_average(self, aggregator, entities):
        [result] = aggregate(aggregator, entities, "mean")

        assert result.calculation_method == "AGGREGATED_AVERAGE"
        assert result.value == Decimal("400")

    def test_single_entity(self, aggregator, entities):
        single = entities[:1]
        for function in ("sum", "average", "median", "min", "max"):
            [result] = aggregate(aggregator, single, function)
            assert result.value == Decimal("300")

        [count] = aggregate(aggregator, single, "count")
        assert count.value == 1

    def test_results_follow_request_order(self, aggregator, entities, add_samples):
        add_samples(MetricType.TOTAL_BOOKINGS, [3], entity=entities[0])

        results = aggregate(
            aggregator, entities, "sum", metrics=(MetricType.TOTAL_BOOKINGS, MetricType.TOTAL_REVENUE)
        )

        assert [r.metric_type for r in results] == [MetricType.TOTAL_BOOKINGS, MetricType.TOTAL_REVENUE]
        assert results[0].value == 3

    def test_aggregate_rounds_once_to_configured_places(self, store, gateway, add_samples):
        calculator = MetricCalculationService(
            store=store,
            gateway=gateway,
            config=Settings(MAX_WORKERS=2, DECIMAL_PLACES=2),
            clock=fixed_clock,
        )
        aggregator = AggregationService(calculator)
        entity_ids = [uuid4(), uuid4(), uuid4()]
        for entity, value in zip(entity_ids, ["0.0149", "0", "0"]):
            add_samples(MetricType.TOTAL_REVENUE, [value], entity=entity)

        [result] = aggregate(aggregator, entity_ids, "average")

        # 0.004966 rounded straight to two places, not via 0.0050
        assert result.value == Decimal("0.00")


class TestDefaultAggregation:
    """Metrics fall back to their declared aggregation."""

    def test_additive_metric_defaults_to_sum(self, aggregator, entities):
        [result] = aggregate(aggregator, entities, None)

        assert result.calculation_method == "AGGREGATED_SUM"
        assert result.value == Decimal("800")

    def test_rate_defaults_to_average(self, aggregator, entities, add_samples):
        add_samples(MetricType.BOOKING_CONVERSION_RATE, [10, 20], entity=entities[0])
        add_samples(MetricType.BOOKING_CONVERSION_RATE, [40], entity=entities[1])

        [result] = aggregate(aggregator, entities, None, metrics=(MetricType.BOOKING_CONVERSION_RATE,))

        assert result.calculation_method == "AGGREGATED_AVERAGE"
        assert result.value == Decimal("27.5")

    def test_summing_a_rate_is_an_error(self, aggregator, entities, add_samples):
        add_samples(MetricType.BOOKING_CONVERSION_RATE, [10], entity=entities[0])

        [result] = aggregate(aggregator, entities, "sum", metrics=(MetricType.BOOKING_CONVERSION_RATE,))

        assert result.is_error
        assert result.notes.startswith("Aggregation error:")
        assert "not additive" in result.notes

    def test_other_functions_accept_rates(self, aggregator, entities, add_samples):
        add_samples(MetricType.BOOKING_CONVERSION_RATE, [10], entity=entities[0])
        add_samples(MetricType.BOOKING_CONVERSION_RATE, [30], entity=entities[1])

        [result] = aggregate(aggregator, entities, "max", metrics=(MetricType.BOOKING_CONVERSION_RATE,))

        assert not result.is_error
        assert result.value == Decimal("30")


class TestMissingData:
    """Entities without data and failing entities are skipped."""

    def test_entity_without_data_is_skipped(self, aggregator, entities):
        [result] = aggregate(aggregator, entities + [uuid4()], "count")

        assert result.value == 2
        assert result.notes == "Aggregated from 3 properties using count"

    def test_no_data_at_all(self, aggregator):
        [result] = aggregate(aggregator, [uuid4(), uuid4()], "sum")

        assert result.value == 0
        assert result.quality_score == 0
        assert result.confidence_score == 0
        assert result.data_points_count == 0
        assert not result.is_error

    def test_failing_entity_is_skipped(self, aggregator, calculator, entities, monkeypatch):
        original = calculator.calculate_value
        bad = entities[1]

        def flaky(metric_type, samples, entity_id, period_start, period_end):
            if entity_id == bad:
                raise RuntimeError("entity failed")
            return original(metric_type, samples, entity_id, period_start, period_end)

        monkeypatch.setattr(calculator, "calculate_value", flaky)

        [result] = aggregate(aggregator, entities, "sum")

        assert result.value == Decimal("300")
        assert result.data_points_count == 2

    def test_unknown_function_gives_error_results(self, aggregator, entities):
        results = aggregate(
            aggregator, entities, "bogus", metrics=(MetricType.TOTAL_REVENUE, MetricType.ADR)
        )

        assert len(results) == 2
        assert all(result.is_error for result in results)
        assert all(result.notes.startswith("Aggregation error:") for result in results)
