"""
Cross-entity aggregation of metrics.

Each metric is calculated per entity on the worker pool, the per-entity
values are combined with the requested function and quality/confidence
are rescored over the pooled samples.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from analytics_engine.config.settings import Settings
from analytics_engine.core.utils import Clock, ZERO, round_decimal
from analytics_engine.schemas.analytics.metric_result import MetricResult
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import AggregationFunction, TimeGranularity
from analytics_engine.services.analytics.metric_calculation_service import MetricCalculationService
from analytics_engine.services.base import BaseAnalyticsService
import analytics_engine.services.analytics.statistical_analyzer as stats

__all__ = ["AggregationService", "AGGREGATORS"]


AGGREGATORS: Dict[AggregationFunction, Callable[[Sequence[Decimal], int], Decimal]] = {
    AggregationFunction.SUM: lambda values, places: sum(values, ZERO),
    AggregationFunction.AVERAGE: stats.mean,
    AggregationFunction.MEDIAN: stats.median,
    AggregationFunction.MIN: lambda values, places: min(values),
    AggregationFunction.MAX: lambda values, places: max(values),
    AggregationFunction.COUNT: lambda values, places: Decimal(len(values)),
}

EntityOutcome = Tuple[List[MetricSample], Decimal]


class AggregationService(BaseAnalyticsService):
    """Combines one metric across many entities."""

    def __init__(
        self,
        calculator: MetricCalculationService,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(config=config or calculator.settings, clock=clock or calculator.clock)
        self.calculator = calculator
        self.places = self.settings.DECIMAL_PLACES

    def calculate_aggregated_metrics(
        self,
        metric_types: List[MetricType],
        entity_ids: List[UUID],
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
        aggregation: Optional[str] = None,
    ) -> List[MetricResult]:
        """
        One aggregated result per metric, in request order.

        Without an explicit function each metric uses its declared default
        aggregation. Summing a non-additive metric yields an error result.
        """
        self._logger.info(
            f"Calculating aggregated metrics for {len(entity_ids)} entities and {len(metric_types)} metrics",
            extra={"granularity": granularity.value, "operation": aggregation or "default"},
        )

        results = []
        for metric_type in metric_types:
            try:
                function = AggregationFunction.parse(aggregation or metric_type.default_aggregation())
                if function == AggregationFunction.SUM and not metric_type.is_additive:
                    raise ValueError(f"{metric_type.value} is not additive and cannot be summed across entities")
                results.append(
                    self._aggregate_metric(
                        metric_type, entity_ids, period_start, period_end, granularity, function
                    )
                )
            except Exception as e:
                self._logger.error(
                    f"Error calculating aggregated metric {metric_type.value}: {e}",
                    extra={"metric_type": metric_type.value},
                )
                results.append(self.calculator.error_result(metric_type, f"Aggregation error: {e}"))
        return results

    def _aggregate_metric(
        self,
        metric_type: MetricType,
        entity_ids: List[UUID],
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
        function: AggregationFunction,
    ) -> MetricResult:
        def evaluate(entity_id: UUID) -> Optional[EntityOutcome]:
            samples = self.calculator.resolve_samples(
                metric_type, entity_id, period_start, period_end, granularity
            )
            if not samples:
                return None
            value = self.calculator.calculate_value(
                metric_type, samples, entity_id, period_start, period_end
            )
            return samples, value

        outcomes = self._run_parallel(entity_ids, evaluate, f"aggregation of {metric_type.value}")

        pooled: List[MetricSample] = []
        values: List[Decimal] = []
        # entity order keeps the pooled sample list deterministic
        for entity_id in entity_ids:
            outcome = outcomes.get(entity_id)
            if outcome is None:
                continue
            samples, value = outcome
            pooled.extend(samples)
            values.append(value)

        now = self.clock()
        if values:
            aggregated = round_decimal(AGGREGATORS[function](values, self.places), self.places)
            quality = self.calculator.scorer.quality_score(pooled, now)
            confidence = self.calculator.scorer.confidence_score(pooled, aggregated)
        else:
            aggregated = round_decimal(ZERO, self.places)
            quality = confidence = ZERO

        return MetricResult(
            metric_type=metric_type,
            value=aggregated,
            formatted_value=self.calculator.format_value(aggregated, metric_type),
            unit=self.calculator.unit_label(metric_type),
            quality_score=quality,
            confidence_score=confidence,
            calculation_method=f"AGGREGATED_{function.name}",
            data_points_count=len(pooled),
            notes=f"Aggregated from {len(entity_ids)} properties using {function.value}",
            calculated_at=now,
        )
