"""
Metric calculation service.

Turns stored or externally supplied samples into typed MetricResults:
resolves the contributing samples (recursing through derived metrics),
applies the metric's calculation strategy, scores quality and
confidence, formats the value and validates the outcome.

Calculation and write-back are separate steps: ``compute_metric`` is
side-effect free and reports the sample that should be persisted;
``calculate_metric`` performs the best-effort write-back.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from analytics_engine.config.settings import Settings
from analytics_engine.core.exceptions import CalculationError, DerivationCycleError, SampleStoreError
from analytics_engine.core.utils import Clock, ZERO, round_decimal
from analytics_engine.repositories.external_data import ExternalDataGateway
from analytics_engine.repositories.sample_store import SampleStore
from analytics_engine.schemas.analytics.metric_result import (
    ERROR_METHOD,
    MetricComputation,
    MetricResult,
)
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.analytics.statistics import StatisticalSummary
from analytics_engine.schemas.common.enums import CalculationStrategy, TimeGranularity, UnitKind
import analytics_engine.services.analytics.metric_formulas as metric_formulas
from analytics_engine.services.analytics.metric_formulas import FormulaInputs
from analytics_engine.services.analytics.quality_scoring_service import QualityScoringService
from analytics_engine.services.analytics.validation_service import ValidationCollaborator, ValidationService
from analytics_engine.services.base import BaseAnalyticsService
import analytics_engine.services.analytics.statistical_analyzer as stats

__all__ = ["MetricCalculationService"]

LOW_QUALITY_THRESHOLD = Decimal("0.8")

ComponentResolver = Callable[[MetricType], List[MetricType]]


@dataclass(frozen=True)
class StrategyContext:
    """Everything a calculation strategy may read."""

    metric_type: MetricType
    samples: Sequence[MetricSample]
    inputs: FormulaInputs

    @property
    def values(self) -> List[Decimal]:
        return [sample.value for sample in self.samples if sample.has_value]


def _sum(ctx: StrategyContext) -> Decimal:
    return sum(ctx.values, ZERO)


def _average(ctx: StrategyContext) -> Decimal:
    return stats.mean(ctx.values, ctx.inputs.places)


def _latest(ctx: StrategyContext) -> Decimal:
    latest = max(ctx.samples, key=lambda sample: sample.period_start)
    return latest.value if latest.value is not None else ZERO


def _count(ctx: StrategyContext) -> Decimal:
    return Decimal(len(ctx.samples))


def _formula(ctx: StrategyContext) -> Decimal:
    formula = metric_formulas.formula_for(ctx.metric_type)
    if formula is None:
        raise CalculationError(ctx.metric_type.value, f"No formula registered for {ctx.metric_type.value}")
    return formula(ctx.inputs)


STRATEGIES: Dict[CalculationStrategy, Callable[[StrategyContext], Decimal]] = {
    CalculationStrategy.SUM: _sum,
    CalculationStrategy.AVERAGE: _average,
    CalculationStrategy.LATEST: _latest,
    CalculationStrategy.COUNT: _count,
    CalculationStrategy.PERCENTAGE: _formula,
    CalculationStrategy.RATIO: _formula,
    CalculationStrategy.COMPLEX: _formula,
}


class MetricCalculationService(BaseAnalyticsService):
    """
    Calculates individual metrics for one entity and window.

    Failures never propagate: external-source problems degrade to "no
    data", and unexpected errors become an ``ERROR``-tagged result.
    """

    def __init__(
        self,
        store: SampleStore,
        gateway: ExternalDataGateway,
        validator: Optional[ValidationCollaborator] = None,
        scorer: Optional[QualityScoringService] = None,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        components_of: Optional[ComponentResolver] = None,
    ):
        super().__init__(config=config, clock=clock)
        self.store = store
        self.gateway = gateway
        self.validator = validator or ValidationService(self.settings)
        self.scorer = scorer or QualityScoringService(self.settings)
        self.components_of: ComponentResolver = components_of or (
            lambda metric_type: metric_type.component_metrics
        )
        self.places = self.settings.DECIMAL_PLACES

    # -------------------------------------------------------------------------
    # Single metric
    # -------------------------------------------------------------------------

    def calculate_metric(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> MetricResult:
        """Calculate a metric and write the valid result back to the store."""
        computation = self.compute_metric(metric_type, entity_id, period_start, period_end, granularity)
        if computation.to_persist is not None and self.settings.PERSIST_CALCULATED_METRICS:
            self.persist(computation.to_persist)
        return computation.result

    def compute_metric(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> MetricComputation:
        """Calculate a metric without touching storage."""
        log_context = {
            "metric_type": metric_type.value,
            "entity_id": entity_id,
            "granularity": granularity.value,
        }
        self._logger.info(f"Calculating metric {metric_type.value}", extra=log_context)

        try:
            samples = self.resolve_samples(metric_type, entity_id, period_start, period_end, granularity)
            value = self.calculate_value(metric_type, samples, entity_id, period_start, period_end)
            result = self._build_result(metric_type, value, samples)

            if not self.validator.is_valid_result(result):
                reason = self._rejection_reason(result)
                self._logger.warning(
                    f"Calculated metric {metric_type.value} failed validation: {reason}",
                    extra=log_context,
                )
                result = result.with_note(f"Validation failed: {reason}")
                result.is_valid = False
                return MetricComputation(result=result, samples=samples)

            self._logger.info(
                f"Successfully calculated metric {metric_type.value} with value {value}",
                extra=log_context,
            )
            return MetricComputation(
                result=result,
                samples=samples,
                to_persist=self._to_sample(result, entity_id, period_start, period_end, granularity),
            )

        except Exception as e:
            self._logger.error(
                f"Error calculating metric {metric_type.value}: {e}",
                exc_info=True,
                extra=log_context,
            )
            return MetricComputation(
                result=self.error_result(metric_type, f"Calculation error: {e}")
            )

    def _rejection_reason(self, result: MetricResult) -> str:
        explain = getattr(self.validator, "rejection_reason", None)
        reason = explain(result) if explain is not None else None
        return reason or "rejected by validator"

    def calculate_value(
        self,
        metric_type: MetricType,
        samples: Sequence[MetricSample],
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> Decimal:
        """Apply the metric's calculation strategy; zero when there are no samples."""
        if not samples:
            return round_decimal(ZERO, self.places)

        ctx = StrategyContext(
            metric_type=metric_type,
            samples=samples,
            inputs=FormulaInputs(
                gateway=self.gateway,
                entity_id=entity_id,
                period_start=period_start,
                period_end=period_end,
                places=self.places,
            ),
        )
        return STRATEGIES[metric_type.calculation_strategy](ctx)

    # -------------------------------------------------------------------------
    # Sample resolution
    # -------------------------------------------------------------------------

    def resolve_samples(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
        _chain: Tuple[MetricType, ...] = (),
    ) -> List[MetricSample]:
        """
        Samples feeding a metric.

        Derived metrics gather their components' samples recursively. A
        component that would revisit a metric already on the chain, or
        nest deeper than MAX_DERIVATION_DEPTH, is logged and skipped.

        Raises:
            DerivationCycleError: If ``metric_type`` itself closes a cycle
        """
        chain = _chain + (metric_type,)
        if metric_type in _chain:
            raise DerivationCycleError([m.value for m in chain])
        if len(chain) > self.settings.MAX_DERIVATION_DEPTH:
            raise DerivationCycleError([m.value for m in chain], self.settings.MAX_DERIVATION_DEPTH)

        components = self.components_of(metric_type)
        if not components:
            return self._direct_samples(metric_type, entity_id, period_start, period_end, granularity)

        samples: List[MetricSample] = []
        for component in components:
            try:
                samples.extend(
                    self.resolve_samples(component, entity_id, period_start, period_end, granularity, chain)
                )
            except DerivationCycleError as e:
                self._logger.warning(
                    f"Skipping component {component.value} of {metric_type.value}: {e.message}",
                    extra={"metric_type": metric_type.value, "entity_id": entity_id},
                )
        return samples

    def _direct_samples(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> List[MetricSample]:
        stored = [
            sample
            for sample in self.stored_samples(metric_type, entity_id, period_start, period_end)
            if sample.granularity == granularity
        ]
        if stored:
            return stored

        self._logger.debug(
            f"No stored samples for {metric_type.value}, asking external source",
            extra={"metric_type": metric_type.value, "entity_id": entity_id},
        )
        return self.gateway.fetch_samples(metric_type, entity_id, period_start, period_end, granularity)

    def stored_samples(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> List[MetricSample]:
        """
        Observed samples from the store.

        A failing store reads as empty. Results the engine wrote back are
        skipped so a later calculation over the same window does not count
        them again.
        """
        try:
            stored = list(self.store.query(metric_type, entity_id, period_start, period_end))
        except Exception as e:
            error = SampleStoreError("query", str(e))
            self._logger.warning(
                error.message,
                extra={"metric_type": metric_type.value, "entity_id": entity_id},
            )
            return []
        return [sample for sample in stored if not sample.is_computed]

    def persist(self, sample: MetricSample) -> bool:
        """Best-effort write-back; failures are logged and swallowed."""
        try:
            self.store.save(sample)
            return True
        except Exception as e:
            error = SampleStoreError("save", str(e))
            self._logger.warning(
                error.message,
                extra={"metric_type": sample.metric_type.value, "entity_id": sample.entity_id},
            )
            return False

    # -------------------------------------------------------------------------
    # Rolling and descriptive calculations
    # -------------------------------------------------------------------------

    def calculate_moving_averages(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
        window: int,
    ) -> List[MetricResult]:
        """One result per full window of stored samples, oldest first."""
        self._logger.info(
            f"Calculating {window}-period moving average for metric {metric_type.value}",
            extra={"metric_type": metric_type.value, "entity_id": entity_id},
        )
        if window <= 0:
            return []

        samples = sorted(
            (
                sample
                for sample in self.stored_samples(metric_type, entity_id, period_start, period_end)
                if sample.granularity == granularity
            ),
            key=lambda sample: sample.period_start,
        )

        now = self.clock()
        results = []
        for end in range(window, len(samples) + 1):
            chunk = samples[end - window:end]
            values = [sample.value for sample in chunk if sample.value is not None]
            average = stats.mean(values, self.places)
            results.append(
                MetricResult(
                    metric_type=metric_type,
                    value=average,
                    formatted_value=self.format_value(average, metric_type),
                    unit=self.unit_label(metric_type),
                    quality_score=self.scorer.quality_score(chunk, now),
                    confidence_score=self.scorer.confidence_score(chunk, average),
                    calculation_method=f"MOVING_AVERAGE_{window}",
                    data_points_count=len(chunk),
                    notes=f"{window}-period moving average ending {chunk[-1].period_end.isoformat()}",
                    calculated_at=now,
                )
            )
        return results

    def calculate_statistical_analysis(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> StatisticalSummary:
        values = [
            sample.value
            for sample in self.stored_samples(metric_type, entity_id, period_start, period_end)
            if sample.granularity == granularity and sample.value is not None
        ]
        return stats.summarize(values, self.clock(), self.places)

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def format_value(self, value: Optional[Decimal], metric_type: MetricType) -> str:
        if value is None:
            return "N/A"

        unit = metric_type.unit
        if unit == UnitKind.CURRENCY:
            amount = round_decimal(value, 2)
            sign = "-" if amount < ZERO else ""
            return f"{sign}{self.settings.CURRENCY_SYMBOL}{abs(amount):,.2f}"
        if unit == UnitKind.PERCENTAGE:
            return f"{round_decimal(value, 1):.1f}%"
        if unit == UnitKind.COUNT:
            return f"{int(round_decimal(value, 0)):,}"
        return f"{round_decimal(value, 2):.2f}"

    def unit_label(self, metric_type: MetricType) -> str:
        return {
            UnitKind.CURRENCY: self.settings.CURRENCY_CODE,
            UnitKind.PERCENTAGE: "%",
            UnitKind.COUNT: "count",
            UnitKind.SCORE: "score",
            UnitKind.INDEX: "index",
        }[metric_type.unit]

    def calculation_notes(self, metric_type: MetricType, samples: Sequence[MetricSample]) -> str:
        if not samples:
            return "No data available for calculation."

        notes = [f"Calculated using {len(samples)} data points."]
        components = self.components_of(metric_type)
        if components:
            notes.append(
                "Derived from "
                + ", ".join(component.value for component in components)
                + "."
            )
        if any(
            sample.quality_score is not None and sample.quality_score < LOW_QUALITY_THRESHOLD
            for sample in samples
        ):
            notes.append("Some data points have low quality scores.")
        return " ".join(notes)

    def error_result(self, metric_type: MetricType, reason: str) -> MetricResult:
        return MetricResult(
            metric_type=metric_type,
            value=None,
            formatted_value="Error",
            unit=self.unit_label(metric_type),
            quality_score=ZERO,
            confidence_score=ZERO,
            calculation_method=ERROR_METHOD,
            data_points_count=0,
            notes=reason,
            calculated_at=self.clock(),
        )

    def _build_result(
        self,
        metric_type: MetricType,
        value: Decimal,
        samples: Sequence[MetricSample],
    ) -> MetricResult:
        now = self.clock()
        return MetricResult(
            metric_type=metric_type,
            value=value,
            formatted_value=self.format_value(value, metric_type),
            unit=self.unit_label(metric_type),
            quality_score=self.scorer.quality_score(samples, now),
            confidence_score=self.scorer.confidence_score(samples, value),
            calculation_method=metric_type.calculation_strategy.method_tag,
            data_points_count=len(samples),
            notes=self.calculation_notes(metric_type, samples),
            calculated_at=now,
        )

    @staticmethod
    def _to_sample(
        result: MetricResult,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> MetricSample:
        return MetricSample(
            metric_type=result.metric_type,
            entity_id=entity_id,
            granularity=granularity,
            period_start=period_start,
            period_end=period_end,
            value=result.value,
            quality_score=result.quality_score,
            confidence_score=result.confidence_score,
            calculation_method=result.calculation_method,
            calculated_at=result.calculated_at,
        )
