"""
Validation of calculated metric results and input series.
"""

import logging
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from analytics_engine.config.settings import Settings, get_settings
from analytics_engine.core.utils import HUNDRED, ZERO
from analytics_engine.schemas.analytics.metric_result import MetricResult
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.common.enums import MetricCategory, UnitKind
from analytics_engine.services.base import ServiceResult

logger = logging.getLogger(__name__)

# Categories whose values can never be negative
NON_NEGATIVE_CATEGORIES = frozenset({
    MetricCategory.REVENUE,
    MetricCategory.BOOKING,
    MetricCategory.CUSTOMER,
    MetricCategory.OCCUPANCY,
})


@runtime_checkable
class ValidationCollaborator(Protocol):
    """Accepts or rejects a calculated result before it is persisted."""

    def is_valid_result(self, result: MetricResult) -> bool: ...


class ValidationService:
    """
    Decides whether a calculated result is trustworthy enough to persist.

    Rejected results are still returned to callers; validation only
    controls write-back and the ``is_valid`` flag.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or get_settings()

    def rejection_reason(self, result: MetricResult) -> Optional[str]:
        """Why a result fails validation, or None when it passes."""
        metric_type = result.metric_type
        value = result.value

        if value is None:
            return f"Metric value is missing for {metric_type.value}"

        if value < ZERO and metric_type.category in NON_NEGATIVE_CATEGORIES:
            return f"Negative value {value} is not allowed for {metric_type.value}"

        if (
            metric_type.category == MetricCategory.OCCUPANCY
            and metric_type.unit == UnitKind.PERCENTAGE
            and value > HUNDRED
        ):
            return f"Occupancy percentage {value} exceeds 100"

        if value > self.settings.MAX_REASONABLE_VALUE:
            return f"Value {value} exceeds the maximum reasonable value"

        if result.quality_score < self.settings.MIN_QUALITY_THRESHOLD:
            return f"Quality score {result.quality_score} below threshold {self.settings.MIN_QUALITY_THRESHOLD}"

        if result.confidence_score < self.settings.MIN_CONFIDENCE_THRESHOLD:
            return (
                f"Confidence score {result.confidence_score} below threshold "
                f"{self.settings.MIN_CONFIDENCE_THRESHOLD}"
            )

        return None

    def is_valid_result(self, result: MetricResult) -> bool:
        reason = self.rejection_reason(result)
        if reason is not None:
            logger.warning(
                f"Metric result failed validation: {reason}",
                extra={"metric_type": result.metric_type.value},
            )
            return False
        return True

    def validate_result(self, result: MetricResult) -> ServiceResult[MetricResult]:
        """ServiceResult variant carrying the rejection reason."""
        reason = self.rejection_reason(result)
        if reason is not None:
            return ServiceResult.validation_failure(
                reason,
                field="value",
                details={"metric_type": result.metric_type.value},
            )
        return ServiceResult.success(result)

    @staticmethod
    def is_data_complete(items: Sequence[Any], required_completeness: float) -> bool:
        """Share of non-None items meets the required fraction."""
        if not items:
            return False
        present = sum(1 for item in items if item is not None)
        return Decimal(present) / len(items) >= Decimal(str(required_completeness))

    @staticmethod
    def is_time_series_consistent(samples: Sequence[MetricSample]) -> bool:
        """Samples are ordered by period start; gaps over a day are only logged."""
        if len(samples) < 2:
            return True

        for previous, current in zip(samples, samples[1:]):
            if current.period_start < previous.period_start:
                logger.warning("Time series data is not properly ordered")
                return False

        for previous, current in zip(samples, samples[1:]):
            gap = current.period_start - previous.period_end
            if gap.days > 1:
                logger.debug(f"Large time gap detected: {gap.days} days")

        return True
