# --- File: analytics_engine/schemas/analytics/metric_result.py ---
"""
Metric calculation results.

MetricResult is the value object handed back to callers for every
calculation, including failed ones (tagged ``ERROR``). MetricComputation
pairs a result with the samples it was built from and the sample that
should be written back, so persistence stays a caller decision.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, computed_field

from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.base import BaseSchema, Score

__all__ = [
    "ERROR_METHOD",
    "MetricResult",
    "MetricComputation",
]

ERROR_METHOD = "ERROR"


class MetricResult(BaseSchema):
    """Computed metric value with presentation and reliability data."""

    metric_type: MetricType = Field(
        ...,
        description="Metric that was calculated"
    )
    value: Optional[Decimal] = Field(
        None,
        description="Computed value, None on error"
    )
    formatted_value: str = Field(
        ...,
        description="Display string for the value"
    )
    unit: str = Field(
        ...,
        description="Unit label"
    )
    quality_score: Score = Field(
        Decimal("0"),
        description="Data quality score (0-1)"
    )
    confidence_score: Score = Field(
        Decimal("0"),
        description="Statistical confidence score (0-1)"
    )
    calculation_method: str = Field(
        ...,
        description="Tag naming how the value was produced"
    )
    data_points_count: int = Field(
        0,
        ge=0,
        description="Number of contributing samples"
    )
    notes: str = Field(
        "",
        description="Free-text calculation notes"
    )
    calculated_at: datetime = Field(
        ...,
        description="When the result was produced"
    )
    is_valid: bool = Field(
        True,
        description="Outcome of result validation"
    )

    @computed_field  # type: ignore[misc]
    @property
    def is_error(self) -> bool:
        """Whether the calculation failed."""
        return self.calculation_method == ERROR_METHOD

    def with_note(self, note: str) -> "MetricResult":
        """Copy of this result with a note appended."""
        notes = f"{self.notes} {note}".strip() if self.notes else note
        return self.model_copy(update={"notes": notes})


class MetricComputation(BaseSchema):
    """A calculated result plus its inputs and write-back candidate."""

    result: MetricResult
    samples: List[MetricSample] = Field(default_factory=list)
    to_persist: Optional[MetricSample] = None
