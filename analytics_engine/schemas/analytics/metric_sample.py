# --- File: analytics_engine/schemas/analytics/metric_sample.py ---
"""
Stored metric observations.

A MetricSample is a single value of one metric for one entity over one
time bucket. Samples come from ingestion or from the calculator itself
when computed metrics are written back; written-back samples carry a
calculation method tag and are not fed into later calculations.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.base import FrozenSchema, Score
from analytics_engine.schemas.common.enums import TimeGranularity

__all__ = ["MetricSample"]


class MetricSample(FrozenSchema):
    """Immutable observation of a metric value."""

    sample_id: UUID = Field(
        default_factory=uuid4,
        description="Sample identifier"
    )
    metric_type: MetricType = Field(
        ...,
        description="Metric this sample measures"
    )
    entity_id: UUID = Field(
        ...,
        description="Property or other entity the sample belongs to"
    )
    granularity: TimeGranularity = Field(
        ...,
        description="Time bucket size the sample is aligned to"
    )
    period_start: datetime = Field(
        ...,
        description="Start of the covered period"
    )
    period_end: datetime = Field(
        ...,
        description="End of the covered period"
    )
    value: Optional[Decimal] = Field(
        None,
        description="Observed value, None when unknown"
    )
    quality_score: Optional[Score] = Field(
        None,
        description="Declared data quality of this observation"
    )
    confidence_score: Optional[Score] = Field(
        None,
        description="Confidence carried over from a computed result"
    )
    calculation_method: Optional[str] = Field(
        None,
        max_length=100,
        description="Method tag when the sample was computed by the engine"
    )
    calculated_at: datetime = Field(
        ...,
        description="When the value was produced"
    )

    @model_validator(mode="after")
    def validate_period(self) -> "MetricSample":
        """Period end must not precede its start."""
        if self.period_end < self.period_start:
            raise ValueError("period_end cannot be before period_start")
        return self

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @property
    def is_computed(self) -> bool:
        return self.calculation_method is not None

    @property
    def is_complete(self) -> bool:
        """Both a value and a declared quality are present."""
        return self.value is not None and self.quality_score is not None
