"""
Quality and confidence scoring for calculated metrics.

Quality describes the input data (complete, fresh, declared accurate);
confidence describes the statistics (enough samples, low dispersion,
value not an outlier). Both are weighted sums in [0, 1].
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from analytics_engine.config.settings import Settings, get_settings
from analytics_engine.core.utils import ONE, ZERO, hours_between, round_decimal
from analytics_engine.schemas.analytics.metric_sample import MetricSample
import analytics_engine.services.analytics.statistical_analyzer as stats

__all__ = ["QualityScoringService"]

COMPLETENESS_WEIGHT = Decimal("0.4")
RECENCY_WEIGHT = Decimal("0.3")
ACCURACY_WEIGHT = Decimal("0.3")

SAMPLE_SIZE_WEIGHT = Decimal("0.4")
VARIANCE_WEIGHT = Decimal("0.3")
OUTLIER_WEIGHT = Decimal("0.3")

NEUTRAL_SCORE = Decimal("0.5")
IQR_FENCE = Decimal("1.5")

# (minimum sample count, score), checked top-down
SAMPLE_SIZE_STEPS = (
    (100, Decimal("1.0")),
    (30, Decimal("0.8")),
    (10, Decimal("0.6")),
    (5, Decimal("0.4")),
    (1, Decimal("0.2")),
)


class QualityScoringService:
    """Scores a sample set and the value computed from it."""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or get_settings()
        self.places = self.settings.DECIMAL_PLACES

    # ------------------------------------------------------------------
    # Quality
    # ------------------------------------------------------------------

    def quality_score(self, samples: Sequence[MetricSample], now: datetime) -> Decimal:
        if not samples:
            return round_decimal(ZERO, self.places)

        score = (
            COMPLETENESS_WEIGHT * self.completeness(samples)
            + RECENCY_WEIGHT * self.recency(samples, now)
            + ACCURACY_WEIGHT * self.accuracy(samples)
        )
        return round_decimal(score, self.places)

    def completeness(self, samples: Sequence[MetricSample]) -> Decimal:
        """Fraction of samples carrying both a value and a quality score."""
        if not samples:
            return ZERO
        complete = sum(1 for sample in samples if sample.is_complete)
        return Decimal(complete) / len(samples)

    def recency(self, samples: Sequence[MetricSample], now: datetime) -> Decimal:
        """Mean freshness with linear decay over the configured window."""
        if not samples:
            return ZERO
        decay = Decimal(self.settings.RECENCY_DECAY_HOURS)
        total = ZERO
        for sample in samples:
            hours = Decimal(hours_between(sample.calculated_at, now))
            freshness = ONE - hours / decay
            total += max(ZERO, min(ONE, freshness))
        return total / len(samples)

    def accuracy(self, samples: Sequence[MetricSample]) -> Decimal:
        """Mean declared quality, zero when no sample declares one."""
        declared = [sample.quality_score for sample in samples if sample.quality_score is not None]
        if not declared:
            return ZERO
        return sum(declared, ZERO) / len(declared)

    # ------------------------------------------------------------------
    # Confidence
    # ------------------------------------------------------------------

    def confidence_score(
        self,
        samples: Sequence[MetricSample],
        value: Optional[Decimal],
    ) -> Decimal:
        if not samples or value is None:
            return round_decimal(ZERO, self.places)

        values = [sample.value for sample in samples if sample.value is not None]
        score = (
            SAMPLE_SIZE_WEIGHT * self.sample_size_score(len(samples))
            + VARIANCE_WEIGHT * self.variance_score(values)
            + OUTLIER_WEIGHT * self.outlier_score(values, value)
        )
        return round_decimal(score, self.places)

    @staticmethod
    def sample_size_score(count: int) -> Decimal:
        for minimum, score in SAMPLE_SIZE_STEPS:
            if count >= minimum:
                return score
        return ZERO

    def variance_score(self, values: List[Decimal]) -> Decimal:
        """1 - min(CoV, 1); neutral 0.5 when dispersion is undefined."""
        if len(values) < 2:
            return NEUTRAL_SCORE
        center = stats.mean(values, self.places)
        if center == ZERO:
            return NEUTRAL_SCORE
        cov = stats.standard_deviation(values, self.places) / abs(center)
        return ONE - min(cov, ONE)

    def outlier_score(self, values: List[Decimal], value: Decimal) -> Decimal:
        """1.0 inside the 1.5 IQR fence, 0.5 outside."""
        if len(values) < 3:
            return ONE
        q1 = stats.percentile(values, 25, self.places)
        q3 = stats.percentile(values, 75, self.places)
        iqr = q3 - q1
        lower = q1 - IQR_FENCE * iqr
        upper = q3 + IQR_FENCE * iqr
        return ONE if lower <= value <= upper else NEUTRAL_SCORE
