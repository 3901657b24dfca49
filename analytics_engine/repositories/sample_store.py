"""
Sample store access.

The engine reads stored samples through a narrow query interface and
optionally writes computed results back. ``InMemorySampleStore`` is a
thread-safe implementation used for local runs and tests.
"""

import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable
from uuid import UUID

from analytics_engine.config.logging import get_logger
from analytics_engine.core.exceptions import SampleStoreError
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import TimeGranularity

logger = get_logger(__name__)

__all__ = [
    "SampleStore",
    "InMemorySampleStore",
    "query_series",
]


@runtime_checkable
class SampleStore(Protocol):
    """Read (and optional write-back) interface over stored samples."""

    def query(
        self,
        metric_type: MetricType,
        entity_id: Optional[UUID],
        period_start: datetime,
        period_end: datetime,
    ) -> List[MetricSample]:
        """Samples fully inside the window, ordered by period start."""
        ...

    def save(self, sample: MetricSample) -> MetricSample:
        ...


class InMemorySampleStore:
    """
    Dictionary-backed sample store.

    Samples are bucketed by (metric type, entity). A ``None`` entity in
    ``query`` matches every entity.
    """

    def __init__(self, samples: Optional[List[MetricSample]] = None):
        self._lock = threading.Lock()
        self._samples: Dict[Tuple[MetricType, UUID], List[MetricSample]] = defaultdict(list)
        for sample in samples or []:
            self.save(sample)

    def query(
        self,
        metric_type: MetricType,
        entity_id: Optional[UUID],
        period_start: datetime,
        period_end: datetime,
    ) -> List[MetricSample]:
        with self._lock:
            if entity_id is None:
                candidates = [
                    sample
                    for (stored_type, _), bucket in self._samples.items()
                    if stored_type == metric_type
                    for sample in bucket
                ]
            else:
                candidates = list(self._samples.get((metric_type, entity_id), []))

        matches = [
            sample for sample in candidates
            if sample.period_start >= period_start and sample.period_end <= period_end
        ]
        matches.sort(key=lambda sample: sample.period_start)
        return matches

    def save(self, sample: MetricSample) -> MetricSample:
        with self._lock:
            self._samples[(sample.metric_type, sample.entity_id)].append(sample)
        logger.debug(
            f"Stored sample {sample.sample_id}",
            extra={"metric_type": sample.metric_type.value, "entity_id": sample.entity_id},
        )
        return sample

    def count(self, metric_type: Optional[MetricType] = None) -> int:
        with self._lock:
            return sum(
                len(bucket)
                for (stored_type, _), bucket in self._samples.items()
                if metric_type is None or stored_type == metric_type
            )

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


def query_series(
    store: SampleStore,
    metric_type: MetricType,
    entity_id: Optional[UUID],
    period_start: datetime,
    period_end: datetime,
    granularity: TimeGranularity,
) -> List[MetricSample]:
    """Stored samples of one metric at one granularity; SampleStoreError when the query fails."""
    try:
        stored = store.query(metric_type, entity_id, period_start, period_end)
    except Exception as e:
        raise SampleStoreError("query", str(e)) from e
    return [sample for sample in stored if sample.granularity == granularity]
