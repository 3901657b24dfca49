"""
External data source access.

Raw counts (rooms, bookings, revenue, guest figures) and fallback samples
come from an external connector. Every call goes through
``ExternalDataGateway``, which bounds it with a timeout and turns failures
into "no data" so a calculation can continue with what it has.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable
from uuid import UUID

from analytics_engine.config.logging import get_logger
from analytics_engine.core.exceptions import ExternalSourceError
from analytics_engine.core.utils import ZERO, to_decimal
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import TimeGranularity

logger = get_logger(__name__)

__all__ = [
    "ExternalDataSource",
    "StaticExternalDataSource",
    "ExternalDataGateway",
]


@runtime_checkable
class ExternalDataSource(Protocol):
    """Read-only connector supplying raw hospitality figures."""

    def fetch_samples(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> List[MetricSample]: ...

    def total_revenue(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def occupied_rooms_count(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def total_rooms_count(self, entity_id: UUID) -> Decimal: ...

    def total_bookings_count(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def cancelled_bookings_count(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def no_show_bookings_count(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def average_revenue_per_guest(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def average_stay_frequency(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...

    def average_guest_lifespan(self, entity_id: UUID) -> Decimal: ...

    def average_guest_rating(self, entity_id: UUID, start: datetime, end: datetime) -> Decimal: ...


# Figures returned by the static source when none are configured
DEFAULT_STATIC_FIGURES: Dict[str, Decimal] = {
    "total_revenue": Decimal("10000"),
    "occupied_rooms_count": Decimal("50"),
    "total_rooms_count": Decimal("100"),
    "total_bookings_count": Decimal("75"),
    "cancelled_bookings_count": Decimal("5"),
    "no_show_bookings_count": Decimal("3"),
    "average_revenue_per_guest": Decimal("150"),
    "average_stay_frequency": Decimal("2.5"),
    "average_guest_lifespan": Decimal("5.0"),
    "average_guest_rating": Decimal("4.2"),
}


class StaticExternalDataSource:
    """
    Connector backed by fixed figures and an optional sample list.

    Figures are the same for every entity and window; samples are
    filtered by metric, entity, granularity and window.
    """

    def __init__(
        self,
        figures: Optional[Dict[str, Any]] = None,
        samples: Optional[List[MetricSample]] = None,
    ):
        self.figures: Dict[str, Decimal] = dict(DEFAULT_STATIC_FIGURES)
        for name, value in (figures or {}).items():
            if name not in DEFAULT_STATIC_FIGURES:
                raise ValueError(f"Unknown external figure: {name}")
            self.figures[name] = to_decimal(value)
        self.samples = list(samples or [])

    def fetch_samples(self, metric_type, entity_id, period_start, period_end, granularity):
        return [
            sample for sample in self.samples
            if sample.metric_type == metric_type
            and sample.entity_id == entity_id
            and sample.granularity == granularity
            and sample.period_start >= period_start
            and sample.period_end <= period_end
        ]

    def total_revenue(self, entity_id, start, end):
        return self.figures["total_revenue"]

    def occupied_rooms_count(self, entity_id, start, end):
        return self.figures["occupied_rooms_count"]

    def total_rooms_count(self, entity_id):
        return self.figures["total_rooms_count"]

    def total_bookings_count(self, entity_id, start, end):
        return self.figures["total_bookings_count"]

    def cancelled_bookings_count(self, entity_id, start, end):
        return self.figures["cancelled_bookings_count"]

    def no_show_bookings_count(self, entity_id, start, end):
        return self.figures["no_show_bookings_count"]

    def average_revenue_per_guest(self, entity_id, start, end):
        return self.figures["average_revenue_per_guest"]

    def average_stay_frequency(self, entity_id, start, end):
        return self.figures["average_stay_frequency"]

    def average_guest_lifespan(self, entity_id):
        return self.figures["average_guest_lifespan"]

    def average_guest_rating(self, entity_id, start, end):
        return self.figures["average_guest_rating"]


class ExternalDataGateway:
    """
    Timeout-bounded, failure-absorbing wrapper around an ExternalDataSource.

    Sample fetches degrade to an empty list and numeric getters to zero,
    each with a WARNING log. The timeout is measured from the moment the
    source call starts running; time spent queued for a free pool thread
    is bounded separately by the same limit.
    """

    def __init__(
        self,
        source: ExternalDataSource,
        timeout_seconds: float = 10.0,
        max_workers: int = 4,
    ):
        self.source = source
        self.timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="external-source",
        )

    def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a source call on the pool; raise ExternalSourceError on failure or timeout."""
        started = threading.Event()

        def run():
            started.set()
            return func(*args)

        future = self._executor.submit(run)
        if not started.wait(self.timeout_seconds):
            if future.cancel():
                raise ExternalSourceError(
                    operation,
                    f"no free worker within {self.timeout_seconds}s",
                    timed_out=True,
                )
            started.wait()

        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            raise ExternalSourceError(
                operation,
                f"no response within {self.timeout_seconds}s",
                timed_out=True,
            )
        except Exception as e:
            raise ExternalSourceError(operation, str(e)) from e

    def fetch_samples(
        self,
        metric_type: MetricType,
        entity_id: UUID,
        period_start: datetime,
        period_end: datetime,
        granularity: TimeGranularity,
    ) -> List[MetricSample]:
        try:
            samples = self._call(
                "fetch_samples",
                self.source.fetch_samples,
                metric_type, entity_id, period_start, period_end, granularity,
            )
        except ExternalSourceError as e:
            logger.warning(
                f"Falling back to no samples: {e.message}",
                extra={
                    "metric_type": metric_type.value,
                    "entity_id": entity_id,
                    "operation": "fetch_samples",
                },
            )
            return []
        return list(samples or [])

    def figure(self, name: str, *args: Any) -> Decimal:
        """Named numeric getter; zero when the source fails or returns nothing."""
        getter = getattr(self.source, name, None)
        if getter is None:
            raise AttributeError(f"External data source has no figure '{name}'")
        try:
            value = self._call(name, getter, *args)
        except ExternalSourceError as e:
            logger.warning(
                f"Using zero for {name}: {e.message}",
                extra={"operation": name},
            )
            return ZERO
        return to_decimal(value)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
