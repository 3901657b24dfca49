"""
Shared fixtures for the analytics engine tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest

from analytics_engine.config.settings import Settings
from analytics_engine.repositories.external_data import ExternalDataGateway, StaticExternalDataSource
from analytics_engine.repositories.sample_store import InMemorySampleStore
from analytics_engine.schemas.analytics.metric_sample import MetricSample
from analytics_engine.schemas.analytics.metric_type import MetricType
from analytics_engine.schemas.common.enums import TimeGranularity
from analytics_engine.services.analytics.metric_calculation_service import MetricCalculationService

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
PERIOD_START = datetime(2024, 5, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2024, 6, 1, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def make_sample(
    metric_type: MetricType,
    value,
    entity_id: UUID,
    day: int = 0,
    quality: Optional[str] = "0.9",
    calculated_at: datetime = NOW,
    granularity: TimeGranularity = TimeGranularity.DAILY,
) -> MetricSample:
    """Daily sample covering PERIOD_START + day."""
    start = PERIOD_START + timedelta(days=day)
    return MetricSample(
        metric_type=metric_type,
        entity_id=entity_id,
        granularity=granularity,
        period_start=start,
        period_end=start + timedelta(days=1),
        value=None if value is None else Decimal(str(value)),
        quality_score=None if quality is None else Decimal(quality),
        calculated_at=calculated_at,
    )


class FailingStore:
    """Sample store whose every call raises."""

    def query(self, metric_type, entity_id, period_start, period_end):
        raise ConnectionError("store offline")

    def save(self, sample):
        raise ConnectionError("store offline")


@pytest.fixture
def config() -> Settings:
    return Settings(MAX_WORKERS=2, EXTERNAL_SOURCE_TIMEOUT_SECONDS=2.0)


@pytest.fixture
def entity_id() -> UUID:
    return uuid4()


@pytest.fixture
def store() -> InMemorySampleStore:
    return InMemorySampleStore()


@pytest.fixture
def source() -> StaticExternalDataSource:
    return StaticExternalDataSource()


@pytest.fixture
def gateway(source, config):
    gw = ExternalDataGateway(source, timeout_seconds=config.EXTERNAL_SOURCE_TIMEOUT_SECONDS)
    yield gw
    gw.close()


@pytest.fixture
def calculator(store, gateway, config) -> MetricCalculationService:
    return MetricCalculationService(store=store, gateway=gateway, config=config, clock=fixed_clock)


@pytest.fixture
def add_samples(store, entity_id):
    """Store daily samples for a metric, one per value, starting at PERIOD_START."""

    def _add(metric_type: MetricType, values, entity: Optional[UUID] = None, **kwargs):
        target = entity or entity_id
        samples = [make_sample(metric_type, value, target, day=i, **kwargs) for i, value in enumerate(values)]
        for sample in samples:
            store.save(sample)
        return samples

    return _add
