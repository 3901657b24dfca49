from analytics_engine.repositories.external_data import (
    ExternalDataGateway,
    ExternalDataSource,
    StaticExternalDataSource,
)
from analytics_engine.repositories.sample_store import InMemorySampleStore, SampleStore, query_series

__all__ = [
    "ExternalDataGateway",
    "ExternalDataSource",
    "StaticExternalDataSource",
    "InMemorySampleStore",
    "SampleStore",
    "query_series",
]
