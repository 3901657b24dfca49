from analytics_engine.core.exceptions import (
    AnalyticsEngineError,
    CalculationError,
    DerivationCycleError,
    ExternalSourceError,
    SampleStoreError,
)
from analytics_engine.core.utils import Clock, round_decimal, safe_divide, to_decimal, utc_now

__all__ = [
    "AnalyticsEngineError",
    "CalculationError",
    "DerivationCycleError",
    "ExternalSourceError",
    "SampleStoreError",
    "Clock",
    "round_decimal",
    "safe_divide",
    "to_decimal",
    "utc_now",
]
