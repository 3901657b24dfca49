"""
Custom exceptions for the analytics engine.

These exceptions are raised inside the engine and converted to sentinel
results (zero-valued or error-tagged) before reaching callers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Error codes for engine-internal failures"""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SOURCE_ERROR = "EXTERNAL_SOURCE_ERROR"
    EXTERNAL_SOURCE_TIMEOUT = "EXTERNAL_SOURCE_TIMEOUT"
    SAMPLE_STORE_ERROR = "SAMPLE_STORE_ERROR"
    DERIVATION_CYCLE = "DERIVATION_CYCLE"
    CALCULATION_ERROR = "CALCULATION_ERROR"


class AnalyticsEngineError(Exception):
    """Base exception for the analytics engine"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ExternalSourceError(AnalyticsEngineError):
    """Raised when the external data source fails or times out"""

    def __init__(self, operation: str, message: str, timed_out: bool = False):
        super().__init__(
            code=ErrorCode.EXTERNAL_SOURCE_TIMEOUT if timed_out else ErrorCode.EXTERNAL_SOURCE_ERROR,
            message=f"External data source {operation} failed: {message}",
            details={"operation": operation, "timed_out": timed_out},
        )
        self.timed_out = timed_out


class SampleStoreError(AnalyticsEngineError):
    """Raised when the sample store cannot be read or written"""

    def __init__(self, operation: str, message: str):
        super().__init__(
            code=ErrorCode.SAMPLE_STORE_ERROR,
            message=f"Sample store {operation} failed: {message}",
            details={"operation": operation},
        )


class DerivationCycleError(AnalyticsEngineError):
    """Raised when a derived metric depends on itself or nests too deeply"""

    def __init__(self, chain: List[str], max_depth: Optional[int] = None):
        if max_depth is not None:
            message = f"Derived metric nesting exceeds depth {max_depth}: {' -> '.join(chain)}"
        else:
            message = f"Derived metric cycle detected: {' -> '.join(chain)}"
        super().__init__(
            code=ErrorCode.DERIVATION_CYCLE,
            message=message,
            details={"chain": chain, "max_depth": max_depth},
        )


class CalculationError(AnalyticsEngineError):
    """Raised when a calculation strategy cannot produce a value"""

    def __init__(self, metric_type: str, message: str):
        super().__init__(
            code=ErrorCode.CALCULATION_ERROR,
            message=message,
            details={"metric_type": metric_type},
        )


__all__ = [
    "ErrorCode",
    "AnalyticsEngineError",
    "ExternalSourceError",
    "SampleStoreError",
    "DerivationCycleError",
    "CalculationError",
]
