"""
Base service class providing common functionality for engine services.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, TypeVar

from analytics_engine.config.logging import get_logger
from analytics_engine.config.settings import Settings, get_settings
from analytics_engine.core.exceptions import AnalyticsEngineError, ErrorCode as EngineErrorCode
from analytics_engine.core.utils import Clock, utc_now
from analytics_engine.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

TKey = TypeVar("TKey", bound=Hashable)
TValue = TypeVar("TValue")


class BaseAnalyticsService:
    """
    Base service with common behaviors:
    - Shared logger, settings and clock
    - Bounded worker pool for independent per-item work
    - Consistent error handling via ServiceResult
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings: Settings = config or get_settings()
        self.clock: Clock = clock or utc_now
        self._logger = get_logger(self.__class__.__name__)

    @property
    def max_workers(self) -> int:
        """Pool size: configured value or the number of available cores."""
        return self.settings.MAX_WORKERS or os.cpu_count() or 1

    def _run_parallel(
        self,
        items: Iterable[TKey],
        func: Callable[[TKey], TValue],
        label: str,
    ) -> Dict[TKey, TValue]:
        """
        Run ``func`` for every item on the worker pool.

        A failing item is logged and left out of the returned mapping; it
        never aborts the rest of the batch.

        Returns:
            Mapping of item to result for the items that succeeded
        """
        items = list(items)
        results: Dict[TKey, TValue] = {}
        if not items:
            return results

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
            future_to_item = {executor.submit(func, item): item for item in items}

            for future in as_completed(future_to_item):
                item = future_to_item[future]
                try:
                    results[item] = future.result()
                except Exception as e:
                    self._logger.warning(
                        f"{label} failed for {item}: {e}",
                        extra={"operation": label},
                    )

        return results

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> ServiceResult:
        """Log an unexpected exception and convert it to a failed ServiceResult."""
        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra={
                "operation": operation,
                "entity_id": str(entity_ref) if entity_ref is not None else None,
            },
        )

        details: Dict[str, Any] = {
            "error": str(exception),
            "exception_type": type(exception).__name__,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
        }
        if isinstance(exception, AnalyticsEngineError):
            details.update(exception.to_dict())

        return ServiceResult.failure(
            ServiceError(
                code=self._map_exception_to_error_code(exception),
                message=f"Failed to {operation}",
                details=details,
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        if isinstance(exception, AnalyticsEngineError):
            return {
                EngineErrorCode.EXTERNAL_SOURCE_ERROR: ErrorCode.EXTERNAL_SERVICE_ERROR,
                EngineErrorCode.EXTERNAL_SOURCE_TIMEOUT: ErrorCode.TIMEOUT,
                EngineErrorCode.SAMPLE_STORE_ERROR: ErrorCode.EXTERNAL_SERVICE_ERROR,
                EngineErrorCode.DERIVATION_CYCLE: ErrorCode.CALCULATION_ERROR,
                EngineErrorCode.CALCULATION_ERROR: ErrorCode.CALCULATION_ERROR,
            }.get(exception.code, ErrorCode.INTERNAL_ERROR)
        if isinstance(exception, (ValueError, TypeError)):
            return ErrorCode.VALIDATION_ERROR
        return ErrorCode.INTERNAL_ERROR
