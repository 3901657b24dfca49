from analytics_engine.services.analytics import AnalyticsEngineService
from analytics_engine.services.base import ServiceResult

__all__ = ["AnalyticsEngineService", "ServiceResult"]
