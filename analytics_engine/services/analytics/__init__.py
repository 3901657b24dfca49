"""
Metric calculation and forecasting services.
"""

from analytics_engine.services.analytics import statistical_analyzer
from analytics_engine.services.analytics.quality_scoring_service import QualityScoringService
from analytics_engine.services.analytics.validation_service import ValidationCollaborator, ValidationService
from analytics_engine.services.analytics.metric_calculation_service import MetricCalculationService
from analytics_engine.services.analytics.aggregation_service import AggregationService
from analytics_engine.services.analytics.forecasting_service import ForecastingService
from analytics_engine.services.analytics.trend_analysis_service import TrendAnalysisService
from analytics_engine.services.analytics.analytics_engine_service import AnalyticsEngineService

__all__ = [
    "statistical_analyzer",
    "QualityScoringService",
    "ValidationCollaborator",
    "ValidationService",
    "MetricCalculationService",
    "AggregationService",
    "ForecastingService",
    "TrendAnalysisService",
    "AnalyticsEngineService",
]
