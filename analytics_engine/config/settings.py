"""
Environment configuration for the analytics engine.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


DEFAULT_FORECAST_ACCURACY = {
    "SIMPLE_MOVING_AVERAGE": Decimal("0.6"),
    "WEIGHTED_MOVING_AVERAGE": Decimal("0.65"),
    "SIMPLE_EXPONENTIAL_SMOOTHING": Decimal("0.7"),
    "DOUBLE_EXPONENTIAL_SMOOTHING": Decimal("0.75"),
    "TRIPLE_EXPONENTIAL_SMOOTHING": Decimal("0.8"),
    "LINEAR_REGRESSION": Decimal("0.7"),
    "POLYNOMIAL_REGRESSION": Decimal("0.72"),
    "SEASONAL_DECOMPOSITION": Decimal("0.78"),
    "ARIMA": Decimal("0.82"),
    "ENSEMBLE": Decimal("0.85"),
}


class Settings(BaseSettings):
    """Analytics engine settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Hospitality Analytics Engine"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = False
    LOG_JSON: bool = False

    # Presentation
    CURRENCY_CODE: str = "USD"
    CURRENCY_SYMBOL: str = "$"

    # Numeric precision for all rounded statistics
    DECIMAL_PLACES: int = Field(default=4, ge=0, le=12)

    # Quality scoring
    RECENCY_DECAY_HOURS: int = Field(default=168, gt=0)

    # Validation thresholds
    MIN_QUALITY_THRESHOLD: Decimal = Decimal("0.5")
    MIN_CONFIDENCE_THRESHOLD: Decimal = Decimal("0.6")
    MAX_REASONABLE_VALUE: Decimal = Decimal("1000000000")

    # Concurrency and external I/O
    MAX_WORKERS: Optional[int] = Field(default=None, ge=1)
    EXTERNAL_SOURCE_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Metric calculation
    MAX_DERIVATION_DEPTH: int = Field(default=5, ge=1)
    PERSIST_CALCULATED_METRICS: bool = True

    # Forecasting
    DEFAULT_FORECAST_PERIODS: int = Field(default=30, ge=1)
    FORECAST_SEASON_LENGTH: int = Field(default=7, ge=2)
    FORECAST_ALPHA: Decimal = Decimal("0.3")
    FORECAST_BETA: Decimal = Decimal("0.3")
    FORECAST_GAMMA: Decimal = Decimal("0.3")
    FORECAST_Z_95: Decimal = Decimal("1.96")
    FORECAST_Z_80: Decimal = Decimal("1.28")
    FORECAST_MIN_HISTORY: int = Field(default=3, ge=1)
    FORECAST_MIN_EVALUATION_HISTORY: int = Field(default=6, ge=2)
    FORECAST_TRAIN_SPLIT: Decimal = Field(default=Decimal("0.75"), gt=0, lt=1)
    FORECAST_ACCURACY_TABLE: Dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_FORECAST_ACCURACY)
    )

    # Trend analysis
    TREND_SLOPE_THRESHOLD: Decimal = Field(default=Decimal("0.01"), ge=0)
    TREND_SEASONALITY_THRESHOLD: Decimal = Decimal("0.3")
    TREND_STRONG_R_SQUARED: Decimal = Decimal("0.7")
    TREND_HIGH_VOLATILITY: Decimal = Decimal("0.3")

    # Validators
    @field_validator("FORECAST_ACCURACY_TABLE", mode="before")
    @classmethod
    def parse_accuracy_table(cls, v: Union[str, Dict[str, Decimal]]) -> Dict[str, Decimal]:
        """Parse FORECAST_ACCURACY_TABLE from JSON or METHOD=value pairs"""
        if isinstance(v, str):
            if v.startswith('{') and v.endswith('}'):
                try:
                    v = json.loads(v)
                except json.JSONDecodeError:
                    pass
            if isinstance(v, str):
                pairs = [item.split("=", 1) for item in v.split(",") if "=" in item]
                v = {key.strip(): value.strip() for key, value in pairs}
        table = dict(DEFAULT_FORECAST_ACCURACY)
        table.update({str(key).upper(): Decimal(str(value)) for key, value in v.items()})
        return table

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize LOG_LEVEL to upper case"""
        return v.upper()

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
