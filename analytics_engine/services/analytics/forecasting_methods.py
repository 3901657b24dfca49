"""
Time-series forecasting methods.

Every method takes a chronological history and a horizon and returns a
MethodForecast: one value per period, the method's base confidence, the
seasonality/trend flags and the fitted parameters. Methods are looked up
by ForecastingMethod through ``FORECASTERS``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, List, Sequence

from analytics_engine.config.settings import Settings
from analytics_engine.core.utils import ONE, ZERO, round_decimal, safe_divide
from analytics_engine.schemas.common.enums import ForecastingMethod

__all__ = [
    "MethodForecast",
    "SmoothingParameters",
    "FORECASTERS",
    "run_method",
]

MOVING_AVERAGE_WINDOW = 5
HOLT_WINTERS_MIN_POINTS = 12


@dataclass(frozen=True)
class MethodForecast:
    values: List[Decimal]
    confidence: Decimal
    seasonality_adjusted: bool = False
    trend_adjusted: bool = False
    parameters: Dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class SmoothingParameters:
    """Smoothing constants shared by the exponential methods."""

    alpha: Decimal = Decimal("0.3")
    beta: Decimal = Decimal("0.3")
    gamma: Decimal = Decimal("0.3")
    season_length: int = 7
    places: int = 4

    @classmethod
    def from_settings(cls, config: Settings) -> "SmoothingParameters":
        return cls(
            alpha=config.FORECAST_ALPHA,
            beta=config.FORECAST_BETA,
            gamma=config.FORECAST_GAMMA,
            season_length=config.FORECAST_SEASON_LENGTH,
            places=config.DECIMAL_PLACES,
        )


Forecaster = Callable[[Sequence[Decimal], int, SmoothingParameters], MethodForecast]


def simple_moving_average(values, periods, params):
    window = min(MOVING_AVERAGE_WINDOW, len(values))
    recent = values[-window:]
    average = safe_divide(sum(recent, ZERO), Decimal(window), params.places)
    return MethodForecast(
        values=[average] * periods,
        confidence=Decimal("0.6"),
        parameters={"windowSize": Decimal(window)},
    )


def weighted_moving_average(values, periods, params):
    window = min(MOVING_AVERAGE_WINDOW, len(values))
    recent = values[-window:]
    # weights 1..window, newest heaviest
    weighted_sum = sum((value * (i + 1) for i, value in enumerate(recent)), ZERO)
    total_weight = Decimal(window * (window + 1) // 2)
    average = safe_divide(weighted_sum, total_weight, params.places)
    return MethodForecast(
        values=[average] * periods,
        confidence=Decimal("0.65"),
        parameters={"windowSize": Decimal(window), "weightedAverage": average},
    )


def simple_exponential_smoothing(values, periods, params):
    alpha = params.alpha
    level = values[0]
    for observed in values[1:]:
        level = alpha * observed + (ONE - alpha) * level

    level = round_decimal(level, params.places)
    return MethodForecast(
        values=[level] * periods,
        confidence=Decimal("0.7"),
        parameters={"alpha": alpha, "level": level},
    )


def double_exponential_smoothing(values, periods, params):
    """Holt's linear trend method."""
    alpha, beta = params.alpha, params.beta
    level = values[0]
    trend = values[1] - values[0] if len(values) > 1 else ZERO

    for observed in values[1:]:
        previous_level = level
        level = alpha * observed + (ONE - alpha) * (level + trend)
        trend = beta * (level - previous_level) + (ONE - beta) * trend

    forecast = [round_decimal(level + trend * h, params.places) for h in range(1, periods + 1)]
    return MethodForecast(
        values=forecast,
        confidence=Decimal("0.75"),
        trend_adjusted=True,
        parameters={
            "alpha": alpha,
            "beta": beta,
            "level": round_decimal(level, params.places),
            "trend": round_decimal(trend, params.places),
        },
    )


def _seasonal_indices(values: Sequence[Decimal], season_length: int, overall_mean: Decimal, places: int) -> List[Decimal]:
    """Per-position mean divided by the series mean."""
    indices = []
    for position in range(season_length):
        members = values[position::season_length]
        if not members:
            indices.append(ONE)
            continue
        position_mean = sum(members, ZERO) / len(members)
        indices.append(round_decimal(position_mean / overall_mean, places))
    return indices


def triple_exponential_smoothing(values, periods, params):
    """Multiplicative Holt-Winters; short or zero-mean series use Holt."""
    season_length = params.season_length
    if len(values) < max(HOLT_WINTERS_MIN_POINTS, season_length + 1):
        return double_exponential_smoothing(values, periods, params)

    overall_mean = sum(values, ZERO) / len(values)
    if overall_mean == ZERO:
        return double_exponential_smoothing(values, periods, params)

    alpha, beta, gamma = params.alpha, params.beta, params.gamma
    seasonal = _seasonal_indices(values, season_length, overall_mean, params.places)
    level = sum(values[:season_length], ZERO) / season_length
    trend = ZERO

    for i in range(season_length, len(values)):
        observed = values[i]
        position = i % season_length
        index = seasonal[position]
        previous_level = level

        deseasonalized = observed / index if index != ZERO else observed
        level = alpha * deseasonalized + (ONE - alpha) * (level + trend)
        trend = beta * (level - previous_level) + (ONE - beta) * trend
        if level != ZERO:
            seasonal[position] = gamma * (observed / level) + (ONE - gamma) * index

    forecast = []
    for h in range(1, periods + 1):
        index = seasonal[(len(values) + h - 1) % season_length]
        forecast.append(round_decimal((level + trend * h) * index, params.places))

    return MethodForecast(
        values=forecast,
        confidence=Decimal("0.8"),
        seasonality_adjusted=True,
        trend_adjusted=True,
        parameters={
            "alpha": alpha,
            "beta": beta,
            "gamma": gamma,
            "seasonLength": Decimal(season_length),
            "level": round_decimal(level, params.places),
            "trend": round_decimal(trend, params.places),
        },
    )


def linear_regression(values, periods, params):
    """Least squares on index vs value, extended past the series."""
    n = len(values)
    sum_x = Decimal(n * (n - 1) // 2)
    sum_y = sum(values, ZERO)
    sum_xy = sum((Decimal(x) * y for x, y in enumerate(values)), ZERO)
    sum_x2 = Decimal(sum(x * x for x in range(n)))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == ZERO:
        return simple_moving_average(values, periods, params)

    slope = round_decimal((n * sum_xy - sum_x * sum_y) / denominator, params.places)
    intercept = round_decimal((sum_y - slope * sum_x) / n, params.places)

    forecast = [
        round_decimal(slope * (n + h - 1) + intercept, params.places)
        for h in range(1, periods + 1)
    ]
    return MethodForecast(
        values=forecast,
        confidence=Decimal("0.7"),
        trend_adjusted=True,
        parameters={"slope": slope, "intercept": intercept},
    )


def ensemble(values, periods, params):
    """Element-wise mean of exponential smoothing, Holt and regression."""
    members = [
        simple_exponential_smoothing(values, periods, params),
        double_exponential_smoothing(values, periods, params),
        linear_regression(values, periods, params),
    ]
    forecast = [
        round_decimal(sum((member.values[i] for member in members), ZERO) / len(members), params.places)
        for i in range(periods)
    ]
    return MethodForecast(
        values=forecast,
        confidence=Decimal("0.85"),
        trend_adjusted=True,
        parameters={"methods": Decimal(len(members))},
    )


FORECASTERS: Dict[ForecastingMethod, Forecaster] = {
    ForecastingMethod.SIMPLE_MOVING_AVERAGE: simple_moving_average,
    ForecastingMethod.WEIGHTED_MOVING_AVERAGE: weighted_moving_average,
    ForecastingMethod.SIMPLE_EXPONENTIAL_SMOOTHING: simple_exponential_smoothing,
    ForecastingMethod.DOUBLE_EXPONENTIAL_SMOOTHING: double_exponential_smoothing,
    ForecastingMethod.TRIPLE_EXPONENTIAL_SMOOTHING: triple_exponential_smoothing,
    ForecastingMethod.LINEAR_REGRESSION: linear_regression,
    # Simplified stand-ins
    ForecastingMethod.POLYNOMIAL_REGRESSION: linear_regression,
    ForecastingMethod.SEASONAL_DECOMPOSITION: triple_exponential_smoothing,
    ForecastingMethod.ARIMA: double_exponential_smoothing,
    ForecastingMethod.ENSEMBLE: ensemble,
}


def run_method(
    method: ForecastingMethod,
    values: Sequence[Decimal],
    periods: int,
    params: SmoothingParameters,
) -> MethodForecast:
    if not values:
        raise ValueError("Cannot forecast from an empty series")
    return FORECASTERS[method](list(values), periods, params)
