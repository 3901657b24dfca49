# --- File: analytics_engine/schemas/analytics/metric_type.py ---
"""
Metric catalogue.

Every business metric the engine can calculate, together with its
category, unit, calculation strategy and (for derived metrics) the
component metrics it is computed from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from analytics_engine.schemas.common.enums import (
    CalculationStrategy,
    MetricCategory,
    UnitKind,
)

__all__ = [
    "MetricDefinition",
    "MetricType",
]


@dataclass(frozen=True)
class MetricDefinition:
    """Static description of a metric."""

    display_name: str
    description: str
    category: MetricCategory
    unit: UnitKind
    additive: bool
    aggregations: FrozenSet[str]
    strategy: CalculationStrategy = CalculationStrategy.AVERAGE
    components: Tuple[str, ...] = field(default_factory=tuple)


class MetricType(str, Enum):
    """Business metrics and KPIs tracked by the engine."""

    # Revenue
    TOTAL_REVENUE = "TOTAL_REVENUE"
    REVENUE_TOTAL = "REVENUE_TOTAL"
    REVPAR = "REVPAR"
    REVENUE_PER_AVAILABLE_ROOM = "REVENUE_PER_AVAILABLE_ROOM"
    ADR = "ADR"
    AVERAGE_DAILY_RATE = "AVERAGE_DAILY_RATE"
    REVENUE_PER_OCCUPIED_ROOM = "REVENUE_PER_OCCUPIED_ROOM"

    # Occupancy
    OCCUPANCY_RATE = "OCCUPANCY_RATE"
    AVAILABLE_ROOMS = "AVAILABLE_ROOMS"
    OCCUPIED_ROOMS = "OCCUPIED_ROOMS"
    ROOM_NIGHTS_SOLD = "ROOM_NIGHTS_SOLD"

    # Booking
    TOTAL_BOOKINGS = "TOTAL_BOOKINGS"
    BOOKINGS_COUNT = "BOOKINGS_COUNT"
    BOOKING_CONVERSION_RATE = "BOOKING_CONVERSION_RATE"
    AVERAGE_BOOKING_VALUE = "AVERAGE_BOOKING_VALUE"
    CANCELLATION_RATE = "CANCELLATION_RATE"
    NO_SHOW_RATE = "NO_SHOW_RATE"

    # Customer
    UNIQUE_GUESTS = "UNIQUE_GUESTS"
    TOTAL_GUESTS = "TOTAL_GUESTS"
    GUEST_SATISFACTION_SCORE = "GUEST_SATISFACTION_SCORE"
    CUSTOMER_LIFETIME_VALUE = "CUSTOMER_LIFETIME_VALUE"
    CUSTOMER_ACQUISITION_COST = "CUSTOMER_ACQUISITION_COST"
    REPEAT_CUSTOMER_RATE = "REPEAT_CUSTOMER_RATE"
    CUSTOMER_SATISFACTION_SCORE = "CUSTOMER_SATISFACTION_SCORE"

    # Financial
    GROSS_OPERATING_PROFIT = "GROSS_OPERATING_PROFIT"
    PROFIT_MARGIN = "PROFIT_MARGIN"
    COST_PER_OCCUPIED_ROOM = "COST_PER_OCCUPIED_ROOM"

    # Channel
    CHANNEL_REVENUE_CONTRIBUTION = "CHANNEL_REVENUE_CONTRIBUTION"
    CHANNEL_BOOKING_COUNT = "CHANNEL_BOOKING_COUNT"
    CHANNEL_CONVERSION_RATE = "CHANNEL_CONVERSION_RATE"

    # Market
    MARKET_PENETRATION_INDEX = "MARKET_PENETRATION_INDEX"
    REVENUE_GENERATION_INDEX = "REVENUE_GENERATION_INDEX"
    COMPETITIVE_SET_PERFORMANCE = "COMPETITIVE_SET_PERFORMANCE"

    @property
    def definition(self) -> MetricDefinition:
        return METRIC_DEFINITIONS[self]

    @property
    def display_name(self) -> str:
        return self.definition.display_name

    @property
    def category(self) -> MetricCategory:
        return self.definition.category

    @property
    def unit(self) -> UnitKind:
        return self.definition.unit

    @property
    def is_additive(self) -> bool:
        return self.definition.additive

    @property
    def calculation_strategy(self) -> CalculationStrategy:
        return self.definition.strategy

    @property
    def is_derived(self) -> bool:
        return bool(self.definition.components)

    @property
    def component_metrics(self) -> List["MetricType"]:
        return [MetricType(name) for name in self.definition.components]

    @property
    def is_revenue_metric(self) -> bool:
        return self.category in (MetricCategory.REVENUE, MetricCategory.FINANCIAL)

    @property
    def is_ratio(self) -> bool:
        return self.unit in (UnitKind.PERCENTAGE, UnitKind.INDEX, UnitKind.SCORE)

    def supports_trend_analysis(self) -> bool:
        return "TREND" in self.definition.aggregations

    def supports_forecasting(self) -> bool:
        return "FORECAST" in self.definition.aggregations

    def default_aggregation(self) -> str:
        aggregations = self.definition.aggregations
        if "SUM" in aggregations:
            return "SUM"
        if "AVERAGE" in aggregations:
            return "AVERAGE"
        return sorted(aggregations)[0]

    @classmethod
    def trend_capable(cls) -> List["MetricType"]:
        return [metric for metric in cls if metric.supports_trend_analysis()]

    @classmethod
    def forecastable(cls) -> List["MetricType"]:
        return [metric for metric in cls if metric.supports_forecasting()]


def _metric(
    display_name: str,
    description: str,
    category: MetricCategory,
    unit: UnitKind,
    additive: bool,
    aggregations: Tuple[str, ...],
    strategy: CalculationStrategy = CalculationStrategy.AVERAGE,
    components: Tuple[MetricType, ...] = (),
) -> MetricDefinition:
    return MetricDefinition(
        display_name=display_name,
        description=description,
        category=category,
        unit=unit,
        additive=additive,
        aggregations=frozenset(aggregations),
        strategy=strategy,
        components=tuple(component.value for component in components),
    )


_REVPAR = _metric(
    "Revenue Per Available Room (RevPAR)", "Revenue divided by total available rooms",
    MetricCategory.REVENUE, UnitKind.CURRENCY, False, ("AVERAGE", "TREND"),
    CalculationStrategy.RATIO, (MetricType.TOTAL_REVENUE, MetricType.AVAILABLE_ROOMS),
)
_ADR = _metric(
    "Average Daily Rate (ADR)", "Average rate charged per occupied room",
    MetricCategory.REVENUE, UnitKind.CURRENCY, False, ("AVERAGE", "TREND", "FORECAST"),
    CalculationStrategy.RATIO, (MetricType.TOTAL_REVENUE, MetricType.OCCUPIED_ROOMS),
)
_TOTAL_REVENUE = _metric(
    "Total Revenue", "Sum of all revenue generated",
    MetricCategory.REVENUE, UnitKind.CURRENCY, True, ("SUM",),
    CalculationStrategy.SUM,
)
_TOTAL_BOOKINGS = _metric(
    "Total Bookings", "Number of bookings made",
    MetricCategory.BOOKING, UnitKind.COUNT, True, ("SUM", "TREND"),
    CalculationStrategy.SUM,
)

METRIC_DEFINITIONS: Dict[MetricType, MetricDefinition] = {
    MetricType.TOTAL_REVENUE: _TOTAL_REVENUE,
    MetricType.REVENUE_TOTAL: _TOTAL_REVENUE,
    MetricType.REVPAR: _REVPAR,
    MetricType.REVENUE_PER_AVAILABLE_ROOM: _REVPAR,
    MetricType.ADR: _ADR,
    MetricType.AVERAGE_DAILY_RATE: _ADR,
    MetricType.REVENUE_PER_OCCUPIED_ROOM: _metric(
        "Revenue Per Occupied Room (RevPOR)", "Revenue divided by occupied rooms",
        MetricCategory.REVENUE, UnitKind.CURRENCY, False, ("AVERAGE", "TREND"),
        CalculationStrategy.RATIO, (MetricType.TOTAL_REVENUE, MetricType.OCCUPIED_ROOMS),
    ),
    MetricType.OCCUPANCY_RATE: _metric(
        "Occupancy Rate", "Percentage of rooms occupied",
        MetricCategory.OCCUPANCY, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND", "FORECAST"),
        CalculationStrategy.PERCENTAGE, (MetricType.OCCUPIED_ROOMS, MetricType.AVAILABLE_ROOMS),
    ),
    MetricType.AVAILABLE_ROOMS: _metric(
        "Available Rooms", "Total number of rooms available",
        MetricCategory.OCCUPANCY, UnitKind.COUNT, True, ("SUM", "AVERAGE"),
        CalculationStrategy.LATEST,
    ),
    MetricType.OCCUPIED_ROOMS: _metric(
        "Occupied Rooms", "Number of rooms occupied",
        MetricCategory.OCCUPANCY, UnitKind.COUNT, True, ("SUM", "AVERAGE", "TREND"),
        CalculationStrategy.SUM,
    ),
    MetricType.ROOM_NIGHTS_SOLD: _metric(
        "Room Nights Sold", "Total room nights sold",
        MetricCategory.OCCUPANCY, UnitKind.COUNT, True, ("SUM", "TREND"),
    ),
    MetricType.TOTAL_BOOKINGS: _TOTAL_BOOKINGS,
    MetricType.BOOKINGS_COUNT: _TOTAL_BOOKINGS,
    MetricType.BOOKING_CONVERSION_RATE: _metric(
        "Booking Conversion Rate", "Percentage of inquiries converted to bookings",
        MetricCategory.BOOKING, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
    ),
    MetricType.AVERAGE_BOOKING_VALUE: _metric(
        "Average Booking Value", "Average value per booking",
        MetricCategory.BOOKING, UnitKind.CURRENCY, False, ("AVERAGE", "TREND"),
    ),
    MetricType.CANCELLATION_RATE: _metric(
        "Cancellation Rate", "Percentage of bookings cancelled",
        MetricCategory.BOOKING, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
        CalculationStrategy.PERCENTAGE,
    ),
    MetricType.NO_SHOW_RATE: _metric(
        "No-Show Rate", "Percentage of bookings with no-shows",
        MetricCategory.BOOKING, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
        CalculationStrategy.PERCENTAGE,
    ),
    MetricType.UNIQUE_GUESTS: _metric(
        "Unique Guests", "Number of unique guests",
        MetricCategory.CUSTOMER, UnitKind.COUNT, True, ("SUM", "TREND"),
    ),
    MetricType.TOTAL_GUESTS: _metric(
        "Total Guests", "Total number of guests",
        MetricCategory.CUSTOMER, UnitKind.COUNT, True, ("SUM", "TREND"),
        CalculationStrategy.SUM,
    ),
    MetricType.GUEST_SATISFACTION_SCORE: _metric(
        "Guest Satisfaction Score", "Average guest satisfaction rating",
        MetricCategory.CUSTOMER, UnitKind.SCORE, False, ("AVERAGE", "TREND"),
        CalculationStrategy.COMPLEX,
    ),
    MetricType.CUSTOMER_LIFETIME_VALUE: _metric(
        "Customer Lifetime Value (CLV)", "Predicted revenue from customer relationship",
        MetricCategory.CUSTOMER, UnitKind.CURRENCY, False, ("AVERAGE", "TREND", "SEGMENT"),
        CalculationStrategy.COMPLEX, (MetricType.TOTAL_REVENUE, MetricType.UNIQUE_GUESTS),
    ),
    MetricType.CUSTOMER_ACQUISITION_COST: _metric(
        "Customer Acquisition Cost (CAC)", "Cost to acquire a new customer",
        MetricCategory.CUSTOMER, UnitKind.CURRENCY, False, ("AVERAGE", "TREND"),
    ),
    MetricType.REPEAT_CUSTOMER_RATE: _metric(
        "Repeat Customer Rate", "Percentage of returning customers",
        MetricCategory.CUSTOMER, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
    ),
    MetricType.CUSTOMER_SATISFACTION_SCORE: _metric(
        "Customer Satisfaction Score", "Average customer satisfaction rating",
        MetricCategory.CUSTOMER, UnitKind.SCORE, False, ("AVERAGE", "TREND"),
    ),
    MetricType.GROSS_OPERATING_PROFIT: _metric(
        "Gross Operating Profit (GOP)", "Revenue minus operating expenses",
        MetricCategory.FINANCIAL, UnitKind.CURRENCY, True, ("SUM", "TREND"),
    ),
    MetricType.PROFIT_MARGIN: _metric(
        "Profit Margin", "Profit as percentage of revenue",
        MetricCategory.FINANCIAL, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
    ),
    MetricType.COST_PER_OCCUPIED_ROOM: _metric(
        "Cost Per Occupied Room (CPOR)", "Operating costs per occupied room",
        MetricCategory.FINANCIAL, UnitKind.CURRENCY, False, ("AVERAGE", "TREND"),
    ),
    MetricType.CHANNEL_REVENUE_CONTRIBUTION: _metric(
        "Channel Revenue Contribution", "Revenue contribution by booking channel",
        MetricCategory.CHANNEL, UnitKind.CURRENCY, True, ("SUM", "PERCENTAGE", "TREND"),
    ),
    MetricType.CHANNEL_BOOKING_COUNT: _metric(
        "Channel Booking Count", "Number of bookings by channel",
        MetricCategory.CHANNEL, UnitKind.COUNT, True, ("SUM", "TREND"),
    ),
    MetricType.CHANNEL_CONVERSION_RATE: _metric(
        "Channel Conversion Rate", "Conversion rate by booking channel",
        MetricCategory.CHANNEL, UnitKind.PERCENTAGE, False, ("AVERAGE", "TREND"),
    ),
    MetricType.MARKET_PENETRATION_INDEX: _metric(
        "Market Penetration Index (MPI)", "Market share relative to competition",
        MetricCategory.MARKET, UnitKind.INDEX, False, ("AVERAGE", "TREND"),
    ),
    MetricType.REVENUE_GENERATION_INDEX: _metric(
        "Revenue Generation Index (RGI)", "Revenue performance vs market",
        MetricCategory.MARKET, UnitKind.INDEX, False, ("AVERAGE", "TREND"),
    ),
    MetricType.COMPETITIVE_SET_PERFORMANCE: _metric(
        "Competitive Set Performance", "Performance vs competitive set",
        MetricCategory.MARKET, UnitKind.INDEX, False, ("AVERAGE", "TREND"),
    ),
}
