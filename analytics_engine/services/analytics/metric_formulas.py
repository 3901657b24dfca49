"""
Named formulas for percentage, ratio and complex metrics.

Each formula reads raw figures through the external data gateway and
guards every divisor, returning zero instead of raising.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional
from uuid import UUID

from analytics_engine.core.utils import HUNDRED, ZERO, safe_divide
from analytics_engine.repositories.external_data import ExternalDataGateway
from analytics_engine.schemas.analytics.metric_type import MetricType

__all__ = [
    "FormulaInputs",
    "MetricFormula",
    "FORMULAS",
    "formula_for",
]


@dataclass(frozen=True)
class FormulaInputs:
    gateway: ExternalDataGateway
    entity_id: UUID
    period_start: datetime
    period_end: datetime
    places: int = 4

    def figure(self, name: str) -> Decimal:
        return self.gateway.figure(name, self.entity_id, self.period_start, self.period_end)

    def entity_figure(self, name: str) -> Decimal:
        """Figures that do not depend on the window (room inventory, guest lifespan)."""
        return self.gateway.figure(name, self.entity_id)

    @property
    def nights(self) -> int:
        """Whole days covered by the window."""
        return (self.period_end - self.period_start).days


MetricFormula = Callable[[FormulaInputs], Decimal]


def _rate(part: Decimal, whole: Decimal, places: int) -> Decimal:
    if whole == ZERO:
        return ZERO
    return safe_divide(part, whole, places) * HUNDRED


def occupancy_rate(inputs: FormulaInputs) -> Decimal:
    return _rate(
        inputs.figure("occupied_rooms_count"),
        inputs.entity_figure("total_rooms_count"),
        inputs.places,
    )


def cancellation_rate(inputs: FormulaInputs) -> Decimal:
    return _rate(
        inputs.figure("cancelled_bookings_count"),
        inputs.figure("total_bookings_count"),
        inputs.places,
    )


def no_show_rate(inputs: FormulaInputs) -> Decimal:
    return _rate(
        inputs.figure("no_show_bookings_count"),
        inputs.figure("total_bookings_count"),
        inputs.places,
    )


def revpar(inputs: FormulaInputs) -> Decimal:
    """Revenue / (rooms x nights in the window)."""
    rooms = inputs.entity_figure("total_rooms_count")
    nights = inputs.nights
    if rooms == ZERO or nights == 0:
        return ZERO
    return safe_divide(inputs.figure("total_revenue"), rooms * nights, inputs.places)


def revenue_per_occupied_room(inputs: FormulaInputs) -> Decimal:
    return safe_divide(
        inputs.figure("total_revenue"),
        inputs.figure("occupied_rooms_count"),
        inputs.places,
    )


def customer_lifetime_value(inputs: FormulaInputs) -> Decimal:
    return (
        inputs.figure("average_revenue_per_guest")
        * inputs.figure("average_stay_frequency")
        * inputs.entity_figure("average_guest_lifespan")
    )


def guest_satisfaction(inputs: FormulaInputs) -> Decimal:
    return inputs.figure("average_guest_rating")


FORMULAS: Dict[MetricType, MetricFormula] = {
    MetricType.OCCUPANCY_RATE: occupancy_rate,
    MetricType.CANCELLATION_RATE: cancellation_rate,
    MetricType.NO_SHOW_RATE: no_show_rate,
    MetricType.REVPAR: revpar,
    MetricType.REVENUE_PER_AVAILABLE_ROOM: revpar,
    # ADR and RevPOR share the same definition here
    MetricType.ADR: revenue_per_occupied_room,
    MetricType.AVERAGE_DAILY_RATE: revenue_per_occupied_room,
    MetricType.REVENUE_PER_OCCUPIED_ROOM: revenue_per_occupied_room,
    MetricType.CUSTOMER_LIFETIME_VALUE: customer_lifetime_value,
    MetricType.GUEST_SATISFACTION_SCORE: guest_satisfaction,
}


def formula_for(metric_type: MetricType) -> Optional[MetricFormula]:
    return FORMULAS.get(metric_type)
