"""Three-tier warranty price estimates.

Everything in this module is a pure function of its arguments. The calendar
year is passed in by the caller so results never depend on the clock.
"""
import math
from typing import Dict, List

from autoprotect.core.enums import PlanType
from autoprotect.schemas.quote import (
    CoverageSelection,
    LocationFacts,
    PlanPrice,
    PlanPrices,
    PricingEstimate,
    VehicleFacts,
)

BASE_PRICING: Dict[PlanType, Dict[str, int]] = {
    PlanType.POWERTRAIN: {"monthly": 79, "total": 948},
    PlanType.GOLD: {"monthly": 129, "total": 1548},
    PlanType.PLATINUM: {"monthly": 199, "total": 2388},
}

PLAN_FEATURES: Dict[PlanType, List[str]] = {
    PlanType.POWERTRAIN: [
        "Engine & transmission coverage",
        "24/7 roadside assistance",
        "Nationwide service network",
        "Rental car coverage",
    ],
    PlanType.GOLD: [
        "Everything in Powertrain",
        "Air conditioning & heating",
        "Electrical system coverage",
        "Fuel system protection",
        "Enhanced rental coverage",
    ],
    PlanType.PLATINUM: [
        "Everything in Gold",
        "High-tech component coverage",
        "EV battery protection",
        "Wear & tear items included",
        "Premium roadside assistance",
    ],
}

DISCLAIMERS: List[str] = [
    "Coverage varies by plan and vehicle.",
    "Waiting period and exclusions may apply.",
    "Prices shown are estimates and may vary based on final underwriting.",
    "Terms and conditions apply.",
]

# Exact, case-sensitive match on the two-letter code.
HIGH_COST_STATES = frozenset({"CA", "NY", "FL"})

NEW_VEHICLE_MAX_AGE = 3
OLD_VEHICLE_MIN_AGE = 10
HIGH_MILEAGE = 100000
LOW_MILEAGE = 30000

PLATINUM_MAX_AGE = 3
PLATINUM_MAX_ODOMETER = 50000
POWERTRAIN_MIN_AGE = 8
POWERTRAIN_MIN_ODOMETER = 80000


def round_half_up(value: float) -> int:
    # Halves round toward +infinity, never to even.
    return int(math.floor(value + 0.5))


def age_multiplier(vehicle_age: int) -> float:
    if vehicle_age <= NEW_VEHICLE_MAX_AGE:
        return 0.9
    if vehicle_age >= OLD_VEHICLE_MIN_AGE:
        return 1.3
    return 1.0


def mileage_multiplier(odometer: int) -> float:
    if odometer > HIGH_MILEAGE:
        return 1.2
    if odometer < LOW_MILEAGE:
        return 0.95
    return 1.0


def location_multiplier(state: str) -> float:
    return 1.1 if state in HIGH_COST_STATES else 1.0


def recommend_plan(vehicle_age: int, odometer: int) -> PlanType:
    if vehicle_age <= PLATINUM_MAX_AGE and odometer < PLATINUM_MAX_ODOMETER:
        return PlanType.PLATINUM
    if vehicle_age >= POWERTRAIN_MIN_AGE or odometer > POWERTRAIN_MIN_ODOMETER:
        return PlanType.POWERTRAIN
    return PlanType.GOLD


def plan_features(plan: PlanType) -> List[str]:
    return list(PLAN_FEATURES[PlanType(plan)])


def _price_plan(plan: PlanType, multiplier: float) -> PlanPrice:
    base = BASE_PRICING[plan]
    return PlanPrice(
        monthly=round_half_up(base["monthly"] * multiplier),
        total=round_half_up(base["total"] * multiplier),
        features=plan_features(plan),
    )


def calculate_quote(
    vehicle: VehicleFacts,
    coverage: CoverageSelection,
    location: LocationFacts,
    *,
    current_year: int,
) -> PricingEstimate:
    """Price all three plans for a vehicle.

    ``coverage`` is accepted for interface parity; neither the requested plan
    nor the deductible changes the result. Every plan is always priced.
    """
    vehicle_age = current_year - vehicle.year

    multiplier = (
        age_multiplier(vehicle_age)
        * mileage_multiplier(vehicle.odometer)
        * location_multiplier(location.state)
    )

    return PricingEstimate(
        plans=PlanPrices(
            powertrain=_price_plan(PlanType.POWERTRAIN, multiplier),
            gold=_price_plan(PlanType.GOLD, multiplier),
            platinum=_price_plan(PlanType.PLATINUM, multiplier),
        ),
        recommended=recommend_plan(vehicle_age, vehicle.odometer),
        disclaimers=list(DISCLAIMERS),
    )
