"""
Category and age based maintenance interval profiles.

Intervals follow general manufacturer recommendations:
- Electric vehicles have no oil change tier at all
- Hybrids are easier on the engine and stretch intervals
- Trucks, vans and sports cars get shorter oil intervals
- Vehicles older than five years get tighter mileage intervals
"""

import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Optional, Union

from motorai.models.service_schedule import TIER_ORDER, ServiceTier
from motorai.services.vehicle_category import VehicleCategory


@dataclass(frozen=True)
class TierInterval:
    """Mileage and time interval for one tier. None means the tier is not used."""

    miles: Optional[int]
    months: Optional[int]

    @property
    def is_tracked(self) -> bool:
        return self.miles is not None or self.months is not None


@dataclass(frozen=True)
class ServiceIntervalProfile:
    """Three-tier interval table for a category, already age adjusted."""

    category: VehicleCategory
    oil_change: TierInterval
    minor_service: TierInterval
    major_service: TierInterval

    def tier(self, tier: ServiceTier) -> TierInterval:
        return getattr(self, tier.value)

    def to_dict(self) -> Dict[str, Dict[str, Optional[int]]]:
        """JSON-friendly snapshot stored alongside a schedule."""
        snapshot = {"category": self.category.value}
        for tier in TIER_ORDER:
            interval = self.tier(tier)
            snapshot[tier.value] = {"miles": interval.miles, "months": interval.months}
        return snapshot


NO_INTERVAL = TierInterval(miles=None, months=None)

BASE_INTERVALS: Dict[VehicleCategory, ServiceIntervalProfile] = {
    VehicleCategory.ELECTRIC: ServiceIntervalProfile(
        category=VehicleCategory.ELECTRIC,
        oil_change=NO_INTERVAL,  # No oil in electric vehicles
        minor_service=TierInterval(15000, 12),  # Tire rotation, brake check, fluid top-off
        major_service=TierInterval(75000, 48),  # Battery inspection, coolant, brake system
    ),
    VehicleCategory.HYBRID: ServiceIntervalProfile(
        category=VehicleCategory.HYBRID,
        oil_change=TierInterval(10000, 12),
        minor_service=TierInterval(20000, 18),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.TRUCK: ServiceIntervalProfile(
        category=VehicleCategory.TRUCK,
        oil_change=TierInterval(5000, 6),  # Harder use
        minor_service=TierInterval(15000, 12),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.SUV: ServiceIntervalProfile(
        category=VehicleCategory.SUV,
        oil_change=TierInterval(6000, 6),
        minor_service=TierInterval(18000, 12),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.VAN: ServiceIntervalProfile(
        category=VehicleCategory.VAN,
        oil_change=TierInterval(5000, 6),
        minor_service=TierInterval(15000, 12),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.SPORTS: ServiceIntervalProfile(
        category=VehicleCategory.SPORTS,
        oil_change=TierInterval(5000, 6),
        minor_service=TierInterval(15000, 12),
        major_service=TierInterval(50000, 30),
    ),
    VehicleCategory.LUXURY: ServiceIntervalProfile(
        category=VehicleCategory.LUXURY,
        oil_change=TierInterval(7500, 12),
        minor_service=TierInterval(20000, 18),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.SEDAN: ServiceIntervalProfile(
        category=VehicleCategory.SEDAN,
        oil_change=TierInterval(7500, 12),
        minor_service=TierInterval(20000, 18),
        major_service=TierInterval(60000, 36),
    ),
    VehicleCategory.UNKNOWN: ServiceIntervalProfile(
        category=VehicleCategory.UNKNOWN,
        oil_change=TierInterval(5000, 6),  # Conservative defaults
        minor_service=TierInterval(15000, 12),
        major_service=TierInterval(60000, 36),
    ),
}


def age_mileage_factor(vehicle_age: int) -> float:
    """Mileage multiplier for a vehicle's age in years."""
    if vehicle_age > 10:
        return 0.8
    if vehicle_age > 5:
        return 0.9
    return 1.0


def _scale(miles: Optional[int], factor: float) -> Optional[int]:
    if miles is None or factor == 1.0:
        return miles
    # Round half up
    return int(math.floor(miles * factor + 0.5))


def get_service_intervals(
    category: Union[VehicleCategory, str],
    model_year: Optional[int] = None,
    current_year: Optional[int] = None,
) -> ServiceIntervalProfile:
    """
    Get recommended service intervals for a category and model year.

    Args:
        category: Vehicle category (enum or its string value)
        model_year: Model year, None when unknown (treated as age 0)
        current_year: Year to measure age against (defaults to this year)

    Returns:
        A fresh ServiceIntervalProfile. Only mileage components are
        tightened for older vehicles; month components never change.
    """
    category = VehicleCategory(category)
    current_year = current_year or date.today().year
    vehicle_age = current_year - model_year if model_year else 0

    base = BASE_INTERVALS[category]
    factor = age_mileage_factor(vehicle_age)
    if factor == 1.0:
        return base

    return replace(
        base,
        **{
            tier.value: replace(base.tier(tier), miles=_scale(base.tier(tier).miles, factor))
            for tier in TIER_ORDER
        },
    )
