"""Maps decoded vehicle attributes to a maintenance category."""

import enum
from typing import Optional


class VehicleCategory(str, enum.Enum):
    """Maintenance profile category."""

    TRUCK = "truck"
    SUV = "suv"
    SEDAN = "sedan"
    HYBRID = "hybrid"
    ELECTRIC = "electric"
    VAN = "van"
    SPORTS = "sports"
    LUXURY = "luxury"
    UNKNOWN = "unknown"


def _contains_any(value: str, needles) -> bool:
    return any(needle in value for needle in needles)


def determine_vehicle_category(
    body_class: Optional[str],
    vehicle_type: Optional[str],
    fuel_type: Optional[str],
) -> VehicleCategory:
    """
    Determine the vehicle category from body class, vehicle type and fuel type.

    Checks run in a fixed order and the first match wins, so fuel-derived
    categories always beat body-derived ones ("Hybrid Electric" truck is a
    hybrid). Never fails; UNKNOWN is a valid result.
    """
    body = (body_class or "").lower()
    vtype = (vehicle_type or "").lower()
    fuel = (fuel_type or "").lower()

    # Powertrain first
    if "electric" in fuel and "hybrid" not in fuel:
        return VehicleCategory.ELECTRIC
    if _contains_any(fuel, ("hybrid", "plug-in")):
        return VehicleCategory.HYBRID

    # Body class / vehicle type
    if "truck" in body or "truck" in vtype:
        return VehicleCategory.TRUCK
    if _contains_any(body, ("suv", "sport utility", "multipurpose")) or _contains_any(
        vtype, ("suv", "sport utility", "multipurpose")
    ):
        return VehicleCategory.SUV
    if "van" in body or "van" in vtype:
        return VehicleCategory.VAN
    if _contains_any(body, ("convertible", "coupe", "roadster", "sports")):
        return VehicleCategory.SPORTS
    if _contains_any(body, ("sedan", "hatchback", "wagon", "passenger")) or _contains_any(
        vtype, ("sedan", "hatchback", "wagon", "passenger")
    ):
        return VehicleCategory.SEDAN

    return VehicleCategory.UNKNOWN
