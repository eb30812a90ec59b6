"""Decode, classify and schedule a stored vehicle in one step."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

import httpx
from motorai.models.service_schedule import ServiceSchedule
from motorai.models.vehicle import Vehicle
from motorai.services.service_intervals import ServiceIntervalProfile, get_service_intervals
from motorai.services.service_schedule import create_service_schedule
from motorai.services.vehicle_category import VehicleCategory, determine_vehicle_category
from motorai.services.vin_decoder import VinDecodeError, VinDecodeResult, decode_vin
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = (
    "make",
    "model",
    "year",
    "engine_model",
    "fuel_type",
    "drive_type",
    "vehicle_type",
    "body_class",
)


@dataclass
class VehicleProfileResult:
    """Outcome of profiling one vehicle."""

    vehicle_id: int
    success: bool
    category: Optional[VehicleCategory] = None
    profile: Optional[ServiceIntervalProfile] = None
    schedule: Optional[ServiceSchedule] = None
    decode: Optional[VinDecodeResult] = None
    error: Optional[VinDecodeError] = None
    message: str = ""


def apply_identity(vehicle: Vehicle, decoded: VinDecodeResult) -> VehicleCategory:
    """Store decoded attributes on the vehicle and return its category.

    Attributes the provider did not return are stored as unknown (None)
    rather than keeping stale values from an earlier decode.
    """
    for field_name in IDENTITY_FIELDS:
        setattr(vehicle, field_name, getattr(decoded, field_name))

    category = determine_vehicle_category(
        decoded.body_class, decoded.vehicle_type, decoded.fuel_type
    )
    vehicle.category = category.value
    return category


async def profile_vehicle(
    db: AsyncSession,
    vehicle: Vehicle,
    last_service_date: Optional[date] = None,
    client: Optional[httpx.AsyncClient] = None,
    today: Optional[date] = None,
) -> VehicleProfileResult:
    """
    Decode a vehicle's VIN and (re)build its maintenance schedule.

    Args:
        db: Database session
        vehicle: Stored vehicle to profile
        last_service_date: Anchor for the schedule (defaults to today)
        client: Optional HTTP client for the NHTSA lookup
        today: Override for "today"

    Returns:
        VehicleProfileResult. On a decode failure the vehicle and its
        schedule are left untouched and the failure is reported.
    """
    vehicle_id = vehicle.id
    current_mileage = vehicle.current_mileage
    decoded = await decode_vin(vehicle.vin, client=client)
    if not decoded.success:
        logger.warning(f"Cannot profile vehicle {vehicle_id}: {decoded.error_message}")
        return VehicleProfileResult(
            vehicle_id=vehicle_id,
            success=False,
            decode=decoded,
            error=decoded.error,
            message=decoded.error_message or "VIN decode failed",
        )

    category = apply_identity(vehicle, decoded)
    today = today or date.today()
    profile = get_service_intervals(category, decoded.year, current_year=today.year)

    schedule = await create_service_schedule(
        db,
        vehicle_id,
        category,
        profile,
        last_service_date=last_service_date,
        current_mileage=current_mileage,
        today=today,
    )

    logger.info(f"Profiled vehicle {vehicle_id} as {category.value}")
    return VehicleProfileResult(
        vehicle_id=vehicle_id,
        success=True,
        category=category,
        profile=profile,
        schedule=schedule,
        decode=decoded,
        message=f"Vehicle profiled as {category.value}",
    )
