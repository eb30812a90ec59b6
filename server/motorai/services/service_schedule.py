"""
Per-vehicle maintenance schedule state.

A schedule keeps, for each tier, the anchor (last completed service) and
the projected next-due date/mileage computed from the interval snapshot
taken when the vehicle was profiled.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple, Union

from motorai.models.service_schedule import TIER_ORDER, ScheduleTier, ServiceSchedule, ServiceTier
from motorai.services.service_intervals import ServiceIntervalProfile
from motorai.services.urgency import UpcomingService, evaluate_schedule
from motorai.services.vehicle_category import VehicleCategory
from motorai.utils.dates import add_months
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = logging.getLogger(__name__)


def project_next_due(
    anchor_date: Optional[date],
    anchor_mileage: Optional[int],
    interval_miles: Optional[int],
    interval_months: Optional[int],
) -> Tuple[Optional[date], Optional[int]]:
    """Next-due (date, mileage) from an anchor; None where not computable."""
    next_date = None
    if anchor_date is not None and interval_months:
        next_date = add_months(anchor_date, interval_months)

    next_mileage = None
    if anchor_mileage is not None and interval_miles:
        next_mileage = anchor_mileage + interval_miles

    return next_date, next_mileage


async def get_service_schedule(db: AsyncSession, vehicle_id: int) -> Optional[ServiceSchedule]:
    """Load a vehicle's schedule with its tier rows."""
    result = await db.execute(
        select(ServiceSchedule)
        .where(ServiceSchedule.vehicle_id == vehicle_id)
        .options(selectinload(ServiceSchedule.tiers))
    )
    return result.scalar_one_or_none()


async def create_service_schedule(
    db: AsyncSession,
    vehicle_id: int,
    category: Union[VehicleCategory, str],
    profile: ServiceIntervalProfile,
    last_service_date: Optional[date] = None,
    current_mileage: Optional[int] = None,
    today: Optional[date] = None,
) -> ServiceSchedule:
    """
    Create or refresh the schedule for a vehicle.

    Args:
        db: Database session
        vehicle_id: Vehicle the schedule belongs to
        category: Vehicle category the profile was built for
        profile: Interval profile to snapshot
        last_service_date: Anchor date (defaults to today)
        current_mileage: Anchor mileage (mileage projections are skipped
            when unknown)
        today: Override for "today"

    Returns:
        The upserted schedule. An existing schedule has every field
        overwritten, including the per-tier anchors.
    """
    category = VehicleCategory(category)
    anchor_date = last_service_date or today or date.today()

    schedule = await get_service_schedule(db, vehicle_id)
    if schedule is None:
        schedule = ServiceSchedule(vehicle_id=vehicle_id, tiers=[])
        db.add(schedule)
        logger.info(f"Creating service schedule for vehicle {vehicle_id} ({category.value})")
    else:
        logger.info(f"Refreshing service schedule for vehicle {vehicle_id} ({category.value})")

    schedule.vehicle_category = category.value
    schedule.interval_config = profile.to_dict()

    for tier in TIER_ORDER:
        interval = profile.tier(tier)
        row = schedule.get_tier(tier)
        if row is None:
            row = ScheduleTier(tier=tier)
            schedule.tiers.append(row)

        row.interval_miles = interval.miles
        row.interval_months = interval.months

        if interval.is_tracked:
            row.last_service_date = anchor_date
            row.last_service_mileage = current_mileage
        else:
            row.last_service_date = None
            row.last_service_mileage = None

        row.next_due_date, row.next_due_mileage = project_next_due(
            anchor_date, current_mileage, interval.miles, interval.months
        )

    await db.commit()
    return await get_service_schedule(db, vehicle_id)


async def advance_service_schedule(
    db: AsyncSession,
    vehicle_id: int,
    tier: Union[ServiceTier, str],
    completed_on: date,
    mileage: Optional[int] = None,
) -> Optional[ServiceSchedule]:
    """
    Re-anchor one tier after its service was completed.

    Only the given tier is recomputed, from its stored interval snapshot;
    the other tiers keep their projections. When the completion mileage is
    unknown the tier's next-due mileage is cleared rather than left stale.

    Returns:
        The updated schedule, or None if the vehicle has no schedule yet.
    """
    tier = ServiceTier(tier)
    schedule = await get_service_schedule(db, vehicle_id)
    if schedule is None:
        logger.warning(f"No service schedule for vehicle {vehicle_id}; nothing to advance")
        return None

    row = schedule.get_tier(tier)
    if row is None:
        logger.warning(f"Schedule for vehicle {vehicle_id} has no {tier.value} tier")
        return schedule

    row.last_service_date = completed_on
    row.last_service_mileage = mileage
    row.next_due_date, row.next_due_mileage = project_next_due(
        completed_on, mileage, row.interval_miles, row.interval_months
    )

    await db.commit()
    logger.info(
        f"Advanced {tier.value} for vehicle {vehicle_id}: next due "
        f"{row.next_due_date} / {row.next_due_mileage} mi"
    )
    return await get_service_schedule(db, vehicle_id)


async def get_upcoming_services(
    db: AsyncSession,
    vehicle_id: int,
    current_mileage: Optional[int] = None,
    today: Optional[date] = None,
) -> List[UpcomingService]:
    """Urgency-sorted tier status for a vehicle (empty without a schedule)."""
    schedule = await get_service_schedule(db, vehicle_id)
    return evaluate_schedule(schedule, current_mileage=current_mileage, today=today)
