"""Service-due reminder pass."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from motorai.models import Customer, Notification, Vehicle
from motorai.models.notification import NotificationChannel, NotificationStatus, NotificationType
from motorai.services.notification_service import (
    NotificationRecipient,
    NotificationTransport,
    build_service_reminder_message,
    create_notification_record,
    deliver_notification,
    has_recent_notification,
    recipient_for,
    resolve_channel,
)
from motorai.services.service_catalog import (
    Priority,
    ServiceHistoryEntry,
    ServiceRecommendation,
    VehicleData,
    get_service_recommendations,
)
from motorai.utils.dates import utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from worker.jobs import PassResult

logger = logging.getLogger(__name__)

PASS_NAME = "service_reminders"
REMINDER_PRIORITIES = (Priority.CRITICAL, Priority.HIGH)


@dataclass
class _VehicleSnapshot:
    vehicle_id: int
    vin: str
    name: str
    customer_id: int
    channel: NotificationChannel
    recipient: NotificationRecipient
    data: VehicleData
    history: List[ServiceHistoryEntry]


def _snapshot(vehicle: Vehicle) -> _VehicleSnapshot:
    customer: Customer = vehicle.customer
    history = [
        ServiceHistoryEntry(
            service_type=record.service_type,
            service_date=record.service_date,
            mileage=record.mileage,
        )
        for record in vehicle.service_history
        if record.status == "completed"
    ]
    return _VehicleSnapshot(
        vehicle_id=vehicle.id,
        vin=vehicle.vin,
        name=vehicle.display_name or vehicle.vin,
        customer_id=customer.id,
        channel=resolve_channel(customer),
        recipient=recipient_for(customer),
        data=VehicleData(
            make=vehicle.make,
            model=vehicle.model,
            year=vehicle.year,
            mileage=vehicle.current_mileage,
            engine_type=vehicle.engine_model,
        ),
        history=history,
    )


def needs_reminder(recommendation: ServiceRecommendation) -> bool:
    return recommendation.overdue or recommendation.priority in REMINDER_PRIORITIES


async def check_due_services(
    session_maker: async_sessionmaker,
    transport: NotificationTransport,
    now: Optional[datetime] = None,
    cooldown_days: int = 7,
    upcoming_limit: int = 3,
) -> PassResult:
    """
    Create service reminders for vehicles with overdue or high-priority work.

    A customer who already received a service reminder inside the cool-down
    window is skipped. Reminders containing an overdue critical item are
    delivered immediately and stored as sent/failed; all others are stored
    pending for the flush pass.
    """
    now = now or utcnow()
    today = now.date()
    cooldown = timedelta(days=cooldown_days)
    result = PassResult(name=PASS_NAME)

    logger.info("Running service reminder pass...")

    try:
        async with session_maker() as db:
            query = (
                select(Vehicle)
                .join(Customer, Vehicle.customer_id == Customer.id)
                .where(
                    Vehicle.status == "active",
                    Vehicle.current_mileage.is_not(None),
                    Customer.receive_reminders.is_(True),
                )
                .options(selectinload(Vehicle.customer), selectinload(Vehicle.service_history))
                .order_by(Vehicle.id)
            )
            vehicles = (await db.execute(query)).scalars().all()

            # Plain copies survive the rollbacks of failed items
            snapshots = [_snapshot(vehicle) for vehicle in vehicles]
            logger.info(f"Found {len(snapshots)} vehicles to evaluate")

            for snapshot in snapshots:
                result.processed += 1
                try:
                    outcome = await _remind_vehicle(
                        db, transport, snapshot, now, today, cooldown, upcoming_limit
                    )
                except Exception as e:
                    await db.rollback()
                    result.failed += 1
                    logger.error(
                        f"Failed to process service reminder for vehicle {snapshot.vehicle_id}: {e}",
                        exc_info=True,
                    )
                    continue

                if outcome is None:
                    result.skipped += 1
                elif outcome.status == NotificationStatus.FAILED:
                    result.failed += 1
                else:
                    result.succeeded += 1

    except Exception as e:
        logger.error(f"Error in service reminder pass: {e}", exc_info=True)
        result.error = str(e)

    logger.info(
        f"Service reminder pass completed: {result.succeeded} created, "
        f"{result.skipped} skipped, {result.failed} failed"
    )
    return result


async def _remind_vehicle(
    db: AsyncSession,
    transport: NotificationTransport,
    snapshot: _VehicleSnapshot,
    now: datetime,
    today: date,
    cooldown: timedelta,
    upcoming_limit: int,
) -> Optional[Notification]:
    recommendations = [
        rec
        for rec in get_service_recommendations(snapshot.data, snapshot.history, today=today)
        if needs_reminder(rec)
    ]
    if not recommendations:
        return None

    if await has_recent_notification(
        db, snapshot.customer_id, NotificationType.SERVICE_REMINDER, cooldown, now=now
    ):
        logger.info(
            f"Skipping vehicle {snapshot.vehicle_id}: customer {snapshot.customer_id} "
            f"was reminded within the last {cooldown.days} days"
        )
        return None

    subject, message = build_service_reminder_message(
        snapshot.name, recommendations, upcoming_limit=upcoming_limit
    )
    details = {
        "vehicle_id": snapshot.vehicle_id,
        "vin": snapshot.vin,
        "vehicle": snapshot.name,
        "recommendations": [rec.to_dict() for rec in recommendations],
    }

    critical = any(rec.overdue and rec.priority == Priority.CRITICAL for rec in recommendations)
    if not critical:
        return await create_notification_record(
            db,
            snapshot.customer_id,
            NotificationType.SERVICE_REMINDER,
            snapshot.channel,
            subject,
            message,
            details=details,
            scheduled_at=now,
            now=now,
        )

    logger.info(f"Vehicle {snapshot.vehicle_id} has critical overdue service, sending now")
    sent = await deliver_notification(
        transport, snapshot.channel, snapshot.recipient, subject, message
    )
    return await create_notification_record(
        db,
        snapshot.customer_id,
        NotificationType.SERVICE_REMINDER,
        snapshot.channel,
        subject,
        message,
        details=details,
        status=NotificationStatus.SENT if sent.success else NotificationStatus.FAILED,
        scheduled_at=now,
        sent_at=now if sent.success else None,
        error_message=sent.error,
        now=now,
    )
