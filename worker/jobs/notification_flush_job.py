"""Pending notification flush pass."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from motorai.models import Notification
from motorai.models.notification import NotificationChannel, NotificationStatus
from motorai.services.notification_service import (
    NotificationRecipient,
    NotificationTransport,
    deliver_notification,
    recipient_for,
)
from motorai.utils.dates import utcnow
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from worker.jobs import PassResult

logger = logging.getLogger(__name__)

PASS_NAME = "notification_flush"


@dataclass
class _PendingNotification:
    notification_id: int
    channel: NotificationChannel
    recipient: NotificationRecipient
    subject: str
    message: str


async def _set_status(
    db: AsyncSession,
    notification_id: int,
    status: NotificationStatus,
    now: datetime,
    error_message: Optional[str] = None,
) -> None:
    values = {"status": status, "updated_at": now, "error_message": error_message}
    if status == NotificationStatus.SENT:
        values["sent_at"] = now
    await db.execute(
        update(Notification).where(Notification.id == notification_id).values(**values)
    )
    await db.commit()


async def _settle_after_error(
    db: AsyncSession,
    notification_id: int,
    delivered: bool,
    now: datetime,
    error: Exception,
) -> bool:
    """Record a final status for a row whose flush raised. Returns True if it ended up sent."""
    status = NotificationStatus.SENT if delivered else NotificationStatus.FAILED
    try:
        await _set_status(
            db,
            notification_id,
            status,
            now,
            error_message=None if delivered else str(error),
        )
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Could not record {status.value} for notification {notification_id}: {e}",
            exc_info=True,
        )
        return False
    return delivered


async def send_pending_notifications(
    session_maker: async_sessionmaker,
    transport: NotificationTransport,
    now: Optional[datetime] = None,
    batch_size: int = 50,
) -> PassResult:
    """
    Deliver pending notifications whose scheduled time has arrived.

    Oldest first, at most batch_size per pass. Delivery is attempted once;
    a failure (returned or raised) marks the row failed with the error.
    """
    now = now or utcnow()
    result = PassResult(name=PASS_NAME)

    logger.info("Running pending notification flush...")

    try:
        async with session_maker() as db:
            query = (
                select(Notification)
                .where(
                    Notification.status == NotificationStatus.PENDING,
                    Notification.scheduled_at <= now,
                )
                .options(selectinload(Notification.customer))
                .order_by(Notification.scheduled_at, Notification.id)
                .limit(batch_size)
            )
            notifications = (await db.execute(query)).scalars().all()
            pending = [
                _PendingNotification(
                    notification_id=notification.id,
                    channel=notification.channel,
                    recipient=recipient_for(notification.customer),
                    subject=notification.subject or "",
                    message=notification.message or "",
                )
                for notification in notifications
            ]
            logger.info(f"Found {len(pending)} pending notifications")

            for item in pending:
                result.processed += 1
                delivered = False
                try:
                    sent = await deliver_notification(
                        transport, item.channel, item.recipient, item.subject, item.message
                    )
                    delivered = sent.success
                    if sent.success:
                        await _set_status(db, item.notification_id, NotificationStatus.SENT, now)
                        result.succeeded += 1
                    else:
                        logger.warning(
                            f"Notification {item.notification_id} failed: {sent.error}"
                        )
                        await _set_status(
                            db,
                            item.notification_id,
                            NotificationStatus.FAILED,
                            now,
                            error_message=sent.error,
                        )
                        result.failed += 1
                except Exception as e:
                    await db.rollback()
                    logger.error(
                        f"Failed to flush notification {item.notification_id}: {e}",
                        exc_info=True,
                    )
                    # A row left pending would be delivered again on the next pass
                    if await _settle_after_error(db, item.notification_id, delivered, now, e):
                        result.succeeded += 1
                    else:
                        result.failed += 1

    except Exception as e:
        logger.error(f"Error in notification flush: {e}", exc_info=True)
        result.error = str(e)

    logger.info(
        f"Notification flush completed: {result.succeeded} sent, {result.failed} failed"
    )
    return result
