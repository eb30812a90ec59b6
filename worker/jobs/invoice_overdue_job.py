"""Overdue invoice pass."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from motorai.config import settings as app_settings
from motorai.models import Invoice
from motorai.models.invoice import InvoiceStatus
from motorai.models.notification import NotificationChannel, NotificationStatus, NotificationType
from motorai.services.notification_service import (
    NotificationRecipient,
    NotificationTransport,
    create_notification_record,
    deliver_notification,
    has_recent_notification,
    recipient_for,
    resolve_channel,
)
from motorai.utils.dates import days_between, utcnow
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from worker.jobs import PassResult

logger = logging.getLogger(__name__)

PASS_NAME = "overdue_invoices"


@dataclass
class _OverdueInvoice:
    invoice_id: int
    invoice_number: str
    total: Decimal
    due_date: date
    customer_id: int
    channel: NotificationChannel
    recipient: NotificationRecipient


def build_invoice_notice(
    invoice_number: str, total: Decimal, due_date: date, days_overdue: int
) -> Tuple[str, str]:
    """Subject and body of the payment reminder."""
    day_word = "day" if days_overdue == 1 else "days"
    subject = f"Payment Reminder - Invoice {invoice_number}"
    message = (
        f"Invoice {invoice_number} for ${Decimal(total):.2f} was due on "
        f"{due_date.strftime('%B %d, %Y')} and is now {days_overdue} {day_word} overdue. "
        f"Please contact {app_settings.SERVICE_CENTER_NAME} to arrange payment."
    )
    return subject, message


async def check_overdue_invoices(
    session_maker: async_sessionmaker,
    transport: NotificationTransport,
    now: Optional[datetime] = None,
    cooldown_days: int = 3,
) -> PassResult:
    """
    Mark sent invoices past their due date as overdue and notify the customer.

    Every such invoice is marked overdue. The courtesy notice goes out at
    most once per customer per cool-down window and is recorded as an
    invoice notification; a suppressed notice counts as skipped.
    """
    now = now or utcnow()
    today = now.date()
    cooldown = timedelta(days=cooldown_days)
    result = PassResult(name=PASS_NAME)

    logger.info("Running overdue invoice pass...")

    try:
        async with session_maker() as db:
            query = (
                select(Invoice)
                .where(Invoice.status == InvoiceStatus.SENT, Invoice.due_date < today)
                .options(selectinload(Invoice.customer))
                .order_by(Invoice.due_date, Invoice.id)
            )
            invoices = (await db.execute(query)).scalars().all()
            overdue = [
                _OverdueInvoice(
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    total=invoice.total,
                    due_date=invoice.due_date,
                    customer_id=invoice.customer_id,
                    channel=resolve_channel(invoice.customer),
                    recipient=recipient_for(invoice.customer),
                )
                for invoice in invoices
            ]
            logger.info(f"Found {len(overdue)} overdue invoices")

            for item in overdue:
                result.processed += 1
                try:
                    notified = await _process_invoice(db, transport, item, now, today, cooldown)
                except Exception as e:
                    await db.rollback()
                    result.failed += 1
                    logger.error(
                        f"Failed to process overdue invoice {item.invoice_number}: {e}",
                        exc_info=True,
                    )
                    continue

                if notified is None:
                    result.skipped += 1
                elif notified:
                    result.succeeded += 1
                else:
                    result.failed += 1

    except Exception as e:
        logger.error(f"Error in overdue invoice pass: {e}", exc_info=True)
        result.error = str(e)

    logger.info(
        f"Overdue invoice pass completed: {result.succeeded} notified, "
        f"{result.skipped} skipped, {result.failed} failed"
    )
    return result


async def _process_invoice(
    db: AsyncSession,
    transport: NotificationTransport,
    item: _OverdueInvoice,
    now: datetime,
    today: date,
    cooldown: timedelta,
) -> Optional[bool]:
    """Returns None when the notice was suppressed, else whether it was delivered."""
    await db.execute(
        update(Invoice)
        .where(Invoice.id == item.invoice_id)
        .values(status=InvoiceStatus.OVERDUE, updated_at=now)
    )
    await db.commit()
    logger.info(f"Invoice {item.invoice_number} marked overdue")

    if await has_recent_notification(
        db, item.customer_id, NotificationType.INVOICE, cooldown, now=now
    ):
        logger.info(
            f"Skipping notice for invoice {item.invoice_number}: customer "
            f"{item.customer_id} was notified within the last {cooldown.days} days"
        )
        return None

    days_overdue = days_between(item.due_date, today)
    subject, message = build_invoice_notice(
        item.invoice_number, item.total, item.due_date, days_overdue
    )
    sent = await deliver_notification(transport, item.channel, item.recipient, subject, message)

    await create_notification_record(
        db,
        item.customer_id,
        NotificationType.INVOICE,
        item.channel,
        subject,
        message,
        details={
            "invoice_id": item.invoice_id,
            "invoice_number": item.invoice_number,
            "total": str(item.total),
            "due_date": item.due_date.isoformat(),
            "days_overdue": days_overdue,
        },
        status=NotificationStatus.SENT if sent.success else NotificationStatus.FAILED,
        scheduled_at=now,
        sent_at=now if sent.success else None,
        error_message=sent.error,
        now=now,
    )
    return sent.success
