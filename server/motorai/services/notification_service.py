"""
Outbound notifications: transports, channel selection and reminder records.

Delivery is never retried here. A failed send is reported through
NotificationResult and recorded on the notification row by the caller.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motorai.config import settings
from motorai.models.customer import Customer
from motorai.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from motorai.utils.dates import utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.rest import Client

logger = logging.getLogger(__name__)


@dataclass
class NotificationRecipient:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    customer_id: Optional[int] = None


@dataclass
class NotificationResult:
    success: bool
    channel: NotificationChannel
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationTransport(ABC):
    """
    Abstract outbound notification transport.

    Implementations deliver one message on one channel and report the
    outcome. They may raise; callers treat an exception like a failed
    result.
    """

    @abstractmethod
    async def send(
        self,
        channel: NotificationChannel,
        recipient: NotificationRecipient,
        subject: str,
        message: str,
    ) -> NotificationResult:
        """
        Attempt delivery of a message.

        Args:
            channel: Delivery channel
            recipient: Who to deliver to
            subject: Subject line (ignored by SMS)
            message: Plain text body

        Returns:
            NotificationResult describing success or failure
        """
        pass


class TwilioSmtpTransport(NotificationTransport):
    """
    Delivers SMS through Twilio and email through SMTP.

    In-app notifications need no external delivery: storing the record is
    the delivery, so they always succeed. Both SDKs are blocking and are
    run in a worker thread.
    """

    def __init__(self, twilio_client: Optional[Client] = None, smtp_factory=smtplib.SMTP):
        self._twilio_client = twilio_client
        self._smtp_factory = smtp_factory

    @property
    def twilio_client(self) -> Client:
        if self._twilio_client is None:
            self._twilio_client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        return self._twilio_client

    async def send(
        self,
        channel: NotificationChannel,
        recipient: NotificationRecipient,
        subject: str,
        message: str,
    ) -> NotificationResult:
        channel = NotificationChannel(channel)
        try:
            if channel == NotificationChannel.IN_APP:
                return NotificationResult(success=True, channel=channel)

            if channel == NotificationChannel.SMS:
                if not recipient.phone:
                    return NotificationResult(
                        success=False, channel=channel, error="No recipient phone number"
                    )
                sid = await asyncio.to_thread(self._send_sms, recipient.phone, subject, message)
                logger.info(f"SMS sent to customer {recipient.customer_id}: {sid}")
                return NotificationResult(success=True, channel=channel, message_id=sid)

            if not recipient.email:
                return NotificationResult(
                    success=False, channel=channel, error="No recipient email address"
                )
            await asyncio.to_thread(self._send_email, recipient.email, subject, message)
            logger.info(f"Email sent to customer {recipient.customer_id}")
            return NotificationResult(success=True, channel=channel)

        except Exception as e:
            logger.error(f"Failed to send {channel.value} to customer {recipient.customer_id}: {e}")
            return NotificationResult(success=False, channel=channel, error=str(e))

    def _send_sms(self, phone: str, subject: str, message: str) -> str:
        body = f"{subject}\n\n{message}" if subject else message
        sms = self.twilio_client.messages.create(
            to=phone,
            from_=settings.TWILIO_PHONE_NUMBER,
            body=body,
        )
        return sms.sid

    def _send_email(self, to_addr: str, subject: str, message: str) -> None:
        if not settings.SMTP_HOST:
            raise RuntimeError("SMTP_HOST is not configured")

        from_addr = settings.SMTP_FROM or settings.SMTP_USER
        msg = MIMEText(message, "plain")
        msg["Subject"] = subject
        msg["From"] = from_addr
        msg["To"] = to_addr

        with self._smtp_factory(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(from_addr, [to_addr], msg.as_string())


async def deliver_notification(
    transport: NotificationTransport,
    channel: NotificationChannel,
    recipient: NotificationRecipient,
    subject: str,
    message: str,
) -> NotificationResult:
    """Send through a transport, turning a raised exception into a failed result."""
    try:
        return await transport.send(channel, recipient, subject, message)
    except Exception as e:
        logger.error(
            f"Transport error sending {channel.value} to customer {recipient.customer_id}: {e}",
            exc_info=True,
        )
        return NotificationResult(success=False, channel=channel, error=str(e))


def resolve_channel(customer: Customer) -> NotificationChannel:
    """
    Pick the delivery channel for a customer.

    Without a usable stored preference the order is email, then SMS, then
    in-app. A stored preference departs from that order: "sms" wins over
    email when a phone number exists, and "in_app" always wins, so those
    customers are not emailed even when they have an address.
    """
    preferred = customer.preferred_contact_method
    if preferred == "sms" and customer.phone_number:
        return NotificationChannel.SMS
    if preferred == "in_app":
        return NotificationChannel.IN_APP
    if customer.email:
        return NotificationChannel.EMAIL
    if customer.phone_number:
        return NotificationChannel.SMS
    return NotificationChannel.IN_APP


def recipient_for(customer: Customer) -> NotificationRecipient:
    return NotificationRecipient(
        name=customer.full_name or "Valued Customer",
        email=customer.email,
        phone=customer.phone_number,
        customer_id=customer.id,
    )


async def has_recent_notification(
    db: AsyncSession,
    customer_id: int,
    notification_type: NotificationType,
    cooldown: timedelta,
    now: Optional[datetime] = None,
) -> bool:
    """Whether a notification of this type was created for the customer inside the cool-down window."""
    since = (now or utcnow()) - cooldown
    result = await db.execute(
        select(Notification.id)
        .where(
            Notification.customer_id == customer_id,
            Notification.type == notification_type,
            Notification.created_at >= since,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_notification_record(
    db: AsyncSession,
    customer_id: int,
    notification_type: NotificationType,
    channel: NotificationChannel,
    subject: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    status: NotificationStatus = NotificationStatus.PENDING,
    scheduled_at: Optional[datetime] = None,
    sent_at: Optional[datetime] = None,
    error_message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Notification:
    """Insert and commit a notification row."""
    now = now or utcnow()
    notification = Notification(
        customer_id=customer_id,
        type=notification_type,
        channel=channel,
        status=status,
        subject=subject,
        message=message,
        details=details or {},
        scheduled_at=scheduled_at or now,
        sent_at=sent_at,
        error_message=error_message,
        created_at=now,
        updated_at=now,
    )
    db.add(notification)
    await db.flush()
    notification_id = notification.id
    await db.commit()
    logger.info(
        f"Notification {notification_id} created for customer {customer_id} "
        f"({notification_type.value} via {channel.value}, {status.value})"
    )
    return notification


def build_service_reminder_message(
    vehicle_name: str,
    recommendations: Sequence[Any],
    upcoming_limit: int = 3,
) -> Tuple[str, str]:
    """
    Subject and body summarising overdue and upcoming services.

    Args:
        vehicle_name: e.g. "2018 Honda Civic"
        recommendations: ServiceRecommendation items
        upcoming_limit: How many non-overdue items to list

    Returns:
        (subject, message)
    """
    overdue = [rec for rec in recommendations if rec.overdue]
    upcoming = [rec for rec in recommendations if not rec.overdue]

    lines: List[str] = []
    if overdue:
        lines.append(f"Your {vehicle_name} has overdue services:")
        lines.extend(f"- {rec.service_type}: {rec.reason}" for rec in overdue)
    if upcoming:
        if lines:
            lines.append("")
        lines.append("Upcoming services:")
        lines.extend(f"- {rec.service_type}: {rec.reason}" for rec in upcoming[:upcoming_limit])

    subject = (
        f"Service Overdue - {vehicle_name}" if overdue else f"Service Due Soon - {vehicle_name}"
    )
    return subject, "\n".join(lines)
