"""Tests for the pending notification flush pass."""

from datetime import datetime, timedelta

import pytest
from conftest import FakeTransport, add_rows
from motorai.models import Notification
from motorai.models.notification import NotificationChannel, NotificationStatus, NotificationType
from sqlalchemy import select

from worker.jobs import notification_flush_job
from worker.jobs.notification_flush_job import send_pending_notifications

NOW = datetime(2024, 6, 1, 9, 0)


def pending(customer_id, scheduled_at, subject="Service Due Soon", status=NotificationStatus.PENDING):
    return Notification(
        customer_id=customer_id,
        type=NotificationType.SERVICE_REMINDER,
        channel=NotificationChannel.EMAIL,
        status=status,
        subject=subject,
        message="Upcoming services:",
        scheduled_at=scheduled_at,
        created_at=scheduled_at,
    )


async def statuses(session_maker):
    async with session_maker() as session:
        result = await session.execute(select(Notification).order_by(Notification.id))
        return [(row.subject, row.status) for row in result.scalars().all()]


class TestSendPendingNotifications:
    @pytest.mark.asyncio
    async def test_sends_due_notifications_only(self, session_maker, test_customer, transport):
        await add_rows(
            session_maker,
            pending(test_customer.id, NOW - timedelta(hours=1), subject="due"),
            pending(test_customer.id, NOW + timedelta(hours=1), subject="future"),
            pending(
                test_customer.id,
                NOW - timedelta(days=1),
                subject="done",
                status=NotificationStatus.SENT,
            ),
        )

        result = await send_pending_notifications(session_maker, transport, now=NOW)

        assert result.processed == 1
        assert result.succeeded == 1
        assert await statuses(session_maker) == [
            ("due", NotificationStatus.SENT),
            ("future", NotificationStatus.PENDING),
            ("done", NotificationStatus.SENT),
        ]
        assert [sent["subject"] for sent in transport.sent] == ["due"]
        assert transport.sent[0]["recipient"].email == "john.doe@example.com"

        async with session_maker() as session:
            row = (
                await session.execute(select(Notification).where(Notification.subject == "due"))
            ).scalar_one()
            assert row.sent_at == NOW

    @pytest.mark.asyncio
    async def test_failed_delivery_is_recorded(self, session_maker, test_customer):
        await add_rows(session_maker, pending(test_customer.id, NOW - timedelta(minutes=5)))

        result = await send_pending_notifications(session_maker, FakeTransport(fail=True), now=NOW)

        assert result.failed == 1
        async with session_maker() as session:
            row = (await session.execute(select(Notification))).scalar_one()
            assert row.status == NotificationStatus.FAILED
            assert row.error_message == "mailbox unavailable"
            assert row.sent_at is None

    @pytest.mark.asyncio
    async def test_transport_exception_is_recorded(self, session_maker, test_customer):
        await add_rows(session_maker, pending(test_customer.id, NOW - timedelta(minutes=5)))
        transport = FakeTransport(raise_error=TimeoutError("smtp timed out"))

        result = await send_pending_notifications(session_maker, transport, now=NOW)

        assert result.failed == 1
        assert result.error is None
        async with session_maker() as session:
            row = (await session.execute(select(Notification))).scalar_one()
            assert row.status == NotificationStatus.FAILED
            assert row.error_message == "smtp timed out"

    @pytest.mark.asyncio
    async def test_batch_is_oldest_first(self, session_maker, test_customer, transport):
        await add_rows(
            session_maker,
            pending(test_customer.id, NOW - timedelta(minutes=1), subject="newest"),
            pending(test_customer.id, NOW - timedelta(minutes=30), subject="oldest"),
            pending(test_customer.id, NOW - timedelta(minutes=10), subject="middle"),
        )

        result = await send_pending_notifications(session_maker, transport, now=NOW, batch_size=2)

        assert result.processed == 2
        assert [sent["subject"] for sent in transport.sent] == ["oldest", "middle"]
        assert ("newest", NotificationStatus.PENDING) in await statuses(session_maker)

    @pytest.mark.asyncio
    async def test_delivered_row_is_not_left_pending_when_recording_fails(
        self, session_maker, test_customer, transport, monkeypatch
    ):
        await add_rows(session_maker, pending(test_customer.id, NOW - timedelta(minutes=5)))
        set_status = notification_flush_job._set_status
        calls = []

        async def flaky_set_status(*args, **kwargs):
            calls.append(args[2])
            if len(calls) == 1:
                raise RuntimeError("connection reset")
            await set_status(*args, **kwargs)

        monkeypatch.setattr(notification_flush_job, "_set_status", flaky_set_status)

        result = await send_pending_notifications(session_maker, transport, now=NOW)
        second = await send_pending_notifications(session_maker, transport, now=NOW)

        assert result.succeeded == 1
        assert result.failed == 0
        assert calls == [NotificationStatus.SENT, NotificationStatus.SENT]
        assert await statuses(session_maker) == [("Service Due Soon", NotificationStatus.SENT)]
        assert second.processed == 0
        assert len(transport.sent) == 1
