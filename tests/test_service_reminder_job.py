"""Tests for the service-due reminder pass."""

from datetime import date, datetime, timedelta

import pytest
from conftest import FakeTransport, add_customer, add_rows, add_vehicle
from motorai.models import Notification, ServiceHistory
from motorai.models.notification import NotificationChannel, NotificationStatus, NotificationType
from sqlalchemy import select

from worker.jobs import service_reminder_job
from worker.jobs.notification_flush_job import send_pending_notifications
from worker.jobs.service_reminder_job import check_due_services

NOW = datetime(2024, 6, 1, 9, 0)


async def notifications(session_maker):
    async with session_maker() as session:
        result = await session.execute(select(Notification).order_by(Notification.id))
        return result.scalars().all()


async def add_overdue_brake_inspection(session_maker, vehicle_id, status="completed"):
    await add_rows(
        session_maker,
        ServiceHistory(
            vehicle_id=vehicle_id,
            service_type="Brake Inspection",
            service_date=date(2023, 4, 28),
            mileage=5000,
            status=status,
        ),
    )


class TestCheckDueServices:
    @pytest.mark.asyncio
    async def test_creates_pending_reminder(self, session_maker, test_vehicle, transport):
        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.processed == 1
        assert result.succeeded == 1
        assert result.error is None

        [notification] = await notifications(session_maker)
        assert notification.type == NotificationType.SERVICE_REMINDER
        assert notification.status == NotificationStatus.PENDING
        assert notification.channel == NotificationChannel.EMAIL
        assert notification.scheduled_at == NOW
        assert notification.subject == "Service Due Soon - 2018 Honda Civic"
        assert "Synthetic Oil Change" in notification.message
        assert notification.details["vehicle_id"] == test_vehicle.id
        # Medium priority items alone never trigger a reminder
        assert [rec["service"] for rec in notification.details["recommendations"]] == [
            "Synthetic Oil Change"
        ]
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_cooldown_window(self, session_maker, test_vehicle, transport):
        await check_due_services(session_maker, transport, now=NOW)
        assert len(await notifications(session_maker)) == 1

        result = await check_due_services(session_maker, transport, now=NOW + timedelta(days=6))
        assert result.skipped == 1
        assert len(await notifications(session_maker)) == 1

        await check_due_services(session_maker, transport, now=NOW + timedelta(days=8))
        assert len(await notifications(session_maker)) == 2

    @pytest.mark.asyncio
    async def test_critical_overdue_is_sent_immediately(
        self, session_maker, test_vehicle, transport
    ):
        await add_overdue_brake_inspection(session_maker, test_vehicle.id)

        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.succeeded == 1
        [notification] = await notifications(session_maker)
        assert notification.status == NotificationStatus.SENT
        assert notification.sent_at == NOW
        assert notification.subject == "Service Overdue - 2018 Honda Civic"
        assert len(transport.sent) == 1
        assert transport.sent[0]["recipient"].email == "john.doe@example.com"

        # Already delivered, so the flush pass has nothing to do
        flush = await send_pending_notifications(session_maker, transport, now=NOW)
        assert flush.processed == 0
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_critical_delivery_failure_is_recorded(self, session_maker, test_vehicle):
        await add_overdue_brake_inspection(session_maker, test_vehicle.id)
        transport = FakeTransport(fail=True)

        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.failed == 1
        [notification] = await notifications(session_maker)
        assert notification.status == NotificationStatus.FAILED
        assert notification.error_message == "mailbox unavailable"
        assert notification.sent_at is None

    @pytest.mark.asyncio
    async def test_incomplete_history_is_ignored(self, session_maker, test_vehicle, transport):
        await add_overdue_brake_inspection(session_maker, test_vehicle.id, status="scheduled")

        await check_due_services(session_maker, transport, now=NOW)

        [notification] = await notifications(session_maker)
        assert notification.status == NotificationStatus.PENDING
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_nothing_due_is_skipped(self, session_maker, test_customer, transport):
        await add_vehicle(session_maker, test_customer.id, current_mileage=20100)

        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.processed == 1
        assert result.skipped == 1
        assert await notifications(session_maker) == []

    @pytest.mark.asyncio
    async def test_ineligible_vehicles_are_not_evaluated(self, session_maker, transport):
        opted_out = await add_customer(
            session_maker, email="opted.out@example.com", phone_number=None, receive_reminders=False
        )
        owner = await add_customer(session_maker, email="owner@example.com", phone_number=None)
        await add_vehicle(session_maker, opted_out.id, vin="1HGCV1F34JA000011")
        await add_vehicle(session_maker, owner.id, vin="1HGCV1F34JA000012", status="sold")
        await add_vehicle(session_maker, owner.id, vin="1HGCV1F34JA000013", current_mileage=None)

        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.processed == 0
        assert await notifications(session_maker) == []

    @pytest.mark.asyncio
    async def test_one_failing_vehicle_does_not_stop_the_pass(
        self, session_maker, transport, monkeypatch
    ):
        first = await add_customer(session_maker, email="first@example.com", phone_number=None)
        second = await add_customer(session_maker, email="second@example.com", phone_number=None)
        await add_vehicle(session_maker, first.id, vin="1HGCV1F34JA000021", make="Broken")
        await add_vehicle(session_maker, second.id, vin="1HGCV1F34JA000022")

        real_recommendations = service_reminder_job.get_service_recommendations

        def flaky_recommendations(vehicle, history, today=None):
            if vehicle.make == "Broken":
                raise RuntimeError("bad service history")
            return real_recommendations(vehicle, history, today=today)

        monkeypatch.setattr(service_reminder_job, "get_service_recommendations", flaky_recommendations)

        result = await check_due_services(session_maker, transport, now=NOW)

        assert result.processed == 2
        assert result.failed == 1
        assert result.succeeded == 1
        [notification] = await notifications(session_maker)
        assert notification.customer_id == second.id

    @pytest.mark.asyncio
    async def test_sms_preference_is_honoured(self, session_maker, transport):
        customer = await add_customer(
            session_maker, email="sms@example.com", preferred_contact_method="sms"
        )
        await add_vehicle(session_maker, customer.id)

        await check_due_services(session_maker, transport, now=NOW)

        [notification] = await notifications(session_maker)
        assert notification.channel == NotificationChannel.SMS
