"""Database models for the application."""

from motorai.models.customer import Customer
from motorai.models.invoice import Invoice
from motorai.models.notification import Notification
from motorai.models.service_history import ServiceHistory
from motorai.models.service_schedule import ScheduleTier, ServiceSchedule
from motorai.models.vehicle import Vehicle

__all__ = [
    "Customer",
    "Vehicle",
    "ServiceHistory",
    "ServiceSchedule",
    "ScheduleTier",
    "Notification",
    "Invoice",
]
