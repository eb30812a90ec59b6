"""Notification (reminder record) model."""

import enum

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship


class NotificationType(str, enum.Enum):
    """Notification type enum."""

    SERVICE_REMINDER = "service_reminder"
    INVOICE = "invoice"
    APPOINTMENT = "appointment"
    GENERAL = "general"


class NotificationChannel(str, enum.Enum):
    """Delivery channel enum."""

    EMAIL = "email"
    SMS = "sms"
    IN_APP = "in_app"


class NotificationStatus(str, enum.Enum):
    """Notification status enum."""

    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Notification(Base, TimestampMixin):
    """Reminder record created by the dispatch sweep.

    Pending rows are delivered by the flush pass once scheduled_at has
    arrived. created_at drives the per-customer cool-down checks.
    """

    __tablename__ = "notifications"

    __table_args__ = (
        # Cool-down lookups: customer + type + recent created_at
        Index("ix_notifications_customer_type_created", "customer_id", "type", "created_at"),
        # Flush pass: pending rows by scheduled time
        Index("ix_notifications_status_scheduled", "status", "scheduled_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    type = Column(SQLEnum(NotificationType), nullable=False)
    channel = Column(SQLEnum(NotificationChannel), nullable=False)
    status = Column(
        SQLEnum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False
    )

    subject = Column(String(255))
    message = Column(Text)
    details = Column(JSON)  # Vehicle info, recommendations, invoice data

    scheduled_at = Column(DateTime, index=True)
    sent_at = Column(DateTime)
    error_message = Column(String(1000))

    # Relationships
    customer = relationship("Customer", back_populates="notifications")

    def __repr__(self):
        return (
            f"<Notification(id={self.id}, customer_id={self.customer_id}, "
            f"type='{self.type}', status='{self.status}')>"
        )
