"""Customer model."""

import re

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship, validates

CONTACT_METHODS = {"email", "sms", "in_app"}


class Customer(Base, TimestampMixin):
    """Customer model for storing vehicle owners.

    Stores the contact data the reminder engine needs:
    - Contact information for multi-channel notifications
    - Preferred contact method
    - Reminder opt-out flag
    """

    __tablename__ = "customers"

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)

    # Contact Information
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone_number = Column(String(20), unique=True, index=True)
    email = Column(String(255), unique=True, index=True)
    preferred_contact_method = Column(String(20), default="email")  # email, sms, in_app

    # Preferences
    receive_reminders = Column(Boolean, default=True)

    notes = Column(Text)

    # Relationships
    vehicles = relationship("Vehicle", back_populates="customer", cascade="all, delete-orphan")
    notifications = relationship(
        "Notification", back_populates="customer", cascade="all, delete-orphan"
    )
    invoices = relationship("Invoice", back_populates="customer", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @validates("phone_number")
    def validate_phone_number(self, key, value):
        """Validate phone number format and length.

        Only allows digits, spaces, hyphens, parentheses, and plus sign,
        with 10-15 digits in total.
        """
        if not value:
            return value

        digits_only = re.sub(r"[\s\-\(\)\+]", "", value)

        if not re.match(r"^\d+$", digits_only):
            raise ValueError(f"Phone number contains invalid characters: {value}")

        if len(digits_only) < 10 or len(digits_only) > 15:
            raise ValueError(f"Phone number must contain 10-15 digits, got {len(digits_only)}")

        if len(value) > 20:
            raise ValueError(f"Phone number must be <= 20 characters, got {len(value)}")

        return value

    @validates("email")
    def validate_email(self, key, value):
        """Validate email format and normalize to lowercase."""
        if not value:
            return value

        value = value.lower()

        if len(value) > 255:
            raise ValueError(f"Email must be <= 255 characters, got {len(value)}")

        email_pattern = (
            r"^[a-z0-9]([a-z0-9._-]*[a-z0-9])?@[a-z0-9]([a-z0-9.-]*[a-z0-9])?\.[a-z]{2,}$"
        )
        if not re.match(email_pattern, value):
            raise ValueError(f"Invalid email format: {value}")

        return value

    @validates("preferred_contact_method")
    def validate_preferred_contact_method(self, key, value):
        if value and value not in CONTACT_METHODS:
            raise ValueError(f"Unsupported contact method: {value}")
        return value

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.full_name}', email='{self.email}')>"
