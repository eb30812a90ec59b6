"""Vehicle model."""

import re

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship, validates

VIN_PATTERN = r"^[A-HJ-NPR-Z0-9]{17}$"


class Vehicle(Base, TimestampMixin):
    """Vehicle model for storing vehicle information.

    Stores vehicle identification, the attributes decoded from the VIN,
    the derived maintenance category and mileage tracking.
    """

    __tablename__ = "vehicles"

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # Vehicle Identification
    vin = Column(String(17), unique=True, nullable=False, index=True)
    license_plate = Column(String(20), index=True)

    # Decoded identity (any field may be unknown)
    year = Column(Integer)
    make = Column(String(100))
    model = Column(String(100))
    engine_model = Column(String(100))
    fuel_type = Column(String(100))
    drive_type = Column(String(100))
    vehicle_type = Column(String(100))
    body_class = Column(String(100))
    category = Column(String(20), default="unknown")

    # Service Information
    current_mileage = Column(Integer)

    # Vehicle Status
    status = Column(String(20), default="active")  # active, sold, totaled

    notes = Column(Text)

    # Relationships
    customer = relationship("Customer", back_populates="vehicles")
    service_history = relationship(
        "ServiceHistory", back_populates="vehicle", cascade="all, delete-orphan"
    )
    service_schedule = relationship(
        "ServiceSchedule", back_populates="vehicle", uselist=False, cascade="all, delete-orphan"
    )

    @validates("vin")
    def validate_vin(self, key, value):
        """Validate VIN format (17 characters, no I/O/Q) and uppercase it.

        The check digit is not verified.
        """
        if not value:
            raise ValueError("VIN cannot be empty")

        value = value.upper().strip()

        if len(value) != 17:
            raise ValueError(f"VIN must be exactly 17 characters, got {len(value)}")

        if not re.match(VIN_PATTERN, value):
            raise ValueError(
                f"Invalid VIN format: {value}. VIN must contain only letters (except I, O, Q) and numbers"
            )

        return value

    @property
    def display_name(self) -> str:
        return " ".join(str(part) for part in (self.year, self.make, self.model) if part)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, vin='{self.vin}', {self.year} {self.make} {self.model})>"
