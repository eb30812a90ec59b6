"""Per-vehicle maintenance schedule models."""

import enum

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import JSON, Column, Date
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship


class ServiceTier(str, enum.Enum):
    """Maintenance frequency band."""

    OIL_CHANGE = "oil_change"
    MINOR_SERVICE = "minor_service"
    MAJOR_SERVICE = "major_service"


# Fixed evaluation order, also the tie-break order for urgency sorting
TIER_ORDER = (ServiceTier.OIL_CHANGE, ServiceTier.MINOR_SERVICE, ServiceTier.MAJOR_SERVICE)


class ServiceSchedule(Base, TimestampMixin):
    """Schedule state for one vehicle.

    Holds the category and interval profile snapshot used to compute the
    projections, plus one ScheduleTier row per maintenance tier.
    """

    __tablename__ = "service_schedules"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, unique=True, index=True)

    vehicle_category = Column(String(20), nullable=False, default="unknown")
    interval_config = Column(JSON)  # ServiceIntervalProfile.to_dict() snapshot

    # Relationships
    vehicle = relationship("Vehicle", back_populates="service_schedule")
    tiers = relationship(
        "ScheduleTier",
        back_populates="schedule",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def get_tier(self, tier: ServiceTier):
        """Return the ScheduleTier row for a tier, or None."""
        for row in self.tiers:
            if row.tier == tier:
                return row
        return None

    def __repr__(self):
        return (
            f"<ServiceSchedule(id={self.id}, vehicle_id={self.vehicle_id}, "
            f"category='{self.vehicle_category}')>"
        )


class ScheduleTier(Base, TimestampMixin):
    """Anchor and next-due projection for a single maintenance tier.

    Interval columns are None for a tier the category does not use
    (electric vehicles have no oil change), and so are its projections.
    """

    __tablename__ = "schedule_tiers"
    __table_args__ = (UniqueConstraint("schedule_id", "tier", name="uq_schedule_tier"),)

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(
        Integer, ForeignKey("service_schedules.id"), nullable=False, index=True
    )
    tier = Column(SQLEnum(ServiceTier), nullable=False)

    # Interval snapshot
    interval_miles = Column(Integer)
    interval_months = Column(Integer)

    # Anchor
    last_service_date = Column(Date)
    last_service_mileage = Column(Integer)

    # Projection
    next_due_date = Column(Date)
    next_due_mileage = Column(Integer)

    schedule = relationship("ServiceSchedule", back_populates="tiers")

    def __repr__(self):
        return (
            f"<ScheduleTier(schedule_id={self.schedule_id}, tier='{self.tier}', "
            f"next_due_date='{self.next_due_date}', next_due_mileage={self.next_due_mileage})>"
        )
