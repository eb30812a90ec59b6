"""Service history model."""

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship


class ServiceHistory(Base, TimestampMixin):
    """Service history model for tracking vehicle service records.

    Rows are appended by the service-record workflow and read by the
    recommendation engine. Only ``completed`` rows count as history.
    """

    __tablename__ = "service_history"

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    # Service Performed
    service_type = Column(String(100), nullable=False)  # Free text label, e.g. "Oil Change"
    service_date = Column(Date, nullable=False, index=True)
    mileage = Column(Integer)
    status = Column(String(20), default="completed")  # scheduled, in_progress, completed
    total_cost = Column(Numeric(10, 2))
    notes = Column(Text)

    # Relationships
    vehicle = relationship("Vehicle", back_populates="service_history")

    def __repr__(self):
        return (
            f"<ServiceHistory(id={self.id}, vehicle_id={self.vehicle_id}, "
            f"service_type='{self.service_type}', service_date='{self.service_date}')>"
        )
