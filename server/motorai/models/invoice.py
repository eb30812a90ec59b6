"""Invoice model."""

import enum

from motorai.models.base import Base, TimestampMixin
from sqlalchemy import Column, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship


class InvoiceStatus(str, enum.Enum):
    """Invoice status enum."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Invoice(Base, TimestampMixin):
    """Invoice model, limited to what payment follow-up needs."""

    __tablename__ = "invoices"

    __table_args__ = (Index("ix_invoices_status_due", "status", "due_date"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), index=True)

    invoice_number = Column(String(50), unique=True, nullable=False)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    due_date = Column(Date)
    status = Column(SQLEnum(InvoiceStatus), default=InvoiceStatus.DRAFT, nullable=False)
    paid_at = Column(DateTime)

    # Relationships
    customer = relationship("Customer", back_populates="invoices")

    def __repr__(self):
        return (
            f"<Invoice(id={self.id}, number='{self.invoice_number}', "
            f"status='{self.status}', due_date='{self.due_date}')>"
        )
