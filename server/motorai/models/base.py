"""Declarative base and shared column mixins."""

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base

from motorai.utils.dates import utcnow

Base = declarative_base()


class TimestampMixin:
    """Adds created_at/updated_at columns stored as naive UTC."""

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
