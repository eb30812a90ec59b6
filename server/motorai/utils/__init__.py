"""Utility modules for the maintenance engine."""

from .dates import add_months, days_between, utcnow

__all__ = [
    "add_months",
    "days_between",
    "utcnow",
]
