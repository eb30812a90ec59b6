"""
Due-status classification shared by the schedule and catalog engines.

Urgency precedence (first match wins):
1. overdue   - past due by date or by mileage
2. urgent    - due within 7 days or 500 miles
3. upcoming  - due within 30 days or 1000 miles
4. scheduled - everything else

Once either dimension says overdue, the other can never downgrade it.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from motorai.models.service_schedule import TIER_ORDER, ServiceSchedule, ServiceTier
from motorai.utils.dates import days_between


class Urgency(str, enum.Enum):
    """Due status of a maintenance item."""

    OVERDUE = "overdue"
    URGENT = "urgent"
    UPCOMING = "upcoming"
    SCHEDULED = "scheduled"

    @property
    def rank(self) -> int:
        return URGENCY_RANK[self]


URGENCY_RANK = {
    Urgency.OVERDUE: 0,
    Urgency.URGENT: 1,
    Urgency.UPCOMING: 2,
    Urgency.SCHEDULED: 3,
}


@dataclass(frozen=True)
class UrgencyThresholds:
    """Day/mile windows for the urgent and upcoming bands."""

    urgent_days: int = 7
    urgent_miles: int = 500
    upcoming_days: int = 30
    upcoming_miles: int = 1000


DEFAULT_THRESHOLDS = UrgencyThresholds()


def _within(value: Optional[int], limit: int) -> bool:
    return value is not None and value <= limit


def classify_urgency(
    days_until_due: Optional[int],
    miles_until_due: Optional[int],
    thresholds: UrgencyThresholds = DEFAULT_THRESHOLDS,
) -> Urgency:
    """Classify a due point. A None dimension never matches any band."""
    if (days_until_due is not None and days_until_due < 0) or (
        miles_until_due is not None and miles_until_due < 0
    ):
        return Urgency.OVERDUE
    if _within(days_until_due, thresholds.urgent_days) or _within(
        miles_until_due, thresholds.urgent_miles
    ):
        return Urgency.URGENT
    if _within(days_until_due, thresholds.upcoming_days) or _within(
        miles_until_due, thresholds.upcoming_miles
    ):
        return Urgency.UPCOMING
    return Urgency.SCHEDULED


@dataclass
class UpcomingService:
    """Due status of one schedule tier."""

    tier: ServiceTier
    due_date: Optional[date]
    due_mileage: Optional[int]
    urgency: Urgency
    days_until_due: Optional[int]
    miles_until_due: Optional[int]


def evaluate_schedule(
    schedule: Optional[ServiceSchedule],
    current_mileage: Optional[int] = None,
    today: Optional[date] = None,
    thresholds: UrgencyThresholds = DEFAULT_THRESHOLDS,
) -> List[UpcomingService]:
    """
    Classify every tracked tier of a schedule and sort by urgency.

    Tiers with neither a next-due date nor a next-due mileage are skipped.
    Ties keep the fixed tier order (oil change, minor, major).
    """
    if schedule is None:
        return []

    today = today or date.today()
    services: List[UpcomingService] = []

    for tier in TIER_ORDER:
        row = schedule.get_tier(tier)
        if row is None or (row.next_due_date is None and row.next_due_mileage is None):
            continue

        days_until_due = (
            days_between(today, row.next_due_date) if row.next_due_date is not None else None
        )
        miles_until_due = (
            row.next_due_mileage - current_mileage
            if row.next_due_mileage is not None and current_mileage is not None
            else None
        )

        services.append(
            UpcomingService(
                tier=tier,
                due_date=row.next_due_date,
                due_mileage=row.next_due_mileage,
                urgency=classify_urgency(days_until_due, miles_until_due, thresholds),
                days_until_due=days_until_due,
                miles_until_due=miles_until_due,
            )
        )

    # sorted() is stable, so tier order survives within a rank
    return sorted(services, key=lambda service: service.urgency.rank)
