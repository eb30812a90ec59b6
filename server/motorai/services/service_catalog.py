"""
Catalog-driven service recommendations.

Matches a fixed catalog of maintenance services (with per-make overrides)
against a vehicle's raw service history. Used by the fleet-wide reminder
sweep; shares the urgency contract with the per-vehicle schedule engine.
"""

import enum
import math
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motorai.config import settings
from motorai.services.urgency import (
    DEFAULT_THRESHOLDS,
    Urgency,
    UrgencyThresholds,
    classify_urgency,
)


class Priority(str, enum.Enum):
    """Recommendation priority."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

# One step up when a service is overdue; critical stays critical
ESCALATION = {
    Priority.LOW: Priority.MEDIUM,
    Priority.MEDIUM: Priority.HIGH,
    Priority.HIGH: Priority.CRITICAL,
    Priority.CRITICAL: Priority.CRITICAL,
}


@dataclass(frozen=True)
class CostEstimate:
    labor: float
    parts: float

    @property
    def total(self) -> float:
        return self.labor + self.parts

    def to_dict(self) -> Dict[str, float]:
        return {"labor": self.labor, "parts": self.parts, "total": self.total}


@dataclass(frozen=True)
class CatalogEntry:
    """A catalog service and its recommended interval."""

    service_type: str
    mileage_interval: int
    time_interval_days: int
    description: str
    priority: Priority
    estimated_cost: Optional[CostEstimate] = None


@dataclass
class VehicleData:
    """The vehicle attributes the catalog needs."""

    make: Optional[str]
    model: Optional[str]
    year: Optional[int]
    mileage: Optional[int]
    engine_type: Optional[str] = None
    transmission: Optional[str] = None


@dataclass(frozen=True)
class ServiceHistoryEntry:
    service_type: str
    service_date: date
    mileage: Optional[int] = None


@dataclass
class ServiceRecommendation:
    """Ephemeral recommendation, recomputed on every evaluation."""

    service_type: str
    reason: str
    priority: Priority
    due_by_date: Optional[date]
    due_by_mileage: Optional[int]
    overdue: bool
    urgency: Urgency
    days_until_due: Optional[int] = None
    miles_until_due: Optional[int] = None
    overdue_by_days: Optional[int] = None
    overdue_by_miles: Optional[int] = None
    estimated_cost: Optional[CostEstimate] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service_type,
            "reason": self.reason,
            "priority": self.priority.value,
            "overdue": self.overdue,
            "urgency": self.urgency.value,
            "due_by_date": self.due_by_date.isoformat() if self.due_by_date else None,
            "due_by_mileage": self.due_by_mileage,
            "overdue_by_days": self.overdue_by_days,
            "overdue_by_miles": self.overdue_by_miles,
            "estimated_cost": self.estimated_cost.to_dict() if self.estimated_cost else None,
        }


@dataclass
class AnnualCostEstimate:
    total: float
    breakdown: List[Dict[str, Any]] = field(default_factory=list)


STANDARD_SERVICE_CATALOG: Tuple[CatalogEntry, ...] = (
    CatalogEntry(
        "Oil Change", 5000, 90,
        "Engine oil and filter replacement",
        Priority.HIGH, CostEstimate(30, 40),
    ),
    CatalogEntry(
        "Synthetic Oil Change", 7500, 180,
        "Synthetic engine oil and filter replacement",
        Priority.HIGH, CostEstimate(30, 70),
    ),
    CatalogEntry(
        "Tire Rotation", 7500, 180,
        "Rotate tires to ensure even wear",
        Priority.MEDIUM, CostEstimate(25, 0),
    ),
    CatalogEntry(
        "Air Filter Replacement", 15000, 365,
        "Replace engine air filter",
        Priority.MEDIUM, CostEstimate(15, 25),
    ),
    CatalogEntry(
        "Cabin Air Filter", 15000, 365,
        "Replace cabin air filter for HVAC system",
        Priority.LOW, CostEstimate(15, 30),
    ),
    CatalogEntry(
        "Brake Inspection", 15000, 365,
        "Inspect brake pads, rotors, and fluid",
        Priority.HIGH, CostEstimate(40, 0),
    ),
    CatalogEntry(
        "Brake Pad Replacement", 40000, 730,
        "Replace front or rear brake pads",
        Priority.CRITICAL, CostEstimate(150, 100),
    ),
    CatalogEntry(
        "Transmission Fluid", 30000, 730,
        "Replace transmission fluid",
        Priority.HIGH, CostEstimate(100, 80),
    ),
    CatalogEntry(
        "Coolant Flush", 30000, 730,
        "Flush and replace engine coolant",
        Priority.MEDIUM, CostEstimate(80, 40),
    ),
    CatalogEntry(
        "Spark Plug Replacement", 60000, 1460,
        "Replace spark plugs",
        Priority.MEDIUM, CostEstimate(100, 60),
    ),
    CatalogEntry(
        "Timing Belt", 100000, 2190,
        "Replace timing belt (if applicable)",
        Priority.CRITICAL, CostEstimate(400, 200),
    ),
    CatalogEntry(
        "Battery Check", 25000, 365,
        "Test battery health and connections",
        Priority.MEDIUM, CostEstimate(20, 0),
    ),
    CatalogEntry(
        "Battery Replacement", 75000, 1460,
        "Replace vehicle battery",
        Priority.HIGH, CostEstimate(30, 150),
    ),
    CatalogEntry(
        "Wheel Alignment", 25000, 730,
        "Check and adjust wheel alignment",
        Priority.MEDIUM, CostEstimate(100, 0),
    ),
    CatalogEntry(
        "Fuel Filter", 30000, 730,
        "Replace fuel filter",
        Priority.MEDIUM, CostEstimate(50, 30),
    ),
    CatalogEntry(
        "Power Steering Fluid", 50000, 1095,
        "Replace power steering fluid",
        Priority.LOW, CostEstimate(60, 20),
    ),
    CatalogEntry(
        "Serpentine Belt", 60000, 1460,
        "Replace serpentine/drive belt",
        Priority.HIGH, CostEstimate(80, 40),
    ),
)

# Partial overrides keyed by lowercase make, then service type
MAKE_SPECIFIC_OVERRIDES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "toyota": {
        "Oil Change": {"mileage_interval": 5000},
        "Synthetic Oil Change": {"mileage_interval": 10000},
    },
    "honda": {
        "Oil Change": {"mileage_interval": 5000},
        "Transmission Fluid": {"mileage_interval": 25000},
    },
    "bmw": {
        "Synthetic Oil Change": {"mileage_interval": 10000},
        "Brake Pad Replacement": {
            "mileage_interval": 30000,
            "estimated_cost": CostEstimate(250, 200),
        },
    },
    "mercedes": {
        "Synthetic Oil Change": {"mileage_interval": 10000},
        "Brake Inspection": {"mileage_interval": 10000},
    },
    "ford": {
        "Oil Change": {"mileage_interval": 7500},
    },
    "chevrolet": {
        "Oil Change": {"mileage_interval": 7500},
    },
}

# Timing chain heuristic (not authoritative): newer engines and these
# models use chains, so the timing belt service does not apply.
TIMING_BELT_SERVICE = "Timing Belt"
TIMING_CHAIN_YEAR_CUTOFF = 2010
TIMING_CHAIN_MODELS = ("Camry", "Corolla", "Civic", "Accord", "F-150", "Silverado")

CATALOG_THRESHOLDS = DEFAULT_THRESHOLDS


def _make_overrides(make: Optional[str]) -> Dict[str, Dict[str, Any]]:
    if not make:
        return {}
    make_key = make.strip().lower()
    if make_key in MAKE_SPECIFIC_OVERRIDES:
        return MAKE_SPECIFIC_OVERRIDES[make_key]
    # "Mercedes-Benz" -> "mercedes"
    for key, overrides in MAKE_SPECIFIC_OVERRIDES.items():
        if make_key.startswith(key):
            return overrides
    return {}


def uses_timing_chain(vehicle: VehicleData) -> bool:
    if vehicle.year is not None and vehicle.year >= TIMING_CHAIN_YEAR_CUTOFF:
        return True
    model = (vehicle.model or "").lower()
    return any(chain_model.lower() in model for chain_model in TIMING_CHAIN_MODELS)


def get_catalog_for_vehicle(vehicle: VehicleData) -> List[CatalogEntry]:
    """Standard catalog with make overrides applied and chain engines pruned."""
    overrides = _make_overrides(vehicle.make)
    catalog = [
        replace(entry, **overrides[entry.service_type])
        if entry.service_type in overrides
        else entry
        for entry in STANDARD_SERVICE_CATALOG
    ]

    if uses_timing_chain(vehicle):
        catalog = [entry for entry in catalog if entry.service_type != TIMING_BELT_SERVICE]

    return catalog


def find_last_service(
    history: Sequence[ServiceHistoryEntry], service_type: str
) -> Optional[ServiceHistoryEntry]:
    """Most recent history entry whose label matches (case-insensitive)."""
    wanted = service_type.strip().lower()
    matches = [entry for entry in history if entry.service_type.strip().lower() == wanted]
    if not matches:
        return None
    return max(matches, key=lambda entry: entry.service_date)


def project_catalog_due(
    entry: CatalogEntry,
    vehicle: VehicleData,
    last_service: Optional[ServiceHistoryEntry],
    today: date,
    average_daily_miles: Optional[int] = None,
) -> Tuple[Optional[date], Optional[int]]:
    """
    Next-due (date, mileage) for a catalog entry.

    With history the last service is the anchor. Without it the vehicle is
    assumed to have kept up with every interval so far: the next due
    mileage is the current mileage rounded up to a multiple of the interval
    (at least one interval), and the date is estimated from average daily
    driving.
    """
    if last_service is not None:
        due_date = last_service.service_date + timedelta(days=entry.time_interval_days)
        due_mileage = (
            last_service.mileage + entry.mileage_interval
            if last_service.mileage is not None
            else None
        )
        return due_date, due_mileage

    if vehicle.mileage is None:
        return None, None

    intervals = max(1, math.ceil(vehicle.mileage / entry.mileage_interval))
    due_mileage = intervals * entry.mileage_interval
    daily = average_daily_miles or settings.AVERAGE_DAILY_MILES
    days_out = math.ceil(max(0, due_mileage - vehicle.mileage) / daily)
    return today + timedelta(days=days_out), due_mileage


def _build_reason(
    overdue: bool,
    days_until_due: Optional[int],
    miles_until_due: Optional[int],
    thresholds: UrgencyThresholds,
) -> str:
    parts: List[str] = []
    if overdue:
        if miles_until_due is not None and miles_until_due < 0:
            parts.append(f"{-miles_until_due:,} miles")
        if days_until_due is not None and days_until_due < 0:
            parts.append(f"{-days_until_due} days")
        return f"Overdue by {' and '.join(parts)}"

    if miles_until_due is not None and miles_until_due <= thresholds.upcoming_miles:
        parts.append(f"{miles_until_due:,} miles")
    if days_until_due is not None and days_until_due <= thresholds.upcoming_days:
        parts.append(f"{days_until_due} days")
    if not parts:
        return ""
    return f"Due in {' or '.join(parts)}"


def get_service_recommendations(
    vehicle: VehicleData,
    history: Sequence[ServiceHistoryEntry],
    today: Optional[date] = None,
    thresholds: UrgencyThresholds = CATALOG_THRESHOLDS,
) -> List[ServiceRecommendation]:
    """
    Calculate service recommendations from vehicle data and history.

    Only overdue services and services due within the upcoming window
    (30 days or 1000 miles by default) are returned. Overdue services have
    their priority raised one level. Sorted overdue first, then by
    priority (critical, high, medium, low).
    """
    today = today or date.today()
    recommendations: List[ServiceRecommendation] = []

    for entry in get_catalog_for_vehicle(vehicle):
        last_service = find_last_service(history, entry.service_type)
        due_date, due_mileage = project_catalog_due(entry, vehicle, last_service, today)
        if due_date is None and due_mileage is None:
            continue

        days_until_due = (due_date - today).days if due_date is not None else None
        miles_until_due = (
            due_mileage - vehicle.mileage
            if due_mileage is not None and vehicle.mileage is not None
            else None
        )

        urgency = classify_urgency(days_until_due, miles_until_due, thresholds)
        if urgency == Urgency.SCHEDULED:
            continue

        overdue = urgency == Urgency.OVERDUE
        recommendations.append(
            ServiceRecommendation(
                service_type=entry.service_type,
                reason=_build_reason(overdue, days_until_due, miles_until_due, thresholds),
                priority=ESCALATION[entry.priority] if overdue else entry.priority,
                due_by_date=due_date,
                due_by_mileage=due_mileage,
                overdue=overdue,
                urgency=urgency,
                days_until_due=days_until_due,
                miles_until_due=miles_until_due,
                overdue_by_days=-days_until_due
                if overdue and days_until_due is not None and days_until_due < 0
                else None,
                overdue_by_miles=-miles_until_due
                if overdue and miles_until_due is not None and miles_until_due < 0
                else None,
                estimated_cost=entry.estimated_cost,
            )
        )

    recommendations.sort(key=lambda rec: (not rec.overdue, PRIORITY_RANK[rec.priority]))
    return recommendations


def get_upcoming_catalog_services(
    vehicle: VehicleData,
    history: Sequence[ServiceHistoryEntry],
    lookahead_miles: int = 10000,
    lookahead_days: int = 365,
    today: Optional[date] = None,
) -> List[ServiceRecommendation]:
    """Every catalog service projected to fall due inside the look-ahead window."""
    today = today or date.today()
    max_date = today + timedelta(days=lookahead_days)
    max_mileage = vehicle.mileage + lookahead_miles if vehicle.mileage is not None else None
    upcoming: List[ServiceRecommendation] = []

    for entry in get_catalog_for_vehicle(vehicle):
        last_service = find_last_service(history, entry.service_type)
        due_date, due_mileage = project_catalog_due(entry, vehicle, last_service, today)

        in_window = (due_date is not None and due_date <= max_date) or (
            due_mileage is not None and max_mileage is not None and due_mileage <= max_mileage
        )
        if not in_window:
            continue

        days_until_due = (due_date - today).days if due_date is not None else None
        miles_until_due = (
            due_mileage - vehicle.mileage
            if due_mileage is not None and vehicle.mileage is not None
            else None
        )
        urgency = classify_urgency(days_until_due, miles_until_due)

        upcoming.append(
            ServiceRecommendation(
                service_type=entry.service_type,
                reason=entry.description,
                priority=entry.priority,
                due_by_date=due_date,
                due_by_mileage=due_mileage,
                overdue=urgency == Urgency.OVERDUE,
                urgency=urgency,
                days_until_due=days_until_due,
                miles_until_due=miles_until_due,
                estimated_cost=entry.estimated_cost,
            )
        )

    upcoming.sort(
        key=lambda rec: rec.due_by_mileage if rec.due_by_mileage is not None else math.inf
    )
    return upcoming


def estimate_annual_service_costs(
    vehicle: VehicleData, annual_mileage: int = 12000
) -> AnnualCostEstimate:
    """
    Estimate yearly maintenance spend for a vehicle.

    A service counts when it occurs at least once every two years, driven
    by whichever of mileage or time makes it more frequent.
    """
    breakdown: List[Dict[str, Any]] = []

    for entry in get_catalog_for_vehicle(vehicle):
        if entry.estimated_cost is None:
            continue

        by_mileage = annual_mileage / entry.mileage_interval
        by_time = 365 / entry.time_interval_days
        occurrences = max(by_mileage, by_time)
        if occurrences < 0.5:
            continue

        count = math.ceil(occurrences)
        breakdown.append(
            {
                "service": entry.service_type,
                "occurrences": count,
                "cost": entry.estimated_cost.total * count,
            }
        )

    breakdown.sort(key=lambda item: item["cost"], reverse=True)
    return AnnualCostEstimate(total=sum(item["cost"] for item in breakdown), breakdown=breakdown)
