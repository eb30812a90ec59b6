"""
Services package for the maintenance engine.
"""

from .notification_service import NotificationTransport, TwilioSmtpTransport
from .service_catalog import get_service_recommendations
from .service_intervals import get_service_intervals
from .service_schedule import advance_service_schedule, create_service_schedule
from .urgency import classify_urgency, evaluate_schedule
from .vehicle_category import VehicleCategory, determine_vehicle_category
from .vehicle_profiler import profile_vehicle
from .vin_decoder import decode_vin

__all__ = [
    "decode_vin",
    "determine_vehicle_category",
    "VehicleCategory",
    "get_service_intervals",
    "create_service_schedule",
    "advance_service_schedule",
    "classify_urgency",
    "evaluate_schedule",
    "get_service_recommendations",
    "profile_vehicle",
    "NotificationTransport",
    "TwilioSmtpTransport",
]
