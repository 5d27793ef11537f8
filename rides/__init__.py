"""
Rides domain package.

Public API:
- Domain models: RideRequest, RideLog, RideStatus, Notification
- Pricing: Tariff, FlatRateRule, calculate_price, DEFAULT_TARIFF
- Driver text: generate_sms, generate_share_link, generate_navigation_url
- Analytics: ride_stats over a DateRange
"""
from .analytics import DateRange, RideStats, VehicleStats, ride_stats
from .models import PICKUP_IMMEDIATELY, Notification, NotificationType, RideLog, RideRequest, RideStatus
from .sms import MessagingApp, generate_navigation_url, generate_share_link, generate_sms
from .tariff import DEFAULT_TARIFF, FlatRateRule, Tariff, calculate_price

__all__ = [
    "DateRange",
    "RideStats",
    "VehicleStats",
    "ride_stats",
    "PICKUP_IMMEDIATELY",
    "Notification",
    "NotificationType",
    "RideLog",
    "RideRequest",
    "RideStatus",
    "MessagingApp",
    "generate_navigation_url",
    "generate_share_link",
    "generate_sms",
    "DEFAULT_TARIFF",
    "FlatRateRule",
    "Tariff",
    "calculate_price",
]
