"""
Purpose: Business rules for which vehicles can take a ride.
What it does:
Filters the fleet down to vehicles in service, computes how long a busy
vehicle still has to finish its current ride, and applies the seating rule.
"""

from datetime import datetime
from typing import List, Sequence

from routing.matrix_adapter import round_half_up
from .models import Vehicle, VehicleStatus


def vehicles_in_service(vehicles: Sequence[Vehicle]) -> List[Vehicle]:
    """
    Returns only vehicles that are driving today and not out of service.
    Busy vehicles stay in: they can take the ride after their queue wait.
    """
    return [vehicle for vehicle in vehicles if vehicle.status.in_service]


def queue_wait_minutes(vehicle: Vehicle, now: datetime) -> int:
    """
    Minutes until a busy vehicle is free, floored at zero.
    Vehicles that are not busy, or have no known free-at time, wait 0.
    """
    if vehicle.status != VehicleStatus.BUSY or vehicle.free_at is None:
        return 0
    remaining_minutes = (vehicle.free_at - now).total_seconds() / 60
    return max(0, round_half_up(remaining_minutes))


def has_capacity(vehicle: Vehicle, passengers: int) -> bool:
    return vehicle.capacity >= passengers
