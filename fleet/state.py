from dataclasses import replace
from datetime import datetime
from typing import Optional

from .models import Vehicle, VehicleStatus


class VehicleStateException(Exception):
    """Raised when an invalid vehicle transition is attempted."""
    pass


def mark_busy(vehicle: Vehicle, free_at: Optional[datetime], location: Optional[str] = None) -> Vehicle:
    """
    Called when a ride is dispatched to the vehicle.
    It stays busy until `free_at` and, when given, ends up at `location`
    (the ride's final stop).
    """
    if not vehicle.status.in_service:
        raise VehicleStateException(f"Vehicle {vehicle.id} is {vehicle.status.value} and cannot take a ride")

    # Vehicle is a frozen dataclass, so every transition returns a new instance
    return replace(
        vehicle,
        status=VehicleStatus.BUSY,
        free_at=free_at,
        location=location if location is not None else vehicle.location,
    )


def mark_available(vehicle: Vehicle) -> Vehicle:
    """
    Called when the vehicle's ride is completed or cancelled.
    Only a busy vehicle is freed; out-of-service stays out of service.
    """
    if vehicle.status != VehicleStatus.BUSY:
        return vehicle
    return replace(vehicle, status=VehicleStatus.AVAILABLE, free_at=None)


def release_if_expired(vehicle: Vehicle, now: datetime) -> Vehicle:
    """
    Busy and out-of-service vehicles with a known end time come back on their
    own once that time has passed.
    """
    if vehicle.status not in (VehicleStatus.BUSY, VehicleStatus.OUT_OF_SERVICE):
        return vehicle
    if vehicle.free_at is None or vehicle.free_at >= now:
        return vehicle
    return replace(vehicle, status=VehicleStatus.AVAILABLE, free_at=None)
