"""
Fleet domain package.

Public API:
- Domain models: Vehicle, VehicleType, VehicleStatus, Person, PersonRole
- Eligibility rules: vehicles_in_service, queue_wait_minutes, has_capacity
- State transitions: mark_busy, mark_available, release_if_expired
"""
from .models import Person, PersonRole, Vehicle, VehicleStatus, VehicleType
from .selection import has_capacity, queue_wait_minutes, vehicles_in_service
from .state import VehicleStateException, mark_available, mark_busy, release_if_expired

__all__ = [
    "Person",
    "PersonRole",
    "Vehicle",
    "VehicleStatus",
    "VehicleType",
    "has_capacity",
    "queue_wait_minutes",
    "vehicles_in_service",
    "VehicleStateException",
    "mark_available",
    "mark_busy",
    "release_if_expired",
]
