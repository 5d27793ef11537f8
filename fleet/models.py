"""
Purpose: Core data models for the fleet domain.
What it does:
Defines the structure of a Vehicle, its status and type, and the People
(drivers, dispatchers, management) linked to vehicles.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Everything on the board runs on naive local time; offset timestamps are converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_local_datetime(value: Optional[str]) -> Optional[datetime]:
    """ISO text -> naive local datetime. Raises ValueError on malformed text."""
    if not value:
        return None
    return to_local_naive(datetime.fromisoformat(value))


class VehicleType(str, Enum):
    CAR = "car"
    VAN = "van"


class VehicleStatus(str, Enum):
    """
    The state a vehicle can be in.
    Only AVAILABLE and BUSY vehicles are "in service" for the assignment engine.
    """
    AVAILABLE = "available"
    BUSY = "busy"
    OUT_OF_SERVICE = "out-of-service"
    NOT_DRIVING_TODAY = "not-driving-today"

    @property
    def in_service(self) -> bool:
        return self not in (VehicleStatus.OUT_OF_SERVICE, VehicleStatus.NOT_DRIVING_TODAY)


class PersonRole(str, Enum):
    DRIVER = "driver"
    MANAGEMENT = "management"
    DISPATCHER = "dispatcher"


@dataclass(frozen=True)
class Person:
    id: int
    name: str
    phone: str
    role: PersonRole = PersonRole.DRIVER

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "phone": self.phone, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Person:
        return cls(
            id=int(data["id"]),
            name=data["name"],
            phone=data.get("phone", ""),
            role=PersonRole(data.get("role", PersonRole.DRIVER.value)),
        )


@dataclass(frozen=True)
class Vehicle:
    """
    A stateless snapshot of a vehicle at a specific point in time.
    The assignment engine only reads it; board operations return new instances.
    """
    id: int
    name: str
    license_plate: str
    type: VehicleType
    status: VehicleStatus
    location: str  # free-text address, geocoded on demand
    capacity: int

    # When a busy / out-of-service vehicle becomes free again.
    free_at: Optional[datetime] = None
    driver_id: Optional[int] = None

    # Maintenance bookkeeping, not used by dispatch.
    mileage: Optional[int] = None
    service_interval_km: Optional[int] = None
    last_service_mileage: Optional[int] = None
    technical_inspection_expiry: Optional[str] = None  # YYYY-MM-DD
    vignette_expiry: Optional[str] = None  # YYYY-MM-DD
    notes: Optional[str] = None

    @classmethod
    def new(
        cls,
        vehicle_id: int,
        name: str,
        license_plate: str,
        vehicle_type: str | VehicleType,
        location: str,
        capacity: int,
        status: str | VehicleStatus = VehicleStatus.AVAILABLE,
        free_at: datetime | None = None,
        driver_id: int | None = None,
    ) -> Vehicle:
        if isinstance(vehicle_type, str):
            vehicle_type = VehicleType(vehicle_type)
        if isinstance(status, str):
            status = VehicleStatus(status)
        if capacity < 1:
            raise ValueError(f"Vehicle {vehicle_id} must seat at least one passenger")

        return cls(
            id=vehicle_id,
            name=name,
            license_plate=license_plate,
            type=vehicle_type,
            status=status,
            location=location,
            capacity=capacity,
            free_at=to_local_naive(free_at),
            driver_id=driver_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        data["free_at"] = self.free_at.isoformat() if self.free_at else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Vehicle:
        return cls(
            id=int(data["id"]),
            name=data["name"],
            license_plate=data.get("license_plate", ""),
            type=VehicleType(data["type"]),
            status=VehicleStatus(data.get("status", VehicleStatus.AVAILABLE.value)),
            location=data["location"],
            capacity=int(data["capacity"]),
            free_at=parse_local_datetime(data.get("free_at")),
            driver_id=data.get("driver_id"),
            mileage=data.get("mileage"),
            service_interval_km=data.get("service_interval_km"),
            last_service_mileage=data.get("last_service_mileage"),
            technical_inspection_expiry=data.get("technical_inspection_expiry"),
            vignette_expiry=data.get("vignette_expiry"),
            notes=data.get("notes"),
        )
