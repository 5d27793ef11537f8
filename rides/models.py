"""
Purpose: Domain models for ride requests and the ride log.
What it does:
- RideRequest (stops, customer, passengers, pickup time, notes)
- RideLog (what was dispatched, to whom, and where it is in its lifecycle)
- Notification (dispatcher reminders derived from the ride log)

Rule: No HTTP calls, no pricing, no ranking. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import uuid

from fleet.models import VehicleType, parse_local_datetime

# Sentinel pickup time meaning "as soon as possible".
PICKUP_IMMEDIATELY = "immediately"


class RideStatus(str, Enum):
    SCHEDULED = "scheduled"
    ON_THE_WAY = "on-the-way"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_closed(self) -> bool:
        return self in (RideStatus.COMPLETED, RideStatus.CANCELLED)


@dataclass(frozen=True)
class RideRequest:
    """
    A multi-stop ride as submitted by the dispatcher.
    stops[0] is the pickup, stops[-1] the final destination.
    """
    stops: Tuple[str, ...]
    customer_name: str
    customer_phone: str
    passengers: int = 1
    pickup_time: str = PICKUP_IMMEDIATELY
    notes: Optional[str] = None

    def __post_init__(self):
        # accept any sequence, store a tuple so the request stays immutable
        object.__setattr__(self, "stops", tuple(stop.strip() for stop in self.stops))
        if len(self.stops) < 2:
            raise ValueError("A ride needs at least a pickup and a destination")
        if any(not stop for stop in self.stops):
            raise ValueError("Stops must not be empty")
        if self.passengers < 1:
            raise ValueError("passengers must be >= 1")

    @property
    def pickup_address(self) -> str:
        return self.stops[0]

    @property
    def destination_address(self) -> str:
        return self.stops[-1]

    @property
    def is_immediate(self) -> bool:
        return self.pickup_time == PICKUP_IMMEDIATELY

    def with_stops(self, stops: List[str]) -> RideRequest:
        return RideRequest(
            stops=tuple(stops),
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            passengers=self.passengers,
            pickup_time=self.pickup_time,
            notes=self.notes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stops": list(self.stops),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "passengers": self.passengers,
            "pickup_time": self.pickup_time,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RideRequest:
        return cls(
            stops=tuple(data["stops"]),
            customer_name=data["customer_name"],
            customer_phone=data["customer_phone"],
            passengers=int(data.get("passengers", 1)),
            pickup_time=data.get("pickup_time", PICKUP_IMMEDIATELY),
            notes=data.get("notes"),
        )


def _new_ride_id() -> str:
    return f"ride-{uuid.uuid4().hex[:12]}"


@dataclass
class RideLog:
    """
    One entry of the ride log. Mutable: dispatchers edit status and SMS flag.
    """
    customer_name: str
    customer_phone: str
    stops: List[str]
    passengers: int
    pickup_time: str
    status: RideStatus = RideStatus.SCHEDULED

    id: str = field(default_factory=_new_ride_id)
    timestamp: datetime = field(default_factory=datetime.now)

    # Snapshot of the assigned vehicle (None while unassigned).
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_license_plate: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    driver_name: Optional[str] = None

    sms_sent: bool = False
    notes: Optional[str] = None
    estimated_price: Optional[int] = None
    estimated_pickup_at: Optional[datetime] = None
    estimated_completion_at: Optional[datetime] = None

    @property
    def pickup_address(self) -> str:
        return self.stops[0]

    @property
    def destination_address(self) -> str:
        return self.stops[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "stops": list(self.stops),
            "passengers": self.passengers,
            "pickup_time": self.pickup_time,
            "status": self.status.value,
            "vehicle_id": self.vehicle_id,
            "vehicle_name": self.vehicle_name,
            "vehicle_license_plate": self.vehicle_license_plate,
            "vehicle_type": self.vehicle_type.value if self.vehicle_type else None,
            "driver_name": self.driver_name,
            "sms_sent": self.sms_sent,
            "notes": self.notes,
            "estimated_price": self.estimated_price,
            "estimated_pickup_at": _iso(self.estimated_pickup_at),
            "estimated_completion_at": _iso(self.estimated_completion_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RideLog:
        vehicle_type = data.get("vehicle_type")
        return cls(
            id=data["id"],
            timestamp=parse_local_datetime(data["timestamp"]),
            customer_name=data["customer_name"],
            customer_phone=data["customer_phone"],
            stops=list(data["stops"]),
            passengers=int(data.get("passengers", 1)),
            pickup_time=data.get("pickup_time", PICKUP_IMMEDIATELY),
            status=RideStatus(data.get("status", RideStatus.SCHEDULED.value)),
            vehicle_id=data.get("vehicle_id"),
            vehicle_name=data.get("vehicle_name"),
            vehicle_license_plate=data.get("vehicle_license_plate"),
            vehicle_type=VehicleType(vehicle_type) if vehicle_type else None,
            driver_name=data.get("driver_name"),
            sms_sent=bool(data.get("sms_sent", False)),
            notes=data.get("notes"),
            estimated_price=data.get("estimated_price"),
            estimated_pickup_at=parse_local_datetime(data.get("estimated_pickup_at")),
            estimated_completion_at=parse_local_datetime(data.get("estimated_completion_at")),
        )


class NotificationType(str, Enum):
    REMINDER = "reminder"
    DELAY = "delay"


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    title_key: str
    message_key: str
    message_params: Dict[str, str]
    timestamp: datetime
    ride_log_id: str


def parse_pickup_time(pickup_time: str) -> Optional[datetime]:
    """Returns the pickup datetime, or None for "immediately" and unparseable text."""
    if not pickup_time or pickup_time == PICKUP_IMMEDIATELY:
        return None
    try:
        return parse_local_datetime(pickup_time)
    except ValueError:
        return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
