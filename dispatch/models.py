"""
Purpose: What the assignment engine hands back.
What it does:
- AssignmentAlternative: one vehicle's ETA / queue wait / price for the ride
- AssignmentResult: the recommended alternative plus the ranked rest
- AssignmentError: a message key (+ optional detail) instead of an exception,
  so the caller can render a localized message
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from fleet.models import Vehicle
from rides.models import RideRequest


@dataclass(frozen=True)
class AssignmentAlternative:
    vehicle: Vehicle
    eta_minutes: int  # travel to pickup + queue wait
    wait_minutes: int
    estimated_price: int


@dataclass(frozen=True)
class AssignmentResult:
    recommended: AssignmentAlternative
    alternatives: List[AssignmentAlternative]
    ride_request: RideRequest
    sms: str
    ride_duration_minutes: Optional[int] = None
    ride_distance_km: Optional[float] = None
    # Visiting order after optimization, None when the order was kept.
    optimized_stops: Optional[Tuple[str, ...]] = None

    @property
    def vehicle(self) -> Vehicle:
        return self.recommended.vehicle

    @property
    def eta_minutes(self) -> int:
        return self.recommended.eta_minutes

    @property
    def estimated_price(self) -> int:
        return self.recommended.estimated_price

    @property
    def stops(self) -> Tuple[str, ...]:
        return self.optimized_stops or self.ride_request.stops

    def alternative_for(self, vehicle_id: int) -> Optional[AssignmentAlternative]:
        for alternative in [self.recommended, *self.alternatives]:
            if alternative.vehicle.id == vehicle_id:
                return alternative
        return None


class ErrorKey:
    MISSING_API_KEY = "error.missingApiKey"
    NO_VEHICLES_IN_SERVICE = "error.noVehiclesInService"
    INSUFFICIENT_CAPACITY = "error.insufficientCapacity"
    GEOCODING_FAILED = "error.geocodingFailed"
    MAIN_ROUTE_FAILED = "error.mainRouteCalculationFailed"
    UNKNOWN = "error.unknown"


@dataclass(frozen=True)
class AssignmentError:
    message_key: str
    detail: Optional[str] = field(default=None)

    def render(self, t: Callable[..., str]) -> str:
        return t(self.message_key, {"detail": self.detail or ""})
