"""
Purpose: Ranking/selection (the "who is best" layer).
Takes the in-service vehicles with their travel ETA to the pickup and produces:
- one AssignmentAlternative per vehicle (ETA incl. queue wait, price)
- the capacity-qualified list, sorted by total ETA
- the recommended vehicle (lowest ETA, or the advisor's pick among the qualified)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from fleet.models import Vehicle
from fleet.selection import has_capacity, queue_wait_minutes
from rides.models import RideRequest
from rides.tariff import Tariff, calculate_price
from .models import AssignmentAlternative
from .policy import DispatchPolicy, default_policy

logger = logging.getLogger(__name__)


class VehicleChoiceAdvisor(Protocol):
    def choose_vehicle(self, ride: RideRequest, alternatives: List[AssignmentAlternative]) -> Optional[int]:
        ...


class InsufficientCapacity(Exception):
    """No in-service vehicle seats the requested number of passengers."""

    def __init__(self, passengers: int):
        super().__init__(f"No vehicle can seat {passengers} passengers")
        self.passengers = passengers


def build_alternatives(
    vehicles: Sequence[Vehicle],
    travel_eta_minutes: Sequence[Optional[int]],
    *,
    pickup_address: str,
    destination_address: str,
    ride_distance_km: float,
    passengers: int,
    tariff: Tariff,
    now: datetime,
    policy: Optional[DispatchPolicy] = None,
) -> List[AssignmentAlternative]:
    """
    One alternative per vehicle, sorted by total ETA (travel + queue wait).
    A vehicle whose route to the pickup is unknown gets the unreachable sentinel.
    Python's sort is stable, so equal ETAs keep fleet order.
    """
    policy = policy or default_policy()
    alternatives = []

    for vehicle, travel_eta in zip(vehicles, travel_eta_minutes):
        eta = travel_eta if travel_eta is not None else policy.unreachable_eta_minutes
        wait = queue_wait_minutes(vehicle, now)
        alternatives.append(
            AssignmentAlternative(
                vehicle=vehicle,
                eta_minutes=eta + wait,
                wait_minutes=wait,
                estimated_price=calculate_price(
                    pickup_address,
                    destination_address,
                    ride_distance_km,
                    vehicle.type,
                    passengers,
                    tariff,
                    van_passenger_threshold=policy.van_passenger_threshold,
                ),
            )
        )

    alternatives.sort(key=lambda alternative: alternative.eta_minutes)
    return alternatives


def select_vehicle(
    ride: RideRequest,
    alternatives: List[AssignmentAlternative],
    advisor: Optional[VehicleChoiceAdvisor] = None,
) -> Tuple[AssignmentAlternative, List[AssignmentAlternative]]:
    """
    Filters the ETA-sorted alternatives by capacity and picks the winner.

    Returns (winner, remaining qualified alternatives in ETA order).
    Raises InsufficientCapacity when nobody qualifies.
    """
    suitable = [alternative for alternative in alternatives if has_capacity(alternative.vehicle, ride.passengers)]
    if not suitable:
        raise InsufficientCapacity(ride.passengers)

    best = suitable[0]
    if advisor is not None:
        best = _advisor_choice(ride, suitable, advisor) or best

    others = [alternative for alternative in suitable if alternative.vehicle.id != best.vehicle.id]
    return best, others


def _advisor_choice(
    ride: RideRequest,
    suitable: List[AssignmentAlternative],
    advisor: VehicleChoiceAdvisor,
) -> Optional[AssignmentAlternative]:
    try:
        vehicle_id = advisor.choose_vehicle(ride, suitable)
    except Exception as e:
        logger.error(f"Vehicle choice advisor failed, using lowest ETA: {e}")
        return None

    for alternative in suitable:
        if alternative.vehicle.id == vehicle_id:
            return alternative

    logger.warning(f"Vehicle choice advisor returned unknown vehicle id {vehicle_id!r}, using lowest ETA")
    return None
