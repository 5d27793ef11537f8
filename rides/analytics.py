"""
Purpose: Ride-log statistics for the dispatcher's analytics view.
What it does:
- filter_by_range(): rides created today / in the last 7 or 30 days / ever
- ride_stats(): totals over the range plus completed rides and revenue per vehicle

Revenue is the estimated price of completed rides. Vehicles removed from the
fleet still show up when the log has completed rides for them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

import pandas as pd

from fleet.models import Vehicle
from .models import RideLog, RideStatus


class DateRange(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    ALL = "all"


RANGE_DAYS = {
    DateRange.TODAY: 0,
    DateRange.LAST_7_DAYS: 7,
    DateRange.LAST_30_DAYS: 30,
}


@dataclass(frozen=True)
class VehicleStats:
    vehicle_id: int
    vehicle_name: str
    license_plate: str
    ride_count: int
    revenue: int


@dataclass(frozen=True)
class RideStats:
    total_rides: int
    completed_rides: int
    total_revenue: int
    rides_cancelled: int
    avg_price_per_ride: float
    vehicle_stats: List[VehicleStats]


def filter_by_range(ride_log: Sequence[RideLog], date_range: DateRange, now: datetime) -> List[RideLog]:
    if date_range == DateRange.ALL:
        return list(ride_log)

    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = start_of_today - timedelta(days=RANGE_DAYS[date_range])
    return [entry for entry in ride_log if entry.timestamp >= start]


def ride_stats(
    ride_log: Sequence[RideLog],
    vehicles: Sequence[Vehicle],
    date_range: DateRange = DateRange.LAST_7_DAYS,
    now: Optional[datetime] = None,
) -> RideStats:
    rides = filter_by_range(ride_log, DateRange(date_range), now or datetime.now())

    frame = pd.DataFrame(
        [
            {
                "vehicle_id": entry.vehicle_id,
                "vehicle_name": entry.vehicle_name,
                "license_plate": entry.vehicle_license_plate,
                "status": entry.status.value,
                "price": entry.estimated_price or 0,
            }
            for entry in rides
        ],
        columns=["vehicle_id", "vehicle_name", "license_plate", "status", "price"],
    )

    completed = frame[frame["status"] == RideStatus.COMPLETED.value]
    total_revenue = int(completed["price"].sum())
    completed_rides = len(completed)

    return RideStats(
        total_rides=len(frame),
        completed_rides=completed_rides,
        total_revenue=total_revenue,
        rides_cancelled=int((frame["status"] == RideStatus.CANCELLED.value).sum()),
        avg_price_per_ride=total_revenue / completed_rides if completed_rides else 0,
        vehicle_stats=_vehicle_stats(completed, vehicles),
    )


def _vehicle_stats(completed: pd.DataFrame, vehicles: Sequence[Vehicle]) -> List[VehicleStats]:
    # every vehicle of the fleet, even without rides in the range
    stats = {
        vehicle.id: VehicleStats(vehicle.id, vehicle.name, vehicle.license_plate, 0, 0)
        for vehicle in vehicles
    }

    assigned = completed.dropna(subset=["vehicle_id"])
    if not assigned.empty:
        per_vehicle = assigned.groupby("vehicle_id").agg({
            "price": ["size", "sum"],
            "vehicle_name": "last",
            "license_plate": "last",
        })

        for raw_id, row in per_vehicle.iterrows():
            vehicle_id = int(raw_id)
            known = stats.get(vehicle_id)
            stats[vehicle_id] = VehicleStats(
                vehicle_id=vehicle_id,
                vehicle_name=known.vehicle_name if known else _text(row[("vehicle_name", "last")], f"Vehicle #{vehicle_id}"),
                license_plate=known.license_plate if known else _text(row[("license_plate", "last")], "N/A"),
                ride_count=int(row[("price", "size")]),
                revenue=int(row[("price", "sum")]),
            )

    # stable sort: equal counts keep fleet order
    return sorted(stats.values(), key=lambda item: item.ride_count, reverse=True)


def _text(value, default: str) -> str:
    return default if pd.isna(value) or not value else str(value)
