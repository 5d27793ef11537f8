"""
Purpose: Ride-log export for bookkeeping.
Builds a DataFrame with localized headers and values, written as UTF-8 CSV
with a BOM so spreadsheet apps pick up the diacritics.
"""

from __future__ import annotations

from typing import Callable, Sequence

import pandas as pd

from .models import RideLog

CSV_COLUMNS = [
    "id",
    "timestamp",
    "vehicle",
    "licensePlate",
    "vehicleType",
    "driverName",
    "customerName",
    "customerPhone",
    "pickupAddress",
    "destinationAddress",
    "pickupTime",
    "status",
    "smsSent",
    "estimatedPrice",
    "notes",
]


def ride_log_frame(ride_log: Sequence[RideLog], t: Callable[..., str]) -> pd.DataFrame:
    rows = []
    for entry in ride_log:
        rows.append([
            entry.id,
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            entry.vehicle_name or "",
            entry.vehicle_license_plate or "",
            t(f"vehicleType.{entry.vehicle_type.value}") if entry.vehicle_type else "",
            entry.driver_name or "",
            entry.customer_name,
            entry.customer_phone,
            entry.pickup_address,
            entry.destination_address,
            entry.pickup_time,
            t(f"rideStatus.{entry.status.value}"),
            t("general.yes") if entry.sms_sent else t("general.no"),
            "" if entry.estimated_price is None else entry.estimated_price,
            entry.notes or "",
        ])

    headers = [t(f"csv.{column}") for column in CSV_COLUMNS]
    return pd.DataFrame(rows, columns=headers)


def write_ride_log_csv(ride_log: Sequence[RideLog], destination, t: Callable[..., str]) -> int:
    """
    Writes the ride log to `destination` (path or text buffer).
    Returns the number of rows written; an empty log is refused.
    """
    if not ride_log:
        raise ValueError("No rides to export")

    frame = ride_log_frame(ride_log, t)
    frame.to_csv(destination, index=False, encoding="utf-8-sig")
    return len(frame)
