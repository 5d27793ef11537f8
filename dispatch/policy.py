"""
Purpose: Central configuration for the assignment engine and the dispatch board.
What it does:

Stores all tunable thresholds/sentinels:

UNREACHABLE_ETA_MINUTES = 999
DEFAULT_RIDE_DURATION_MINUTES = 30
VAN_PASSENGER_THRESHOLD = 4

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Central configuration for vehicle assignment and ride bookkeeping.
    """

    # --- Routing sentinels ---
    # ETA used for a vehicle whose route to the pickup could not be computed.
    # Large enough to sort it behind every reachable vehicle.
    unreachable_eta_minutes: int = 999

    # --- Stop optimization ---
    # Reordering only makes sense with a pickup and at least two more stops.
    min_stops_to_optimize: int = 3

    # --- Pricing ---
    # Rides for more passengers than this are charged at the van rate.
    van_passenger_threshold: int = 4

    # --- Ride bookkeeping ---
    # Busy time assumed when the main route duration is unknown.
    default_ride_duration_minutes: int = 30

    # --- Notifications ---
    # Minutes-before-pickup windows for scheduled-ride reminders.
    scheduled_reminder_minutes: List[int] = field(default_factory=lambda: [15, 5])
    # Minutes after dispatch before an unsent SMS raises a reminder.
    sms_reminder_after_minutes: int = 5

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.unreachable_eta_minutes <= 0:
            raise ValueError("unreachable_eta_minutes must be > 0")

        if self.min_stops_to_optimize < 3:
            raise ValueError("min_stops_to_optimize must be >= 3 (pickup stays fixed)")

        if self.van_passenger_threshold < 1:
            raise ValueError("van_passenger_threshold must be >= 1")

        if self.default_ride_duration_minutes <= 0:
            raise ValueError("default_ride_duration_minutes must be > 0")

        if any(minutes <= 0 for minutes in self.scheduled_reminder_minutes):
            raise ValueError("scheduled_reminder_minutes must all be > 0")

        if self.sms_reminder_after_minutes < 0:
            raise ValueError("sms_reminder_after_minutes must be >= 0")


def default_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy()
    p.validate()
    return p
