"""
Purpose: Owns the dispatcher's working state (vehicles, people, ride log, tariff).
What it does:
- schedule_ride / confirm_assignment: turn requests and engine results into ride-log entries
- update_ride_status: keeps vehicle availability in step with the ride log
- release_expired_vehicles: busy periods that have run out
- pending_notifications: reminders the dispatcher should see now
- ride_stats: ride and revenue analytics over a date range
- to_json / from_json: whole-board snapshot for import/export

Rule: the board owns state transitions, the Dispatcher owns the assignment logic.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from fleet.models import Person, Vehicle
from fleet.state import mark_available, mark_busy, release_if_expired
from i18n import DEFAULT_LANGUAGE, Translator
from rides.analytics import DateRange, RideStats, ride_stats
from rides.export import write_ride_log_csv
from rides.models import (
    Notification,
    NotificationType,
    RideLog,
    RideRequest,
    RideStatus,
    parse_pickup_time,
)
from rides.sms import generate_sms
from rides.tariff import DEFAULT_TARIFF, Tariff
from .models import AssignmentResult
from .policy import DispatchPolicy, default_policy

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class SmsPreview:
    """Text to send when a scheduled ride is dispatched, and where to send it."""
    sms: str
    driver_phone: Optional[str]


@dataclass
class DispatchBoard:
    """
    In-memory dispatch state.

    Vehicles are frozen snapshots replaced on every transition; the ride log
    is kept newest first.
    """
    vehicles: Dict[int, Vehicle] = field(default_factory=dict)
    people: Dict[int, Person] = field(default_factory=dict)
    ride_log: List[RideLog] = field(default_factory=list)
    tariff: Tariff = DEFAULT_TARIFF
    language: str = DEFAULT_LANGUAGE
    policy: DispatchPolicy = field(default_factory=default_policy)

    # ----------------
    # fleet and people
    # ----------------
    def vehicle(self, vehicle_id: int) -> Vehicle:
        if vehicle_id not in self.vehicles:
            raise KeyError(f"Unknown vehicle {vehicle_id}")
        return self.vehicles[vehicle_id]

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        if vehicle.id in self.vehicles:
            raise ValueError(f"Vehicle {vehicle.id} already exists")
        self.vehicles[vehicle.id] = vehicle
        return vehicle

    def update_vehicle(self, vehicle: Vehicle) -> Vehicle:
        self.vehicle(vehicle.id)
        self.vehicles[vehicle.id] = vehicle
        return vehicle

    def remove_vehicle(self, vehicle_id: int) -> None:
        self.vehicle(vehicle_id)
        del self.vehicles[vehicle_id]

    def next_vehicle_id(self) -> int:
        return max(self.vehicles, default=0) + 1

    def add_person(self, person: Person) -> Person:
        if person.id in self.people:
            raise ValueError(f"Person {person.id} already exists")
        self.people[person.id] = person
        return person

    def remove_person(self, person_id: int) -> None:
        if person_id not in self.people:
            raise KeyError(f"Unknown person {person_id}")
        del self.people[person_id]
        # nobody drives a vehicle whose driver left
        for vehicle_id, vehicle in list(self.vehicles.items()):
            if vehicle.driver_id == person_id:
                self.vehicles[vehicle_id] = replace(vehicle, driver_id=None)

    def driver_for(self, vehicle: Vehicle) -> Optional[Person]:
        if vehicle.driver_id is None:
            return None
        return self.people.get(vehicle.driver_id)

    # ----------------
    # ride log
    # ----------------
    def ride(self, log_id: str) -> RideLog:
        for entry in self.ride_log:
            if entry.id == log_id:
                return entry
        raise KeyError(f"Unknown ride {log_id}")

    def schedule_ride(self, ride: RideRequest, now: Optional[datetime] = None) -> RideLog:
        """A ride booked for later: logged without a vehicle."""
        entry = RideLog(
            customer_name=ride.customer_name,
            customer_phone=ride.customer_phone,
            stops=list(ride.stops),
            passengers=ride.passengers,
            pickup_time=ride.pickup_time,
            status=RideStatus.SCHEDULED,
            timestamp=now or datetime.now(),
            notes=ride.notes,
            estimated_pickup_at=parse_pickup_time(ride.pickup_time),
        )
        self.ride_log.insert(0, entry)
        logger.info(f"Scheduled ride {entry.id} for {ride.customer_name}")
        return entry

    def confirm_assignment(
        self,
        result: AssignmentResult,
        vehicle_id: int,
        ride_duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RideLog:
        """
        Dispatches the ride to one of the result's vehicles (recommended or an alternative).

        The vehicle is busy for its ETA plus the ride duration (the override,
        else the routed duration, else the policy default) and ends up at the
        ride's final stop.
        """
        alternative = result.alternative_for(vehicle_id)
        if alternative is None:
            raise ValueError(f"Vehicle {vehicle_id} is not part of this assignment")

        now = now or datetime.now()
        duration = ride_duration_minutes
        if duration is None:
            duration = result.ride_duration_minutes or self.policy.default_ride_duration_minutes
        busy_until = now + timedelta(minutes=alternative.eta_minutes + duration)

        vehicle = mark_busy(self.vehicle(vehicle_id), free_at=busy_until, location=result.stops[-1])
        self.vehicles[vehicle_id] = vehicle

        ride = result.ride_request
        entry = RideLog(
            customer_name=ride.customer_name,
            customer_phone=ride.customer_phone,
            stops=list(result.stops),
            passengers=ride.passengers,
            pickup_time=ride.pickup_time,
            status=RideStatus.ON_THE_WAY,
            timestamp=now,
            notes=ride.notes,
            estimated_price=alternative.estimated_price,
            estimated_pickup_at=now + timedelta(minutes=alternative.eta_minutes),
            estimated_completion_at=busy_until,
        )
        self._assign_vehicle(entry, vehicle)
        self.ride_log.insert(0, entry)
        logger.info(f"Ride {entry.id} dispatched to vehicle {vehicle.id}, busy until {busy_until:%H:%M}")
        return entry

    def update_ride_status(
        self,
        log_id: str,
        status: RideStatus,
        vehicle_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[SmsPreview]:
        """
        Changes a ride's status and keeps its vehicle in step.

        The vehicle transition is worked out before anything is changed, so a
        refused transition leaves the ride untouched. A ride whose vehicle was
        removed from the fleet only changes status.
        Returns the SMS to send when a scheduled ride goes on the way.
        """
        entry = self.ride(log_id)
        previous = entry.status
        now = now or datetime.now()

        assigned = self.vehicle(vehicle_id) if vehicle_id is not None else None
        target_id = assigned.id if assigned is not None else entry.vehicle_id
        vehicle = self.vehicles.get(target_id) if target_id is not None else None

        completion_at = entry.estimated_completion_at
        updated = None
        if vehicle is not None and previous != status:
            if status.is_closed:
                updated = mark_available(vehicle)
            elif status == RideStatus.ON_THE_WAY:
                if completion_at is None:
                    completion_at = now + timedelta(minutes=self.policy.default_ride_duration_minutes)
                updated = mark_busy(vehicle, free_at=completion_at)

        if assigned is not None:
            self._assign_vehicle(entry, assigned)
        entry.status = status
        if updated is None:
            return None

        self.vehicles[updated.id] = updated
        if status == RideStatus.ON_THE_WAY:
            entry.estimated_completion_at = completion_at

        if previous == RideStatus.SCHEDULED and status == RideStatus.ON_THE_WAY:
            driver = self.driver_for(updated)
            return SmsPreview(
                sms=generate_sms(entry, Translator(self.language)),
                driver_phone=driver.phone if driver else None,
            )
        return None

    def mark_sms_sent(self, log_id: str) -> RideLog:
        entry = self.ride(log_id)
        entry.sms_sent = True
        return entry

    def delete_ride(self, log_id: str) -> None:
        entry = self.ride(log_id)
        self.ride_log.remove(entry)

    def visible_rides(self, include_closed: bool = False, sort_by: str = "timestamp",
                      descending: bool = True) -> List[RideLog]:
        if sort_by not in ("timestamp", "customer_name"):
            raise ValueError(f"Cannot sort rides by {sort_by!r}")
        rides = [entry for entry in self.ride_log if include_closed or not entry.status.is_closed]
        if sort_by == "customer_name":
            return sorted(rides, key=lambda entry: entry.customer_name.lower(), reverse=descending)
        return sorted(rides, key=lambda entry: entry.timestamp, reverse=descending)

    def _assign_vehicle(self, entry: RideLog, vehicle: Vehicle) -> None:
        driver = self.driver_for(vehicle)
        entry.vehicle_id = vehicle.id
        entry.vehicle_name = vehicle.name
        entry.vehicle_license_plate = vehicle.license_plate
        entry.vehicle_type = vehicle.type
        entry.driver_name = driver.name if driver else None

    # ----------------
    # periodic checks
    # ----------------
    def release_expired_vehicles(self, now: Optional[datetime] = None) -> List[int]:
        now = now or datetime.now()
        released = []
        for vehicle_id, vehicle in list(self.vehicles.items()):
            updated = release_if_expired(vehicle, now)
            if updated is not vehicle:
                self.vehicles[vehicle_id] = updated
                released.append(vehicle_id)
        if released:
            logger.info(f"Vehicles available again: {released}")
        return released

    def pending_notifications(self, now: Optional[datetime] = None,
                              existing_ids: Iterable[str] = ()) -> List[Notification]:
        """
        Reminders due at `now` that the dispatcher has not seen yet.

        A scheduled-ride reminder fires in the one-minute window before each
        configured lead time; an unsent SMS is flagged once the ride has been
        on the way for the configured number of minutes.
        """
        now = now or datetime.now()
        seen = set(existing_ids)
        notifications = []

        for entry in self.ride_log:
            if entry.status == RideStatus.SCHEDULED:
                pickup_at = parse_pickup_time(entry.pickup_time)
                if pickup_at is None:
                    continue
                minutes_to_pickup = (pickup_at - now).total_seconds() / 60
                for lead in self.policy.scheduled_reminder_minutes:
                    notification_id = f"reminder-{lead}-{entry.id}"
                    if lead - 1 < minutes_to_pickup <= lead and notification_id not in seen:
                        notifications.append(Notification(
                            id=notification_id,
                            type=NotificationType.REMINDER,
                            title_key="notifications.scheduledRide.title",
                            message_key="notifications.scheduledRide.message",
                            message_params={
                                "customerName": entry.customer_name,
                                "pickupAddress": entry.pickup_address,
                                "minutes": str(lead),
                            },
                            timestamp=now,
                            ride_log_id=entry.id,
                        ))

            elif entry.status == RideStatus.ON_THE_WAY and not entry.sms_sent:
                notification_id = f"sms-reminder-{entry.id}"
                minutes_since_dispatch = (now - entry.timestamp).total_seconds() / 60
                if minutes_since_dispatch >= self.policy.sms_reminder_after_minutes and notification_id not in seen:
                    notifications.append(Notification(
                        id=notification_id,
                        type=NotificationType.DELAY,
                        title_key="notifications.smsReminder.title",
                        message_key="notifications.smsReminder.message",
                        message_params={
                            "customerName": entry.customer_name,
                            "driverName": entry.driver_name or "N/A",
                        },
                        timestamp=now,
                        ride_log_id=entry.id,
                    ))

        return notifications

    def ride_stats(self, date_range: DateRange = DateRange.LAST_7_DAYS,
                   now: Optional[datetime] = None) -> RideStats:
        return ride_stats(self.ride_log, list(self.vehicles.values()), date_range, now)

    # ----------------
    # import / export
    # ----------------
    def export_ride_log_csv(self, destination, language: Optional[str] = None) -> int:
        return write_ride_log_csv(self.ride_log, destination, Translator(language or self.language))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "language": self.language,
            "vehicles": [vehicle.to_dict() for vehicle in self.vehicles.values()],
            "people": [person.to_dict() for person in self.people.values()],
            "ride_log": [entry.to_dict() for entry in self.ride_log],
            "tariff": self.tariff.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], policy: Optional[DispatchPolicy] = None) -> DispatchBoard:
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported board snapshot version {version}")

        vehicles = [Vehicle.from_dict(item) for item in data.get("vehicles", [])]
        people = [Person.from_dict(item) for item in data.get("people", [])]
        return cls(
            vehicles={vehicle.id: vehicle for vehicle in vehicles},
            people={person.id: person for person in people},
            ride_log=[RideLog.from_dict(item) for item in data.get("ride_log", [])],
            tariff=Tariff.from_dict(data["tariff"]) if "tariff" in data else DEFAULT_TARIFF,
            language=data.get("language", DEFAULT_LANGUAGE),
            policy=policy or default_policy(),
        )

    @classmethod
    def from_json(cls, text: str, policy: Optional[DispatchPolicy] = None) -> DispatchBoard:
        return cls.from_dict(json.loads(text), policy=policy)
