from datetime import timedelta

import pytest

from dispatch.board import DispatchBoard
from dispatch.dispatcher import Dispatcher
from dispatch.models import AssignmentResult
from fleet.models import Person, Vehicle, VehicleStatus, VehicleType
from fleet.state import VehicleStateException
from rides.analytics import DateRange
from rides.models import RideRequest, RideStatus


@pytest.fixture
def board(fleet):
    vehicles = {vehicle.id: vehicle for vehicle in fleet}
    vehicles[1] = Vehicle.new(1, "Superb", "3J2 1234", VehicleType.CAR, "Garage Near", 4, driver_id=10)
    return DispatchBoard(
        vehicles=vehicles,
        people={10: Person(id=10, name="Petr", phone="777 000 111")},
        language="en",
    )


@pytest.fixture
def result(geocoder, osrm, board, ride, plain_tariff, now):
    return Dispatcher(geocoder, osrm).find_best_vehicle(
        ride, list(board.vehicles.values()), plain_tariff, language="en", now=now
    )


@pytest.fixture
def scheduled(board, now):
    ride = RideRequest(stops=("Pickup A", "Dest B"), customer_name="Eva", customer_phone="1",
                       pickup_time="2025-06-01T12:15:00")
    return board.schedule_ride(ride, now=now)


def test_confirm_assignment_makes_vehicle_busy_at_destination(board, result, now):
    entry = board.confirm_assignment(result, 1, now=now)

    vehicle = board.vehicle(1)
    assert vehicle.status == VehicleStatus.BUSY
    assert vehicle.location == "Dest B"
    # 10 min to the pickup + 50 min ride
    assert vehicle.free_at == now + timedelta(minutes=60)

    assert board.ride_log[0] is entry
    assert entry.status == RideStatus.ON_THE_WAY
    assert entry.vehicle_name == "Superb"
    assert entry.driver_name == "Petr"
    assert entry.estimated_price == 250
    assert entry.estimated_pickup_at == now + timedelta(minutes=10)


def test_confirm_an_alternative_with_duration_override(board, result, now):
    board.confirm_assignment(result, 4, ride_duration_minutes=20, now=now)

    # the busy vehicle is queued: 15 min wait + 20 min ride
    assert board.vehicle(4).free_at == now + timedelta(minutes=35)


def test_confirm_rejects_vehicle_outside_the_result(board, result, now):
    with pytest.raises(ValueError):
        board.confirm_assignment(result, 5, now=now)


def test_closing_a_ride_frees_its_vehicle(board, result, now):
    entry = board.confirm_assignment(result, 1, now=now)

    preview = board.update_ride_status(entry.id, RideStatus.COMPLETED, now=now)

    assert preview is None
    assert board.vehicle(1).status == VehicleStatus.AVAILABLE
    assert board.vehicle(1).free_at is None


def test_dispatching_a_scheduled_ride_returns_sms(board, scheduled, now):
    preview = board.update_ride_status(scheduled.id, RideStatus.ON_THE_WAY, vehicle_id=1, now=now)

    assert preview.driver_phone == "777 000 111"
    assert preview.sms == "Route: 1. Pickup A, 2. Dest B. Name: Eva, Phone: 1, Passengers: 1, Pickup: 12:15"
    assert scheduled.vehicle_id == 1
    assert board.vehicle(1).status == VehicleStatus.BUSY
    assert board.vehicle(1).free_at == now + timedelta(minutes=30)


def test_release_expired_vehicles(board, now):
    assert board.release_expired_vehicles(now=now) == []
    assert board.release_expired_vehicles(now=now + timedelta(minutes=16)) == [4]
    assert board.vehicle(4).status == VehicleStatus.AVAILABLE
    assert board.vehicle(5).status == VehicleStatus.OUT_OF_SERVICE


@pytest.mark.parametrize("minutes_later, expected", [
    (0, ["reminder-15"]),
    (5, []),
    (10, ["reminder-5"]),
    (15, []),
])
def test_scheduled_ride_reminders(board, scheduled, now, minutes_later, expected):
    notifications = board.pending_notifications(now=now + timedelta(minutes=minutes_later))
    assert [n.id for n in notifications] == [f"{prefix}-{scheduled.id}" for prefix in expected]


def test_reminder_is_not_repeated(board, scheduled, now):
    seen = [n.id for n in board.pending_notifications(now=now)]
    assert board.pending_notifications(now=now, existing_ids=seen) == []


def test_unsent_sms_reminder(board, result, now):
    entry = board.confirm_assignment(result, 1, now=now)

    assert board.pending_notifications(now=now + timedelta(minutes=4)) == []

    [reminder] = board.pending_notifications(now=now + timedelta(minutes=5))
    assert reminder.id == f"sms-reminder-{entry.id}"
    assert reminder.message_params == {"customerName": "Jan", "driverName": "Petr"}

    board.mark_sms_sent(entry.id)
    assert board.pending_notifications(now=now + timedelta(minutes=5)) == []


def test_visible_rides_hide_closed_ones(board, result, scheduled, now):
    entry = board.confirm_assignment(result, 1, now=now + timedelta(minutes=1))
    board.update_ride_status(entry.id, RideStatus.CANCELLED, now=now)

    assert board.visible_rides() == [scheduled]
    assert board.visible_rides(include_closed=True) == [entry, scheduled]


def test_removing_a_driver_unassigns_the_vehicle(board):
    board.remove_person(10)

    assert board.vehicle(1).driver_id is None
    with pytest.raises(KeyError):
        board.remove_person(10)


def test_snapshot_round_trip(board, result, scheduled, now):
    board.confirm_assignment(result, 1, now=now)

    restored = DispatchBoard.from_json(board.to_json())

    assert restored.vehicles == board.vehicles
    assert restored.people == board.people
    assert restored.ride_log == board.ride_log
    assert restored.tariff == board.tariff
    assert restored.language == "en"


def test_snapshot_version_is_checked():
    with pytest.raises(ValueError):
        DispatchBoard.from_dict({"version": 99})


def test_closing_a_ride_of_a_removed_vehicle(board, result, now):
    entry = board.confirm_assignment(result, 1, now=now)
    board.remove_vehicle(1)

    assert board.update_ride_status(entry.id, RideStatus.COMPLETED, now=now) is None

    assert entry.status == RideStatus.COMPLETED
    assert 1 not in board.vehicles


def test_refused_transition_leaves_the_ride_untouched(board, scheduled, now):
    with pytest.raises(VehicleStateException):
        board.update_ride_status(scheduled.id, RideStatus.ON_THE_WAY, vehicle_id=5, now=now)

    assert scheduled.status == RideStatus.SCHEDULED
    assert scheduled.vehicle_id is None
    assert board.vehicle(5).status == VehicleStatus.OUT_OF_SERVICE


def test_unknown_vehicle_leaves_the_ride_untouched(board, scheduled, now):
    with pytest.raises(KeyError):
        board.update_ride_status(scheduled.id, RideStatus.ON_THE_WAY, vehicle_id=99, now=now)

    assert scheduled.status == RideStatus.SCHEDULED


def test_snapshot_with_offset_timestamps(geocoder, osrm, ride, plain_tariff, now):
    board = DispatchBoard.from_dict({
        "version": 1,
        "vehicles": [
            {"id": 1, "name": "Superb", "type": "car", "status": "available", "location": "Garage Near", "capacity": 4},
            {"id": 4, "name": "Camry", "type": "car", "status": "busy", "location": "Pickup A", "capacity": 4,
             "free_at": "2025-06-01T12:15:00+02:00"},
        ],
        "ride_log": [{
            "id": "ride-1", "timestamp": "2025-06-01T09:00:00+00:00", "customer_name": "Eva",
            "customer_phone": "1", "stops": ["A", "B"], "status": "completed",
        }],
    })

    assert board.vehicle(4).free_at.tzinfo is None
    assert board.ride_log[0].timestamp.tzinfo is None

    result = Dispatcher(geocoder, osrm).find_best_vehicle(
        ride, list(board.vehicles.values()), plain_tariff, now=now
    )
    assert isinstance(result, AssignmentResult)
    board.release_expired_vehicles(now=now + timedelta(days=1))
    assert board.vehicle(4).status == VehicleStatus.AVAILABLE


def test_ride_stats_on_the_board(board, result, now):
    entry = board.confirm_assignment(result, 1, now=now)
    board.update_ride_status(entry.id, RideStatus.COMPLETED, now=now)

    stats = board.ride_stats(DateRange.TODAY, now=now)

    assert stats.completed_rides == 1
    assert stats.total_revenue == 250
    assert stats.vehicle_stats[0].vehicle_id == 1
    assert len(stats.vehicle_stats) == len(board.vehicles)
