from datetime import datetime, timedelta, timezone

import pytest

from dispatch.policy import DispatchPolicy
from fleet.models import Vehicle, VehicleStatus, VehicleType, parse_local_datetime, to_local_naive
from fleet.selection import has_capacity, queue_wait_minutes, vehicles_in_service
from fleet.state import VehicleStateException, mark_available, mark_busy, release_if_expired


def test_in_service_keeps_busy_vehicles(fleet):
    assert [vehicle.id for vehicle in vehicles_in_service(fleet)] == [1, 2, 3, 4]


def test_queue_wait_only_for_busy_vehicles(fleet, now):
    by_id = {vehicle.id: vehicle for vehicle in fleet}

    assert queue_wait_minutes(by_id[4], now) == 15
    assert queue_wait_minutes(by_id[1], now) == 0
    # already past its free-at time
    assert queue_wait_minutes(by_id[4], now + timedelta(minutes=20)) == 0


def test_queue_wait_rounds_half_up(now):
    vehicle = Vehicle.new(1, "Superb", "A", VehicleType.CAR, "Mikulov", 4,
                          status=VehicleStatus.BUSY, free_at=now + timedelta(seconds=150))
    assert queue_wait_minutes(vehicle, now) == 3


def test_capacity_rule(fleet):
    assert [vehicle.id for vehicle in fleet if has_capacity(vehicle, 5)] == [3]
    assert all(has_capacity(vehicle, 4) for vehicle in fleet)


def test_offset_timestamps_become_naive_local_time():
    aware = datetime(2025, 6, 1, 10, 15, tzinfo=timezone.utc)
    expected = aware.astimezone().replace(tzinfo=None)

    assert parse_local_datetime("2025-06-01T10:15:00+00:00") == expected
    assert parse_local_datetime("2025-06-01T12:15:00") == datetime(2025, 6, 1, 12, 15)
    assert parse_local_datetime(None) is None
    assert to_local_naive(aware).tzinfo is None


def test_vehicle_from_snapshot_with_offset_free_at(now):
    data = Vehicle.new(4, "Camry", "1AX 8910", VehicleType.CAR, "Mikulov", 4, status=VehicleStatus.BUSY).to_dict()
    data["free_at"] = "2025-06-01T12:15:00+02:00"

    vehicle = Vehicle.from_dict(data)

    assert vehicle.free_at.tzinfo is None
    # comparable with the board's naive clock again
    assert queue_wait_minutes(vehicle, now) >= 0
    assert release_if_expired(vehicle, vehicle.free_at + timedelta(minutes=1)).status == VehicleStatus.AVAILABLE


def test_mark_busy_moves_the_vehicle(fleet, now):
    busy = mark_busy(fleet[0], free_at=now + timedelta(minutes=40), location="Dest B")

    assert busy.status == VehicleStatus.BUSY
    assert busy.location == "Dest B"
    assert fleet[0].status == VehicleStatus.AVAILABLE


def test_mark_busy_refuses_vehicle_out_of_service(fleet, now):
    with pytest.raises(VehicleStateException):
        mark_busy(fleet[4], free_at=now)


def test_mark_available_leaves_out_of_service_alone(fleet):
    assert mark_available(fleet[4]) is fleet[4]
    assert mark_available(fleet[3]).status == VehicleStatus.AVAILABLE


def test_out_of_service_with_end_time_comes_back(now):
    vehicle = Vehicle.new(1, "Superb", "A", VehicleType.CAR, "Mikulov", 4,
                          status=VehicleStatus.OUT_OF_SERVICE, free_at=now - timedelta(minutes=1))

    released = release_if_expired(vehicle, now)

    assert released.status == VehicleStatus.AVAILABLE
    assert released.free_at is None


def test_vehicle_needs_a_seat():
    with pytest.raises(ValueError):
        Vehicle.new(1, "Superb", "A", "car", "Mikulov", 0)


def test_vehicle_round_trips_through_dict(fleet):
    assert [Vehicle.from_dict(vehicle.to_dict()) for vehicle in fleet] == fleet


def test_policy_validation():
    DispatchPolicy().validate()
    with pytest.raises(ValueError):
        DispatchPolicy(min_stops_to_optimize=2).validate()
