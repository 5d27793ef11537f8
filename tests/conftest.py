from datetime import datetime, timedelta

import pytest

from fleet.models import Vehicle, VehicleStatus, VehicleType
from rides.models import RideRequest
from rides.tariff import Tariff
from routing.geocoding import GeocodingError
from routing.osrm_client import OSRMError


class MockGeocoder:
    """Address book lookup; unknown addresses fail like Nominatim would."""

    def __init__(self, addresses):
        self.addresses = dict(addresses)
        self.calls = []

    def geocode(self, address):
        self.calls.append(address)
        if address not in self.addresses:
            raise GeocodingError(address)
        return self.addresses[address]


class MockOSRM:
    """
    Fake routing on a grid: 0.01 degree (lat + lon, manhattan) = 10 minutes = 1 km.
    Any route touching a point in `unroutable` fails with OSRMError.
    """

    def __init__(self, unroutable=()):
        self.unroutable = set(unroutable)
        self.route_calls = []
        self.table_calls = 0

    @staticmethod
    def _leg(a, b):
        degrees = abs(a[0] - b[0]) + abs(a[1] - b[1])
        return degrees * 60000, degrees * 100000  # seconds, meters

    def compute_route(self, coordinates):
        self.route_calls.append(list(coordinates))
        if any(point in self.unroutable for point in coordinates):
            raise OSRMError("OSRM error: NoRoute")
        duration = distance = 0.0
        for a, b in zip(coordinates, coordinates[1:]):
            leg_duration, leg_distance = self._leg(a, b)
            duration += leg_duration
            distance += leg_distance
        return {"duration": duration, "distance": distance}

    def compute_table(self, sources, destinations):
        self.table_calls += 1
        durations = []
        for a in sources:
            row = []
            for b in destinations:
                row.append(None if a in self.unroutable or b in self.unroutable else self._leg(a, b)[0])
            durations.append(row)
        return {"durations": durations, "distances": []}


class MockAdvisor:
    def __init__(self, order=None, vehicle_id=None, fail=False):
        self.order = order
        self.vehicle_id = vehicle_id
        self.fail = fail
        self.seen_alternatives = None
        self.seen_matrix = None

    def optimal_order(self, matrix, num_destinations):
        if self.fail:
            raise RuntimeError("advisor offline")
        self.seen_matrix = matrix
        return self.order

    def choose_vehicle(self, ride, alternatives):
        if self.fail:
            raise RuntimeError("advisor offline")
        self.seen_alternatives = alternatives
        return self.vehicle_id


ADDRESSES = {
    "Pickup A": (0.0, 0.0),
    "Dest B": (0.05, 0.0),
    "Near stop": (0.01, 0.0),
    "Far stop": (0.04, 0.0),
    "Garage Near": (0.01, 0.0),
    "Garage Mid": (0.02, 0.0),
    "Garage Far": (0.03, 0.0),
    "Island": (9.0, 9.0),
}


@pytest.fixture
def now():
    return datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def geocoder():
    return MockGeocoder(ADDRESSES)


@pytest.fixture
def osrm():
    return MockOSRM()


@pytest.fixture
def plain_tariff():
    return Tariff(starting_fee=50, price_per_km_car=40, price_per_km_van=60)


@pytest.fixture
def fleet(now):
    return [
        Vehicle.new(1, "Superb", "3J2 1234", VehicleType.CAR, "Garage Near", 4),
        Vehicle.new(2, "Passat", "5B8 4567", VehicleType.CAR, "Garage Far", 4),
        Vehicle.new(3, "Transit", "8E1 1121", VehicleType.VAN, "Garage Mid", 8),
        Vehicle.new(4, "Camry", "1AX 8910", VehicleType.CAR, "Pickup A", 4,
                    status=VehicleStatus.BUSY, free_at=now + timedelta(minutes=15)),
        Vehicle.new(5, "Octavia", "2CD 5678", VehicleType.CAR, "Garage Near", 4,
                    status=VehicleStatus.OUT_OF_SERVICE),
    ]


@pytest.fixture
def ride():
    return RideRequest(
        stops=("Pickup A", "Dest B"),
        customer_name="Jan",
        customer_phone="777 123 456",
        passengers=2,
    )
