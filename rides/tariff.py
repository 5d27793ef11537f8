"""
Purpose: Fare calculation.
What it does:
- Tariff / FlatRateRule models
- calculate_price(): flat rate first, otherwise starting fee + per-km rate

Flat rates are matched by locality: a rule whose name mentions a known
locality applies when the pickup/destination texts satisfy that locality's
matching rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from fleet.models import VehicleType
from routing.matrix_adapter import round_half_up

VAN_PASSENGER_THRESHOLD = 4


@dataclass(frozen=True)
class FlatRateRule:
    id: int
    name: str
    price_car: int
    price_van: int

    def __post_init__(self):
        if self.price_car < 0 or self.price_van < 0:
            raise ValueError(f"Flat rate {self.name!r} must not have a negative price")

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price_car": self.price_car, "price_van": self.price_van}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FlatRateRule:
        # older exports carry a single "price" for both classes
        legacy_price = data.get("price")
        price_car = data.get("price_car", legacy_price)
        price_van = data.get("price_van", legacy_price)
        if price_car is None or price_van is None:
            raise ValueError(f"Flat rate {data.get('name')!r} has no price")
        return cls(id=int(data["id"]), name=data["name"], price_car=int(price_car), price_van=int(price_van))


@dataclass(frozen=True)
class Tariff:
    starting_fee: float
    price_per_km_car: float
    price_per_km_van: float
    flat_rates: Tuple[FlatRateRule, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "flat_rates", tuple(self.flat_rates))
        if min(self.starting_fee, self.price_per_km_car, self.price_per_km_van) < 0:
            raise ValueError("Tariff rates must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "starting_fee": self.starting_fee,
            "price_per_km_car": self.price_per_km_car,
            "price_per_km_van": self.price_per_km_van,
            "flat_rates": [rule.to_dict() for rule in self.flat_rates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Tariff:
        return cls(
            starting_fee=data["starting_fee"],
            price_per_km_car=data["price_per_km_car"],
            price_per_km_van=data["price_per_km_van"],
            flat_rates=tuple(FlatRateRule.from_dict(rule) for rule in data.get("flat_rates", [])),
        )


DEFAULT_TARIFF = Tariff(
    starting_fee=50,
    price_per_km_car=40,
    price_per_km_van=60,
    flat_rates=(
        FlatRateRule(id=1, name="V rámci Hustopečí", price_car=80, price_van=120),
        FlatRateRule(id=2, name="V rámci Mikulova", price_car=100, price_van=150),
        FlatRateRule(id=3, name="Zaječí - diskotéka Retro", price_car=200, price_van=300),
    ),
)


@dataclass(frozen=True)
class LocalityRule:
    """
    keyword:  what the flat-rate name must contain
    place:    what the addresses must contain
    both_ends: True -> pickup AND destination must mention `place` (rides within a town),
               False -> either end is enough (rides to/from a venue)
    """
    keyword: str
    place: str
    both_ends: bool = True

    def matches(self, rule_name: str, pickup: str, destination: str) -> bool:
        if self.keyword not in rule_name:
            return False
        if self.both_ends:
            return self.place in pickup and self.place in destination
        return self.place in pickup or self.place in destination


LOCALITY_RULES: List[LocalityRule] = [
    LocalityRule(keyword="mikulov", place="mikulov"),
    LocalityRule(keyword="hustopeč", place="hustopeče"),
    LocalityRule(keyword="zaječí", place="zaječí", both_ends=False),
]


def charges_van_rate(vehicle_type: VehicleType, passengers: int,
                     van_passenger_threshold: int = VAN_PASSENGER_THRESHOLD) -> bool:
    # A ride for more passengers than a car seats is a van ride, whatever is sent.
    return vehicle_type == VehicleType.VAN or passengers > van_passenger_threshold


def match_flat_rate(pickup_address: str, destination_address: str, tariff: Tariff) -> Optional[FlatRateRule]:
    pickup = pickup_address.lower()
    destination = destination_address.lower()

    for rule in tariff.flat_rates:
        name = rule.name.lower()
        if any(locality.matches(name, pickup, destination) for locality in LOCALITY_RULES):
            return rule
    return None


def calculate_price(
    pickup_address: str,
    destination_address: str,
    ride_distance_km: float,
    vehicle_type: VehicleType,
    passengers: int,
    tariff: Tariff,
    van_passenger_threshold: int = VAN_PASSENGER_THRESHOLD,
) -> int:
    """
    Price of a ride in whole currency units.

    A matching flat rate wins regardless of distance; otherwise
    starting fee + distance * per-km rate of the applicable class, rounded.
    """
    van_rate = charges_van_rate(vehicle_type, passengers, van_passenger_threshold)

    flat_rate = match_flat_rate(pickup_address, destination_address, tariff)
    if flat_rate is not None:
        return flat_rate.price_van if van_rate else flat_rate.price_car

    price_per_km = tariff.price_per_km_van if van_rate else tariff.price_per_km_car
    return max(0, round_half_up(tariff.starting_fee + max(0.0, ride_distance_km) * price_per_km))
