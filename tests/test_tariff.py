import pytest

from fleet.models import VehicleType
from rides.tariff import DEFAULT_TARIFF, FlatRateRule, Tariff, calculate_price, match_flat_rate


@pytest.fixture
def tariff():
    return Tariff(
        starting_fee=50,
        price_per_km_car=40,
        price_per_km_van=60,
        flat_rates=(
            FlatRateRule(id=1, name="V rámci Hustopečí", price_car=80, price_van=120),
            FlatRateRule(id=2, name="V rámci Mikulova", price_car=100, price_van=150),
            FlatRateRule(id=3, name="Zaječí - diskotéka Retro", price_car=200, price_van=300),
        ),
    )


def test_distance_price_for_a_car():
    tariff = Tariff(starting_fee=50, price_per_km_car=40, price_per_km_van=60)
    assert calculate_price("Brno", "Vienna", 10, VehicleType.CAR, 2, tariff) == 450


def test_distance_price_rounds_half_up():
    tariff = Tariff(starting_fee=0, price_per_km_car=1, price_per_km_van=1)
    assert calculate_price("Brno", "Vienna", 2.5, VehicleType.CAR, 1, tariff) == 3
    assert calculate_price("Brno", "Vienna", 2.4, VehicleType.CAR, 1, tariff) == 2


def test_van_rate_for_a_van_or_a_big_group(tariff):
    assert calculate_price("Brno", "Vienna", 10, VehicleType.VAN, 1, tariff) == 650
    # five passengers pay the van rate even if a car is sent
    assert calculate_price("Brno", "Vienna", 10, VehicleType.CAR, 5, tariff) == 650
    assert calculate_price("Brno", "Vienna", 10, VehicleType.CAR, 4, tariff) == 450


@pytest.mark.parametrize("distance_km", [0, 3.7, 120])
def test_flat_rate_ignores_distance(tariff, distance_km):
    price = calculate_price("Náměstí, Mikulov", "Nádražní, MIKULOV", distance_km, VehicleType.CAR, 2, tariff)
    assert price == 100


def test_within_town_needs_both_ends(tariff):
    assert calculate_price("Herbenova, Hustopeče", "Brněnská, Hustopeče", 2, VehicleType.CAR, 1, tariff) == 80
    assert calculate_price("Herbenova, Hustopeče", "Náměstí, Mikulov", 10, VehicleType.CAR, 1, tariff) == 450


def test_venue_rate_needs_either_end(tariff):
    assert calculate_price("Zaječí 12", "Pavlov", 15, VehicleType.CAR, 1, tariff) == 200
    assert calculate_price("Pavlov", "Zaječí 12", 15, VehicleType.VAN, 1, tariff) == 300


def test_first_matching_rule_wins():
    tariff = Tariff(
        starting_fee=50, price_per_km_car=40, price_per_km_van=60,
        flat_rates=(
            FlatRateRule(id=1, name="Mikulov early", price_car=90, price_van=90),
            FlatRateRule(id=2, name="Mikulov late", price_car=110, price_van=110),
        ),
    )
    assert match_flat_rate("Mikulov", "Mikulov", tariff).id == 1


def test_rule_without_known_locality_never_matches():
    tariff = Tariff(
        starting_fee=50, price_per_km_car=40, price_per_km_van=60,
        flat_rates=(FlatRateRule(id=1, name="Airport", price_car=999, price_van=999),),
    )
    assert calculate_price("Airport", "Airport", 1, VehicleType.CAR, 1, tariff) == 90


def test_price_is_never_negative():
    tariff = Tariff(starting_fee=50, price_per_km_car=40, price_per_km_van=60)
    assert calculate_price("A", "B", -5, VehicleType.CAR, 1, tariff) == 50


def test_negative_rates_are_rejected():
    with pytest.raises(ValueError):
        Tariff(starting_fee=-1, price_per_km_car=40, price_per_km_van=60)
    with pytest.raises(ValueError):
        FlatRateRule(id=1, name="Mikulov", price_car=-5, price_van=10)


def test_legacy_single_price_applies_to_both_classes():
    rule = FlatRateRule.from_dict({"id": 4, "name": "V rámci Mikulova", "price": 100})
    assert rule.price_car == rule.price_van == 100


def test_tariff_round_trips_through_dict():
    assert Tariff.from_dict(DEFAULT_TARIFF.to_dict()) == DEFAULT_TARIFF
