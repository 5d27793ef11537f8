import argparse
import csv
import logging
import os
from datetime import datetime, timedelta
from typing import List

from dispatch.advisor import OpenAIDispatchAdvisor
from dispatch.board import DispatchBoard
from dispatch.dispatcher import Dispatcher
from dispatch.models import AssignmentError
from fleet.models import Person, Vehicle
from i18n import Translator
from rides.models import PICKUP_IMMEDIATELY, RideRequest
from rides.sms import generate_navigation_url
from routing.geocoding import NominatimGeocoder
from routing.osrm_client import OSRMClient

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def load_vehicles(filepath="sampledata/vehicles.csv", now=None) -> List[Vehicle]:
    now = now or datetime.now()
    vehicles = []

    # Resolve the correct path depending on where the user runs the script from.
    with open(os.path.join(BASE_DIR, filepath), "r", encoding="utf-8") as file:
        reader = csv.DictReader(file)
        for row in reader:
            busy_minutes = row.get("busy_minutes")
            vehicles.append(
                Vehicle.new(
                    int(row["vehicle_id"]),
                    row["name"],
                    row["license_plate"],
                    row["type"],
                    row["location"],
                    int(row["capacity"]),
                    status=row["status"],
                    free_at=now + timedelta(minutes=int(busy_minutes)) if busy_minutes else None,
                    driver_id=int(row["driver_id"]) if row.get("driver_id") else None,
                )
            )
    return vehicles


def load_people(filepath="sampledata/people.csv") -> List[Person]:
    with open(os.path.join(BASE_DIR, filepath), "r", encoding="utf-8") as file:
        return [Person.from_dict({"id": row["person_id"], **row}) for row in csv.DictReader(file)]


def run_simulation(args):
    print("=== STARTING DISPATCH SIMULATION ===")

    # 1. Load Data
    board = DispatchBoard(language=args.language)
    for vehicle in load_vehicles():
        board.add_vehicle(vehicle)
    for person in load_people():
        board.add_person(person)
    print(f"Loaded {len(board.vehicles)} Vehicles and {len(board.people)} People.\n")

    # 2. Configure System
    advisor = OpenAIDispatchAdvisor.from_env() if args.ai else None
    dispatcher = Dispatcher(NominatimGeocoder(), OSRMClient(), advisor=advisor)

    ride = RideRequest(
        stops=tuple(args.stops),
        customer_name=args.name,
        customer_phone=args.phone,
        passengers=args.passengers,
        pickup_time=args.pickup_time,
        notes=args.notes,
    )

    # 3. Run the assignment engine
    print(f"Finding a vehicle for {' -> '.join(ride.stops)} ({ride.passengers} passengers)...")
    result = dispatcher.find_best_vehicle(
        ride,
        list(board.vehicles.values()),
        board.tariff,
        ai_enabled=args.ai,
        optimize=args.optimize,
        language=args.language,
    )

    t = Translator(args.language)
    if isinstance(result, AssignmentError):
        print(f"[FAILED] {result.render(t)}")
        return

    print("\n--- Recommendation ---")
    print(f"{result.vehicle.name} ({result.vehicle.license_plate}): "
          f"ETA {result.eta_minutes} min, price {result.estimated_price}")
    print(f"Ride: {result.ride_distance_km:.1f} km, {result.ride_duration_minutes} min")
    if result.optimized_stops:
        print(f"Optimized route: {' -> '.join(result.optimized_stops)}")
    for alternative in result.alternatives:
        print(f"  alt {alternative.vehicle.name}: ETA {alternative.eta_minutes} min "
              f"(wait {alternative.wait_minutes}), price {alternative.estimated_price}")
    print(f"\nSMS: {result.sms}")
    print(f"Navigation: {generate_navigation_url(result.vehicle.location, result.stops)}")

    # 4. Confirm and export
    entry = board.confirm_assignment(result, result.vehicle.id)
    print(f"\n[SUCCESS] Ride {entry.id} -> {entry.vehicle_name}, driver {entry.driver_name or 'N/A'}")

    output_path = os.path.join(BASE_DIR, "dispatch_results.csv")
    board.export_ride_log_csv(output_path)
    print(f"Ride log written to '{output_path}'.")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the assignment engine against the sample fleet.")
    parser.add_argument("stops", nargs="*", default=["Náměstí, Hustopeče", "Náměstí, Mikulov"],
                        help="pickup first, then every stop in order")
    parser.add_argument("--name", default="Jan Novák")
    parser.add_argument("--phone", default="777 123 456")
    parser.add_argument("--passengers", type=int, default=2)
    parser.add_argument("--pickup-time", default=PICKUP_IMMEDIATELY)
    parser.add_argument("--notes", default=None)
    parser.add_argument("--optimize", action="store_true", help="reorder stops after the pickup")
    parser.add_argument("--ai", action="store_true", help="delegate ordering and choice to the AI advisor")
    parser.add_argument("--language", default="cs")
    return parser.parse_args(argv)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_simulation(parse_args())
