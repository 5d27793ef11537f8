"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts a RideRequest and the fleet, geocodes every stop and vehicle,
optionally reorders the stops, routes the ride, ranks the in-service vehicles
by ETA and returns the recommended vehicle with its alternatives, or a typed
AssignmentError. Nothing here raises past find_best_vehicle().
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Union

import requests

from fleet.models import Vehicle
from fleet.selection import vehicles_in_service
from i18n import DEFAULT_LANGUAGE, Translator
from rides.models import RideRequest
from rides.sms import generate_sms
from rides.tariff import Tariff
from routing.geocoding import GeocodingError, LatLon, NominatimGeocoder
from routing.matrix_adapter import build_travel_matrix, round_half_up
from routing.osrm_client import OSRMClient, OSRMError
from .models import AssignmentError, AssignmentResult, ErrorKey
from .policy import DispatchPolicy, default_policy
from .ranking import InsufficientCapacity, build_alternatives, select_vehicle
from .route_optimizer import optimize_nearest_neighbor, optimize_with_advisor

logger = logging.getLogger(__name__)

ROUTING_ERRORS = (OSRMError, requests.RequestException, ValueError, KeyError)


class Dispatcher:
    """
    Stateless assignment engine. Collaborators are injected:
    - geocoder: address -> (lat, lon), raises GeocodingError
    - osrm_client: /route and /table lookups
    - advisor: optional delegated decisions for AI mode
    """

    def __init__(
        self,
        geocoder: NominatimGeocoder,
        osrm_client: OSRMClient,
        advisor=None,
        policy: Optional[DispatchPolicy] = None,
    ):
        self.geocoder = geocoder
        self.osrm_client = osrm_client
        self.advisor = advisor
        self.policy = policy or default_policy()

    def find_best_vehicle(
        self,
        ride: RideRequest,
        vehicles: Sequence[Vehicle],
        tariff: Tariff,
        *,
        ai_enabled: bool = False,
        optimize: bool = False,
        language: str = DEFAULT_LANGUAGE,
        now: Optional[datetime] = None,
    ) -> Union[AssignmentResult, AssignmentError]:
        if ai_enabled and self.advisor is None:
            logger.error("AI mode requested but no advisor credential is configured")
            return AssignmentError(ErrorKey.MISSING_API_KEY)

        in_service = vehicles_in_service(vehicles)
        if not in_service:
            logger.warning("No vehicles in service")
            return AssignmentError(ErrorKey.NO_VEHICLES_IN_SERVICE)

        try:
            return self._assign(
                ride,
                in_service,
                tariff,
                ai_enabled=ai_enabled,
                optimize=optimize,
                t=Translator(language),
                now=now or datetime.now(),
            )
        except GeocodingError as e:
            logger.error(f"Assignment aborted, geocoding failed: {e}")
            return AssignmentError(ErrorKey.GEOCODING_FAILED, str(e))
        except InsufficientCapacity as e:
            logger.warning(f"Assignment aborted: {e}")
            return AssignmentError(ErrorKey.INSUFFICIENT_CAPACITY, str(e.passengers))
        except Exception as e:
            logger.exception("Assignment failed unexpectedly")
            return AssignmentError(ErrorKey.UNKNOWN, str(e))

    def _assign(
        self,
        ride: RideRequest,
        in_service: List[Vehicle],
        tariff: Tariff,
        *,
        ai_enabled: bool,
        optimize: bool,
        t: Translator,
        now: datetime,
    ) -> Union[AssignmentResult, AssignmentError]:
        # 1) Geocode everything up front; any failure aborts the assignment
        stop_coords = [self.geocoder.geocode(stop) for stop in ride.stops]
        vehicle_coords = [self.geocoder.geocode(vehicle.location) for vehicle in in_service]

        # 2) Optional reordering of everything after the pickup
        stops = list(ride.stops)
        optimized_stops = None
        if optimize and len(stops) >= self.policy.min_stops_to_optimize:
            order = self._optimize_order(stop_coords, ai_enabled)
            if order != list(range(len(stops))):
                stops = [stops[i] for i in order]
                stop_coords = [stop_coords[i] for i in order]
                optimized_stops = tuple(stops)
                logger.info(f"Stops reordered to {order}")

        # 3) The ride itself
        try:
            main_route = self.osrm_client.compute_route(stop_coords)
        except ROUTING_ERRORS as e:
            logger.error(f"Main route calculation failed: {e}")
            return AssignmentError(ErrorKey.MAIN_ROUTE_FAILED)

        ride_distance_km = main_route["distance"] / 1000
        ride_duration_minutes = round_half_up(main_route["duration"] / 60)

        # 4) Every in-service vehicle's way to the pickup
        pickup = stop_coords[0]
        travel_etas = [self._eta_minutes(coords, pickup) for coords in vehicle_coords]

        alternatives = build_alternatives(
            in_service,
            travel_etas,
            pickup_address=stops[0],
            destination_address=stops[-1],
            ride_distance_km=ride_distance_km,
            passengers=ride.passengers,
            tariff=tariff,
            now=now,
            policy=self.policy,
        )

        # 5) Capacity filter + winner
        best, others = select_vehicle(ride, alternatives, self.advisor if ai_enabled else None)

        sms_ride = ride.with_stops(stops) if optimized_stops else ride
        logger.info(
            f"Recommended vehicle {best.vehicle.id} ({best.vehicle.name}): "
            f"eta={best.eta_minutes} min, price={best.estimated_price}, alternatives={len(others)}"
        )
        return AssignmentResult(
            recommended=best,
            alternatives=others,
            ride_request=ride,
            sms=generate_sms(sms_ride, t),
            ride_duration_minutes=ride_duration_minutes,
            ride_distance_km=ride_distance_km,
            optimized_stops=optimized_stops,
        )

    def _optimize_order(self, stop_coords: List[LatLon], ai_enabled: bool) -> List[int]:
        if ai_enabled:
            matrix = build_travel_matrix(self.osrm_client, stop_coords, unit="minutes")
            return optimize_with_advisor(matrix, self.advisor)

        matrix = build_travel_matrix(self.osrm_client, stop_coords, unit="seconds")
        return optimize_nearest_neighbor(matrix)

    def _eta_minutes(self, origin: LatLon, pickup: LatLon) -> Optional[int]:
        """Travel minutes to the pickup, None when the route is unknown."""
        try:
            route = self.osrm_client.compute_route([origin, pickup])
        except ROUTING_ERRORS as e:
            logger.warning(f"ETA lookup failed for {origin}: {e}")
            return None
        return round_half_up(route["duration"] / 60)
