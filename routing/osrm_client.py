#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route, /table)
#parsing response JSON into our internal shape
#It should not contain dispatch rules, pricing or ranking.


from dotenv import load_dotenv
import os
from typing import List, Tuple, Dict, Optional
import requests

# Read OSRM base URL from environment
# Example in .env:
# OSRM_BASE_URL=https://router.project-osrm.org
load_dotenv()
BASE_URL = os.getenv("OSRM_BASE_URL")

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]


class OSRMError(Exception):
    """Raised when OSRM answers but cannot route the request."""
    pass


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) -> OSRM (lon,lat)
    - Return normalized outputs

    """
    def __init__(self, base_url: Optional[str] = None, profile: str = "driving", timeout: int = 10):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set OSRM_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def format_coordinates(self, coords: List[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{lon},{lat}" for lat, lon in coords])

    def _get(self, url: str, params: Dict[str, str]) -> dict:
        response = requests.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()

        #validating OSRM response
        if data.get("code") != "Ok":
            raise OSRMError(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")
        return data

    #----------------
    # route service
    #----------------
    def compute_route(self, coordinates: List[LatLon]) -> Dict[str, float]:
        """
        Calls the OSRM /route endpoint for the coordinates, visited in the given order.

        Returns:
            {
                "distance": float, # in meters
                "duration": float, # in seconds
            }
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"
        data = self._get(url, {"overview": "false"}) # we don't need the geometry of the route

        routes = data.get("routes") or []
        if not routes:
            raise OSRMError("OSRM error: no route returned")

        route = routes[0] #take the first route (OSRM may return alternatives)
        return {
            "distance": float(route["distance"]),
            "duration": float(route["duration"]),
        }

    #----------------
    # table service (batch routing)
    #----------------
    def compute_table(self, sources: List[LatLon],
                      destinations: List[LatLon]
                      ) -> Dict[str, List[List[Optional[float]]]]:
        """
        Calls the OSRM /table endpoint.

        Returns the full matrices, rows = sources, columns = destinations.
        Unroutable pairs come back as None.
            {
                "durations": [[seconds, ...], ...],
                "distances": [[meters, ...], ...],
            }
        """
        if not sources or not destinations:
            return {"durations": [], "distances": []}

        # For an NxN matrix we do not duplicate the points in the URL,
        # OSRM computes all-to-all when sources/destinations are omitted.
        if sources == destinations:
            coordinates = self.format_coordinates(sources)
            params = {"annotations": "duration,distance"}
        else:
            coordinates = self.format_coordinates(sources + destinations)
            params = {
                "sources": ";".join(str(i) for i in range(len(sources))),
                "destinations": ";".join(
                    str(i) for i in range(len(sources), len(sources) + len(destinations))
                ),
                "annotations": "duration,distance",
            }

        url = f"{self.base_url}/table/v1/{self.profile}/{coordinates}"
        data = self._get(url, params)

        return {
            "durations": data.get("durations", []),
            "distances": data.get("distances", []),
        }
