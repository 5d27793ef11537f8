#Purpose: Address -> coordinate lookup (Nominatim / OpenStreetMap).
#Keeps the provider details in one place:
#query biasing (country + local viewbox)
#fallback from a full street address to the town name
#per-client caching by exact address string
#Output: (lat, lon) or GeocodingError.

from dotenv import load_dotenv
import logging
import os
from typing import Dict, Optional, Tuple

import requests

load_dotenv()
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org")

# Bounding box for South Moravia to prioritize local search results
SOUTH_MORAVIA_VIEWBOX = "16.3,48.7,17.2,49.3"  # lon_min,lat_min,lon_max,lat_max

LatLon = Tuple[float, float]

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised when an address cannot be resolved to coordinates."""

    def __init__(self, address: str):
        super().__init__(f"Could not find coordinates for address: {address}.")
        self.address = address


class NominatimGeocoder:
    """
    Resolves free-text addresses with Nominatim.

    Results are cached for the lifetime of the instance, so one long-lived
    geocoder shared by the dispatcher never looks the same address up twice.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        country_codes: str = "cz",
        viewbox: str = SOUTH_MORAVIA_VIEWBOX,
        language: str = "cs",
        user_agent: str = "RapidDispatch/1.0",
        timeout: int = 10,
    ):
        self.base_url = (base_url or NOMINATIM_URL).rstrip("/")
        self.country_codes = country_codes
        self.viewbox = viewbox
        self.language = language
        self.user_agent = user_agent
        self.timeout = timeout
        self._cache: Dict[str, LatLon] = {}

    def _search(self, query: str) -> Optional[LatLon]:
        response = requests.get(
            f"{self.base_url}/search",
            params={
                "format": "json",
                "q": query,
                "countrycodes": self.country_codes,
                "viewbox": self.viewbox,
                "accept-language": self.language,
            },
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        if not response.ok:
            return None

        data = response.json()
        if not data:
            return None
        return (float(data[0]["lat"]), float(data[0]["lon"]))

    def geocode(self, address: str) -> LatLon:
        if address in self._cache:
            return self._cache[address]

        try:
            result = self._search(address)
            if result is None:
                # "Street 12, Town" -> retry with just "Town"
                city = address.split(",")[-1].strip()
                if city and city.lower() != address.strip().lower():
                    result = self._search(city)
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error(f"Geocoding error for {address!r}: {e}")
            raise GeocodingError(address) from e

        if result is None:
            logger.error(f"Address not found: {address!r}")
            raise GeocodingError(address)

        self._cache[address] = result
        return result

    __call__ = geocode
