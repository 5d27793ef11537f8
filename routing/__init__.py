#Marks routing as a package.
#Re-exports the public APIs (OSRMClient, NominatimGeocoder, build_travel_matrix)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .osrm_client import OSRMClient, OSRMError
from .geocoding import NominatimGeocoder, GeocodingError
from .matrix_adapter import build_travel_matrix, round_half_up

__all__ = [
    "OSRMClient",
    "OSRMError",
    "NominatimGeocoder",
    "GeocodingError",
    "build_travel_matrix",
    "round_half_up",
]
