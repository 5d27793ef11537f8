from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import requests

from .osrm_client import OSRMClient, OSRMError

LatLon = Tuple[float, float]

logger = logging.getLogger(__name__)

UNREACHABLE_SECONDS = 99999
UNREACHABLE_MINUTES = 999


def build_travel_matrix(
    osrm_client: OSRMClient,
    coordinates: List[LatLon],
    unit: str = "seconds",
) -> List[List[float]]:
    """
    Builds an NxN travel-time matrix for the given points with one /table call.

    `unit` is "seconds" (raw OSRM durations) or "minutes" (rounded whole minutes,
    the shape handed to the dispatch advisor).
    Pairs OSRM cannot route, or every pair when the call itself fails, get a
    large sentinel so callers can still rank on the result.
    """
    if unit not in ("seconds", "minutes"):
        raise ValueError(f"unit must be 'seconds' or 'minutes', got {unit!r}")

    num_coordinates = len(coordinates)
    if num_coordinates == 0:
        return []

    sentinel = UNREACHABLE_MINUTES if unit == "minutes" else UNREACHABLE_SECONDS

    try:
        durations = osrm_client.compute_table(coordinates, coordinates).get("durations", [])
    except (OSRMError, requests.RequestException, ValueError) as e:
        logger.warning(f"Travel matrix lookup failed, using sentinel durations: {e}")
        durations = []

    matrix: List[List[float]] = []
    for src_idx in range(num_coordinates):
        row: List[float] = []
        for dest_idx in range(num_coordinates):
            if src_idx == dest_idx:
                row.append(0)
                continue
            duration = _cell(durations, src_idx, dest_idx)
            if duration is None:
                row.append(sentinel)
            elif unit == "minutes":
                row.append(round_half_up(duration / 60))
            else:
                row.append(duration)
        matrix.append(row)
    return matrix


def _cell(durations: List[List[Optional[float]]], row: int, col: int) -> Optional[float]:
    if row >= len(durations) or col >= len(durations[row]):
        return None
    value = durations[row][col]
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def round_half_up(value: float) -> int:
    """Rounds .5 away from zero for positive values, the way a dispatcher reads minutes."""
    return int(math.floor(value + 0.5))
