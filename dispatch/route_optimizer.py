"""
Purpose: Visiting order for multi-stop rides.
What it does:
Given a travel-time matrix over the ride's stops (index 0 = pickup, fixed),
returns a permutation of stop indices that approximately minimizes total
travel time: either a nearest-neighbor heuristic or an order delegated to the
dispatch advisor.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class RouteOrderAdvisor(Protocol):
    def optimal_order(self, matrix: List[List[float]], num_destinations: int) -> Optional[List[int]]:
        ...


def _reachable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def optimize_nearest_neighbor(matrix: Sequence[Sequence[Optional[float]]]) -> List[int]:
    """
    Greedy nearest-neighbor order starting at the pickup (index 0).

    Ties go to the lowest index. When the last visited point reaches none of
    the remaining ones, those are appended in their original order.
    """
    num_points = len(matrix)
    if num_points < 3:
        return list(range(num_points))

    path = [0]
    visited = {0}
    last_point = 0

    while len(path) < num_points:
        nearest_point = -1
        min_duration = math.inf

        for candidate in range(num_points):
            if candidate in visited:
                continue
            duration = matrix[last_point][candidate]
            if _reachable(duration) and duration < min_duration:
                min_duration = duration
                nearest_point = candidate

        if nearest_point == -1:
            path.extend(i for i in range(num_points) if i not in visited)
            break

        path.append(nearest_point)
        visited.add(nearest_point)
        last_point = nearest_point

    return path


def optimize_with_advisor(matrix: List[List[float]], advisor: RouteOrderAdvisor) -> List[int]:
    """
    Asks the advisor for the order of destinations 1..n-1 and prepends the
    pickup. Anything that is not a permutation of those indices falls back to
    the original order.
    """
    num_points = len(matrix)
    if num_points < 3:
        return list(range(num_points))

    destination_indices = list(range(1, num_points))
    try:
        order = advisor.optimal_order(matrix, len(destination_indices))
    except Exception as e:
        logger.error(f"Route order advisor failed, keeping original order: {e}")
        return [0, *destination_indices]

    if order is None or len(order) != len(destination_indices) or sorted(order) != destination_indices:
        logger.warning(f"Route order advisor returned an invalid order {order!r}, keeping original order")
        return [0, *destination_indices]

    return [0, *order]
