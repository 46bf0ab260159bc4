"""Stop ordering by nearest-neighbour heuristic.

The tour is built greedily: from the current position, always travel to the
closest stop not yet visited. This is fast (O(n^2)) and deterministic but does
not guarantee the shortest possible tour; a route can be noticeably longer
than the optimum when stops are spread unevenly.
"""

from __future__ import annotations

from typing import Sequence

from . import config
from .errors import InsufficientStopsError, TooManyStopsError
from .geo import distance_km

MIN_STOPS = 2


def check_stop_count(count: int, max_stops: int | None = None) -> None:
    if count < MIN_STOPS:
        raise InsufficientStopsError(count)
    limit = config.ROUTE_MAX_STOPS if max_stops is None else max_stops
    if limit and count > limit:
        raise TooManyStopsError(count, limit)


def nearest_neighbor_order(start, stops: Sequence, *, max_stops: int | None = None) -> list:
    """Return `stops` reordered for visiting from `start`.

    Equal distances go to the stop that came first in `stops`, so identical
    inputs always produce identical routes.
    """
    check_stop_count(len(stops), max_stops)

    visited = [False] * len(stops)
    ordered = []
    current = start
    for _ in range(len(stops)):
        best_index = -1
        best_distance = float("inf")
        for index, stop in enumerate(stops):
            if visited[index]:
                continue
            distance = distance_km(current, stop)
            if distance < best_distance:
                best_index, best_distance = index, distance
        visited[best_index] = True
        current = stops[best_index]
        ordered.append(current)
    return ordered


def route_distance_km(start, stops: Sequence) -> float:
    """Length of the path start -> stops[0] -> ... -> stops[-1]."""
    total = 0.0
    current = start
    for stop in stops:
        total += distance_km(current, stop)
        current = stop
    return total


optimize = nearest_neighbor_order

__all__ = [
    "check_stop_count",
    "nearest_neighbor_order",
    "optimize",
    "route_distance_km",
]
