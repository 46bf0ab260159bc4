"""Timed itinerary construction from an ordered route."""

from __future__ import annotations

import math
from datetime import time
from typing import Optional, Sequence

from . import config
from .errors import InsufficientStopsError
from .geo import distance_km
from .routing import MIN_STOPS
from .schemas import Coordinates, Itinerary, RouteWaypoint

DEFAULT_START_CLOCK = time(9, 0)
MINUTES_PER_DAY = 24 * 60


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_clock(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def leg_minutes(distance: float, speed_minutes_per_km: float) -> int:
    return math.ceil(distance * speed_minutes_per_km)


def _coords(stop) -> Coordinates:
    return Coordinates(latitude=stop.latitude, longitude=stop.longitude)


def schedule(
    route: Sequence,
    start_clock_time: Optional[time] = None,
    dwell_minutes: Optional[int] = None,
    speed_minutes_per_km: Optional[float] = None,
    *,
    start=None,
    name: Optional[str] = None,
) -> Itinerary:
    """Walk `route` in order and time every stop.

    The first stop is reached at `start_clock_time` (or its own opening time
    when omitted) with a zero-length leg. Each later stop is reached after
    the dwell at the previous stop plus the leg's travel time, rounded up to
    whole minutes.
    """
    if len(route) < MIN_STOPS:
        raise InsufficientStopsError(len(route))
    if dwell_minutes is None:
        dwell_minutes = config.ROUTE_DWELL_MINUTES
    if speed_minutes_per_km is None:
        speed_minutes_per_km = config.ROUTE_SPEED_MINUTES_PER_KM
    if start_clock_time is None:
        start_clock_time = getattr(route[0], "start_time", None) or DEFAULT_START_CLOCK

    waypoints = []
    total_distance = 0.0
    total_travel = 0
    clock = to_minutes(start_clock_time)
    previous = None
    for order, stop in enumerate(route, start=1):
        if previous is None:
            leg_distance, leg_duration = 0.0, 0
        else:
            leg_distance = distance_km(previous, stop)
            leg_duration = leg_minutes(leg_distance, speed_minutes_per_km)
            clock += leg_duration
        total_distance += leg_distance
        total_travel += leg_duration
        waypoints.append(RouteWaypoint(
            sale_id=str(stop.id),
            order=order,
            coordinates=_coords(stop),
            arrival_minute=clock,
            departure_minute=clock + dwell_minutes,
            estimated_arrival_time=format_clock(clock),
            distance_from_previous_km=leg_distance,
            duration_from_previous_minutes=leg_duration,
        ))
        clock += dwell_minutes
        previous = stop

    sale_date = getattr(route[0], "sale_date", None)
    if name is None:
        name = f"Garage Sale Route - {sale_date.isoformat() if sale_date else 'unscheduled'}"
    return Itinerary(
        name=name,
        sale_date=sale_date,
        sale_ids=[w.sale_id for w in waypoints],
        waypoints=waypoints,
        total_distance_km=total_distance,
        total_duration_minutes=total_travel + len(waypoints) * dwell_minutes,
        dwell_minutes=dwell_minutes,
        start_location=_coords(start) if start is not None else waypoints[0].coordinates,
        end_location=waypoints[-1].coordinates,
    )


__all__ = ["format_clock", "leg_minutes", "schedule", "to_minutes"]
