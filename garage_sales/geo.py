"""Great-circle distance between coordinates."""

from __future__ import annotations

import math

from .errors import InvalidCoordinateError

EARTH_RADIUS_KM = 6371.0
DISPLAY_DECIMALS = 2


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a, b) -> float:
    """Full-precision distance between two objects exposing latitude/longitude.

    Inputs are assumed valid; bounds are checked where coordinates enter the
    system (see `validate_coordinate`).
    """
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def display_km(value: float) -> float:
    return round(value, DISPLAY_DECIMALS)


def is_valid_coordinate(latitude, longitude) -> bool:
    try:
        lat, lon = float(latitude), float(longitude)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def validate_coordinate(latitude, longitude) -> None:
    if not is_valid_coordinate(latitude, longitude):
        raise InvalidCoordinateError(latitude, longitude)


__all__ = [
    "EARTH_RADIUS_KM",
    "display_km",
    "distance_km",
    "haversine",
    "is_valid_coordinate",
    "validate_coordinate",
]
