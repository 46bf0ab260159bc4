"""Listing filter engine.

Each populated criterion compiles to a predicate over a single listing; a
listing is kept when every predicate accepts it. Listings are any objects
exposing the listing attributes (ORM rows, `ListingOut`, seed records).
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from .errors import InvalidFilterError
from .geo import distance_km

Predicate = Callable[[object], bool]

_SEARCH_FIELDS = ("title", "description", "items_description", "address")


def _text_predicate(query: str) -> Predicate:
    needle = query.casefold()

    def matches(listing) -> bool:
        for field in _SEARCH_FIELDS:
            value = getattr(listing, field, None)
            if value and needle in value.casefold():
                return True
        return any(needle in tag.casefold() for tag in listing.tags or ())

    return matches


def _date_predicate(date_from: Optional[date], date_to: Optional[date]) -> Predicate:
    def matches(listing) -> bool:
        if date_from is not None and listing.sale_date < date_from:
            return False
        if date_to is not None and listing.sale_date > date_to:
            return False
        return True

    return matches


def _tag_predicate(tags: Iterable[str]) -> Predicate:
    wanted = frozenset(tags)
    return lambda listing: not wanted.isdisjoint(listing.tags or ())


def _flag_predicate(attr: str, expected: bool) -> Predicate:
    return lambda listing: bool(getattr(listing, attr)) is expected


def _radius_predicate(origin, max_distance: float) -> Predicate:
    return lambda listing: distance_km(origin, listing) <= max_distance


def validate_criteria(criteria, origin=None) -> None:
    if criteria.date_from and criteria.date_to and criteria.date_from > criteria.date_to:
        raise InvalidFilterError(
            f"date_from {criteria.date_from} is after date_to {criteria.date_to}"
        )
    if criteria.max_distance_km is not None:
        if origin is None:
            raise InvalidFilterError("max_distance_km requires an origin coordinate")
        if criteria.max_distance_km <= 0:
            raise InvalidFilterError("max_distance_km must be greater than 0")


def compile_predicates(criteria, origin=None, today: Optional[date] = None) -> List[Tuple[str, Predicate]]:
    """Turn `criteria` into named predicates, validating it first.

    With no date bound at all, only sales from `today` onwards are kept; any
    explicit bound replaces that default.
    """
    validate_criteria(criteria, origin)
    predicates: List[Tuple[str, Predicate]] = []

    search = (criteria.search or "").strip()
    if search:
        predicates.append(("search", _text_predicate(search)))

    if criteria.date_from is None and criteria.date_to is None:
        predicates.append(("date", _date_predicate(today or date.today(), None)))
    else:
        predicates.append(("date", _date_predicate(criteria.date_from, criteria.date_to)))

    if criteria.tags:
        predicates.append(("tags", _tag_predicate(criteria.tags)))
    if criteria.cash_only is not None:
        predicates.append(("cash_only", _flag_predicate("cash_only", criteria.cash_only)))
    if criteria.early_birds_welcome is not None:
        predicates.append(
            ("early_birds_welcome", _flag_predicate("early_birds_welcome", criteria.early_birds_welcome))
        )
    if criteria.max_distance_km is not None:
        predicates.append(("distance", _radius_predicate(origin, criteria.max_distance_km)))
    return predicates


def filter_with_distances(listings, criteria, origin=None, today: Optional[date] = None):
    """Return `(listing, distance_km)` pairs that pass every predicate.

    Distance is None when no origin is given. Ordering is by distance when an
    origin is given, otherwise by sale date then start time; ties keep input
    order.
    """
    predicates = compile_predicates(criteria, origin, today)
    kept = [listing for listing in listings if all(check(listing) for _, check in predicates)]

    if origin is None:
        kept.sort(key=lambda listing: (listing.sale_date, listing.start_time))
        return [(listing, None) for listing in kept]

    pairs = [(listing, distance_km(origin, listing)) for listing in kept]
    pairs.sort(key=lambda pair: pair[1])
    return pairs


def filter_listings(listings, criteria, origin=None, today: Optional[date] = None) -> list:
    return [listing for listing, _ in filter_with_distances(listings, criteria, origin, today)]


__all__ = [
    "compile_predicates",
    "filter_listings",
    "filter_with_distances",
    "validate_criteria",
]
