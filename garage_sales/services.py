"""Use cases sitting between the HTTP layer, the store and the core.

The core modules (`geo`, `filters`, `routing`, `itinerary`) never touch the
store. Everything that does I/O lives here: owner-checked mutations, retries
against the store, the degraded-mode fallback and last-call-wins tracking.
"""
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from . import config, crud, schemas
from .errors import ListingNotFoundError, NotOwnerError, StoreUnavailableError
from .filters import filter_with_distances, validate_criteria
from .geo import display_km, validate_coordinate
from .itinerary import schedule
from .routing import check_stop_count, nearest_neighbor_order
from .seed import seed_listings
from .utils import logger, retry

# listings from earlier successful reads, keyed by id; served when the store is down
_snapshot: Dict[str, schemas.ListingOut] = {}
_snapshot_lock = threading.Lock()


@contextmanager
def store_call(db: Session):
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        raise StoreUnavailableError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e


def _with_store_retry(fn):
    return retry(
        StoreUnavailableError,
        tries=config.STORE_RETRY_TRIES,
        delay=config.STORE_RETRY_DELAY,
        backoff=config.STORE_RETRY_BACKOFF,
        max_delay=config.STORE_RETRY_MAX_DELAY,
    )(fn)


def _to_out(obj) -> schemas.ListingOut:
    if isinstance(obj, schemas.ListingOut):
        return obj
    return schemas.ListingOut.model_validate(obj)


def _in_window(item, date_from, date_to) -> bool:
    if date_from is not None and item.sale_date < date_from:
        return False
    return date_to is None or item.sale_date <= date_to


def _remember(items, window=None):
    """Fold a successful read into the snapshot.

    With a `(date_from, date_to)` window the read is authoritative for that
    window, so snapshot entries inside it that were not returned are dropped.
    Entries outside the window are kept.
    """
    with _snapshot_lock:
        if window is not None:
            for key in [k for k, v in _snapshot.items() if _in_window(v, *window)]:
                del _snapshot[key]
        _snapshot.update((item.id, item) for item in items)


def _fallback_dataset() -> List[schemas.ListingOut]:
    with _snapshot_lock:
        items = list(_snapshot.values())
    return items or seed_listings()


def reset_snapshot():
    with _snapshot_lock:
        _snapshot.clear()


# listings

def get_listing(db: Session, listing_id: str):
    with store_call(db):
        obj = crud.get_listing(db, listing_id)
    if obj is None:
        raise ListingNotFoundError(listing_id)
    return obj


def list_listings(db: Session, upcoming: bool = False, status: Optional[str] = None,
                  limit: int = 100, today: Optional[date] = None):
    filters = {"status": status}
    if upcoming:
        filters["date_from"] = today or date.today()
    with store_call(db):
        return crud.list_listings(db, limit=limit, filters=filters)


def create_listing(db: Session, user_id: str, payload: schemas.ListingCreate):
    validate_coordinate(payload.latitude, payload.longitude)
    with store_call(db):
        obj = crud.create_listing(db, user_id, payload.model_dump())
    logger.info("Created listing %s for user %s", obj.id, user_id)
    return obj


def _owned_listing(db: Session, listing_id: str, user_id: str):
    obj = get_listing(db, listing_id)
    if obj.user_id != user_id:
        raise NotOwnerError(listing_id, user_id)
    return obj


def update_listing(db: Session, listing_id: str, user_id: str, payload: schemas.ListingUpdate):
    obj = _owned_listing(db, listing_id, user_id)
    updates = payload.model_dump(exclude_unset=True)
    if "status" in updates:
        updates["status"] = schemas.SaleStatus(updates["status"]).value

    # validate the merged record, not just the patch
    merged = {k: getattr(obj, k) for k in schemas.ListingBase.model_fields}
    merged.update({k: v for k, v in updates.items() if k in merged})
    validate_coordinate(merged["latitude"], merged["longitude"])
    schemas.ListingBase.model_validate(merged)

    with store_call(db):
        obj = crud.update_listing(db, listing_id, updates)
    logger.info("Updated listing %s (%s)", listing_id, ", ".join(sorted(updates)) or "no changes")
    return obj


def retire_listing(db: Session, listing_id: str, user_id: str):
    """Cancel a listing. Rows are kept so the listing history stays queryable."""
    _owned_listing(db, listing_id, user_id)
    with store_call(db):
        obj = crud.update_listing(db, listing_id, {"status": schemas.SaleStatus.cancelled.value})
    logger.info("Retired listing %s", listing_id)
    return obj


def retire_past_sales(db: Session, today: Optional[date] = None) -> int:
    today = today or date.today()
    with store_call(db):
        count = crud.retire_past_listings(db, today)
    if count:
        logger.info("Marked %d past sale(s) completed", count)
    return count


# degraded-mode reads

def fetch_active_listings(db: Session, date_from=None, date_to=None) -> Tuple[List[schemas.ListingOut], bool]:
    """Active listings in the given date window, plus a degraded flag.

    Store failures are retried; if the store stays unreachable the last
    snapshot of earlier reads (or the seed dataset) is returned with `degraded=True`.
    Without the fallback enabled the failure propagates.
    """
    filters = {"status": schemas.SaleStatus.active.value, "date_from": date_from, "date_to": date_to}

    @_with_store_retry
    def _load():
        with store_call(db):
            return [_to_out(obj) for obj in crud.list_listings(db, filters=filters)]

    try:
        items = _load()
    except StoreUnavailableError:
        if not config.DEGRADED_FALLBACK:
            raise
        logger.warning("Listing store unavailable, serving non-live fallback data")
        return [i for i in _fallback_dataset() if i.status == schemas.SaleStatus.active], True
    _remember(items, (date_from, date_to))
    return items, False


def fetch_listings_by_ids(db: Session, listing_ids: List[str]) -> Tuple[List[schemas.ListingOut], bool]:
    """Listings for `listing_ids` in request order; unknown ids raise."""

    @_with_store_retry
    def _load():
        with store_call(db):
            return [_to_out(obj) for obj in crud.get_listings_by_ids(db, listing_ids)]

    degraded = False
    try:
        found = _load()
    except StoreUnavailableError:
        if not config.DEGRADED_FALLBACK:
            raise
        logger.warning("Listing store unavailable, resolving route stops from fallback data")
        found, degraded = _fallback_dataset(), True
    else:
        _remember(found)

    by_id: Dict[str, schemas.ListingOut] = {item.id: item for item in found}
    missing = [i for i in listing_ids if i not in by_id]
    if missing:
        raise ListingNotFoundError(missing[0])
    return [by_id[i] for i in listing_ids], degraded


# filtering

def filter_sales(db: Session, criteria: schemas.FilterCriteria,
                 origin: Optional[schemas.Coordinates] = None,
                 today: Optional[date] = None) -> schemas.FilterResponse:
    validate_criteria(criteria, origin)
    today = today or date.today()
    # push the date window down; the engine re-applies it along with the rest
    date_from = criteria.date_from
    if criteria.date_from is None and criteria.date_to is None:
        date_from = today
    listings, degraded = fetch_active_listings(db, date_from, criteria.date_to)

    items = []
    for listing, distance in filter_with_distances(listings, criteria, origin, today):
        out = listing.model_copy(update={"distance_km": display_km(distance) if distance is not None else None})
        items.append(out)
    return schemas.FilterResponse(items=items, degraded=degraded)


# routing

class RequestTracker:
    """Last-call-wins bookkeeping per client.

    `begin` hands out a ticket; a result is only current if no newer ticket
    was issued for the same client before it finished.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[str, int] = {}
        self._counter = 0

    def begin(self, client_key: str) -> int:
        with self._lock:
            self._counter += 1
            self._latest[client_key] = self._counter
            return self._counter

    def is_current(self, client_key: str, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(client_key) == ticket

    def finish(self, client_key: str, ticket: int) -> bool:
        """Close out `ticket` and report whether it was still the latest.

        A client with no request in flight leaves no entry behind.
        """
        with self._lock:
            current = self._latest.get(client_key) == ticket
            if current:
                del self._latest[client_key]
            return current

    def __len__(self):
        with self._lock:
            return len(self._latest)


route_requests = RequestTracker()


def plan_route(db: Session, request: schemas.RouteRequest, client_key: Optional[str] = None,
               tracker: RequestTracker = route_requests) -> schemas.RouteResponse:
    ticket = tracker.begin(client_key) if client_key else None
    try:
        itinerary, degraded = _build_itinerary(db, request)
    finally:
        current = ticket is None or tracker.finish(client_key, ticket)
    return schemas.RouteResponse(itinerary=itinerary, superseded=not current, degraded=degraded)


def _build_itinerary(db: Session, request: schemas.RouteRequest):
    degraded = False
    if request.stops is not None:
        # a stop listed twice is still one stop
        stops = list({stop.id: stop for stop in request.stops}.values())
    else:
        ids = list(dict.fromkeys(request.listing_ids))
        check_stop_count(len(ids))
        stops, degraded = fetch_listings_by_ids(db, ids)

    start = request.start or schemas.Coordinates(
        latitude=config.DEFAULT_START_LAT, longitude=config.DEFAULT_START_LON
    )
    ordered = nearest_neighbor_order(start, stops)
    itinerary = schedule(
        ordered,
        request.start_time,
        request.dwell_minutes,
        request.speed_minutes_per_km,
        start=start,
    )
    logger.info("Planned route over %d stops, %.2f km", len(ordered), itinerary.total_distance_km)
    return itinerary, degraded


# favorites

def toggle_favorite(db: Session, listing_id: str, user_id: str) -> bool:
    """Flip the saved state of a listing for a user and return the new state."""
    get_listing(db, listing_id)
    with store_call(db):
        if crud.favorite_exists(db, listing_id, user_id):
            crud.remove_favorite(db, listing_id, user_id)
            favorited = False
        else:
            crud.add_favorite(db, listing_id, user_id)
            favorited = True
    logger.info("User %s %s listing %s", user_id, "saved" if favorited else "unsaved", listing_id)
    return favorited


def list_favorites(db: Session, user_id: str) -> List[str]:
    with store_call(db):
        return crud.list_favorites(db, user_id)
