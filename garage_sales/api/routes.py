# garage_sales/api/routes.py
import concurrent.futures
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session

from .. import config, schemas, services
from ..db import SessionLocal, get_db
from ..errors import RequestTimeoutError
from ..utils import logger

router = APIRouter()


def _with_timeout(fn, *args, timeout=None, **kwargs):
    """Run `fn(db, *args, **kwargs)` under the service-level request timeout.

    The worker opens and closes its own session: after a timeout it may
    still be running while the request has already been answered.
    """
    timeout = config.REQUEST_TIMEOUT_SECONDS if timeout is None else timeout

    def run():
        db = SessionLocal()
        try:
            return fn(db, *args, **kwargs)
        finally:
            db.close()

    pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = pool.submit(run)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError:
        logger.warning("%s timed out after %ss", fn.__name__, timeout)
        raise RequestTimeoutError(timeout)
    finally:
        pool.shutdown(wait=False)


@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/listings", response_model=List[schemas.ListingOut])
def listings(
    upcoming: bool = False,
    status: Optional[schemas.SaleStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    return services.list_listings(db, upcoming=upcoming, status=status.value if status else None, limit=limit)


@router.get("/listings/{listing_id}", response_model=schemas.ListingOut)
def get_listing(listing_id: str, db: Session = Depends(get_db)):
    return services.get_listing(db, listing_id)


@router.post("/listings", response_model=schemas.ListingOut, status_code=201)
def create_listing(payload: schemas.ListingCreate, x_user_id: str = Header(...), db: Session = Depends(get_db)):
    return services.create_listing(db, x_user_id, payload)


@router.patch("/listings/{listing_id}", response_model=schemas.ListingOut)
def update_listing(listing_id: str, payload: schemas.ListingUpdate, x_user_id: str = Header(...),
                   db: Session = Depends(get_db)):
    return services.update_listing(db, listing_id, x_user_id, payload)


@router.delete("/listings/{listing_id}", response_model=schemas.ListingOut)
def retire_listing(listing_id: str, x_user_id: str = Header(...), db: Session = Depends(get_db)):
    return services.retire_listing(db, listing_id, x_user_id)


@router.post("/listings/{listing_id}/favorite", response_model=schemas.FavoriteOut)
def toggle_favorite(listing_id: str, x_user_id: str = Header(...), db: Session = Depends(get_db)):
    favorited = services.toggle_favorite(db, listing_id, x_user_id)
    return schemas.FavoriteOut(listing_id=listing_id, favorited=favorited)


@router.get("/users/{user_id}/favorites", response_model=List[str])
def favorites(user_id: str, db: Session = Depends(get_db)):
    return services.list_favorites(db, user_id)


@router.post("/filter", response_model=schemas.FilterResponse)
def filter_listings(payload: schemas.FilterRequest):
    return _with_timeout(services.filter_sales, payload.criteria, payload.origin)


@router.post("/route", response_model=schemas.RouteResponse)
def plan_route(payload: schemas.RouteRequest, x_client_key: Optional[str] = Header(None)):
    return _with_timeout(services.plan_route, payload, client_key=x_client_key)
