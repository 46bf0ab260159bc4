"""Store operations for garage sales and favorites.

Listings are created, read, updated and retired here; nothing is ever
deleted from `garage_sales`. Favorites are plain insert/delete rows.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.orm import Session

from .models import GarageSale, SavedGarageSale


def create_listing(db: Session, user_id: str, data: Dict[str, Any]):
    obj = GarageSale(**data, user_id=user_id, status="active")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def get_listing(db: Session, listing_id: str):
    return db.get(GarageSale, listing_id)

def get_listings_by_ids(db: Session, listing_ids: List[str]):
    if not listing_ids:
        return []
    rows = db.scalars(select(GarageSale).where(GarageSale.id.in_(listing_ids))).all()
    return list(rows)

def list_listings(db: Session, skip: int = 0, limit: Optional[int] = None, filters: Dict = None):
    """Query listings with the predicates the database can evaluate.

    Supported filter keys: `status`, `date_from`, `date_to`, `user_id`.
    Results come back by sale date then start time.
    """
    q = select(GarageSale)
    if filters:
        conds = []
        if filters.get("status") is not None:
            conds.append(GarageSale.status == filters["status"])
        if filters.get("date_from") is not None:
            conds.append(GarageSale.sale_date >= filters["date_from"])
        if filters.get("date_to") is not None:
            conds.append(GarageSale.sale_date <= filters["date_to"])
        if filters.get("user_id") is not None:
            conds.append(GarageSale.user_id == filters["user_id"])
        if conds:
            q = q.where(and_(*conds))
    q = q.order_by(GarageSale.sale_date, GarageSale.start_time, GarageSale.created_at)
    if skip:
        q = q.offset(skip)
    if limit is not None:
        q = q.limit(limit)
    return list(db.scalars(q).all())

def update_listing(db: Session, listing_id: str, updates: Dict[str, Any]):
    obj = db.get(GarageSale, listing_id)
    if not obj:
        return None
    for k, v in updates.items():
        setattr(obj, k, v)
    db.commit()
    db.refresh(obj)
    return obj

def retire_past_listings(db: Session, today: date) -> int:
    stmt = (
        update(GarageSale)
        .where(and_(GarageSale.status == "active", GarageSale.sale_date < today))
        .values(status="completed")
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount

def favorite_exists(db: Session, listing_id: str, user_id: str) -> bool:
    q = select(SavedGarageSale.id).where(
        SavedGarageSale.sale_id == listing_id, SavedGarageSale.user_id == user_id
    )
    return db.scalars(q).first() is not None

def add_favorite(db: Session, listing_id: str, user_id: str):
    db.add(SavedGarageSale(sale_id=listing_id, user_id=user_id))
    db.commit()

def remove_favorite(db: Session, listing_id: str, user_id: str):
    db.execute(delete(SavedGarageSale).where(
        SavedGarageSale.sale_id == listing_id, SavedGarageSale.user_id == user_id
    ))
    db.commit()

def list_favorites(db: Session, user_id: str) -> List[str]:
    q = (
        select(SavedGarageSale.sale_id)
        .where(SavedGarageSale.user_id == user_id)
        .order_by(SavedGarageSale.created_at, SavedGarageSale.id)
    )
    return list(db.scalars(q).all())
