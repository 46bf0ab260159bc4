"""SQLAlchemy ORM models for persisted entities.

`GarageSale` rows are never deleted; they are retired through `status`.
`SavedGarageSale` holds a user's favorites.
"""
import uuid

from sqlalchemy import (
    Boolean, Column, Date, Float, ForeignKey, Index, Integer, JSON, Text, Time,
    TIMESTAMP, UniqueConstraint, func,
)
from .db import Base


def _new_id():
    return str(uuid.uuid4())


class GarageSale(Base):
    __tablename__ = "garage_sales"
    id = Column(Text, primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text)
    address = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location_details = Column(Text)
    sale_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    items_description = Column(Text)
    cash_only = Column(Boolean, nullable=False, default=False)
    early_birds_welcome = Column(Boolean, nullable=False, default=False)
    status = Column(Text, nullable=False, default="active")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class SavedGarageSale(Base):
    __tablename__ = "saved_garage_sales"
    __table_args__ = (UniqueConstraint("user_id", "sale_id", name="uq_saved_user_sale"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    sale_id = Column(Text, ForeignKey("garage_sales.id"), nullable=False)
    notes = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


Index("idx_garage_sales_sale_date", GarageSale.sale_date)
Index("idx_garage_sales_status", GarageSale.status)
