# garage_sales/schemas.py
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .geo import display_km


class SaleStatus(str, Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


def _clean_tags(tags):
    if tags is None:
        return tags
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if not tag:
            raise ValueError("tags must be non-empty strings")
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class ListingBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    address: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    location_details: Optional[str] = None
    sale_date: date
    start_time: time
    end_time: time
    tags: List[str] = Field(default_factory=list)
    items_description: Optional[str] = None
    cash_only: bool = False
    early_birds_welcome: bool = False

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, v):
        return _clean_tags(v)

    @model_validator(mode="after")
    def _check_hours(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ListingCreate(ListingBase):
    pass


_REQUIRED_ON_UPDATE = (
    "title", "address", "latitude", "longitude", "sale_date", "start_time", "end_time",
    "tags", "cash_only", "early_birds_welcome", "status",
)


class ListingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    address: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_details: Optional[str] = None
    sale_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    tags: Optional[List[str]] = None
    items_description: Optional[str] = None
    cash_only: Optional[bool] = None
    early_birds_welcome: Optional[bool] = None
    status: Optional[SaleStatus] = None

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, v):
        return _clean_tags(v)

    @field_validator(*_REQUIRED_ON_UPDATE)
    @classmethod
    def _not_null(cls, v, info):
        # omit a field to leave it unchanged; null would clear a required column
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ListingOut(ListingBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    status: SaleStatus = SaleStatus.active
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    distance_km: Optional[float] = None


class FilterCriteria(BaseModel):
    """Filter dimensions; every field left as None is unconstrained.

    Cross-field checks (reversed date range, radius without origin) belong to
    the filter engine so direct callers get the same errors as HTTP callers.
    """
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    tags: Optional[List[str]] = None
    max_distance_km: Optional[float] = None
    cash_only: Optional[bool] = None
    early_birds_welcome: Optional[bool] = None

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, v):
        return _clean_tags(v)


class FilterRequest(BaseModel):
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    origin: Optional[Coordinates] = None


class FilterResponse(BaseModel):
    items: List[ListingOut]
    degraded: bool = False


class RouteStop(BaseModel):
    """A stop given inline rather than by listing id."""
    id: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    sale_date: Optional[date] = None
    start_time: Optional[time] = None


class RouteRequest(BaseModel):
    start: Optional[Coordinates] = None
    stops: Optional[List[RouteStop]] = None
    listing_ids: Optional[List[str]] = None
    start_time: Optional[time] = None
    dwell_minutes: Optional[int] = Field(None, ge=0)
    speed_minutes_per_km: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _one_source(self):
        if (self.stops is None) == (self.listing_ids is None):
            raise ValueError("provide exactly one of stops or listing_ids")
        return self


class RouteWaypoint(BaseModel):
    sale_id: str
    order: int
    coordinates: Coordinates
    # minutes after midnight of the sale day; may run past 24:00
    arrival_minute: int
    departure_minute: int
    estimated_arrival_time: str
    distance_from_previous_km: float
    duration_from_previous_minutes: int

    @field_serializer("distance_from_previous_km", when_used="json")
    def _round_leg(self, value):
        return display_km(value)


class Itinerary(BaseModel):
    name: str
    sale_date: Optional[date] = None
    sale_ids: List[str]
    waypoints: List[RouteWaypoint]
    total_distance_km: float
    total_duration_minutes: int
    dwell_minutes: int
    start_location: Coordinates
    end_location: Coordinates

    @field_serializer("total_distance_km", when_used="json")
    def _round_total(self, value):
        return display_km(value)


class RouteResponse(BaseModel):
    itinerary: Itinerary
    superseded: bool = False
    degraded: bool = False


class FavoriteOut(BaseModel):
    listing_id: str
    favorited: bool


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorOut(BaseModel):
    error: ErrorDetail
