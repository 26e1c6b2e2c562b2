from __future__ import annotations
import re
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from blueprints.availability.services import InvalidTimezone, resolve_timezone

HHMM = r"^([01]?\d|2[0-3]):[0-5]\d$"
BUDGET = r"^\${1,4}$"

# ---------- Restaurants ----------
class RestaurantUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slogan: Optional[str] = Field(None, max_length=255)
    place: Optional[str] = Field(None, max_length=255)
    area: Optional[str] = Field(None, max_length=255)
    genre: Optional[str] = Field(None, max_length=120)
    budget: Optional[str] = Field(None, pattern=BUDGET)
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=20)
    timezone: Optional[str] = Field(None, max_length=64)
    capacity: Optional[int] = Field(None, ge=1, le=100000)
    is_open: Optional[bool] = Field(None, alias="isOpen")

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v):
        if v is None:
            return v
        try:
            resolve_timezone(v)
        except InvalidTimezone as e:
            raise ValueError(e.message) from e
        return v

    @field_validator("name")
    @classmethod
    def sluggable_name(cls, v):
        # the slug is derived from the name
        if v is not None and not re.search(r"[A-Za-z0-9]", v):
            raise ValueError("name must contain letters or digits")
        return v

    @field_validator("name", "slogan", "place", "area", "genre", "budget", "title",
                     "timezone", "capacity", "is_open")
    @classmethod
    def not_null(cls, v, info):
        # explicit null is not a way to clear a required column
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v

class RestaurantIn(RestaurantUpdate):
    org_id: int = Field(alias="orgId", ge=1, le=2**31 - 1)
    name: str = Field(min_length=1, max_length=255)
    slogan: str = Field("", max_length=255)
    place: str = Field("", max_length=255)
    area: str = Field("", max_length=255)
    genre: str = Field("", max_length=120)
    budget: str = Field("$$", pattern=BUDGET)
    title: str = Field("", max_length=255)
    timezone: str = Field("Asia/Kathmandu", max_length=64)
    capacity: int = Field(30, ge=1, le=100000)
    is_open: bool = Field(True, alias="isOpen")


# ---------- Opening hours ----------
class OpeningHourIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    weekday: int = Field(ge=0, le=6)  # 0=Sun .. 6=Sat
    open_time: str = Field(alias="openTime", pattern=HHMM)
    close_time: str = Field(alias="closeTime", pattern=HHMM)
    is_closed: bool = Field(False, alias="isClosed")

class OpeningHourOut(BaseModel):
    weekday: int
    open_time: str
    close_time: str
    is_closed: bool

class OpeningHoursIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    open_hours: List[OpeningHourIn] = Field(alias="openHours")

    @model_validator(mode="after")
    def one_row_per_weekday(self):
        days = [h.weekday for h in self.open_hours]
        if len(days) != len(set(days)):
            raise ValueError("duplicate weekday in openHours")
        return self

# ---------- Reviews ----------
class ReviewIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurant_slug: str = Field(alias="restaurantSlug", min_length=1, max_length=120)
    customer_id: Optional[int] = Field(None, alias="customerId", ge=1, le=2**31 - 1)
    customer_name: Optional[str] = Field(None, alias="customerName", max_length=100)
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=1000)

class ReviewOut(BaseModel):
    id: int
    restaurant_id: int
    customer_name: Optional[str] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_approved: bool
