from __future__ import annotations
from datetime import datetime, timedelta, timezone
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from config import DEFAULT_DURATION_MIN, MAX_DURATION_MIN

# the candidate window reaches MAX_DURATION_MIN either side of startsAt
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc) + timedelta(minutes=MAX_DURATION_MIN)
_LATEST = datetime.max.replace(tzinfo=timezone.utc) - timedelta(minutes=MAX_DURATION_MIN)

class CustomerIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=5, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(min_length=10, max_length=20)

class ReservationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurant_slug: str = Field(alias="restaurantSlug", min_length=1, max_length=120)
    # RFC3339 with an explicit offset
    starts_at: AwareDatetime = Field(alias="startsAt")
    duration_min: int = Field(DEFAULT_DURATION_MIN, alias="duration", ge=1, le=MAX_DURATION_MIN)
    party_size: int = Field(alias="party", ge=1, le=1000)
    customer: CustomerIn

    @field_validator("starts_at")
    @classmethod
    def in_bookable_range(cls, v: datetime) -> datetime:
        try:
            utc = v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError("startsAt is out of range")
        if not (_EARLIEST <= utc <= _LATEST):
            raise ValueError("startsAt is out of range")
        return v
