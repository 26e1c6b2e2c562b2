from __future__ import annotations
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

SORT_FIELDS = ("rating", "name", "created_at", "capacity")
SORT_DIRS = ("asc", "desc")
BUDGETS = ("", "all", "$", "$$", "$$$", "$$$$")
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# keeps OFFSET and capacity comparisons inside a 64-bit INTEGER
MAX_PAGE = 2**31 - 1
MAX_PEOPLE = 2**31 - 1


def _text(v) -> str:
    return "" if v is None else str(v).strip()


class SearchFilters(BaseModel):
    """Normalized list/search parameters.

    Invalid values fall back to their defaults instead of failing, so two
    requests that mean the same thing end up as equal models.
    """
    model_config = ConfigDict(frozen=True)

    area: str = ""
    cuisine: str = ""
    budget: str = ""
    people: Optional[int] = None
    date: str = ""
    time: str = ""
    sort_by: str = "rating"
    sort_dir: str = "desc"
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @field_validator("area", "cuisine", "date", "time", mode="before")
    @classmethod
    def _strip(cls, v):
        return _text(v)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget(cls, v):
        v = _text(v)
        return v if v in BUDGETS else ""

    @field_validator("people", mode="before")
    @classmethod
    def _people(cls, v):
        try:
            n = int(_text(v))
        except ValueError:
            return None
        return min(n, MAX_PEOPLE) if n >= 1 else None

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_by(cls, v):
        v = _text(v).lower()
        return v if v in SORT_FIELDS else "rating"

    @field_validator("sort_dir", mode="before")
    @classmethod
    def _sort_dir(cls, v):
        v = _text(v).lower()
        return v if v in SORT_DIRS else "desc"

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, v):
        try:
            n = int(_text(v))
        except ValueError:
            return 1
        return min(n, MAX_PAGE) if n >= 1 else 1

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, v):
        try:
            n = int(_text(v))
        except ValueError:
            return DEFAULT_LIMIT
        return n if 1 <= n <= MAX_LIMIT else DEFAULT_LIMIT

    @classmethod
    def from_args(cls, args) -> "SearchFilters":
        keys = cls.model_fields.keys()
        return cls.model_validate({k: args.get(k) for k in keys if args.get(k) not in (None, "")})


class ImageCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    alt: Optional[str] = None
    is_main: bool = False


class RestaurantCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    slug: str
    name: str
    slogan: str
    place: str
    area: str
    genre: str
    budget: str
    title: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    timezone: str
    capacity: int
    is_open: bool
    images: Tuple[ImageCard, ...] = ()
    avg_rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    restaurants: Tuple[RestaurantCard, ...]
    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")
    filters: SearchFilters

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
