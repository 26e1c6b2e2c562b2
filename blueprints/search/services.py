# blueprints/search/services.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import selectinload

from models import Restaurant, Review
from .cache import SearchCache
from .schemas import ImageCard, RestaurantCard, SearchFilters, SearchResult

log = logging.getLogger(__name__)

SUGGEST_MIN_LEN = 2
SUGGEST_LIMIT = 10


def _like(q: str) -> str:
    return f"%{q}%"


def _rating_subquery():
    return (
        select(func.coalesce(func.avg(Review.rating), 0.0))
        .where(Review.restaurant_id == Restaurant.id, Review.is_approved.is_(True))
        .correlate(Restaurant)
        .scalar_subquery()
    )


_SORT_COLUMNS = {
    "name": Restaurant.name,
    "created_at": Restaurant.created_at,
    "capacity": Restaurant.capacity,
}


def build_query(filters: SearchFilters, q: str | None = None):
    """SELECT over open restaurants matching ``filters`` (and free text ``q``)."""
    stmt = select(Restaurant).where(Restaurant.is_open.is_(True))

    if q:
        term = _like(q.strip().lower())
        stmt = stmt.where(or_(
            func.lower(Restaurant.name).like(term),
            func.lower(Restaurant.slogan).like(term),
            func.lower(Restaurant.description).like(term),
            func.lower(Restaurant.genre).like(term),
            func.lower(Restaurant.place).like(term),
            func.lower(Restaurant.area).like(term),
        ))
    if filters.area:
        stmt = stmt.where(or_(Restaurant.area.ilike(_like(filters.area)),
                              Restaurant.place.ilike(_like(filters.area))))
    if filters.cuisine:
        stmt = stmt.where(Restaurant.genre.ilike(_like(filters.cuisine)))
    if filters.budget and filters.budget != "all":
        stmt = stmt.where(Restaurant.budget == filters.budget)
    if filters.people:
        stmt = stmt.where(Restaurant.capacity >= filters.people)

    direction = asc if filters.sort_dir == "asc" else desc
    if filters.sort_by == "rating":
        key = _rating_subquery()
    else:
        key = _SORT_COLUMNS[filters.sort_by]
    return stmt.order_by(direction(key), Restaurant.name.asc(), Restaurant.id.asc())


class SearchService:
    """List/search over restaurants; only ``search`` goes through the cache."""

    def __init__(self, session, cache: Optional[SearchCache] = None):
        self.session = session
        self.cache = cache

    def search(self, filters: SearchFilters) -> SearchResult:
        if self.cache is not None:
            cached = self.cache.get(filters)
            if cached is not None:
                return cached
        result = self.run_query(filters)
        if self.cache is not None:
            self.cache.put(filters, result)
        return result

    def advanced_search(self, q: str, filters: SearchFilters) -> SearchResult:
        return self.run_query(filters, q=q)

    def run_query(self, filters: SearchFilters, q: str | None = None) -> SearchResult:
        stmt = build_query(filters, q=q)
        total = self.session.scalar(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ) or 0
        rows = self.session.scalars(
            stmt.options(selectinload(Restaurant.images))
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        ).all()
        ratings = self._ratings([r.id for r in rows])
        log.info("restaurant search executed", extra={
            "event": "search_query", "total": total, "page": filters.page, "q": q,
        })
        return SearchResult(
            restaurants=tuple(_card(r, *ratings.get(r.id, (0.0, 0))) for r in rows),
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=(total + filters.limit - 1) // filters.limit,
            filters=filters,
        )

    def _ratings(self, ids: List[int]) -> Dict[int, Tuple[float, int]]:
        if not ids:
            return {}
        rows = self.session.execute(
            select(Review.restaurant_id, func.avg(Review.rating), func.count(Review.id))
            .where(Review.restaurant_id.in_(ids), Review.is_approved.is_(True))
            .group_by(Review.restaurant_id)
        ).all()
        return {rid: (float(avg or 0.0), int(cnt)) for rid, avg, cnt in rows}

    def suggest(self, q: str, limit: int = SUGGEST_LIMIT) -> List[str]:
        qn = (q or "").strip()
        if len(qn) < SUGGEST_MIN_LEN:
            return []

        names = self.session.scalars(
            select(Restaurant.name)
            .where(Restaurant.name.ilike(_like(qn)))
            .order_by(Restaurant.name.asc())
            .limit(5)
        ).all()
        cuisines = self.session.scalars(
            select(Restaurant.genre).distinct()
            .where(Restaurant.genre.ilike(_like(qn)))
            .order_by(Restaurant.genre.asc())
            .limit(5)
        ).all()
        areas = self.session.scalars(
            select(Restaurant.area).distinct()
            .where(Restaurant.area.ilike(_like(qn)), Restaurant.area != "")
            .order_by(Restaurant.area.asc())
            .limit(5)
        ).all()

        out: List[str] = []
        for s in [*names, *cuisines, *areas]:
            if s and s not in out:
                out.append(s)
            if len(out) >= limit:
                break
        return out


def _card(r: Restaurant, avg_rating: float, review_count: int) -> RestaurantCard:
    return RestaurantCard(
        id=r.id, slug=r.slug, name=r.name, slogan=r.slogan, place=r.place,
        area=r.area, genre=r.genre, budget=r.budget, title=r.title,
        description=r.description, address=r.address, phone=r.phone,
        timezone=r.timezone, capacity=r.capacity, is_open=r.is_open,
        images=tuple(ImageCard(url=i.url, alt=i.alt, is_main=i.is_main) for i in r.images),
        avg_rating=avg_rating, review_count=review_count,
        created_at=r.created_at, updated_at=r.updated_at,
    )
