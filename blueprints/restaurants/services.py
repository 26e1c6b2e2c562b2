# blueprints/restaurants/services.py
from __future__ import annotations
import logging
import re
from typing import Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Customer, OpeningHour, Organization, Restaurant, Review
from .schemas import OpeningHourIn, OpeningHourOut, RestaurantIn, RestaurantUpdate, ReviewIn, ReviewOut

log = logging.getLogger(__name__)


def get_by_slug(slug: str) -> Optional[Restaurant]:
    return db.session.scalars(select(Restaurant).where(Restaurant.slug == slug)).first()


_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_SLUG.sub("-", name.strip().lower()).strip("-")[:120]


def slug_taken(slug: str, exclude_id: int | None = None) -> bool:
    stmt = select(Restaurant.id).where(Restaurant.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Restaurant.id != exclude_id)
    return db.session.scalar(stmt) is not None


def _rating(restaurant_id: int) -> tuple[float, int]:
    avg, cnt = db.session.execute(
        select(func.avg(Review.rating), func.count(Review.id))
        .where(Review.restaurant_id == restaurant_id, Review.is_approved.is_(True))
    ).one()
    return float(avg or 0.0), int(cnt or 0)


def _hours_out(hours) -> List[Dict]:
    return [
        OpeningHourOut(weekday=h.weekday, open_time=h.open_time,
                       close_time=h.close_time, is_closed=h.is_closed).model_dump()
        for h in sorted(hours, key=lambda h: h.weekday)
    ]


def restaurant_detail(slug: str) -> Optional[Dict]:
    """Always read from the database; detail pages are never cached."""
    r = get_by_slug(slug)
    if not r:
        return None
    avg, cnt = _rating(r.id)
    return {
        **restaurant_to_dict(r),
        "open_hours": _hours_out(r.opening_hours),
        "images": [{"url": i.url, "alt": i.alt, "is_main": i.is_main} for i in r.images],
        "avg_rating": avg,
        "review_count": cnt,
        "created_at": r.created_at.isoformat(),
        "updated_at": r.updated_at.isoformat(),
    }


def replace_opening_hours(restaurant: Restaurant, hours: List[OpeningHourIn]) -> List[Dict]:
    db.session.execute(delete(OpeningHour).where(OpeningHour.restaurant_id == restaurant.id))
    rows = [
        OpeningHour(restaurant_id=restaurant.id, weekday=h.weekday, open_time=h.open_time,
                    close_time=h.close_time, is_closed=h.is_closed)
        for h in hours
    ]
    db.session.add_all(rows)
    db.session.commit()
    db.session.expire(restaurant, ["opening_hours"])
    log.info("opening hours replaced", extra={"event": "opening_hours", "restaurant_id": restaurant.id,
                                              "days": len(rows)})
    return _hours_out(rows)


# ---------- Reviews ----------
def create_review(restaurant: Restaurant, parsed: ReviewIn) -> Review:
    customer_id = parsed.customer_id
    if customer_id is not None and db.session.get(Customer, customer_id) is None:
        customer_id = None
    rev = Review(
        restaurant_id=restaurant.id,
        customer_id=customer_id,
        customer_name=parsed.customer_name,
        rating=parsed.rating,
        title=parsed.title,
        comment=parsed.comment,
        is_approved=False,  # moderated by the owner
    )
    db.session.add(rev)
    db.session.commit()
    return rev


def approve_review(review_id: int) -> Optional[Review]:
    rev = db.session.get(Review, review_id)
    if rev is None:
        return None
    rev.is_approved = True
    db.session.commit()
    return rev


def approved_reviews(restaurant: Restaurant) -> List[Dict]:
    rows = db.session.scalars(
        select(Review)
        .where(Review.restaurant_id == restaurant.id, Review.is_approved.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()
    return [review_to_dict(r) for r in rows]


def review_to_dict(r: Review) -> Dict:
    return ReviewOut.model_validate({
        "id": r.id, "restaurant_id": r.restaurant_id, "customer_name": r.customer_name,
        "rating": r.rating, "title": r.title, "comment": r.comment, "is_approved": r.is_approved,
    }).model_dump(mode="json")


# ---------- Owner: restaurants ----------
class SlugTaken(Exception):
    def __init__(self, slug: str):
        super().__init__(f"restaurant with slug {slug!r} already exists")
        self.slug = slug


def create_restaurant(parsed: RestaurantIn) -> Optional[Restaurant]:
    """Creates a restaurant under ``parsed.org_id``; None if the organization is unknown.

    The slug is derived from the name and must be unique across tenants.
    """
    if db.session.get(Organization, parsed.org_id) is None:
        return None
    slug = slugify(parsed.name)
    if slug_taken(slug):
        raise SlugTaken(slug)
    fields = parsed.model_dump(exclude={"org_id"})
    r = Restaurant(org_id=parsed.org_id, slug=slug, **fields)
    db.session.add(r)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise SlugTaken(slug)
    log.info("restaurant created", extra={"event": "restaurant_created", "restaurant_id": r.id,
                                          "org_id": r.org_id, "slug": r.slug})
    return r


def update_restaurant(restaurant: Restaurant, parsed: RestaurantUpdate) -> Restaurant:
    """Applies the fields present in the payload; a new name re-derives the slug."""
    changes = parsed.model_dump(exclude_unset=True)
    if "name" in changes:
        slug = slugify(changes["name"])
        if slug_taken(slug, exclude_id=restaurant.id):
            raise SlugTaken(slug)
        restaurant.slug = slug
    for key, value in changes.items():
        setattr(restaurant, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise SlugTaken(restaurant.slug)
    log.info("restaurant updated", extra={"event": "restaurant_updated", "restaurant_id": restaurant.id,
                                          "fields": sorted(changes)})
    return restaurant


def restaurant_to_dict(r: Restaurant) -> Dict:
    return {
        "id": r.id,
        "org_id": r.org_id,
        "slug": r.slug,
        "name": r.name,
        "slogan": r.slogan,
        "place": r.place,
        "area": r.area,
        "genre": r.genre,
        "budget": r.budget,
        "title": r.title,
        "description": r.description,
        "address": r.address,
        "phone": r.phone,
        "timezone": r.timezone,
        "capacity": r.capacity,
        "is_open": r.is_open,
    }
