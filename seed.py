"""
Idempotent seed script.
Usage:
  python seed.py --reset    # drop and recreate tables, then load demo data
  python seed.py            # add whatever demo data is missing (idempotent)
"""
import argparse

from sqlalchemy import select

from extensions import db
from models import Image, OpeningHour, Organization, Restaurant, Review, SubscriptionStatus

DEMO_ORG = "Himalayan Dining Group"

# weekday -> (open, close); 0 = Sunday
DINNER_WEEK = {d: ("11:00", "22:00") for d in range(7)}
CAFE_WEEK = {**{d: ("07:30", "18:00") for d in range(1, 7)}, 0: None}

DEMO_RESTAURANTS = [
    {
        "slug": "thamel-momo-house",
        "name": "Thamel Momo House",
        "slogan": "Steamed, fried, jhol",
        "place": "Kathmandu",
        "area": "Thamel",
        "genre": "Nepali",
        "budget": "$",
        "title": "Momos in the heart of Thamel",
        "description": "Family kitchen serving buff, chicken and veg momos since 1998.",
        "address": "Chaksibari Marg, Thamel, Kathmandu",
        "phone": "+9771-4700001",
        "capacity": 40,
        "hours": DINNER_WEEK,
        "images": [("https://images.example.com/momo-house/front.jpg", "Front door", True)],
        "reviews": [("Asha", 5, "Best jhol momo"), ("Ben", 4, "Busy but worth it")],
    },
    {
        "slug": "patan-newari-kitchen",
        "name": "Patan Newari Kitchen",
        "slogan": "Samay baji and more",
        "place": "Lalitpur",
        "area": "Patan Durbar Square",
        "genre": "Newari",
        "budget": "$$",
        "title": "Newari feasts next to the square",
        "description": "Courtyard seating with traditional Newari sets.",
        "address": "Mangal Bazar, Lalitpur",
        "phone": "+9771-5500002",
        "capacity": 30,
        "hours": DINNER_WEEK,
        "images": [],
        "reviews": [("Chen", 4, "Great choila")],
    },
    {
        "slug": "boudha-rooftop-cafe",
        "name": "Boudha Rooftop Cafe",
        "slogan": "Coffee with a stupa view",
        "place": "Kathmandu",
        "area": "Boudha",
        "genre": "Cafe",
        "budget": "$$",
        "title": "Rooftop cafe facing Boudhanath",
        "description": "Breakfast, espresso and Tibetan bread. Closed on Sundays.",
        "address": "Boudha Stupa Circle, Kathmandu",
        "phone": "+9771-4900003",
        "capacity": 20,
        "hours": CAFE_WEEK,
        "images": [("https://images.example.com/boudha/view.jpg", "Stupa view", True)],
        "reviews": [],
    },
]


def get_or_create(model, defaults=None, **by):
    """Idempotent create keyed on the given columns."""
    inst = db.session.scalars(select(model).filter_by(**by)).first()
    if inst:
        return inst, False
    inst = model(**{**(defaults or {}), **by})
    db.session.add(inst)
    db.session.flush()
    return inst, True


def _seed_restaurant(org: Organization, data: dict) -> bool:
    fields = {k: v for k, v in data.items() if k not in ("slug", "hours", "images", "reviews")}
    resto, created = get_or_create(Restaurant, defaults={"org_id": org.id, **fields}, slug=data["slug"])

    for weekday, span in data["hours"].items():
        if span is None:
            defaults = {"open_time": "00:00", "close_time": "00:00", "is_closed": True}
        else:
            defaults = {"open_time": span[0], "close_time": span[1], "is_closed": False}
        get_or_create(OpeningHour, defaults=defaults, restaurant_id=resto.id, weekday=weekday)

    for order, (url, alt, is_main) in enumerate(data["images"]):
        get_or_create(Image, defaults={"alt": alt, "is_main": is_main, "display_order": order},
                      restaurant_id=resto.id, url=url)

    for name, rating, title in data["reviews"]:
        get_or_create(Review, defaults={"rating": rating, "is_approved": True},
                      restaurant_id=resto.id, customer_name=name, title=title)
    return created


def seed_demo() -> int:
    """Loads the demo organization and restaurants; returns how many restaurants were new."""
    org, _ = get_or_create(Organization, defaults={"subscription_status": SubscriptionStatus.ACTIVE},
                           name=DEMO_ORG)
    created = sum(1 for data in DEMO_RESTAURANTS if _seed_restaurant(org, data))
    db.session.commit()
    return created


# ---- main ----
def main():
    from app import create_app

    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    args = parser.parse_args()

    app = create_app(overrides={"SEED_DEMO_DATA": False})
    with app.app_context():
        if args.reset:
            db.drop_all()
            db.create_all()
            created = seed_demo()
            print(f"[seed] reset+seed complete ({created} restaurants)")
            return

        db.create_all()
        created = seed_demo()
        print(f"[seed] soft seed complete ({created} new restaurants)")

if __name__ == "__main__":
    main()
