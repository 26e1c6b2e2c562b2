from __future__ import annotations
import pytest
from sqlalchemy.exc import IntegrityError

from app import create_app
from extensions import db
from models import Customer, OpeningHour, Organization, Restaurant, Review

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        org = Organization(name="Demo Org")
        db.session.add(org)
        db.session.flush()
        r = Restaurant(org_id=org.id, slug="patan-newari-kitchen", name="Patan Newari Kitchen",
                       area="Patan Durbar Square", place="Lalitpur", genre="Newari", capacity=30)
        db.session.add(r)
        db.session.flush()
        db.session.add(OpeningHour(restaurant_id=r.id, weekday=1, open_time="11:00", close_time="21:00"))
        db.session.add(Customer(name="Chen", email="chen@example.com", phone="+9779800000002"))
        db.session.commit()

        with app.test_client() as c:
            c.restaurant_id = r.id
            yield c

        db.session.remove()
        db.drop_all()

def test_detail_includes_hours_and_rating(client):
    db.session.add_all([
        Review(restaurant_id=client.restaurant_id, rating=5, is_approved=True),
        Review(restaurant_id=client.restaurant_id, rating=2, is_approved=False),
    ])
    db.session.commit()
    rv = client.get("/api/restaurants/patan-newari-kitchen")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["slug"] == "patan-newari-kitchen"
    assert data["timezone"] == "Asia/Kathmandu"
    assert data["open_hours"] == [{"weekday": 1, "open_time": "11:00", "close_time": "21:00", "is_closed": False}]
    assert data["avg_rating"] == 5.0
    assert data["review_count"] == 1

def test_detail_unknown_slug(client):
    rv = client.get("/api/restaurants/nope")
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "restaurant not found"

def test_detail_is_never_cached(client):
    client.get("/api/restaurants/patan-newari-kitchen")
    db.session.get(Restaurant, client.restaurant_id).name = "Renamed Kitchen"
    db.session.commit()
    assert client.get("/api/restaurants/patan-newari-kitchen").get_json()["name"] == "Renamed Kitchen"


# ---------- opening hours ----------
def test_replace_opening_hours(client):
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}/hours", json={"openHours": [
        {"weekday": 0, "openTime": "10:00", "closeTime": "14:00"},
        {"weekday": 6, "openTime": "00:00", "closeTime": "00:00", "isClosed": True},
    ]})
    assert rv.status_code == 200
    hours = rv.get_json()["open_hours"]
    assert [h["weekday"] for h in hours] == [0, 6]

    rows = db.session.query(OpeningHour).filter_by(restaurant_id=client.restaurant_id).all()
    assert sorted(r.weekday for r in rows) == [0, 6]  # monday row replaced
    detail = client.get("/api/restaurants/patan-newari-kitchen").get_json()
    assert [h["weekday"] for h in detail["open_hours"]] == [0, 6]

def test_hours_feed_slot_generation(client):
    client.put(f"/api/owner/restaurants/{client.restaurant_id}/hours", json={"openHours": [
        {"weekday": 5, "openTime": "09:00", "closeTime": "17:00"},
    ]})
    slots = client.get("/api/restaurants/patan-newari-kitchen/slots?date=2025-06-13").get_json()
    assert len(slots) == 16
    assert slots[-1]["start"] == "2025-06-13T16:30:00+05:45"

@pytest.mark.parametrize("hours", [
    [{"weekday": 1, "openTime": "10:00", "closeTime": "14:00"},
     {"weekday": 1, "openTime": "15:00", "closeTime": "20:00"}],
    [{"weekday": 7, "openTime": "10:00", "closeTime": "14:00"}],
    [{"weekday": 1, "openTime": "25:00", "closeTime": "14:00"}],
])
def test_invalid_hours_are_400(client, hours):
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}/hours", json={"openHours": hours})
    assert rv.status_code == 400
    # existing rows untouched
    assert db.session.query(OpeningHour).filter_by(restaurant_id=client.restaurant_id).count() == 1

def test_hours_for_unknown_restaurant(client):
    rv = client.put("/api/owner/restaurants/999/hours", json={"openHours": []})
    assert rv.status_code == 404


# ---------- reviews ----------
def test_review_needs_approval_before_it_counts(client):
    rv = client.post("/api/reviews", json={
        "restaurantSlug": "patan-newari-kitchen", "customerName": "Chen",
        "rating": 4, "title": "Great choila", "comment": "Will be back",
    })
    assert rv.status_code == 201
    review = rv.get_json()
    assert review["is_approved"] is False
    assert client.get("/api/restaurants/patan-newari-kitchen/reviews").get_json() == {"reviews": []}

    rv = client.post(f"/api/owner/reviews/{review['id']}/approve")
    assert rv.get_json()["is_approved"] is True
    listed = client.get("/api/restaurants/patan-newari-kitchen/reviews").get_json()["reviews"]
    assert [r["title"] for r in listed] == ["Great choila"]
    assert client.get("/api/restaurants/patan-newari-kitchen").get_json()["review_count"] == 1

def test_review_unknown_customer_is_dropped(client):
    rv = client.post("/api/reviews", json={
        "restaurantSlug": "patan-newari-kitchen", "customerId": 999, "rating": 3,
    })
    assert rv.status_code == 201
    assert db.session.get(Review, rv.get_json()["id"]).customer_id is None

@pytest.mark.parametrize("rating", [0, 6])
def test_review_rating_bounds(client, rating):
    rv = client.post("/api/reviews", json={"restaurantSlug": "patan-newari-kitchen", "rating": rating})
    assert rv.status_code == 400

def test_review_unknown_restaurant(client):
    rv = client.post("/api/reviews", json={"restaurantSlug": "nope", "rating": 4})
    assert rv.status_code == 404

def test_approve_unknown_review(client):
    assert client.post("/api/owner/reviews/999/approve").status_code == 404


# ---------- owner: create / update ----------
def _org_id():
    return db.session.query(Organization.id).scalar()

def test_create_restaurant(client):
    rv = client.post("/api/owner/restaurants", json={
        "orgId": _org_id(), "name": "Bhaktapur Juju Dhau", "place": "Bhaktapur",
        "genre": "Newari", "budget": "$", "capacity": 12, "isOpen": True,
    })
    assert rv.status_code == 201
    data = rv.get_json()
    assert data["slug"] == "bhaktapur-juju-dhau"
    assert data["capacity"] == 12
    assert data["timezone"] == "Asia/Kathmandu"
    detail = client.get("/api/restaurants/bhaktapur-juju-dhau").get_json()
    assert detail["place"] == "Bhaktapur"

@pytest.mark.parametrize("patch", [
    {"capacity": 0},
    {"capacity": -5},
    {"timezone": "Mars/Olympus_Mons"},
    {"timezone": ""},
    {"budget": "cheap"},
    {"name": "!!!"},
])
def test_create_restaurant_invalid_is_400(client, patch):
    body = {"orgId": _org_id(), "name": "Boudha Stupa View", **patch}
    rv = client.post("/api/owner/restaurants", json=body)
    assert rv.status_code == 400
    assert rv.get_json()["code"] == "VALIDATION_ERROR"
    assert db.session.query(Restaurant).count() == 1

def test_create_restaurant_duplicate_slug_is_409(client):
    rv = client.post("/api/owner/restaurants", json={"orgId": _org_id(), "name": "Patan Newari Kitchen"})
    assert rv.status_code == 409
    assert rv.get_json()["code"] == "CONFLICT"

def test_create_restaurant_unknown_org_is_404(client):
    rv = client.post("/api/owner/restaurants", json={"orgId": 999, "name": "Nowhere Cafe"})
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "organization not found"

def test_update_restaurant_is_partial(client):
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}", json={"capacity": 45, "isOpen": False})
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["capacity"] == 45
    assert data["is_open"] is False
    assert data["name"] == "Patan Newari Kitchen"
    assert data["genre"] == "Newari"

def test_update_restaurant_rename_changes_slug(client):
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}", json={"name": "Patan Bhoj Ghar"})
    assert rv.get_json()["slug"] == "patan-bhoj-ghar"
    assert client.get("/api/restaurants/patan-bhoj-ghar").status_code == 200
    assert client.get("/api/restaurants/patan-newari-kitchen").status_code == 404

def test_update_restaurant_rename_onto_taken_slug_is_409(client):
    client.post("/api/owner/restaurants", json={"orgId": _org_id(), "name": "Thamel Momo House"})
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}", json={"name": "Thamel Momo House"})
    assert rv.status_code == 409
    assert db.session.get(Restaurant, client.restaurant_id).slug == "patan-newari-kitchen"

@pytest.mark.parametrize("patch", [
    {"capacity": 0},
    {"capacity": None},
    {"timezone": "Not/AZone"},
    {"name": None},
])
def test_update_restaurant_invalid_is_400(client, patch):
    rv = client.put(f"/api/owner/restaurants/{client.restaurant_id}", json=patch)
    assert rv.status_code == 400
    r = db.session.get(Restaurant, client.restaurant_id)
    assert r.capacity == 30
    assert r.timezone == "Asia/Kathmandu"

def test_update_unknown_restaurant(client):
    assert client.put("/api/owner/restaurants/999", json={"capacity": 5}).status_code == 404

def test_capacity_check_constraint(client):
    db.session.add(Restaurant(org_id=_org_id(), slug="zero-seats", name="Zero Seats", capacity=0))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


# ---------- oversized ids ----------
def test_oversized_ids_are_not_found(client):
    huge = 99999999999999999999
    assert client.put(f"/api/owner/restaurants/{huge}", json={"capacity": 5}).status_code == 404
    assert client.put(f"/api/owner/restaurants/{huge}/hours", json={"openHours": []}).status_code == 404
    assert client.post(f"/api/owner/reviews/{huge}/approve").status_code == 404

def test_oversized_review_customer_id_is_400(client):
    rv = client.post("/api/reviews", json={
        "restaurantSlug": "patan-newari-kitchen", "customerId": 99999999999999999999, "rating": 3,
    })
    assert rv.status_code == 400
