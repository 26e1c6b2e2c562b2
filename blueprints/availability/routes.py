# blueprints/availability/routes.py
from __future__ import annotations
from datetime import date, timedelta

from flask import Blueprint, abort, jsonify, request
from sqlalchemy import select

from extensions import db
from models import OpeningHour, Restaurant
from blueprints.reservations.services import active_reservations_between
from . import services as svc

api_bp = Blueprint("availability_api", __name__)

# widest offsets plus the reservation lookback must stay inside datetime's range
EARLIEST_DATE = date.min + timedelta(days=2)
LATEST_DATE = date.max - timedelta(days=2)


def slots_for(restaurant: Restaurant, on: date) -> svc.SlotRange:
    """Loads the weekday row and reservations around the window, then generates."""
    tz = svc.resolve_timezone(restaurant.timezone)
    oh = db.session.scalars(
        select(OpeningHour).where(
            OpeningHour.restaurant_id == restaurant.id,
            OpeningHour.weekday == svc.weekday_index(on),
        )
    ).first()
    window = svc.opening_window(restaurant, on, oh, tz)
    reservations = ()
    if window is not None:
        start, end = window
        reservations = active_reservations_between(restaurant.id, start, end + svc.STAY)
    return svc.slots_in_window(restaurant, window, tz, reservations)


@api_bp.get("/restaurants/<slug>/slots")
def restaurant_slots(slug: str):
    resto = db.session.scalars(
        select(Restaurant).where(Restaurant.slug == slug)
    ).first() or abort(404, description="restaurant not found")
    d = request.args.get("date")
    try:
        on = date.fromisoformat(d) if d else None
    except ValueError:
        on = None
    if on is None:
        abort(400, description="invalid date (YYYY-MM-DD)")
    if not (EARLIEST_DATE <= on <= LATEST_DATE):
        abort(400, description="date out of range")
    return jsonify(slots_for(resto, on).to_list())
