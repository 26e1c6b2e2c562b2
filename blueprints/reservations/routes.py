# blueprints/reservations/routes.py
from __future__ import annotations
from datetime import date, datetime, time, timezone

from flask import Blueprint, abort, jsonify, request
from sqlalchemy import select

from extensions import db
from models import Restaurant
from . import services as svc
from .schemas import ReservationIn

api_bp = Blueprint("reservations_api", __name__)

# OFFSET stays inside a 64-bit INTEGER
MAX_PAGE = 2**31 - 1


def _parse_bound(value: str | None) -> datetime | None:
    """Accepts a date (midnight UTC) or an ISO timestamp; returned in UTC."""
    if not value:
        return None
    try:
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), time(0, 0), tzinfo=timezone.utc)
        return svc.as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except (ValueError, OverflowError):
        abort(400, description=f"invalid date bound: {value}")


def _int_arg(name: str, default: int, hi: int | None = None) -> int:
    try:
        v = int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default
    if v < 1 or (hi is not None and v > hi):
        return default
    return v


@api_bp.post("/reservations")
def create_reservation():
    payload = request.get_json(silent=True) or {}
    parsed = ReservationIn.model_validate(payload)
    resto = db.session.scalars(
        select(Restaurant).where(Restaurant.slug == parsed.restaurant_slug)
    ).first() or abort(404, description="restaurant not found")

    resv = svc.admit_reservation(
        restaurant_id=resto.id,
        starts_at=parsed.starts_at,
        duration_min=parsed.duration_min,
        party_size=parsed.party_size,
        customer=parsed.customer.model_dump(),
    )
    return jsonify(svc.reservation_to_dict(resv)), 201


# ----- owner -----
@api_bp.get("/owner/restaurants/<int(max=2147483647):restaurant_id>/reservations")
def owner_list_reservations(restaurant_id: int):
    data = svc.list_reservations(
        restaurant_id,
        date_from=_parse_bound(request.args.get("from")),
        date_to=_parse_bound(request.args.get("to")),
        page=_int_arg("page", 1, hi=MAX_PAGE),
        limit=_int_arg("limit", 10, hi=100),
    )
    return jsonify(data)


@api_bp.post("/owner/reservations/<int(max=2147483647):reservation_id>/confirm")
def owner_confirm_reservation(reservation_id: int):
    resv = svc.confirm_reservation(reservation_id)
    return jsonify(svc.reservation_to_dict(resv))


@api_bp.post("/owner/reservations/<int(max=2147483647):reservation_id>/cancel")
def owner_cancel_reservation(reservation_id: int):
    resv = svc.cancel_reservation(reservation_id)
    return jsonify(svc.reservation_to_dict(resv))
