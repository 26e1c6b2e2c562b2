# blueprints/reservations/services.py
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional

from flask import current_app
from sqlalchemy import select, func

from config import MAX_DURATION_MIN
from extensions import db
from models import ACTIVE_STATUSES, Customer, Reservation, ReservationStatus, Restaurant
from blueprints.availability.services import (
    CapacityExceeded, as_utc, check_and_admit, resolve_timezone,
)

log = logging.getLogger(__name__)


class ReservationError(Exception):
    code = "RESERVATION_ERROR"
    status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RestaurantNotFound(ReservationError):
    code = "RESTAURANT_NOT_FOUND"
    status = 404


class ReservationNotFound(ReservationError):
    code = "RESERVATION_NOT_FOUND"
    status = 404


class InvalidStatusTransition(ReservationError):
    code = "INVALID_STATUS_TRANSITION"
    status = 409


class AdmissionGate:
    """Per-restaurant mutex for check-then-insert inside one process.

    Across processes the row lock taken in ``admit_reservation`` does the
    same job on databases that support ``SELECT ... FOR UPDATE``.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def lock_for(self, restaurant_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(restaurant_id, threading.Lock())

    @contextmanager
    def hold(self, restaurant_id: int) -> Iterator[None]:
        with self.lock_for(restaurant_id):
            yield


def get_admission_gate() -> AdmissionGate:
    return current_app.extensions["admission_gate"]


def to_naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def active_reservations_between(restaurant_id: int, start: datetime, end: datetime,
                                session=None) -> List[Reservation]:
    """Active reservations that may overlap [start, end).

    Narrowed in SQL by start time only; the exact overlap test is left to
    the availability engine.
    """
    session = session or db.session
    lo = to_naive_utc(start) - timedelta(minutes=MAX_DURATION_MIN)
    hi = to_naive_utc(end)
    stmt = (
        select(Reservation)
        .where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.status.in_(ACTIVE_STATUSES),
            Reservation.starts_at > lo,
            Reservation.starts_at < hi,
        )
        .order_by(Reservation.starts_at.asc())
    )
    return list(session.scalars(stmt))


def _get_or_create_customer(session, name: str, email: str, phone: str) -> Customer:
    cust = session.scalars(
        select(Customer).where(Customer.email == email, Customer.phone == phone)
    ).first()
    if cust:
        return cust
    cust = Customer(name=name, email=email, phone=phone)
    session.add(cust)
    session.flush()
    return cust


def admit_reservation(*, restaurant_id: int, starts_at: datetime, duration_min: int,
                      party_size: int, customer: dict,
                      gate: Optional[AdmissionGate] = None, session=None) -> Reservation:
    """Capacity check and insert of a PENDING reservation as one unit.

    Raises CapacityExceeded (nothing written) when the party does not fit
    next to the active reservations overlapping its window.
    """
    session = session or db.session
    gate = gate or get_admission_gate()
    start = as_utc(starts_at)
    end = start + timedelta(minutes=duration_min)

    with gate.hold(restaurant_id):
        try:
            restaurant = session.scalars(
                select(Restaurant)
                .where(Restaurant.id == restaurant_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).first()
            if restaurant is None:
                raise RestaurantNotFound("restaurant not found", {"restaurant_id": restaurant_id})
            resolve_timezone(restaurant.timezone)

            existing = active_reservations_between(restaurant.id, start, end, session)
            decision = check_and_admit(restaurant, start, duration_min, party_size, existing)
            if not decision.admitted:
                log.info("reservation rejected", extra={
                    "event": "reservation_rejected", "restaurant_id": restaurant.id,
                    "party_size": party_size, "used": decision.used, "capacity": decision.capacity,
                })
                raise CapacityExceeded("restaurant is full at that time",
                                       {"restaurant_id": restaurant.id, **decision.details()})

            cust = _get_or_create_customer(session, customer["name"], customer["email"], customer["phone"])
            resv = Reservation(
                restaurant_id=restaurant.id,
                customer_id=cust.id,
                starts_at=to_naive_utc(start),
                duration_min=duration_min,
                party_size=party_size,
                status=ReservationStatus.PENDING,
            )
            session.add(resv)
            session.commit()
        except Exception:
            session.rollback()
            raise

    log.info("reservation admitted", extra={
        "event": "reservation_admitted", "restaurant_id": restaurant_id,
        "reservation_id": resv.id, "party_size": party_size, "used": decision.used,
    })
    return resv


# ---------- Owner side ----------
def list_reservations(restaurant_id: int, *, date_from: datetime | None = None,
                      date_to: datetime | None = None, page: int = 1, limit: int = 10) -> dict:
    if db.session.get(Restaurant, restaurant_id) is None:
        raise RestaurantNotFound("restaurant not found", {"restaurant_id": restaurant_id})
    conds = [Reservation.restaurant_id == restaurant_id]
    if date_from:
        conds.append(Reservation.starts_at >= to_naive_utc(date_from))
    if date_to:
        conds.append(Reservation.starts_at < to_naive_utc(date_to))

    total = db.session.scalar(select(func.count(Reservation.id)).where(*conds)) or 0
    rows = db.session.scalars(
        select(Reservation).where(*conds)
        .order_by(Reservation.starts_at.asc(), Reservation.id.asc())
        .offset((page - 1) * limit).limit(limit)
    ).all()
    return {
        "reservations": [reservation_to_dict(r) for r in rows],
        "pagination": {"page": page, "limit": limit, "total": total},
    }


_ALLOWED_FROM = {
    ReservationStatus.CONFIRMED: {ReservationStatus.PENDING},
    ReservationStatus.CANCELLED: {ReservationStatus.PENDING, ReservationStatus.CONFIRMED},
}


def change_status(reservation_id: int, target: ReservationStatus) -> Reservation:
    resv = db.session.get(Reservation, reservation_id)
    if resv is None:
        raise ReservationNotFound("reservation not found", {"reservation_id": reservation_id})
    if resv.status not in _ALLOWED_FROM.get(target, set()):
        raise InvalidStatusTransition(
            f"cannot move reservation from {resv.status.value} to {target.value}",
            {"reservation_id": resv.id, "from": resv.status.value, "to": target.value},
        )
    resv.status = target
    db.session.commit()
    log.info("reservation status changed", extra={
        "event": "reservation_status", "reservation_id": resv.id, "status": target.value,
    })
    return resv


def confirm_reservation(reservation_id: int) -> Reservation:
    return change_status(reservation_id, ReservationStatus.CONFIRMED)


def cancel_reservation(reservation_id: int) -> Reservation:
    return change_status(reservation_id, ReservationStatus.CANCELLED)


def reservation_to_dict(r: Reservation) -> dict:
    return {
        "id": r.id,
        "restaurant_id": r.restaurant_id,
        "customer_id": r.customer_id,
        "starts_at": as_utc(r.starts_at).isoformat(),
        "duration_min": r.duration_min,
        "party_size": r.party_size,
        "status": r.status.value,
        "created_at": as_utc(r.created_at).isoformat() if r.created_at else None,
    }
