# blueprints/availability/services.py
"""Slot availability and reservation admission.

Pure computation over data the caller has already loaded: a restaurant
(``capacity``, ``timezone``), the opening-hour row for a weekday and the
restaurant's reservations. Nothing here touches the database.

Instants are compared in UTC. Opening hours are wall-clock strings in the
restaurant's zone and slots are reported back in that zone.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

log = logging.getLogger(__name__)

SLOT_MINUTES = 30
STAY_MINUTES = 90  # default dine time shown by the booking UI
SLOT = timedelta(minutes=SLOT_MINUTES)
STAY = timedelta(minutes=STAY_MINUTES)

ACTIVE_STATUS_VALUES = frozenset({"PENDING", "CONFIRMED"})

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


# ---------- Errors ----------
class AvailabilityError(Exception):
    code = "AVAILABILITY_ERROR"
    status = 409

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidTimezone(AvailabilityError):
    code = "INVALID_TIMEZONE"
    status = 422


class CapacityExceeded(AvailabilityError):
    code = "CAPACITY_EXCEEDED"
    status = 409


# ---------- Value types ----------
@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    available: int

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat(), "available": self.available}


@dataclass(frozen=True)
class Admission:
    admitted: bool
    used: int
    requested: int
    capacity: int
    reason: Optional[str] = None

    def details(self) -> dict:
        return {"used": self.used, "requested": self.requested, "capacity": self.capacity}


@dataclass(frozen=True)
class _Interval:
    start: datetime
    end: datetime
    party_size: int


# ---------- Helpers ----------
def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Open-interval overlap; intervals that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


def as_utc(value: datetime) -> datetime:
    # naive values are stored UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def weekday_index(on: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return on.isoweekday() % 7


def parse_hhmm(value: str | None) -> time | None:
    if not isinstance(value, str):
        return None
    m = _HHMM.match(value.strip())
    if not m:
        return None
    h, mi = int(m.group(1)), int(m.group(2))
    if h > 23 or mi > 59:
        return None
    return time(h, mi)


def resolve_timezone(name: str | None) -> ZoneInfo:
    if not name or not isinstance(name, str):
        raise InvalidTimezone("restaurant timezone is missing", {"timezone": name})
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezone(f"unknown timezone {name!r}", {"timezone": name}) from e


def is_active(reservation) -> bool:
    status = getattr(reservation, "status", None)
    return getattr(status, "value", status) in ACTIVE_STATUS_VALUES


def _active_intervals(reservations: Iterable) -> Tuple[_Interval, ...]:
    out = []
    for r in reservations:
        if not is_active(r):
            continue
        start = as_utc(r.starts_at)
        out.append(_Interval(start, start + timedelta(minutes=r.duration_min), r.party_size))
    return tuple(out)


def _used(intervals: Iterable[_Interval], start: datetime, end: datetime) -> int:
    return sum(iv.party_size for iv in intervals if overlaps(iv.start, iv.end, start, end))


def occupancy_at(reservations: Iterable, instant: datetime) -> int:
    """Covers seated at ``instant`` by active reservations."""
    t = as_utc(instant)
    return sum(iv.party_size for iv in _active_intervals(reservations) if iv.start <= t < iv.end)


def opening_hour_for(opening_hours: Iterable, on: date):
    wd = weekday_index(on)
    for oh in opening_hours:
        if oh.weekday == wd:
            return oh
    return None


def opening_window(restaurant, on: date, opening_hour,
                   tz: Optional[ZoneInfo] = None) -> Optional[Tuple[datetime, datetime]]:
    """Absolute [open, close) for ``on`` in UTC, or None when closed.

    The timezone is resolved first unless the caller already did: a broken
    zone is an error even on a closed day.
    """
    if tz is None:
        tz = resolve_timezone(restaurant.timezone)
    if opening_hour is None or opening_hour.is_closed:
        return None
    open_t = parse_hhmm(opening_hour.open_time)
    close_t = parse_hhmm(opening_hour.close_time)
    if open_t is None or close_t is None:
        log.warning("unparseable opening hours, treating day as closed",
                    extra={"open_time": opening_hour.open_time, "close_time": opening_hour.close_time})
        return None
    start = datetime.combine(on, open_t, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(on, close_t, tzinfo=tz).astimezone(timezone.utc)
    if start >= end:
        return None
    return start, end


# ---------- Slot generation ----------
@dataclass(frozen=True)
class SlotRange:
    """Finite, restartable sequence of 30-minute slots.

    Each iteration walks the window again from the opening time; the
    reservation snapshot is taken once at construction.
    """
    window: Optional[Tuple[datetime, datetime]]
    capacity: int
    tz: ZoneInfo
    intervals: Tuple[_Interval, ...] = field(default=())

    def __iter__(self) -> Iterator[Slot]:
        if self.window is None:
            return
        start, end = self.window
        t = start
        while t + SLOT <= end:
            used = _used(self.intervals, t, t + STAY)
            yield Slot(
                start=t.astimezone(self.tz),
                end=(t + SLOT).astimezone(self.tz),
                available=max(0, self.capacity - used),
            )
            t += SLOT

    def __len__(self) -> int:
        if self.window is None:
            return 0
        start, end = self.window
        return (end - start) // SLOT

    def to_list(self) -> list[dict]:
        return [s.to_dict() for s in self]


def generate_slots(restaurant, on: date, opening_hour, reservations: Iterable = ()) -> SlotRange:
    """Slots for ``on`` with remaining covers per slot.

    ``available`` assumes a fixed 90-minute stay starting at the slot,
    whatever duration the eventual booking asks for.
    """
    tz = resolve_timezone(restaurant.timezone)
    window = opening_window(restaurant, on, opening_hour, tz)
    return slots_in_window(restaurant, window, tz, reservations)


def slots_in_window(restaurant, window: Optional[Tuple[datetime, datetime]], tz: ZoneInfo,
                    reservations: Iterable = ()) -> SlotRange:
    """Slots over an already computed opening window."""
    return SlotRange(
        window=window,
        capacity=int(restaurant.capacity),
        tz=tz,
        intervals=_active_intervals(reservations) if window else (),
    )


# ---------- Admission ----------
def check_and_admit(restaurant, starts_at: datetime, duration_min: int, party_size: int,
                    existing: Iterable) -> Admission:
    if duration_min <= 0:
        raise ValueError("duration_min must be positive")
    if party_size <= 0:
        raise ValueError("party_size must be positive")
    start = as_utc(starts_at)
    end = start + timedelta(minutes=duration_min)
    used = _used(_active_intervals(existing), start, end)
    capacity = int(restaurant.capacity)
    if used + party_size <= capacity:
        return Admission(True, used, party_size, capacity)
    return Admission(False, used, party_size, capacity, reason=CapacityExceeded.code)
