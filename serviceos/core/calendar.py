"""
Calendar helpers for the bookings views.

Pure functions over ``date``/``datetime`` values: a Monday-first month grid,
month ranges for querying, and bucketing of bookings by calendar day.

Bookings are duck-typed: anything with ``starts_at`` and ``status`` works, and
:func:`matches_search` additionally reads ``title``, ``guest_name``, ``client``
and ``booking_type`` when present.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from serviceos.core.database.entities.bookings import BookingStatus

BookingLike = TypeVar("BookingLike")

# Hidden from day views unless the caller filters on them explicitly.
HIDDEN_BY_DEFAULT = frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})

UTC = ZoneInfo("UTC")


def zone_for(name: Optional[str]) -> ZoneInfo:
    """The IANA zone called ``name``; unknown or empty names read as UTC."""
    if not name:
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC


def to_local(value: datetime, zone: Optional[ZoneInfo] = None) -> datetime:
    """Naive UTC to naive wall-clock time in ``zone``."""
    if zone is None:
        return value
    return value.replace(tzinfo=timezone.utc).astimezone(zone).replace(tzinfo=None)


def to_utc(value: datetime, zone: Optional[ZoneInfo] = None) -> datetime:
    """Naive wall-clock time in ``zone`` to naive UTC."""
    if zone is None:
        return value
    return value.replace(tzinfo=zone).astimezone(timezone.utc).replace(tzinfo=None)


def month_grid(year: int, month: int) -> List[Optional[date]]:
    """Return the cells of a Monday-first month view.

    The list starts with one ``None`` per weekday before the 1st, followed by
    every day of the month. A month starting on Sunday gets six blanks.
    """
    leading, days_in_month = calendar.monthrange(year, month)
    cells: List[Optional[date]] = [None] * leading
    cells.extend(date(year, month, day) for day in range(1, days_in_month + 1))
    return cells


def month_range(year: int, month: int, zone: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """First instant and last second (23:59:59) of the month.

    With a ``zone`` the bounds are that zone's local month, returned as naive
    UTC so they compare with stored timestamps.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    start = datetime.combine(date(year, month, 1), time.min)
    end = datetime.combine(date(year, month, days_in_month), time(23, 59, 59))
    return to_utc(start, zone), to_utc(end, zone)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months forward (or backward), wrapping the year."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def is_same_day(a: datetime | date, b: datetime | date) -> bool:
    return _as_date(a) == _as_date(b)


def bucket_by_day(
    bookings: Iterable[BookingLike], zone: Optional[ZoneInfo] = None
) -> Dict[date, List[BookingLike]]:
    """Group bookings by the calendar day they start on.

    ``starts_at`` is naive UTC; with a ``zone`` the day is the local one there.
    Keys come back in ascending order and each bucket is sorted by start time.
    """
    buckets: Dict[date, List[BookingLike]] = defaultdict(list)
    for booking in bookings:
        buckets[to_local(booking.starts_at, zone).date()].append(booking)
    return {day: sorted(buckets[day], key=lambda b: b.starts_at) for day in sorted(buckets)}


def visible_on_day(
    bookings: Iterable[BookingLike],
    day: date,
    status_filter: Optional[BookingStatus] = None,
    zone: Optional[ZoneInfo] = None,
) -> List[BookingLike]:
    """Bookings starting on ``day``, local to ``zone`` when one is given.

    Cancelled and no-show bookings only appear when ``status_filter`` asks for them.
    """
    result = []
    for booking in bookings:
        if not is_same_day(to_local(booking.starts_at, zone), day):
            continue
        if status_filter is not None:
            if booking.status != status_filter:
                continue
        elif booking.status in HIDDEN_BY_DEFAULT:
            continue
        result.append(booking)
    return sorted(result, key=lambda b: b.starts_at)


def matches_search(booking: Any, term: Optional[str]) -> bool:
    """Case-insensitive match against the names a user sees on a booking card."""
    if not term:
        return True
    needle = term.strip().lower()
    client = getattr(booking, "client", None)
    booking_type = getattr(booking, "booking_type", None)
    haystack = [
        getattr(booking, "title", None),
        getattr(booking, "guest_name", None),
        getattr(client, "name", None),
        getattr(client, "company", None),
        getattr(booking_type, "name", None),
    ]
    return any(needle in value.lower() for value in haystack if value)


def _as_date(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value
