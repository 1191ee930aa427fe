"""Date helpers for bucketing bookings into weeks and months."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """Return a ``date`` from a date, datetime or ISO string.

    Raises ``ValueError`` for strings that are not ISO dates.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value.strip().replace("Z", "")).date()


def resolve_date(record: Any) -> Optional[str]:
    """Return the scheduled date string of a booking.

    ``puja_date`` wins over the older ``date`` field. Accepts booking
    records and raw API dicts; returns ``None`` when neither is set.
    """

    if isinstance(record, dict):
        return record.get("puja_date") or record.get("date") or None
    return getattr(record, "puja_date", None) or getattr(record, "date", None) or None


def week_key(value: DateLike) -> str:
    """Return ``YYYY-Www`` for the week containing ``value``.

    The week number follows the ISO Thursday rule but the year label is
    the calendar year of ``value`` itself, so dates around New Year can
    get labels like ``2024-W01`` for 30 December 2024.
    """

    d = parse_date(value)
    day_nr = d.weekday()  # Monday=0
    thursday = d + timedelta(days=3 - day_nr)
    # Week 1 is the week holding the year's first Thursday.
    week = 1 + (thursday - date(thursday.year, 1, 1)).days // 7
    return f"{d.year}-W{week:02d}"


def month_key(value: DateLike) -> str:
    d = parse_date(value)
    return f"{d.year}-{d.month:02d}"


def time_key(value: DateLike, grouping: str) -> str:
    if grouping == "week":
        return week_key(value)
    if grouping == "month":
        return month_key(value)
    raise ValueError(f"Unknown grouping {grouping!r}")
