"""Booking filters and aggregate views for the history and dashboard pages."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .dates import parse_date, resolve_date, time_key
from .models import STATUS_SYNONYMS, BookingRecord, StatusBucket

ALL_STATUSES = "all"
GROUPINGS = ("week", "month")
ESTIMATED_FEE = 500


def normalize_status(raw: Optional[str]) -> str:
    if not raw:
        return StatusBucket.UNKNOWN.value
    status = str(raw).lower()
    return STATUS_SYNONYMS.get(status, status)


def _status_matches(record: BookingRecord, status_filter: str) -> bool:
    # Raw label comparison: an "accepted" filter does not match "Confirmed".
    if status_filter == ALL_STATUSES:
        return True
    return str(record.status_raw or "").lower() == status_filter


def _date_matches(record: BookingRecord, prefix: str) -> bool:
    if not prefix:
        return True
    booking_date = resolve_date(record)
    return bool(booking_date) and str(booking_date).startswith(prefix)


def _booking_day(record: BookingRecord) -> Optional[date]:
    raw = resolve_date(record)
    if not raw:
        return None
    try:
        return parse_date(raw if isinstance(raw, date) else str(raw))
    except ValueError:
        logging.debug("Unparseable booking date %r on %s", raw, record.id)
        return None


def _created(record: BookingRecord) -> datetime:
    if record.created_at:
        try:
            created = datetime.fromisoformat(str(record.created_at).replace("Z", "+00:00"))
            return created.replace(tzinfo=None)
        except ValueError:
            logging.debug("Unparseable createdAt %r on %s", record.created_at, record.id)
    return datetime.min


@dataclass
class Aggregate:
    filtered_records: List[BookingRecord]
    status_counts: Dict[str, int]
    time_bucket_counts: Dict[str, int]
    sorted_bucket_keys: List[str]
    total: int = 0

    @property
    def series(self) -> List[Tuple[str, int]]:
        return [(key, self.time_bucket_counts[key]) for key in self.sorted_bucket_keys]

    @property
    def filtered_total(self) -> int:
        return len(self.filtered_records)


def aggregate(
    records: Sequence[BookingRecord],
    status_filter: str = ALL_STATUSES,
    date_prefix: str = "",
    grouping: str = "month",
) -> Aggregate:
    """Filter bookings and count them by status and by week or month.

    Status counts cover records passing both filters. Time buckets only
    apply the status filter, and skip records without a usable date.
    """

    filtered = [
        r
        for r in records
        if _status_matches(r, status_filter) and _date_matches(r, date_prefix)
    ]
    status_counts = dict(Counter(normalize_status(r.status_raw) for r in filtered))

    bucket_counts: Dict[str, int] = {}
    for record in records:
        if not _status_matches(record, status_filter):
            continue
        day = _booking_day(record)
        if day is None:
            continue
        key = time_key(day, grouping)
        bucket_counts[key] = bucket_counts.get(key, 0) + 1

    return Aggregate(
        filtered_records=filtered,
        status_counts=status_counts,
        time_bucket_counts=bucket_counts,
        sorted_bucket_keys=sorted(bucket_counts),
        total=len(records),
    )


def count_status(records: Iterable[BookingRecord], bucket: StatusBucket) -> int:
    return sum(1 for r in records if normalize_status(r.status_raw) == bucket.value)


@dataclass
class DashboardStats:
    total: int = 0
    confirmed: int = 0
    pending: int = 0
    rejected: int = 0
    unique_devotees: int = 0
    estimated_earnings: int = 0
    acceptance_rate: float = 0.0
    completed: int = 0


def dashboard_stats(records: Sequence[BookingRecord]) -> DashboardStats:
    confirmed = count_status(records, StatusBucket.CONFIRMED)
    total = len(records)
    rate = round(confirmed / total * 100, 1) if total else 0.0
    return DashboardStats(
        total=total,
        confirmed=confirmed,
        pending=count_status(records, StatusBucket.PENDING),
        rejected=count_status(records, StatusBucket.REJECTED),
        unique_devotees=len(unique_devotees(records)),
        estimated_earnings=confirmed * ESTIMATED_FEE,
        acceptance_rate=rate,
        completed=count_status(records, StatusBucket.COMPLETED),
    )


def top_services(records: Iterable[BookingRecord], limit: int = 3) -> List[Tuple[str, int]]:
    counts = Counter(r.service.name for r in records if r.service and r.service.name)
    # Counter.most_common keeps first-seen order for ties.
    return counts.most_common(limit)


def upcoming_bookings(
    records: Iterable[BookingRecord], now: datetime, limit: int = 5
) -> List[BookingRecord]:
    """Confirmed bookings dated from yesterday onwards, soonest first."""

    cutoff = (now - timedelta(days=1)).date()
    dated = []
    for record in records:
        if normalize_status(record.status_raw) != StatusBucket.CONFIRMED.value:
            continue
        day = _booking_day(record)
        if day is not None and day >= cutoff:
            dated.append((day, record))
    dated.sort(key=lambda item: item[0])
    return [record for _, record in dated[:limit]]


def next_upcoming(records: Iterable[BookingRecord], now: datetime) -> Optional[BookingRecord]:
    """First booking, in list order, not yet held and not completed."""

    for record in records:
        day = _booking_day(record)
        if day is None or day < now.date():
            continue
        if normalize_status(record.status_raw) != StatusBucket.COMPLETED.value:
            return record
    return None


def recent_bookings(records: Iterable[BookingRecord], limit: int = 5) -> List[BookingRecord]:
    return sorted(records, key=_created, reverse=True)[:limit]


def unique_devotees(records: Iterable[BookingRecord]) -> List[dict]:
    seen: Dict[str, dict] = {}
    for record in records:
        devotee = record.devotee
        if not devotee or not devotee.id or devotee.id in seen:
            continue
        seen[devotee.id] = {
            "id": devotee.id,
            "name": devotee.name,
            "phone": devotee.phone,
            "city": record.location,
        }
    return list(seen.values())
