"""Month grid construction for the booking calendar."""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .dates import parse_date, resolve_date

Cell = Optional[date]


def build_month_grid(year: int, month: int) -> List[Cell]:
    """Return leading blanks followed by every day of the month.

    ``month`` is zero-indexed (0 is January). Blanks are ``None`` and put
    the 1st in its weekday column with Sunday as column 0. The last row is
    not padded.
    """

    first = date(year, month + 1, 1)
    days_in_month = calendar.monthrange(year, month + 1)[1]
    offset = (first.weekday() + 1) % 7
    cells: List[Cell] = [None] * offset
    cells.extend(date(year, month + 1, day) for day in range(1, days_in_month + 1))
    return cells


def grid_rows(cells: Sequence[Cell]) -> List[List[Cell]]:
    return [list(cells[i : i + 7]) for i in range(0, len(cells), 7)]


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move a zero-indexed ``(year, month)`` pair by ``delta`` months."""

    index = year * 12 + month + delta
    return index // 12, index % 12


def bookings_by_day(records: Iterable) -> Dict[date, list]:
    days: Dict[date, list] = defaultdict(list)
    for record in records:
        raw = resolve_date(record)
        if not raw:
            continue
        try:
            days[parse_date(raw)].append(record)
        except ValueError:
            logging.debug("Skipping booking with bad date %r", raw)
    return dict(days)
