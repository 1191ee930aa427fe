import calendar
from datetime import date

from pandit_booking import calendar_grid, models


def test_february_leap_year_grid():
    cells = calendar_grid.build_month_grid(2024, 1)
    assert len(cells) == 33
    assert cells[:4] == [None] * 4
    assert cells[4] == date(2024, 2, 1)
    assert cells[-1] == date(2024, 2, 29)


def test_month_starting_on_sunday_has_no_blanks():
    cells = calendar_grid.build_month_grid(2024, 8)  # September 2024
    assert cells[0] == date(2024, 9, 1)
    assert len(cells) == 30


def test_largest_grid():
    # March 2025 starts on a Saturday and has 31 days.
    cells = calendar_grid.build_month_grid(2025, 2)
    assert len(cells) == 37
    rows = calendar_grid.grid_rows(cells)
    assert [len(r) for r in rows] == [7, 7, 7, 7, 7, 2]


def test_grid_shape_for_every_month():
    for year in (2023, 2024, 2100):
        for month in range(12):
            cells = calendar_grid.build_month_grid(year, month)
            offset = (date(year, month + 1, 1).weekday() + 1) % 7
            days = calendar.monthrange(year, month + 1)[1]
            assert len(cells) == offset + days
            assert all(c is None for c in cells[:offset])
            first = cells[offset]
            assert first.day == 1
            assert (first.weekday() + 1) % 7 == offset
            assert [c.day for c in cells[offset:]] == list(range(1, days + 1))


def test_grid_is_repeatable():
    assert calendar_grid.build_month_grid(2024, 5) == calendar_grid.build_month_grid(2024, 5)


def test_shift_month_wraps_years():
    assert calendar_grid.shift_month(2024, 0, -1) == (2023, 11)
    assert calendar_grid.shift_month(2024, 11, 1) == (2025, 0)
    assert calendar_grid.shift_month(2024, 5, 0) == (2024, 5)


def test_bookings_by_day_skips_undated_and_bad_dates():
    records = [
        models.BookingRecord(id="a", puja_date="2024-02-03"),
        models.BookingRecord(id="b", date="2024-02-03T10:00:00Z"),
        models.BookingRecord(id="c"),
        models.BookingRecord(id="d", puja_date="tomorrow"),
    ]
    days = calendar_grid.bookings_by_day(records)
    assert list(days) == [date(2024, 2, 3)]
    assert [r.id for r in days[date(2024, 2, 3)]] == ["a", "b"]
