"""Page view-models for booking history and the two dashboards."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from . import aggregator, calendar_grid, util
from .api import APIClient, APIError, as_list
from .dates import parse_date, resolve_date
from .models import BookingRecord, Pandit, Pooja, Session, StatusBucket

BOOKING_MESSAGE_TTL = 3.5
REVIEW_MESSAGE_TTL = 2.5
STATUS_MESSAGE_TTL = 2.5


class PageViewModel:
    """Shared fetch plumbing: per-group loading flags and failure logging."""

    def __init__(
        self,
        client: APIClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.clock = clock
        self.loading: Dict[str, bool] = {}

    def is_loading(self, group: str) -> bool:
        return self.loading.get(group, False)

    def _fetch(
        self, group: str, call: Callable[[], Any], convert: Callable[[dict], Any]
    ) -> Optional[list]:
        """Run one fetch group; ``None`` means keep the previous state."""

        self.loading[group] = True
        try:
            data = call()
        except (APIError, requests.RequestException, OSError) as exc:
            logging.error("Failed to fetch %s: %s", group, exc)
            return None
        finally:
            self.loading[group] = False
        return [convert(item) for item in as_list(data)]


class BookingHistoryViewModel(PageViewModel):
    def __init__(self, client: APIClient, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.bookings: List[BookingRecord] = []
        self.status_filter = aggregator.ALL_STATUSES
        self.date_filter = ""
        self.grouping = "month"

    def load(self) -> None:
        bookings = self._fetch("bookings", self.client.get_bookings, BookingRecord.from_dict)
        if bookings is not None:
            self.bookings = bookings

    def set_grouping(self, grouping: str) -> None:
        if grouping not in aggregator.GROUPINGS:
            raise ValueError(f"grouping must be one of {aggregator.GROUPINGS}")
        self.grouping = grouping

    @property
    def aggregate(self) -> aggregator.Aggregate:
        return aggregator.aggregate(
            self.bookings, self.status_filter, self.date_filter, self.grouping
        )

    @property
    def chart_title(self) -> str:
        return f"Bookings per {self.grouping.capitalize()}"

    @property
    def summary(self) -> str:
        parts = [f"Grouped by {self.grouping}"]
        if self.status_filter != aggregator.ALL_STATUSES:
            parts.append(f"status: {self.status_filter}")
        if self.date_filter:
            parts.append(f"from: {self.date_filter}")
        return " · ".join(parts)


@dataclass
class BookingForm:
    pandit_id: str = ""
    service_id: str = ""
    puja_date: str = ""
    puja_time: str = ""
    location: str = ""
    saman_list: str = ""

    def validate(self, session: Optional[Session]) -> Optional[str]:
        if not self.pandit_id:
            return "Please select a Pandit."
        if not self.service_id:
            return "Please select the Puja/service."
        if not self.puja_date or not self.puja_time or not self.location.strip():
            return "Please fill all booking details."
        if not session or not session.user_id:
            return "User not found. Please login again."
        return None

    def payload(self, session: Session) -> dict:
        return {
            "userid": session.user_id,
            "panditid": self.pandit_id,
            "serviceid": self.service_id,
            "puja_date": self.puja_date,
            "puja_time": self.puja_time,
            "location": self.location.strip(),
            "SamanList": self.saman_list.strip(),
            "userName": session.name,
        }


@dataclass
class ReviewForm:
    name: str = ""
    rating: int = 0
    comment: str = ""


class DevoteeDashboardViewModel(PageViewModel):
    """Devotee home: bookings, pandit search, calendar, booking and review forms."""

    def __init__(
        self,
        client: APIClient,
        session: Optional[Session],
        *,
        now: Callable[[], datetime] = util.now,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, **kwargs)
        self.session = session
        self.now = now
        self.bookings: List[BookingRecord] = []
        self.pandits: List[Pandit] = []
        self.poojas: List[Pooja] = []
        self.search_pandits = ""
        self.search_bookings = ""
        today = now().date()
        self.calendar_year = today.year
        self.calendar_month = today.month - 1
        self.booking_form = BookingForm()
        self.review_form = ReviewForm(name=session.name if session else "")
        self.booking_message = util.TransientMessage(self.clock)
        self.review_message = util.TransientMessage(self.clock)

    def load(self) -> None:
        if not self.session:
            logging.warning("No session; dashboard needs a logged-in devotee")
            return
        self.refresh_bookings()
        pandits = self._fetch("pandits", self.client.get_verified_pandits, Pandit.from_dict)
        if pandits is not None:
            self.pandits = pandits
        poojas = self._fetch("poojas", self.client.get_poojas, Pooja.from_dict)
        if poojas is not None:
            self.poojas = poojas

    def refresh_bookings(self) -> None:
        user_id = self.session.user_id if self.session else None
        bookings = self._fetch(
            "bookings",
            lambda: self.client.get_bookings(user_id),
            BookingRecord.from_dict,
        )
        if bookings is not None:
            self.bookings = bookings

    # Search

    @property
    def filtered_pandits(self) -> List[Pandit]:
        q = self.search_pandits.lower()
        return [
            p
            for p in self.pandits
            if q in p.name.lower()
            or q in (p.city or "").lower()
            or any(q in s.lower() for s in p.specialties)
        ]

    @property
    def filtered_bookings(self) -> List[BookingRecord]:
        q = self.search_bookings.lower()
        result = []
        for b in self.bookings:
            fields = [
                (b.pandit and b.pandit.name) or "",
                (b.service and b.service.name) or "",
                _display_date(b),
                b.location or "",
            ]
            if any(q in value.lower() for value in fields):
                result.append(b)
        return result

    # Calendar

    @property
    def calendar_cells(self) -> List[Optional[date]]:
        return calendar_grid.build_month_grid(self.calendar_year, self.calendar_month)

    @property
    def calendar_title(self) -> str:
        return date(self.calendar_year, self.calendar_month + 1, 1).strftime("%B %Y")

    def previous_month(self) -> None:
        self.calendar_year, self.calendar_month = calendar_grid.shift_month(
            self.calendar_year, self.calendar_month, -1
        )

    def next_month(self) -> None:
        self.calendar_year, self.calendar_month = calendar_grid.shift_month(
            self.calendar_year, self.calendar_month, 1
        )

    @property
    def booked_days(self) -> Dict[date, List[BookingRecord]]:
        return calendar_grid.bookings_by_day(self.bookings)

    def select_day(self, cell: Optional[date]) -> None:
        """Pick a calendar cell as the puja date; blank cells do nothing."""
        if cell is None:
            return
        self.booking_form.puja_date = cell.isoformat()

    @property
    def selected_day(self) -> Optional[date]:
        if not self.booking_form.puja_date:
            return None
        try:
            return parse_date(self.booking_form.puja_date)
        except ValueError:
            return None

    def is_today(self, cell: Optional[date]) -> bool:
        return cell is not None and cell == self.now().date()

    # Headline counts

    @property
    def pending_count(self) -> int:
        return aggregator.count_status(self.bookings, StatusBucket.PENDING)

    @property
    def accepted_count(self) -> int:
        return aggregator.count_status(self.bookings, StatusBucket.CONFIRMED)

    @property
    def rejected_count(self) -> int:
        return aggregator.count_status(self.bookings, StatusBucket.REJECTED)

    @property
    def upcoming_puja(self) -> Optional[BookingRecord]:
        return aggregator.next_upcoming(self.bookings, self.now())

    # Booking form

    def select_pandit(self, pandit_id: str) -> None:
        self.booking_form = replace(self.booking_form, pandit_id=pandit_id, service_id="")
        self.booking_message.clear()

    def select_service(self, service_id: str) -> None:
        self.booking_form.service_id = service_id
        self.booking_message.clear()

    def set_booking_detail(self, name: str, value: str) -> None:
        if name not in ("puja_date", "puja_time", "location", "saman_list"):
            raise ValueError(f"Unknown booking field {name!r}")
        setattr(self.booking_form, name, value)
        self.booking_message.clear()

    def submit_booking(self) -> bool:
        self.booking_message.clear()
        error = self.booking_form.validate(self.session)
        if error:
            self.booking_message.show(error, kind="error")
            return False

        self.loading["booking"] = True
        try:
            self.client.create_booking(self.booking_form.payload(self.session))
        except (APIError, requests.RequestException) as exc:
            logging.error("Booking error: %s", exc)
            text = getattr(exc, "message", None) or "Failed to book puja. Please try again later."
            self.booking_message.show(text, BOOKING_MESSAGE_TTL, kind="error")
            return False
        finally:
            self.loading["booking"] = False

        self.booking_message.show(
            "Puja booked successfully! Awaiting Pandit confirmation.", BOOKING_MESSAGE_TTL
        )
        self.refresh_bookings()
        self.booking_form = BookingForm()
        return True

    # Review form

    def set_rating(self, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValueError("rating must be between 1 and 5")
        self.review_form.rating = rating

    def submit_review(self) -> bool:
        form = self.review_form
        if not form.name or not form.comment or not form.rating:
            self.review_message.show(
                "Please complete all fields and provide star rating.", kind="error"
            )
            return False
        self.loading["review"] = True
        try:
            self.client.create_review(
                {"name": form.name, "rating": form.rating, "comment": form.comment}
            )
        except (APIError, requests.RequestException) as exc:
            logging.error("Review submission error: %s", exc)
            self.review_message.show("Failed to submit review.", REVIEW_MESSAGE_TTL, kind="error")
            return False
        finally:
            self.loading["review"] = False
        self.review_message.show("Thank you for your review!", REVIEW_MESSAGE_TTL)
        self.review_form = ReviewForm(name=form.name)
        return True


class PanditDashboardViewModel(PageViewModel):
    """Pandit home: incoming bookings, status updates and statistics."""

    def __init__(
        self,
        client: APIClient,
        session: Optional[Session],
        *,
        now: Callable[[], datetime] = util.now,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, **kwargs)
        self.session = session
        self.now = now
        self.bookings: List[BookingRecord] = []
        self.filter_date = ""
        self.search_name = ""
        self.filter_status = ""
        self.status_message = util.TransientMessage(self.clock)

    def load(self) -> None:
        if not self.session or not self.session.user_id:
            self.bookings = []
            return
        pandit_id = self.session.user_id
        bookings = self._fetch(
            "bookings",
            lambda: self.client.get_pandit_bookings(pandit_id),
            BookingRecord.from_dict,
        )
        if bookings is not None:
            self.bookings = bookings

    @property
    def filtered_bookings(self) -> List[BookingRecord]:
        name_q = self.search_name.lower()
        result = [
            b
            for b in self.bookings
            if (not self.filter_date or resolve_date(b) == self.filter_date)
            and (not name_q or name_q in ((b.devotee and b.devotee.name) or "").lower())
            and (not self.filter_status or b.status_raw == self.filter_status)
        ]
        return aggregator.recent_bookings(result, limit=len(result))

    def clear_filters(self) -> None:
        self.filter_date = ""
        self.search_name = ""
        self.filter_status = ""

    def update_status(self, booking_id: str, status: str) -> bool:
        self.loading["status"] = True
        try:
            data = self.client.update_booking_status(booking_id, status)
        except (APIError, requests.RequestException) as exc:
            logging.error("Failed to update status: %s", exc)
            self.status_message.show(
                "Failed to update booking status.", STATUS_MESSAGE_TTL, kind="error"
            )
            return False
        finally:
            self.loading["status"] = False
        updated = data.get("booking") if isinstance(data, dict) else None
        if not updated:
            return False
        record = BookingRecord.from_dict(updated)
        self.bookings = [record if b.id == booking_id else b for b in self.bookings]
        return True

    def accept(self, booking_id: str) -> bool:
        return self.update_status(booking_id, "Accepted")

    def reject(self, booking_id: str) -> bool:
        return self.update_status(booking_id, "Rejected")

    @property
    def stats(self) -> aggregator.DashboardStats:
        return aggregator.dashboard_stats(self.bookings)

    @property
    def top_services(self):
        return aggregator.top_services(self.bookings)

    @property
    def upcoming(self) -> List[BookingRecord]:
        return aggregator.upcoming_bookings(self.bookings, self.now())

    @property
    def recent(self) -> List[BookingRecord]:
        return aggregator.recent_bookings(self.bookings)

    @property
    def devotees(self) -> List[dict]:
        return aggregator.unique_devotees(self.bookings)


def _display_date(record: BookingRecord) -> str:
    raw = resolve_date(record)
    if not raw:
        return ""
    try:
        d = parse_date(raw)
    except ValueError:
        return raw
    return f"{d.isoformat()} {d.day}/{d.month}/{d.year}"
