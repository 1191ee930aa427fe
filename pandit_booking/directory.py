"""Admin screens: overview, pandit directory, devotee directory and pooja catalogue."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from . import util
from .api import APIClient, APIError
from .models import Devotee, Pandit, Pooja
from .viewmodels import PageViewModel

DEFAULT_PANDIT_IMAGE = "/images/default-pandit.png"
CATALOGUE_MESSAGE_TTL = 3.0

_FAILURES = (APIError, requests.RequestException, OSError)


class AdminHomeViewModel(PageViewModel):
    """Platform overview: how many devotees, pandits and bookings exist."""

    def __init__(self, client: APIClient, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.counts = {"devotees": 0, "pandits": 0, "bookings": 0}

    def load(self) -> None:
        calls = {
            "devotees": self.client.get_devotees,
            "pandits": self.client.get_pandits,
            "bookings": self.client.get_bookings,
        }
        for group, call in calls.items():
            items = self._fetch(group, call, lambda item: item)
            if items is not None:
                self.counts[group] = len(items)

    @property
    def any_loading(self) -> bool:
        return any(self.loading.values())


class PanditDirectoryViewModel(PageViewModel):
    def __init__(self, client: APIClient, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.pandits: List[Pandit] = []
        self.filters = {"name": "", "city": "", "experience": ""}

    def load(self) -> None:
        pandits = self._fetch("pandits", self.client.get_pandits, Pandit.from_dict)
        if pandits is not None:
            self.pandits = pandits

    def clear_filters(self) -> None:
        self.filters = {"name": "", "city": "", "experience": ""}

    @property
    def filtered(self) -> List[Pandit]:
        name = self.filters["name"].lower()
        city = self.filters["city"].lower()
        experience = self.filters["experience"]
        result = []
        for p in self.pandits:
            if name and name not in p.name.lower():
                continue
            if city and not (p.city and city in p.city.lower()):
                continue
            if experience and str(p.experience_years) != experience:
                continue
            result.append(p)
        return result

    @property
    def total(self) -> int:
        return len(self.pandits)

    @property
    def verified(self) -> int:
        return sum(1 for p in self.pandits if p.is_verified)

    @property
    def pending(self) -> int:
        return self.total - self.verified

    def photo_url(self, pandit: Pandit) -> str:
        url = pandit.profile_photo_url
        if not url:
            return DEFAULT_PANDIT_IMAGE
        # Uploaded photos are served relative to the API host.
        if url.startswith("/uploads"):
            return self.client.base_url + url
        return url

    def _mutate(self, action: str, call) -> bool:
        try:
            call()
        except _FAILURES as exc:
            logging.error("Failed to %s: %s", action, exc)
            return False
        self.load()
        return True

    def verify(self, pandit_id: str) -> bool:
        return self._mutate("verify pandit", lambda: self.client.verify_pandit(pandit_id))

    def delete(self, pandit_id: str) -> bool:
        return self._mutate("delete pandit", lambda: self.client.delete_pandit(pandit_id))

    def upload_photo(self, pandit_id: str, path: Path) -> bool:
        return self._mutate(
            "upload photo", lambda: self.client.upload_pandit_photo(pandit_id, path)
        )


class DevoteeDirectoryViewModel(PageViewModel):
    def __init__(self, client: APIClient, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.devotees: List[Devotee] = []
        self.filters = {"name": "", "city": ""}
        self.edits: Dict[str, Dict[str, str]] = {}

    def load(self) -> None:
        devotees = self._fetch("devotees", self.client.get_devotees, Devotee.from_dict)
        if devotees is not None:
            self.devotees = devotees

    def clear_filters(self) -> None:
        self.filters = {"name": "", "city": ""}

    @property
    def filtered(self) -> List[Devotee]:
        name = self.filters["name"].lower()
        city = self.filters["city"].lower()
        return [
            d
            for d in self.devotees
            if (not name or name in d.name.lower())
            and (not city or city in (d.city or "").lower())
        ]

    @property
    def total(self) -> int:
        return len(self.devotees)

    @property
    def with_city(self) -> int:
        return sum(1 for d in self.devotees if d.city)

    def edit(self, devotee_id: str, field_name: str, value: str) -> None:
        self.edits.setdefault(devotee_id, {})[field_name] = value

    def cancel(self, devotee_id: str) -> None:
        self.edits.pop(devotee_id, None)

    def save(self, devotee_id: str) -> bool:
        changes = {
            k: v for k, v in self.edits.get(devotee_id, {}).items() if k not in ("name", "email")
        }
        try:
            self.client.update_devotee(devotee_id, changes)
        except _FAILURES as exc:
            logging.error("Failed to update devotee %s: %s", devotee_id, exc)
            return False
        self.edits.pop(devotee_id, None)
        self.load()
        return True


class PoojaManagementViewModel(PageViewModel):
    def __init__(self, client: APIClient, **kwargs: Any) -> None:
        super().__init__(client, **kwargs)
        self.poojas: List[Pooja] = []
        self.form = Pooja(id="")
        self.edit_id: Optional[str] = None
        self.search = ""
        self.message = util.TransientMessage(self.clock)

    def load(self) -> None:
        poojas = self._fetch("poojas", self.client.get_poojas, Pooja.from_dict)
        if poojas is not None:
            self.poojas = poojas

    @property
    def filtered(self) -> List[Pooja]:
        q = self.search.strip().lower()
        if not q:
            return list(self.poojas)
        return [p for p in self.poojas if q in p.name.lower() or q in p.description.lower()]

    @property
    def has_image_preview(self) -> bool:
        return self.form.image_url.startswith("http")

    def start_edit(self, pooja: Pooja) -> None:
        self.edit_id = pooja.id
        self.form = Pooja(
            id=pooja.id,
            name=pooja.name,
            description=pooja.description,
            image_url=pooja.image_url,
        )
        self.message.clear()

    def cancel_edit(self) -> None:
        self.edit_id = None
        self.form = Pooja(id="")

    def submit(self) -> bool:
        if not self.form.name.strip():
            self.message.show("Pooja name is required", kind="error")
            return False
        self.loading["save"] = True
        self.message.clear()
        try:
            if self.edit_id:
                self.client.update_pooja(self.edit_id, self.form.to_payload())
                text = "Pooja updated successfully"
            else:
                self.client.add_pooja(self.form.to_payload())
                text = "Pooja added successfully"
        except _FAILURES as exc:
            logging.error("Failed to save pooja: %s", exc)
            self.message.show(
                "Something went wrong. Please try again.", CATALOGUE_MESSAGE_TTL, kind="error"
            )
            return False
        finally:
            self.loading["save"] = False
        self.message.show(text, CATALOGUE_MESSAGE_TTL)
        self.cancel_edit()
        self.load()
        return True

    def delete(self, pooja_id: str) -> bool:
        self.loading["save"] = True
        try:
            self.client.delete_pooja(pooja_id)
        except _FAILURES as exc:
            logging.error("Failed to delete pooja %s: %s", pooja_id, exc)
            self.message.show("Failed to delete pooja", CATALOGUE_MESSAGE_TTL, kind="error")
            return False
        finally:
            self.loading["save"] = False
        self.message.show("Pooja deleted successfully", CATALOGUE_MESSAGE_TTL)
        self.load()
        return True
