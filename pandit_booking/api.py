"""API client for the booking backend."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional

import requests

DEFAULT_BASE_URL = "http://localhost:5000"


class APIError(RuntimeError):
    def __init__(
        self,
        endpoint: str,
        reason: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.status_code = status_code
        self.payload = payload

    @property
    def message(self) -> str | None:
        """Server-supplied error text, if any."""
        if isinstance(self.payload, dict):
            return self.payload.get("error") or self.payload.get("message")
        return None


def default_base_url() -> str:
    return os.getenv("PANDIT_BOOKING_API_URL", DEFAULT_BASE_URL).rstrip("/")


class APIClient:
    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        dump_json: bool = False,
        offline: bool = False,
        token_provider: Optional[Callable[[], str]] = None,
    ) -> None:
        self.token = token
        self.base_url = (base_url or default_base_url()).rstrip("/")
        self.dump_json = dump_json
        self.offline = offline
        self.token_provider = token_provider
        self.session = requests.Session()
        self.json_dir = Path("out/json")

    def _json_path(self, endpoint: str, params: dict | None = None) -> Path:
        name = endpoint.strip("/").replace("/", "_")
        if params:
            name += "__" + "_".join(f"{k}-{v}" for k, v in sorted(params.items()))
        return self.json_dir / (name + ".json")

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict | None = None,
        json_body: Any = None,
        files: dict | None = None,
    ) -> Any:
        if self.offline:
            if method != "GET":
                raise APIError(endpoint, "offline mode is read-only")
            with self._json_path(endpoint, params).open("r", encoding="utf-8") as f:
                return json.load(f)
        url = self.base_url + endpoint
        headers = self._headers()
        # Only reads are retried; a repeated POST could book twice.
        retry = method == "GET"
        for attempt in range(4):
            try:
                resp = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    files=files,
                    headers=headers,
                    timeout=30,
                )
            except requests.RequestException as exc:
                logging.warning("Request error: %s", exc)
                if not retry:
                    raise APIError(endpoint, f"{method} failed: {exc}") from exc
                time.sleep(2**attempt)
                continue
            if resp.status_code == 401 and attempt == 0 and self.token_provider:
                logging.info("Token expired, refreshing")
                self.token = self.token_provider()
                headers = self._headers()
                continue
            if resp.status_code >= 500:
                logging.warning("Server error %s on %s", resp.status_code, endpoint)
                if not retry:
                    raise APIError(
                        endpoint,
                        f"HTTP {resp.status_code}",
                        status_code=resp.status_code,
                        payload=_decode(resp),
                    )
                time.sleep(2**attempt)
                continue
            data = _decode(resp)
            if resp.status_code >= 400:
                raise APIError(
                    endpoint,
                    f"HTTP {resp.status_code}",
                    status_code=resp.status_code,
                    payload=data,
                )
            if self.dump_json and method == "GET":
                path = self._json_path(endpoint, params)
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("w", encoding="utf-8") as f:
                    json.dump(data, f)
            return data
        raise APIError(endpoint, f"Failed to {method} {endpoint}")

    def get(self, endpoint: str, params: dict | None = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, payload: Any = None, *, files: dict | None = None) -> Any:
        return self.request("POST", endpoint, json_body=payload, files=files)

    def put(self, endpoint: str, payload: Any = None) -> Any:
        return self.request("PUT", endpoint, json_body=payload)

    def delete(self, endpoint: str) -> Any:
        return self.request("DELETE", endpoint)

    # Bookings

    def get_bookings(self, user_id: str | None = None) -> Any:
        return self.get("/api/bookings", {"userid": user_id} if user_id else None)

    def get_pandit_bookings(self, pandit_id: str) -> Any:
        return self.get("/api/bookings/view", {"panditid": pandit_id})

    def create_booking(self, payload: dict) -> Any:
        return self.post("/api/bookings", payload)

    def update_booking_status(self, booking_id: str, status: str) -> Any:
        return self.put(f"/api/bookings/status/{booking_id}", {"status": status})

    # Pandits

    def get_pandits(self) -> Any:
        return self.get("/api/pandits")

    def get_verified_pandits(self) -> Any:
        return self.get("/api/pandits/verified")

    def verify_pandit(self, pandit_id: str) -> Any:
        return self.put(f"/api/pandits/verify/{pandit_id}")

    def delete_pandit(self, pandit_id: str) -> Any:
        return self.delete(f"/api/pandits/{pandit_id}")

    def upload_pandit_photo(self, pandit_id: str, path: Path) -> Any:
        with Path(path).open("rb") as fh:
            return self.post(
                f"/api/pandits/{pandit_id}/photo", files={"photo": (Path(path).name, fh)}
            )

    def signup_pandit(self, payload: dict) -> Any:
        return self.post("/api/pandits/signup", payload)

    # Devotees, poojas, reviews

    def get_devotees(self) -> Any:
        return self.get("/api/users")

    def update_devotee(self, devotee_id: str, payload: dict) -> Any:
        return self.put(f"/api/users/update/{devotee_id}", payload)

    def get_poojas(self) -> Any:
        return self.get("/api/poojas")

    def add_pooja(self, payload: dict) -> Any:
        return self.post("/api/poojas", payload)

    def update_pooja(self, pooja_id: str, payload: dict) -> Any:
        return self.put(f"/api/poojas/{pooja_id}", payload)

    def delete_pooja(self, pooja_id: str) -> Any:
        return self.delete(f"/api/poojas/{pooja_id}")

    def create_review(self, payload: dict) -> Any:
        return self.post("/api/reviews", payload)

    def login(self, email: str, password: str, *, role: str = "devotee") -> Any:
        endpoint = "/api/pandits/login" if role == "pandit" else "/api/users/login"
        return self.post(endpoint, {"email": email, "password": password})


def _decode(resp: "requests.Response") -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def as_list(data: Any) -> list:
    """Unwrap list payloads that may arrive bare or under a key."""

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("data", "bookings", "pandits", "users", "poojas"):
            if isinstance(data.get(key), list):
                return data[key]
    return []
