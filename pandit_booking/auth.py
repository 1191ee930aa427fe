"""Session handling for the logged-in devotee or pandit."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .api import APIClient
from .models import Session

CACHE_PATH = Path(os.path.expanduser("~/.cache/pandit_booking/session.json"))


def _load_cache(path: Path | None = None) -> Optional[Session]:
    path = path or CACHE_PATH
    if not path.exists():
        return None
    try:
        return Session.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (ValueError, KeyError) as exc:
        logging.warning("Failed to read session cache: %s", exc)
        return None


def _save_cache(session: Session, path: Path | None = None) -> None:
    path = path or CACHE_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(session.to_dict()), encoding="utf-8")


def load_session(path: Path | None = None) -> Optional[Session]:
    return _load_cache(path)


def login(
    client: APIClient,
    email: str,
    password: str,
    *,
    role: str = "devotee",
    path: Path | None = None,
) -> Session:
    payload = client.login(email, password, role=role)
    session = Session.from_login(payload or {}, role=role)
    if not session.user_id:
        raise RuntimeError("Login response did not include a user")
    client.token = session.token
    _save_cache(session, path)
    logging.info("Logged in as %s", session.email or session.user_id)
    return session


def logout(path: Path | None = None) -> None:
    path = path or CACHE_PATH
    if path.exists():
        path.unlink()
        logging.info("Session cleared")


def acquire_token(path: Path | None = None) -> str:
    # Env var wins over the cached session.
    token = os.getenv("PANDIT_BOOKING_TOKEN")
    if token:
        return token

    session = _load_cache(path)
    if session and session.token:
        return session.token

    raise RuntimeError("No session token (log in or set PANDIT_BOOKING_TOKEN)")
