"""Utility helpers."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from typing import Callable


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def today() -> date:
    return date.today()


def now() -> datetime:
    return datetime.now()


class TransientMessage:
    """A user-facing message that clears itself after ``ttl`` seconds.

    A ``ttl`` of ``None`` keeps the message until ``clear`` is called.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._text: str | None = None
        self._kind = "info"
        self._expires_at: float | None = None

    def show(self, text: str, ttl: float | None = None, *, kind: str = "info") -> None:
        self._text = text
        self._kind = kind
        self._expires_at = None if ttl is None else self._clock() + ttl

    def clear(self) -> None:
        self._text = None

    @property
    def text(self) -> str | None:
        if (
            self._text is not None
            and self._expires_at is not None
            and self._clock() >= self._expires_at
        ):
            self._text = None
        return self._text

    @property
    def kind(self) -> str | None:
        return self._kind if self.text is not None else None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"
