"""Time sources.

Instants throughout the service are integer Unix timestamps (seconds).
Services receive a Clock instead of calling time() themselves so that
deadline behaviour can be pinned in tests.
"""

from __future__ import annotations

import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(datetime.datetime.now(datetime.UTC).timestamp())


class FixedClock:
    """Clock frozen at a given instant; advance() moves it forward."""

    def __init__(self, at: int = 0) -> None:
        self._at = at

    def now(self) -> int:
        return self._at

    def set(self, at: int) -> None:
        self._at = at

    def advance(self, seconds: int) -> None:
        self._at += seconds
