"""Millisecond clocks: wall-clock for live runs, manual for tests and replays."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    """Wall-clock epoch milliseconds."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = int(start_ms)

    def now_ms(self) -> int:
        return self._now

    def set(self, ms: int) -> None:
        if ms < self._now:
            raise ValueError(f"ManualClock cannot go backwards ({ms} < {self._now})")
        self._now = int(ms)

    def advance(self, ms: int) -> int:
        self.set(self._now + int(ms))
        return self._now
