"""Cooperative single-threaded scheduler for periodic timers.

Timers fire one at a time, in due-time order (ties by creation order), and
each callback runs to completion before the next one starts.  A handle
cancelled before its due time never fires, even when the cancelling call
comes from another callback in the same pass.

Two drivers share the same bookkeeping:

  run_pending()  — fire whatever is due on the current clock (live loop)
  advance(ms)    — step a ManualClock through every due time (tests, replay)
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

from src.shared.clock import Clock, ManualClock

log = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class TimerHandle:
    timer_id: int
    name: str
    period_ms: int
    callback: Callable[[], None] = field(repr=False)
    next_due_ms: int
    cancelled: bool = False
    fire_count: int = 0

    @property
    def active(self) -> bool:
        return not self.cancelled


class Scheduler:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock
        self._timers: dict[int, TimerHandle] = {}
        self._ids = itertools.count(1)

    # ── registration ─────────────────────────────────────────────────────

    def call_every(self, period_ms: int, callback: Callable[[], None],
                   name: str = "") -> TimerHandle:
        """Schedule *callback* every *period_ms*, first firing one period from now."""
        period = int(period_ms)
        if period <= 0:
            raise ValueError(f"Timer period must be positive, got {period_ms!r}")
        handle = TimerHandle(
            timer_id=next(self._ids),
            name=name or getattr(callback, "__name__", "timer"),
            period_ms=period,
            callback=callback,
            next_due_ms=self.clock.now_ms() + period,
        )
        self._timers[handle.timer_id] = handle
        log.debug("Timer %s scheduled every %d ms", handle.name, period)
        return handle

    def cancel(self, handle: TimerHandle | None) -> bool:
        """Invalidate *handle*; returns False if it was already inactive."""
        if handle is None or handle.cancelled:
            return False
        handle.cancelled = True
        self._timers.pop(handle.timer_id, None)
        log.debug("Timer %s cancelled after %d ticks", handle.name, handle.fire_count)
        return True

    def cancel_all(self) -> int:
        handles = list(self._timers.values())
        for h in handles:
            self.cancel(h)
        return len(handles)

    @property
    def active_timers(self) -> list[TimerHandle]:
        return list(self._timers.values())

    # ── driving ──────────────────────────────────────────────────────────

    def _next_due(self, until_ms: int) -> TimerHandle | None:
        due = [h for h in self._timers.values() if h.next_due_ms <= until_ms]
        if not due:
            return None
        return min(due, key=lambda h: (h.next_due_ms, h.timer_id))

    def _fire(self, handle: TimerHandle) -> None:
        handle.next_due_ms += handle.period_ms
        handle.fire_count += 1
        handle.callback()

    def run_pending(self) -> int:
        """Fire every timer due at the current clock instant; returns ticks fired.

        A timer that fell more than one period behind fires once and is
        re-anchored on the current instant instead of replaying missed ticks.
        """
        now = self.clock.now_ms()
        fired = 0
        while True:
            handle = self._next_due(now)
            if handle is None:
                break
            self._fire(handle)
            fired += 1
            if not handle.cancelled and handle.next_due_ms <= now:
                log.debug("Timer %s lagging, re-anchored", handle.name)
                handle.next_due_ms = now + handle.period_ms
        return fired

    def advance(self, ms: int) -> int:
        """Move a ManualClock forward by *ms*, firing timers at their due times."""
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() requires a ManualClock")
        target = self.clock.now_ms() + int(ms)
        fired = 0
        while True:
            handle = self._next_due(target)
            if handle is None:
                break
            self.clock.set(handle.next_due_ms)
            self._fire(handle)
            fired += 1
        self.clock.set(target)
        return fired
