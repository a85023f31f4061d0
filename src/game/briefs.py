"""Threat-intelligence briefs pushed to the player while the simulation runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.contracts import topics
from src.contracts.enums import Severity
from src.contracts.event import Event, iso_ms
from src.shared.clock import Clock
from src.shared.config_loader import config_path, load_yaml
from src.shared.event_bus import EventBus
from src.shared.scheduler import Scheduler, TimerHandle

log = logging.getLogger(__name__)

_SEVERITY_ICON = {
    Severity.CRITICAL.value: "🔴",
    Severity.HIGH.value: "🟠",
    Severity.MEDIUM.value: "🟡",
    Severity.LOW.value: "🔵",
    Severity.INFO.value: "ℹ️",
}


@dataclass(slots=True)
class Brief:
    id: str
    title: str
    message: str
    severity: str = Severity.INFO.value
    trigger: dict[str, Any] = field(default_factory=dict)

    @property
    def trigger_type(self) -> str:
        return self.trigger.get("type", "")


def load_briefs(config_dir: str | Path | None = None) -> list[Brief]:
    cfg = load_yaml(config_path(config_dir, "briefs.yaml"))
    briefs = [
        Brief(
            id=row["id"],
            title=row.get("title", row["id"]),
            message=row.get("message", ""),
            severity=row.get("severity", Severity.INFO.value),
            trigger=row.get("trigger", {}),
        )
        for row in cfg.get("briefs", [])
    ]
    log.info("Loaded %d briefs", len(briefs))
    return briefs


class BriefScheduler:
    """Time-triggered briefs on a periodic check; event briefs on ``event:added``."""

    def __init__(
        self,
        bus: EventBus,
        scheduler: Scheduler,
        clock: Clock,
        briefs: list[Brief] | None = None,
        check_interval_ms: int = 60000,
        event_cooldown_ms: int = 180000,
    ) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.clock = clock
        self.library: dict[str, Brief] = {b.id: b for b in briefs or []}
        self.check_interval_ms = check_interval_ms
        self.event_cooldown_ms = event_cooldown_ms
        self.last_shown: dict[str, int] = {}
        self._timer: TimerHandle | None = None

    def attach(self) -> None:
        self.bus.subscribe(topics.EVENT_ADDED, self.handle_event_for_brief)

    def start(self) -> None:
        if self._timer is None:
            self._timer = self.scheduler.call_every(
                self.check_interval_ms, self.generate_timed_briefs, name="briefs")

    def stop(self) -> None:
        self.scheduler.cancel(self._timer)
        self._timer = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def add_brief(self, brief: Brief) -> None:
        self.library[brief.id] = brief
        self.last_shown.pop(brief.id, None)

    def briefs_by_severity(self, severity: str) -> list[Brief]:
        return [b for b in self.library.values() if b.severity == severity]

    def _due(self, brief: Brief, interval_ms: int, now: int) -> bool:
        last = self.last_shown.get(brief.id)
        return last is None or now - last >= interval_ms

    def generate_timed_briefs(self) -> list[Brief]:
        now = self.clock.now_ms()
        shown = []
        for brief in self.library.values():
            if brief.trigger_type != "time":
                continue
            if self._due(brief, int(brief.trigger.get("interval_ms", 0)), now):
                self.display_brief(brief)
                shown.append(brief)
        return shown

    def handle_event_for_brief(self, data: dict[str, Any]) -> None:
        event: Event = data["event"]
        now = self.clock.now_ms()
        for brief in self.library.values():
            if brief.trigger_type != "event_category":
                continue
            if brief.trigger.get("category") != event.type:
                continue
            if self._due(brief, self.event_cooldown_ms, now):
                self.display_brief(brief)

    def display_brief(self, brief: Brief) -> None:
        now = self.clock.now_ms()
        self.last_shown[brief.id] = now
        icon = _SEVERITY_ICON.get(brief.severity, "⚪")
        log.debug("Brief %s (%s)", brief.id, brief.severity)
        self.bus.publish(topics.BRIEF_NEW, {
            "id": brief.id,
            "title": brief.title,
            "message": f"{icon} {brief.title}: {brief.message}",
            "severity": brief.severity,
            "timestamp": iso_ms(now),
        })

    def display_custom_brief(self, message: str, title: str = "Custom Alert",
                             severity: str = Severity.INFO.value) -> Brief:
        brief = Brief(id=f"custom_{self.clock.now_ms()}", title=title,
                      message=message, severity=severity)
        self.display_brief(brief)
        return brief
