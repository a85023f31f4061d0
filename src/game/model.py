"""Game model — the only code that mutates GameState.

Pending lifecycle
─────────────────
  add_event (malicious)  → pending
  pending → handled      mark_event_as_handled (rule match or manual action)
  pending → escalated    check_escalations, once dwell ≥ escalation_timeout_ms

Both exits are terminal and remove the entry; nothing else removes it.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Any

from src.contracts import topics
from src.contracts.event import Event
from src.contracts.level import Level
from src.contracts.rule import Rule, RuleValidationError
from src.contracts.state import (
    MAX_UPTIME,
    GameState,
    PendingMaliciousEntry,
    TrafficSample,
)
from src.game.persistence import MemorySnapshotStore, SnapshotStore
from src.game.settings import GameSettings
from src.shared.clock import Clock
from src.shared.event_bus import EventBus

log = logging.getLogger(__name__)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class GameModel:
    def __init__(
        self,
        bus: EventBus,
        clock: Clock,
        levels: list[Level],
        settings: GameSettings | None = None,
        store: SnapshotStore | None = None,
    ) -> None:
        if not levels:
            raise ValueError("GameModel needs at least one level")
        self.bus = bus
        self.clock = clock
        self.levels = levels
        self.settings = settings or GameSettings()
        self.store = store if store is not None else MemorySnapshotStore()
        self.current_level_index = 0
        self.state = self._fresh_state()

    def init(self) -> None:
        self.load_state()
        self.apply_level_settings()

    def _fresh_state(self) -> GameState:
        return GameState(traffic_data=deque(maxlen=self.settings.traffic_buffer_size))

    # ── persistence ──────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        return {
            "level": self.state.level,
            "score": self.state.score,
            "uptime": self.state.uptime,
            "rules": [r.to_dict() for r in self.state.rules],
            "levelProgress": self.state.level_progress,
        }

    def save_state(self) -> bool:
        if self.store.save(self.snapshot()):
            return True
        self.bus.publish(topics.NOTIFY_ERROR, {
            "message": "Failed to save game state. Storage may be full or disabled.",
        })
        return False

    def load_state(self) -> bool:
        """Restore the persisted snapshot; returns False when defaults were used."""
        snapshot = self.store.load()
        if snapshot is None:
            self.current_level_index = 0
            self.state.level = 1
            return False

        level = snapshot.get("level", 1)
        if isinstance(level, bool) or not isinstance(level, int) \
                or not 1 <= level <= len(self.levels):
            log.warning("Saved level %r outside 1..%d; starting at level 1",
                        level, len(self.levels))
            level = 1
        self.state.level = level
        self.current_level_index = level - 1

        score = snapshot.get("score", 0)
        if isinstance(score, (int, float)) and not isinstance(score, bool) and score >= 0:
            self.state.score = int(score)

        uptime = snapshot.get("uptime", MAX_UPTIME)
        if isinstance(uptime, (int, float)) and not isinstance(uptime, bool):
            self.state.uptime = min(MAX_UPTIME, max(0.0, float(uptime)))

        progress = snapshot.get("levelProgress", 0)
        if isinstance(progress, int) and not isinstance(progress, bool):
            self.state.level_progress = min(100, max(0, progress))

        saved_rules = snapshot.get("rules", [])
        if not isinstance(saved_rules, list):
            log.warning("Saved rules are not a list; ignored")
            saved_rules = []
        rules: list[Rule] = []
        for raw in saved_rules:
            try:
                rules.append(Rule.from_dict(raw))
            except RuleValidationError as exc:
                log.warning("Dropping saved rule %r: %s", raw, exc)
        self.state.rules = rules

        log.info("Restored state: level=%d score=%d uptime=%.1f rules=%d",
                 self.state.level, self.state.score, self.state.uptime, len(rules))
        return True

    def reset_state(self) -> None:
        self.state = self._fresh_state()
        self.current_level_index = 0
        self.save_state()
        self.bus.publish(topics.STATE_RESET, {"state": self.state})

    # ── levels ───────────────────────────────────────────────────────────

    def current_level(self) -> Level:
        return self.levels[self.current_level_index]

    def apply_level_settings(self) -> None:
        self.bus.publish(topics.SETTINGS_UPDATED, {"level": self.current_level()})

    def start_next_level(self) -> bool:
        """Advance one level; past the last one the whole game resets.

        Returns:
            True if a next level was entered, False on wrap-around.
        """
        if self.current_level_index < len(self.levels) - 1:
            self.current_level_index += 1
            self.state.level = self.current_level_index + 1
            self.state.level_progress = 0
            self.save_state()
            self.apply_level_settings()
            log.info("Advanced to %s", self.current_level().name)
            self.bus.publish(topics.LEVEL_CHANGED, {"level": self.current_level()})
            return True

        log.info("Final level cleared; game completed, restarting at level 1")
        self.bus.publish(topics.GAME_COMPLETED, {})
        self.reset_state()
        self.apply_level_settings()
        return False

    def set_running(self, running: bool) -> None:
        self.state.is_running = running

    # ── scoring ──────────────────────────────────────────────────────────

    def calculate_score(
        self,
        detected_count: int,
        speed_bonus: float,
        uptime: float,
        false_positive_count: int,
    ) -> int:
        """Add ``detected×100 + speed×5 + uptime×10 − fp×50`` (≥ 0) to the score."""
        raw = (detected_count * 100 + speed_bonus * 5 + uptime * 10
               - false_positive_count * 50)
        earned = max(0, _round_half_up(raw))

        self.state.score += earned
        target = self.current_level().target_score
        self.state.level_progress = min(100, int(self.state.score * 100 / target))
        self.save_state()

        self.bus.publish(topics.SCORE_UPDATED, {
            "totalScore": self.state.score,
            "earnedPoints": earned,
        })
        return earned

    # ── events ───────────────────────────────────────────────────────────

    def add_event(self, event: Event) -> None:
        now = self.clock.now_ms()
        self.state.events.append(event)
        if event.is_malicious:
            self.state.pending_malicious_events.append(
                PendingMaliciousEntry(event=event, enqueued_at=now))
        self.state.traffic_data.append(TrafficSample(timestamp=now))
        self.bus.publish(topics.EVENT_ADDED, {"event": event})

    def _find_pending(self, event: Event) -> PendingMaliciousEntry | None:
        # Events that carry an id are matched on it; external events without
        # one fall back to the (timestamp, type, ip) key.
        for entry in self.state.pending_malicious_events:
            if event.event_id:
                if entry.event.event_id == event.event_id:
                    return entry
            elif entry.event.match_key == event.match_key:
                return entry
        return None

    def find_event(self, event_id: int) -> Event | None:
        for event in reversed(self.state.events):
            if event.event_id == event_id:
                return event
        return None

    def mark_event_as_handled(self, event: Event | dict[str, Any]) -> bool:
        """Close a pending entry and score the response; no-op if not pending."""
        if isinstance(event, dict):
            try:
                event = Event.from_dict(event)
            except (TypeError, ValueError):
                log.warning("Cannot handle event payload: %r", event)
                return False
        entry = self._find_pending(event)
        if entry is None or entry.handled:
            log.debug("No pending entry for %s %s", event.type, event.timestamp)
            return False

        entry.handled = True
        self.state.pending_malicious_events.remove(entry)
        self.state.handled_count += 1

        ceiling = self.settings.response_speed_ceiling_sec
        latency = min(ceiling, (self.clock.now_ms() - entry.enqueued_at) / 1000)
        speed_bonus = max(0.0, ceiling - latency)
        earned = self.calculate_score(1, speed_bonus, self.state.uptime, 0)
        log.info("Handled %s #%d after %.1fs (+%d)",
                 entry.event.type, entry.event.event_id, latency, earned)

        self.bus.publish(topics.EVENT_HANDLED, {"event": entry.event})
        return True

    def check_escalations(self) -> list[Event]:
        """Sweep the pending queue; returns the events that escalated now."""
        now = self.clock.now_ms()
        timeout = self.settings.escalation_timeout_ms
        escalated: list[Event] = []
        remaining: list[PendingMaliciousEntry] = []

        for entry in self.state.pending_malicious_events:
            if entry.handled:
                continue
            if now - entry.enqueued_at >= timeout:
                escalated.append(entry.event)
            else:
                remaining.append(entry)
        self.state.pending_malicious_events = remaining

        if escalated:
            self.state.escalated_count += len(escalated)
            log.info("%d event(s) escalated: %s",
                     len(escalated), ", ".join(e.type for e in escalated))
            self.bus.publish(topics.EVENTS_ESCALATED, {"events": escalated})
        return escalated

    def apply_uptime_penalty(self, amount: float, cause: str,
                             event: Event | None = None) -> float:
        """Debit uptime (clamped at 0); publishes game:over when it hits 0."""
        self.state.uptime = max(0.0, self.state.uptime - amount)
        self.bus.publish(topics.UPTIME_UPDATED, {"uptime": self.state.uptime, "cause": cause})
        if self.state.uptime <= 0:
            log.warning("Uptime exhausted by %s; game over", cause)
            self.bus.publish(topics.GAME_OVER, {"reason": "network_down", "event": event})
        self.save_state()
        return self.state.uptime

    # ── rules ────────────────────────────────────────────────────────────

    def add_rule(self, rule: Rule) -> None:
        self.state.rules.append(rule)
        self.save_state()
        self.bus.publish(topics.RULE_ADDED, {"rule": rule})

    # ── read-only views ──────────────────────────────────────────────────

    def pending_view(self) -> list[dict[str, Any]]:
        now = self.clock.now_ms()
        timeout = self.settings.escalation_timeout_ms
        view = []
        for entry in self.state.pending_malicious_events:
            elapsed = now - entry.enqueued_at
            view.append({
                "event": entry.event,
                "escalationPercentage": min(100, _round_half_up(elapsed * 100 / timeout)),
                "handled": entry.handled,
                "timeElapsed": elapsed,
            })
        return view

    def debrief_stats(self) -> dict[str, Any]:
        level = self.current_level()
        total = sum(1 for e in self.state.events if e.is_malicious)
        handled = self.state.handled_count
        return {
            "levelName": level.name,
            "levelDescription": level.description,
            "currentScore": self.state.score,
            "levelTargetScore": level.target_score,
            "eventsHandled": handled,
            "eventsEscalated": self.state.escalated_count,
            "totalMalicious": total,
            "handlePercentage": _round_half_up(handled * 100 / total) if total else 0,
            "uptime": self.state.uptime,
            "targetReached": self.state.score >= level.target_score,
        }
