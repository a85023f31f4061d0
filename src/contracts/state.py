"""Mutable game state owned by the GameModel."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from src.contracts.event import Event
from src.contracts.rule import Rule

TRAFFIC_BUFFER_SIZE = 100
MAX_UPTIME = 100.0


@dataclass(slots=True)
class PendingMaliciousEntry:
    """A malicious event waiting to be handled or to escalate."""

    event: Event
    enqueued_at: int        # epoch ms
    handled: bool = False


@dataclass(slots=True)
class TrafficSample:
    timestamp: int          # epoch ms
    packet_count: int = 1


@dataclass(slots=True)
class GameState:
    """Aggregate root of one session.

    Lifecycle
    ─────────
      created from a persisted snapshot (or defaults) when the model starts,
      mutated only through GameModel methods, replaced wholesale on reset.
    """

    is_running: bool = False
    level: int = 1
    score: int = 0
    uptime: float = MAX_UPTIME
    level_progress: int = 0
    handled_count: int = 0
    escalated_count: int = 0
    rules: list[Rule] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    pending_malicious_events: list[PendingMaliciousEntry] = field(default_factory=list)
    traffic_data: deque[TrafficSample] = field(
        default_factory=lambda: deque(maxlen=TRAFFIC_BUFFER_SIZE))
