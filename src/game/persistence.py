"""Snapshot persistence — the minimal cross-session record.

Only ``{level, score, uptime, rules, levelProgress}`` is ever written or
read back; the event log and the pending queue are session-only.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

log = logging.getLogger(__name__)

SNAPSHOT_KEYS: tuple[str, ...] = ("level", "score", "uptime", "rules", "levelProgress")


def filter_snapshot(data: Any) -> dict[str, Any] | None:
    """Apply the allow-list; returns None if *data* is not a mapping."""
    if not isinstance(data, dict):
        return None
    return {k: data[k] for k in SNAPSHOT_KEYS if k in data}


class SnapshotStore(Protocol):
    def load(self) -> dict[str, Any] | None: ...

    def save(self, snapshot: dict[str, Any]) -> bool: ...


class MemorySnapshotStore:
    """Keeps the last saved snapshot as a JSON string (one process only)."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._raw: str | None = json.dumps(initial) if initial is not None else None

    def load(self) -> dict[str, Any] | None:
        if self._raw is None:
            return None
        try:
            return filter_snapshot(json.loads(self._raw))
        except ValueError:
            log.warning("Stored snapshot is not valid JSON; using defaults")
            return None

    def save(self, snapshot: dict[str, Any]) -> bool:
        try:
            self._raw = json.dumps(filter_snapshot(snapshot))
        except (TypeError, ValueError):
            log.exception("Snapshot is not JSON-serialisable")
            return False
        return True

    @property
    def raw(self) -> str | None:
        return self._raw


class JsonSnapshotStore:
    """Snapshot kept in a JSON file, replaced atomically on save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            log.info("No saved state at %s; starting fresh", self.path)
            return None
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            log.exception("Error loading game state from %s", self.path)
            return None
        snapshot = filter_snapshot(data)
        if snapshot is None:
            log.warning("Saved state at %s is not an object; ignored", self.path)
        return snapshot

    def save(self, snapshot: dict[str, Any]) -> bool:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(filter_snapshot(snapshot), fh, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
        except (OSError, TypeError, ValueError):
            log.exception("Error saving game state to %s", self.path)
            return False
        return True
