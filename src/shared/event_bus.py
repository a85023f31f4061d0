"""Synchronous publish/subscribe router owned by one simulation session.

Delivery contract
─────────────────
  * ``publish`` calls every handler registered for the topic, in
    subscription order, before it returns.  All handlers receive the same
    payload object and must treat it as read-only.
  * There is no queue and no re-entrancy guard: a handler that publishes
    runs the nested fan-out to completion before the outer fan-out moves on
    to its next handler.  Rule-trigger → score-update chains rely on this.
  * Handlers are snapshotted at publish time, so a handler that
    unsubscribes (or subscribes) during a fan-out affects only later
    publishes.
  * Handler exceptions propagate to the publisher.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

log = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Any]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *topic*; returns an unsubscribe callable."""
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(topic)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, topic: str, payload: dict[str, Any] | None = None) -> int:
        """Fan *payload* out to the topic's handlers; returns how many ran."""
        handlers = self._handlers.get(topic)
        if not handlers:
            return 0
        data = payload if payload is not None else {}
        snapshot = list(handlers)
        for handler in snapshot:
            handler(data)
        return len(snapshot)

    def reset(self) -> None:
        """Drop every subscription."""
        count = sum(len(h) for h in self._handlers.values())
        self._handlers = defaultdict(list)
        log.debug("Event bus reset (%d handlers dropped)", count)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))
