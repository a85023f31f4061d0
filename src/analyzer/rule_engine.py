"""Rule engine — validates player rules and evaluates them against events.

Per-type semantics
──────────────────
  login_fail           event.count  >  threshold
  traffic_spike        event.volume >  threshold
  process_spawn        event.process == name
  service_failure      event.service == name
  dns_query            keyword in event.domain
  unauthorized_access  keyword in event.resource
  http_error           event.code   >= threshold

A rule never matches an event of a different type.  Live evaluation runs on
every ``event:added`` publish; every enabled matching rule is reported, and
one match is enough for the model to mark the event handled.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable

from src.contracts import topics
from src.contracts.enums import EventType
from src.contracts.event import Event
from src.contracts.rule import Rule, RuleValidationError, ensure_rule, validate_rule
from src.game.model import GameModel
from src.shared.event_bus import EventBus

log = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _count_above(rule: Rule, event: Event) -> bool:
    count = _as_int(event.count)
    return count is not None and count > int(rule.parameter)


def _volume_above(rule: Rule, event: Event) -> bool:
    volume = _as_int(event.volume)
    return volume is not None and volume > int(rule.parameter)


def _process_equals(rule: Rule, event: Event) -> bool:
    return bool(event.process) and event.process == rule.parameter


def _service_equals(rule: Rule, event: Event) -> bool:
    return bool(event.service) and event.service == rule.parameter


def _domain_contains(rule: Rule, event: Event) -> bool:
    return bool(event.domain) and str(rule.parameter) in event.domain


def _resource_contains(rule: Rule, event: Event) -> bool:
    return bool(event.resource) and str(rule.parameter) in event.resource


def _code_at_least(rule: Rule, event: Event) -> bool:
    code = _as_int(event.code)
    return code is not None and code >= int(rule.parameter)


# Registry: condition type -> evaluator
EVALUATORS: dict[str, Callable[[Rule, Event], bool]] = {
    EventType.LOGIN_FAIL.value: _count_above,
    EventType.TRAFFIC_SPIKE.value: _volume_above,
    EventType.PROCESS_SPAWN.value: _process_equals,
    EventType.SERVICE_FAILURE.value: _service_equals,
    EventType.DNS_QUERY.value: _domain_contains,
    EventType.UNAUTHORIZED_ACCESS.value: _resource_contains,
    EventType.HTTP_ERROR.value: _code_at_least,
}


def evaluate_rule(rule: Rule | None, event: Event | None) -> bool:
    """True if *rule* matches *event*; False for any type mismatch."""
    if rule is None or event is None:
        return False
    if event.type != rule.condition_type:
        return False
    evaluator = EVALUATORS.get(rule.condition_type)
    if evaluator is None:
        return False
    return evaluator(rule, event)


class RuleEngine:
    """Holds no state of its own; rules live in the model's GameState."""

    def __init__(self, model: GameModel, bus: EventBus) -> None:
        self.model = model
        self.bus = bus

    def attach(self) -> None:
        """Subscribe live evaluation to ``event:added``."""
        self.bus.subscribe(topics.EVENT_ADDED, self.handle_new_event)

    @property
    def rules(self) -> list[Rule]:
        return self.model.state.rules

    # ── authoring ────────────────────────────────────────────────────────

    def validate_rule(self, data: Any) -> tuple[bool, str]:
        return validate_rule(data)

    def add_rule(self, data: dict[str, Any] | Rule) -> Rule | None:
        """Validate and store a rule; returns it, or None if rejected."""
        try:
            rule = ensure_rule(data)
        except RuleValidationError as exc:
            log.warning("Rule rejected: %s", exc)
            self.bus.publish(topics.NOTIFY_ERROR, {
                "message": f"Invalid rule configuration: {exc}",
            })
            return None

        if not rule.rule_id:
            rule = dataclasses.replace(rule, rule_id=f"RULE-{len(self.rules) + 1:03d}")
        self.model.add_rule(rule)
        log.info("Rule %s added: %s %s", rule.rule_id, rule.condition_type, rule.parameter)
        return rule

    # ── evaluation ───────────────────────────────────────────────────────

    def evaluate_rule(self, rule: Rule | None, event: Event | None) -> bool:
        return evaluate_rule(rule, event)

    def check_event_against_rules(self, event: Event) -> list[Rule]:
        """All enabled rules matching *event*, in insertion order."""
        return [r for r in self.rules if r.enabled and evaluate_rule(r, event)]

    def check_rule_against_events(self, rule: Rule) -> list[Event]:
        return [e for e in self.model.state.events if evaluate_rule(rule, e)]

    def test_rule(self, rule: Rule, events: list[Event]) -> list[dict[str, Any]]:
        """Dry run: matching events, no handling and no scoring."""
        return [{"event": e, "rule": rule} for e in events if evaluate_rule(rule, e)]

    def handle_new_event(self, data: dict[str, Any]) -> None:
        event: Event = data["event"]
        triggered = self.check_event_against_rules(event)
        if not triggered:
            return
        log.debug("%s #%d matched %d rule(s)", event.type, event.event_id, len(triggered))
        self.model.mark_event_as_handled(event)
        self.bus.publish(topics.RULES_TRIGGERED, {"event": event, "rules": triggered})
