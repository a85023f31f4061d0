"""Event generator — one weighted, level-scaled draw from the catalog per tick."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import random as _random_mod
from typing import Any, Callable

from src.contracts.enums import EventType
from src.contracts.event import Event, iso_ms
from src.contracts.level import Level
from src.emulator.catalog import Template
from src.emulator.fields import FieldGenerators
from src.shared.clock import Clock

log = logging.getLogger(__name__)

FALSE_POSITIVE_PREFIX = "Potential false positive: "


def template_weight(template: Template, level: Level) -> float:
    """``likelihood × scaling factor`` for the given level."""
    if template.is_noise:
        factor = level.noise_event_probability
    elif template.scaling_frequency is not None:
        factor = level.event_frequency_multiplier * template.scaling_frequency
    else:
        factor = level.event_frequency_multiplier
    return template.likelihood * factor


# ── type-specific enrichment ─────────────────────────────────────────────

def _login_fail(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"user": g.username(), "count": g.login_fail_count()}


def _traffic_spike(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"volume": g.traffic_volume()}


def _process_spawn(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"process": g.process_name(), "user": g.username()}


def _dns_query(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"domain": g.domain()}


def _http_error(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"code": g.http_error_code(), "url": g.url()}


def _unauthorized_access(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"user": g.username(), "resource": g.resource(), "action": "read"}


def _service_failure(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"service": g.service(), "status": "down"}


def _sql_injection(g: FieldGenerators, t: Template) -> dict[str, Any]:
    return {"user": g.username(), "url": g.url(t.url_template)}


# Registry: event type -> enrichment; types absent here only get the source IP
FIELD_BUILDERS: dict[str, Callable[[FieldGenerators, Template], dict[str, Any]]] = {
    EventType.LOGIN_FAIL.value: _login_fail,
    EventType.TRAFFIC_SPIKE.value: _traffic_spike,
    EventType.PROCESS_SPAWN.value: _process_spawn,
    EventType.DNS_QUERY.value: _dns_query,
    EventType.HTTP_ERROR.value: _http_error,
    EventType.UNAUTHORIZED_ACCESS.value: _unauthorized_access,
    EventType.SERVICE_FAILURE.value: _service_failure,
    EventType.SQL_INJECTION.value: _sql_injection,
}


class EventGenerator:
    """Draws events from *catalog* using a session-owned Random and Clock."""

    def __init__(
        self,
        catalog: list[Template],
        rng: _random_mod.Random,
        clock: Clock,
        field_pools: dict[str, Any] | None = None,
    ) -> None:
        if not catalog:
            raise ValueError("EventGenerator needs a non-empty catalog")
        self.catalog = catalog
        self.rng = rng
        self.clock = clock
        self.fields = FieldGenerators(field_pools, rng)
        self._ids = itertools.count(1)

    def weights(self, level: Level) -> list[float]:
        return [template_weight(t, level) for t in self.catalog]

    def choose_template(self, level: Level) -> Template:
        """Weighted draw; falls back to the first template on rounding overrun."""
        weights = self.weights(level)
        total = sum(weights)
        draw = self.rng.random() * total
        running = 0.0
        for template, w in zip(self.catalog, weights):
            running += w
            if running >= draw:
                return template
        return self.catalog[0]

    def generate_event(self, level: Level) -> Event:
        template = self.choose_template(level)
        now = self.clock.now_ms()
        details: dict[str, Any] = {"ip": self.fields.ip()}
        builder = FIELD_BUILDERS.get(template.type)
        if builder is not None:
            details.update(builder(self.fields, template))

        event = Event(
            event_id=next(self._ids),
            timestamp=iso_ms(now),
            type=template.type,
            category=template.category,
            severity=template.base_severity,
            description=template.description,
            is_noise=template.is_noise,
            remediation=template.remediation,
            area=template.area,
            escalation=template.escalation,
            education=template.education,
            **details,
        )
        log.debug("Generated %s #%d (%s, sev=%d)",
                  event.type, event.event_id, event.category, event.severity)
        return event

    def false_positive_duplicate(self, event: Event) -> Event:
        """Copy of a noisy event re-labelled as a potential false positive."""
        return dataclasses.replace(
            event,
            event_id=next(self._ids),
            type=EventType.POTENTIAL_FALSE_POSITIVE.value,
            description=FALSE_POSITIVE_PREFIX + event.description,
        )
