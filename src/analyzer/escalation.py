"""Escalation impact — scripted consequences of unhandled malicious events.

Damage model
────────────
  uptime_impact      = severity × 2 × uptime_multiplier          (percentage points)
  data_breach        = severity > 5, unless the profile forces it
  financial_impact   = severity × 1000 × financial_multiplier
  recovery_time_h    = ceil(severity / 2) × recovery_multiplier

Each escalated event is applied on its own, in the order received, with no
rollback; uptime changes go through GameModel.apply_uptime_penalty.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from src.contracts import topics
from src.contracts.event import Event, iso_ms
from src.game.model import GameModel
from src.shared.config_loader import config_path, load_yaml
from src.shared.event_bus import EventBus

log = logging.getLogger(__name__)

_FALLBACK_SCENARIO: dict[str, Any] = {
    "attack_vector": "Unknown attack vector detected.",
    "impact": "Unspecified system compromise.",
    "mitigation_tip": "Investigate and apply general security measures.",
    "tactics": ["Unknown"],
    "techniques": ["Unknown"],
    "affected_systems": ["Unknown System"],
}


@dataclass(slots=True, frozen=True)
class Damage:
    uptime_impact: float
    data_breach: bool
    financial_impact: float
    recovery_time_hours: float


def calculate_simulated_damage(event: Event, profile: dict[str, Any] | None = None) -> Damage:
    """Base damage from severity, adjusted by the type's ``damage`` profile."""
    p = profile or {}
    sev = event.severity or 5
    breach = p.get("data_breach")
    return Damage(
        uptime_impact=sev * 2 * float(p.get("uptime_multiplier", 1.0)),
        data_breach=sev > 5 if breach is None else bool(breach),
        financial_impact=sev * 1000 * float(p.get("financial_multiplier", 1.0)),
        recovery_time_hours=math.ceil(sev / 2) * float(p.get("recovery_multiplier", 1.0)),
    )


def load_escalations(config_dir: str | Path | None = None) -> dict[str, Any]:
    """Load escalations.yaml (``scenarios`` keyed by event type, ``fallback``)."""
    cfg = load_yaml(config_path(config_dir, "escalations.yaml"))
    log.info("Loaded %d escalation scenarios", len(cfg.get("scenarios", {})))
    return cfg


class EscalationHandler:
    def __init__(self, model: GameModel, bus: EventBus,
                 escalations_cfg: dict[str, Any] | None = None) -> None:
        self.model = model
        self.bus = bus
        cfg = escalations_cfg or {}
        self.scenarios: dict[str, dict[str, Any]] = cfg.get("scenarios", {})
        self.fallback: dict[str, Any] = {**_FALLBACK_SCENARIO, **cfg.get("fallback", {})}

    def attach(self) -> None:
        self.bus.subscribe(topics.EVENTS_ESCALATED, self.handle_escalated_events)

    @property
    def scenario_types(self) -> set[str]:
        return set(self.scenarios)

    def scenario_for(self, event_type: str) -> dict[str, Any]:
        return self.scenarios.get(event_type, self.fallback)

    def damage_for(self, event: Event) -> Damage:
        return calculate_simulated_damage(event, self.scenario_for(event.type).get("damage"))

    def generate_escalation_data(self, event: Event) -> dict[str, Any]:
        scenario = self.scenario_for(event.type)
        return {
            "eventType": event.type,
            "attackVector": scenario.get("attack_vector", self.fallback["attack_vector"]),
            "impact": scenario.get("impact", self.fallback["impact"]),
            "mitigationTip": scenario.get("mitigation_tip", self.fallback["mitigation_tip"]),
            "tactics": list(scenario.get("tactics", [])),
            "techniques": list(scenario.get("techniques", [])),
            "timestamp": iso_ms(self.model.clock.now_ms()),
            "severity": event.severity or 5,
            "affectedSystems": list(scenario.get("affected_systems",
                                                 self.fallback["affected_systems"])),
            "simulatedDamage": asdict(self.damage_for(event)),
        }

    def apply_escalation_impact(self, event: Event) -> Damage:
        damage = self.damage_for(event)
        uptime = self.model.apply_uptime_penalty(damage.uptime_impact, event.type, event)
        log.info("Escalation %s: -%.1f uptime (now %.1f), breach=%s",
                 event.type, damage.uptime_impact, uptime, damage.data_breach)
        return damage

    def handle_escalated_events(self, data: dict[str, Any]) -> None:
        for event in data.get("events", []):
            self.bus.publish(topics.ESCALATION_STARTED, {
                "event": event,
                "escalation": self.generate_escalation_data(event),
            })
            self.apply_escalation_impact(event)
