"""Session settings and the level table (game.yaml, levels.yaml)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from src.contracts.level import Level
from src.shared.config_loader import ConfigError, config_path, load_yaml

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GameSettings:
    simulation_interval_ms: int = 9000
    escalation_check_interval_ms: int = 5000
    escalation_timeout_ms: int = 45000
    false_positive_chance: float = 0.1
    traffic_buffer_size: int = 100
    response_speed_ceiling_sec: float = 30.0
    test_rule_window: int = 10
    brief_check_interval_ms: int = 60000
    brief_event_cooldown_ms: int = 180000
    state_file: str = "data/game_state.json"


def build_settings(cfg: dict[str, Any]) -> GameSettings:
    """Turn the parsed game.yaml into GameSettings, validating ranges."""
    sim = cfg.get("simulation", {})
    briefs = cfg.get("briefs", {})
    persistence = cfg.get("persistence", {})
    defaults = GameSettings()
    settings = GameSettings(
        simulation_interval_ms=int(sim.get("simulation_interval_ms", defaults.simulation_interval_ms)),
        escalation_check_interval_ms=int(
            sim.get("escalation_check_interval_ms", defaults.escalation_check_interval_ms)),
        escalation_timeout_ms=int(sim.get("escalation_timeout_ms", defaults.escalation_timeout_ms)),
        false_positive_chance=float(sim.get("false_positive_chance", defaults.false_positive_chance)),
        traffic_buffer_size=int(sim.get("traffic_buffer_size", defaults.traffic_buffer_size)),
        response_speed_ceiling_sec=float(
            sim.get("response_speed_ceiling_sec", defaults.response_speed_ceiling_sec)),
        test_rule_window=int(sim.get("test_rule_window", defaults.test_rule_window)),
        brief_check_interval_ms=int(briefs.get("check_interval_ms", defaults.brief_check_interval_ms)),
        brief_event_cooldown_ms=int(briefs.get("event_cooldown_ms", defaults.brief_event_cooldown_ms)),
        state_file=str(persistence.get("state_file", defaults.state_file)),
    )
    for name in ("simulation_interval_ms", "escalation_check_interval_ms",
                 "escalation_timeout_ms", "traffic_buffer_size", "brief_check_interval_ms"):
        if getattr(settings, name) <= 0:
            raise ConfigError(f"game.yaml: {name} must be positive")
    if not 0.0 <= settings.false_positive_chance <= 1.0:
        raise ConfigError("game.yaml: false_positive_chance must be in [0, 1]")
    return settings


def build_levels(cfg: dict[str, Any]) -> list[Level]:
    """Parse the ordered level table; ordinals must run 1..N."""
    levels: list[Level] = []
    for idx, row in enumerate(cfg.get("levels", []), start=1):
        lvl = Level(
            level=int(row.get("level", idx)),
            name=row.get("name", f"Level {idx}"),
            description=row.get("description", ""),
            event_frequency_multiplier=float(row.get("event_frequency_multiplier", 1.0)),
            noise_event_probability=float(row.get("noise_event_probability", 0.1)),
            attack_sophistication=row.get("attack_sophistication", "basic"),
            target_score=int(row.get("target_score", 1000)),
        )
        if lvl.level != idx:
            raise ConfigError(f"levels.yaml: entry {idx} has ordinal {lvl.level}")
        if lvl.event_frequency_multiplier <= 0 or lvl.target_score <= 0:
            raise ConfigError(f"levels.yaml: level {idx} needs positive multiplier and target")
        levels.append(lvl)
    if not levels:
        raise ConfigError("levels.yaml: level table is empty")
    return levels


def load_settings(config_dir: str | Path | None = None) -> GameSettings:
    settings = build_settings(load_yaml(config_path(config_dir, "game.yaml")))
    log.debug("Settings: %s", settings)
    return settings


def load_levels(config_dir: str | Path | None = None) -> list[Level]:
    levels = build_levels(load_yaml(config_path(config_dir, "levels.yaml")))
    log.info("Loaded %d levels: %s", len(levels), ", ".join(lv.name for lv in levels))
    return levels
