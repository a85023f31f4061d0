"""Shared fixtures for Defender's Dashboard simulation tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.analyzer.escalation import EscalationHandler, load_escalations
from src.analyzer.rule_engine import RuleEngine
from src.contracts.event import Event, iso_ms
from src.contracts.level import Level
from src.emulator.catalog import Template, load_catalog
from src.emulator.generator import EventGenerator
from src.game.briefs import BriefScheduler, load_briefs
from src.game.controller import SimulationController
from src.game.model import GameModel
from src.game.persistence import MemorySnapshotStore
from src.game.settings import GameSettings, load_levels
from src.shared.clock import ManualClock
from src.shared.event_bus import EventBus
from src.shared.scheduler import Scheduler
from src.shared.seed import init_seed

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

# 2026-02-26T10:00:00.000Z
T0_MS = 1_772_100_000_000

# ── Helper: create Event with sensible defaults ─────────────────────────


def make_event(
    *,
    event_id: int = 0,
    timestamp: str = "2026-02-26T10:00:00.000Z",
    type: str = "login_fail",
    category: str = "malicious",
    severity: int = 3,
    description: str = "Failed login attempt",
    is_noise: bool = False,
    remediation: tuple[str, ...] = ("block_ip", "reset_password"),
    ip: str = "192.168.1.10",
    **details,
) -> Event:
    return Event(
        event_id=event_id,
        timestamp=timestamp,
        type=type,
        category=category,
        severity=severity,
        description=description,
        is_noise=is_noise,
        remediation=remediation,
        ip=ip,
        **details,
    )


def make_template(
    *,
    type: str = "login_fail",
    category: str = "malicious",
    likelihood: float = 0.1,
    base_severity: int = 3,
    is_noise: bool = False,
    scaling_frequency: float | None = None,
) -> Template:
    return Template(
        type=type,
        category=category,
        description=f"{type} event",
        likelihood=likelihood,
        base_severity=base_severity,
        escalation="sim" if category == "malicious" else "",
        remediation=("block_ip",) if category == "malicious" else (),
        is_noise=is_noise,
        scaling_frequency=scaling_frequency,
    )


def make_level(
    *,
    level: int = 1,
    multiplier: float = 0.5,
    noise: float = 0.1,
    target_score: int = 1000,
) -> Level:
    return Level(
        level=level,
        name=f"Level {level}",
        description=f"Test level {level}",
        event_frequency_multiplier=multiplier,
        noise_event_probability=noise,
        attack_sophistication="basic",
        target_score=target_score,
    )


# ── Timestamp helpers ────────────────────────────────────────────────────


def ts_offset(seconds: float = 0) -> str:
    """Return the ISO-8601 timestamp *seconds* after T0."""
    return iso_ms(T0_MS + int(seconds * 1000))


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0_MS)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus):
    """Subscribe to topics and collect ``(topic, payload)`` in publish order."""
    seen: list[tuple[str, dict]] = []

    def listen(*topic_names: str) -> list[tuple[str, dict]]:
        for name in topic_names:
            bus.subscribe(name, lambda data, _t=name: seen.append((_t, data)))
        return seen

    return listen


@pytest.fixture
def levels() -> list[Level]:
    return [
        make_level(level=1, multiplier=0.5, noise=0.1, target_score=1000),
        make_level(level=2, multiplier=0.6, noise=0.15, target_score=1500),
        make_level(level=3, multiplier=0.7, noise=0.2, target_score=2000),
    ]


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def model(bus, clock, levels, settings, store) -> GameModel:
    m = GameModel(bus, clock, levels, settings, store)
    m.init()
    return m


@pytest.fixture
def rule_engine(model, bus) -> RuleEngine:
    engine = RuleEngine(model, bus)
    engine.attach()
    return engine


@pytest.fixture
def escalations_cfg() -> dict:
    return load_escalations(CONFIG_DIR)


@pytest.fixture
def catalog(escalations_cfg):
    return load_catalog(CONFIG_DIR, escalations_cfg["scenarios"].keys())


@pytest.fixture
def controller(bus, clock, model, catalog, escalations_cfg) -> SimulationController:
    templates, pools = catalog
    rng = init_seed(42)
    scheduler = Scheduler(clock)
    ctrl = SimulationController(
        bus=bus,
        scheduler=scheduler,
        model=model,
        generator=EventGenerator(templates, rng, clock, pools),
        rule_engine=RuleEngine(model, bus),
        escalations=EscalationHandler(model, bus, escalations_cfg),
        briefs=BriefScheduler(bus, scheduler, clock, load_briefs(CONFIG_DIR)),
        rng=rng,
    )
    ctrl.init()
    return ctrl


@pytest.fixture
def config_levels() -> list[Level]:
    return load_levels(CONFIG_DIR)
