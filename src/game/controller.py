"""Simulation loop controller — owns the timers and wires one session together.

States
──────
  stopped → running → paused → running → …     reset() → stopped, state zeroed

While running two independent timers share the model: the generation timer
(period = simulation_interval_ms × level multiplier) and the escalation
sweep (escalation_check_interval_ms).  pause()/reset() cancel both handles
before returning, so no tick fires afterwards.
"""

from __future__ import annotations

import logging
import random as _random_mod
from pathlib import Path
from typing import Any

from src.analyzer.actions import SPECIAL_ACTIONS, format_action, is_effective
from src.analyzer.escalation import EscalationHandler, load_escalations
from src.analyzer.rule_engine import RuleEngine
from src.contracts import topics
from src.contracts.enums import Action
from src.contracts.event import Event
from src.contracts.rule import Rule, RuleValidationError, ensure_rule
from src.emulator.catalog import load_catalog
from src.emulator.generator import EventGenerator
from src.game.briefs import BriefScheduler, load_briefs
from src.game.model import GameModel
from src.game.persistence import JsonSnapshotStore, SnapshotStore
from src.game.settings import load_levels, load_settings
from src.shared.clock import Clock, SystemClock
from src.shared.event_bus import EventBus
from src.shared.scheduler import Scheduler, TimerHandle
from src.shared.seed import init_seed

log = logging.getLogger(__name__)


class SimulationController:
    def __init__(
        self,
        bus: EventBus,
        scheduler: Scheduler,
        model: GameModel,
        generator: EventGenerator,
        rule_engine: RuleEngine,
        escalations: EscalationHandler,
        briefs: BriefScheduler | None = None,
        rng: _random_mod.Random | None = None,
    ) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.model = model
        self.generator = generator
        self.rule_engine = rule_engine
        self.escalations = escalations
        self.briefs = briefs
        self.rng = rng or generator.rng
        self._generation_timer: TimerHandle | None = None
        self._escalation_timer: TimerHandle | None = None

    def init(self) -> None:
        self.model.init()
        self._attach_all()
        log.info("Simulation controller initialised at %s", self.model.current_level().name)

    def _attach_all(self) -> None:
        # Order matters for event:added: rules are evaluated before briefs.
        self.setup_event_subscriptions()
        self.rule_engine.attach()
        self.escalations.attach()
        if self.briefs is not None:
            self.briefs.attach()

    def setup_event_subscriptions(self) -> None:
        self.bus.subscribe(topics.UI_START, lambda _: self.start())
        self.bus.subscribe(topics.UI_PAUSE, lambda _: self.pause())
        self.bus.subscribe(topics.UI_RESET, lambda _: self.reset())
        self.bus.subscribe(topics.UI_NEXT_LEVEL, lambda _: self.next_level())
        self.bus.subscribe(topics.UI_SAVE_RULE, lambda d: self.save_rule(d.get("rule")))
        self.bus.subscribe(topics.UI_TEST_RULE, lambda d: self.test_rule(d.get("rule")))
        self.bus.subscribe(topics.UI_HANDLE_EVENT,
                           lambda d: self.apply_action(d.get("event"), d.get("action")))
        self.bus.subscribe(topics.REQUEST_GAME_STATE, self._reply_game_state)
        self.bus.subscribe(topics.GAME_OVER, self._on_game_over)

    # ── lifecycle ────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._generation_timer is not None

    def generation_period_ms(self) -> int:
        level = self.model.current_level()
        return max(1, int(self.model.settings.simulation_interval_ms
                          * level.event_frequency_multiplier))

    def start(self) -> bool:
        """Start both timers; no-op (False) if already running."""
        if self.running:
            return False
        self.model.set_running(True)
        if self.briefs is not None:
            self.briefs.start()
        self.bus.publish(topics.GAME_STARTED, {})

        self._generation_timer = self.scheduler.call_every(
            self.generation_period_ms(), self.tick, name="generation")
        self._escalation_timer = self.scheduler.call_every(
            self.model.settings.escalation_check_interval_ms, self.sweep, name="escalation")
        log.info("Simulation started (%s, event every %d ms)",
                 self.model.current_level().name, self.generation_period_ms())
        return True

    def pause(self) -> bool:
        """Cancel both timers; no-op (False) if not running."""
        if not self.running:
            return False
        self.scheduler.cancel(self._generation_timer)
        self.scheduler.cancel(self._escalation_timer)
        self._generation_timer = None
        self._escalation_timer = None
        self.model.set_running(False)
        if self.briefs is not None:
            self.briefs.stop()
        self.bus.publish(topics.GAME_PAUSED, {})
        log.info("Simulation paused")
        return True

    def reset(self) -> None:
        self.pause()
        self.model.reset_state()
        self.bus.reset()
        self._attach_all()
        self.bus.publish(topics.GAME_RESET, {})
        log.info("Game reset completed")

    def next_level(self) -> bool:
        """Advance a level, restarting the timers at the new rate if running."""
        was_running = self.pause()
        advanced = self.model.start_next_level()
        if was_running:
            self.start()
        return advanced

    # ── timer callbacks ──────────────────────────────────────────────────

    def tick(self) -> Event:
        event = self.generator.generate_event(self.model.current_level())
        self.model.add_event(event)
        if event.is_noise and self.rng.random() < self.model.settings.false_positive_chance:
            self.model.add_event(self.generator.false_positive_duplicate(event))
        return event

    def sweep(self) -> list[Event]:
        escalated = self.model.check_escalations()
        if escalated:
            log.debug("%d events escalated", len(escalated))
        return escalated

    def _on_game_over(self, data: dict[str, Any]) -> None:
        log.warning("Game over: %s", data.get("reason"))
        self.pause()

    # ── player commands ──────────────────────────────────────────────────

    def save_rule(self, rule: dict[str, Any] | Rule | None) -> Rule | None:
        saved = self.rule_engine.add_rule(rule)
        if saved is not None:
            self.bus.publish(topics.NOTIFY_SUCCESS, {"message": "Rule saved successfully."})
        return saved

    def test_rule(self, rule: dict[str, Any] | Rule | None) -> list[dict[str, Any]]:
        """Run *rule* over the most recent events; no scoring, no handling."""
        try:
            parsed = ensure_rule(rule)
        except RuleValidationError as exc:
            self.bus.publish(topics.NOTIFY_ERROR, {"message": f"Cannot test rule: {exc}"})
            return []
        window = self.model.settings.test_rule_window
        results = self.rule_engine.test_rule(parsed, self.model.state.events[-window:])
        self.bus.publish(topics.RULE_TEST_RESULTS, {"rule": parsed, "results": results})
        return results

    def _resolve_event(self, event: Event | dict[str, Any] | None) -> Event | None:
        if event is None or isinstance(event, Event):
            return event
        if not isinstance(event, dict):
            return None
        stored = self.model.find_event(event.get("event_id", 0)) if event.get("event_id") else None
        if stored is not None:
            return stored
        try:
            return Event.from_dict(event)
        except (TypeError, ValueError):
            log.warning("Unusable event payload: %r", event)
            return None

    def apply_action(self, event: Event | dict[str, Any] | None, action: str | None) -> bool:
        """Apply a manual action; returns True when it handled the event."""
        resolved = self._resolve_event(event)
        if resolved is None or not action:
            self.bus.publish(topics.NOTIFY_ERROR, {"message": "Invalid event or action specified."})
            return False

        label = format_action(action)
        if action in SPECIAL_ACTIONS:
            return self._apply_special(resolved, action)

        if not is_effective(resolved, action):
            self.bus.publish(topics.NOTIFY_WARNING, {
                "message": f"{label} is not an effective mitigation for {resolved.type}.",
            })
            return False

        if self.model.mark_event_as_handled(resolved):
            self.bus.publish(topics.NOTIFY_SUCCESS, {
                "message": f"{label} succeeded for {resolved.type}.",
            })
            return True
        self.bus.publish(topics.NOTIFY_ERROR, {
            "message": f"Unable to apply {label} to this event.",
        })
        return False

    def _apply_special(self, event: Event, action: str) -> bool:
        if action == Action.STOP_TIMER.value:
            self.pause()
            self.bus.publish(topics.NOTIFY_INFO, {
                "message": "Timers paused. Start the simulation to resume.",
            })
            return False
        if action == Action.CLEAR_LOG.value:
            self.bus.publish(topics.ALERTS_CLEARED, {})
            self.bus.publish(topics.NOTIFY_SUCCESS, {"message": "Alert list cleared."})
            return False
        handled = self.model.mark_event_as_handled(event)
        self.bus.publish(topics.NOTIFY_SUCCESS, {
            "message": f"Rule applied successfully to {event.type} event.",
        })
        return handled

    # ── queries ──────────────────────────────────────────────────────────

    def game_state(self) -> dict[str, Any]:
        return {
            "isRunning": self.model.state.is_running,
            "level": self.model.current_level(),
            "score": self.model.state.score,
            "uptime": self.model.state.uptime,
            "pendingThreats": self.model.pending_view(),
        }

    def _reply_game_state(self, data: dict[str, Any]) -> None:
        reply = data.get("reply")
        if callable(reply):
            reply(self.game_state())


def build_controller(
    config_dir: str | Path | None = None,
    *,
    clock: Clock | None = None,
    seed: int | None = None,
    store: SnapshotStore | None = None,
    state_file: str | Path | None = None,
) -> SimulationController:
    """Assemble and initialise one session from the YAML configuration."""
    clock = clock or SystemClock()
    settings = load_settings(config_dir)
    levels = load_levels(config_dir)

    rng = init_seed(seed)
    bus = EventBus()
    scheduler = Scheduler(clock)
    if store is None:
        store = JsonSnapshotStore(state_file or settings.state_file)

    model = GameModel(bus, clock, levels, settings, store)
    escalations = EscalationHandler(model, bus, load_escalations(config_dir))
    catalog, pools = load_catalog(config_dir, escalations.scenario_types)
    controller = SimulationController(
        bus=bus,
        scheduler=scheduler,
        model=model,
        generator=EventGenerator(catalog, rng, clock, pools),
        rule_engine=RuleEngine(model, bus),
        escalations=escalations,
        briefs=BriefScheduler(
            bus, scheduler, clock, load_briefs(config_dir),
            check_interval_ms=settings.brief_check_interval_ms,
            event_cooldown_ms=settings.brief_event_cooldown_ms,
        ),
        rng=rng,
    )
    controller.init()
    return controller
