"""Tests for src.game.controller — timers, lifecycle and player commands."""

from __future__ import annotations

from src.analyzer.actions import format_action, is_effective
from src.contracts import topics
from src.contracts.rule import Rule
from tests.conftest import make_event


class TestActions:
    def test_event_remediation_is_effective(self):
        ev = make_event(type="dns_query", remediation=("block_ip", "blacklist_domain"))
        assert is_effective(ev, "blacklist_domain")

    def test_fallback_equivalence(self):
        ev = make_event(type="service_failure", remediation=("restore_backup",))
        assert is_effective(ev, "reboot_server")

    def test_ineffective_action(self):
        ev = make_event(type="process_spawn", remediation=("terminate_process",))
        assert not is_effective(ev, "reset_password")

    def test_format_action(self):
        assert format_action("block_ip") == "block ip"


class TestLifecycle:
    def test_start_is_idempotent(self, controller, recorder):
        seen = recorder(topics.GAME_STARTED)
        assert controller.start() is True
        assert controller.start() is False
        assert len(seen) == 1
        assert controller.model.state.is_running
        names = sorted(h.name for h in controller.scheduler.active_timers)
        assert names == ["briefs", "escalation", "generation"]

    def test_pause_is_idempotent(self, controller, recorder):
        seen = recorder(topics.GAME_PAUSED)
        assert controller.pause() is False
        controller.start()
        assert controller.pause() is True
        assert controller.pause() is False
        assert len(seen) == 1
        assert controller.scheduler.active_timers == []

    def test_generation_period_scales_with_level(self, controller):
        # 9000 ms × 0.5
        assert controller.generation_period_ms() == 4500

    def test_ticks_follow_generation_period(self, controller):
        controller.start()
        controller.scheduler.advance(4499)
        assert controller.model.state.events == []
        controller.scheduler.advance(1)
        assert len(controller.model.state.events) >= 1

    def test_no_tick_after_pause(self, controller):
        controller.start()
        controller.scheduler.advance(45_000)
        count = len(controller.model.state.events)
        controller.pause()
        controller.scheduler.advance(120_000)
        assert len(controller.model.state.events) == count

    def test_reset_zeroes_state_and_reattaches(self, controller):
        controller.start()
        controller.scheduler.advance(30_000)
        controller.reset()
        state = controller.model.state
        assert state.events == [] and state.score == 0 and state.uptime == 100.0
        assert not controller.running

        # bus was cleared; core handlers are back, test recorders are not
        assert controller.bus.subscriber_count(topics.EVENT_ADDED) == 2
        controller.save_rule({"conditionType": "login_fail", "threshold": 0})
        controller.model.add_event(make_event(event_id=1, count=1))
        assert controller.model.state.handled_count == 1

    def test_reset_command_drops_outside_subscribers(self, controller, recorder):
        seen = recorder(topics.EVENT_ADDED)
        controller.model.add_event(make_event(event_id=1))
        controller.bus.publish(topics.UI_RESET, {})
        controller.model.add_event(make_event(event_id=2))
        assert len(seen) == 1
        assert [e.event_id for e in controller.model.state.events] == [2]
        assert controller.bus.subscriber_count(topics.UI_RESET) == 1

    def test_next_level_restarts_timers_at_new_rate(self, controller):
        controller.start()
        assert controller.next_level() is True
        assert controller.running
        gen = [h for h in controller.scheduler.active_timers if h.name == "generation"]
        assert gen[0].period_ms == 5400

    def test_game_over_pauses(self, controller):
        controller.start()
        controller.model.apply_uptime_penalty(100, "test")
        assert not controller.running

    def test_ui_commands_routed(self, controller):
        controller.bus.publish(topics.UI_START, {})
        assert controller.running
        controller.bus.publish(topics.UI_PAUSE, {})
        assert not controller.running


class TestTick:
    def test_false_positive_duplicate_on_noise(self, controller):
        class AlwaysLow:
            def random(self):
                return 0.0

        controller.rng = AlwaysLow()
        controller.generator.catalog = [
            t for t in controller.generator.catalog if t.type == "normal_activity"
        ]
        controller.tick()
        types = [e.type for e in controller.model.state.events]
        assert types == ["normal_activity", "potential_false_positive"]

    def test_sweep_escalates_through_timer(self, controller):
        controller.model.add_event(make_event(event_id=1000, severity=3))
        controller.generator.catalog = [
            t for t in controller.generator.catalog if t.type == "normal_activity"
        ]
        controller.start()
        controller.scheduler.advance(50_000)
        assert controller.model.state.escalated_count == 1
        assert controller.model.state.uptime == 94.0


class TestCommands:
    def test_effective_action_handles_event(self, controller, recorder):
        seen = recorder(topics.NOTIFY_SUCCESS)
        ev = make_event(event_id=1)
        controller.model.add_event(ev)
        assert controller.apply_action(ev, "reset_password") is True
        assert controller.model.state.score == 1250
        assert len(seen) == 1

    def test_ineffective_action_warns(self, controller, recorder):
        seen = recorder(topics.NOTIFY_WARNING)
        ev = make_event(event_id=1)
        controller.model.add_event(ev)
        assert controller.apply_action(ev, "terminate_process") is False
        assert len(controller.model.state.pending_malicious_events) == 1
        assert len(seen) == 1

    def test_action_on_dict_payload_resolves_stored_event(self, controller):
        ev = make_event(event_id=3)
        controller.model.add_event(ev)
        assert controller.apply_action({"event_id": 3}, "block_ip") is True

    def test_invalid_action_payload(self, controller, recorder):
        seen = recorder(topics.NOTIFY_ERROR)
        assert controller.apply_action(None, "block_ip") is False
        assert controller.apply_action(make_event(), "") is False
        assert len(seen) == 2

    def test_stop_timer_pauses(self, controller):
        controller.start()
        assert controller.apply_action(make_event(event_id=1), "stop_timer") is False
        assert not controller.running

    def test_clear_log(self, controller, recorder):
        seen = recorder(topics.ALERTS_CLEARED)
        controller.apply_action(make_event(event_id=1), "clear_log")
        assert len(seen) == 1

    def test_apply_rule_action_handles(self, controller):
        ev = make_event(event_id=1)
        controller.model.add_event(ev)
        assert controller.apply_action(ev, "apply_rule") is True

    def test_handle_event_command(self, controller):
        ev = make_event(event_id=1)
        controller.model.add_event(ev)
        controller.bus.publish(topics.UI_HANDLE_EVENT, {"event": ev, "action": "block_ip"})
        assert controller.model.state.handled_count == 1

    def test_save_rule_command(self, controller, recorder):
        seen = recorder(topics.RULE_ADDED)
        controller.bus.publish(topics.UI_SAVE_RULE,
                               {"rule": {"conditionType": "dns_query", "domainKeyword": "bad"}})
        assert len(controller.model.state.rules) == 1
        assert len(seen) == 1

    def test_test_rule_dry_run(self, controller, recorder):
        seen = recorder(topics.RULE_TEST_RESULTS)
        for i in range(12):
            controller.model.add_event(make_event(event_id=i + 1, count=9))
        results = controller.test_rule({"conditionType": "login_fail", "threshold": 5})
        # only the last ten events are examined
        assert [r["event"].event_id for r in results] == list(range(3, 13))
        assert controller.model.state.score == 0
        assert len(seen) == 1

    def test_test_rule_invalid(self, controller, recorder):
        seen = recorder(topics.NOTIFY_ERROR)
        assert controller.test_rule({"conditionType": "login_fail"}) == []
        assert len(seen) == 1

    def test_test_rule_rejects_invalid_built_rule(self, controller, recorder):
        seen = recorder(topics.NOTIFY_ERROR, topics.RULE_TEST_RESULTS)
        controller.model.add_event(make_event(event_id=1, count=9))
        assert controller.test_rule(Rule(condition_type="login_fail", parameter="abc")) == []
        assert controller.test_rule(Rule(condition_type="bogus", parameter=1)) == []
        assert [t for t, _ in seen] == [topics.NOTIFY_ERROR, topics.NOTIFY_ERROR]

    def test_game_state_request(self, controller):
        replies = []
        controller.model.add_event(make_event(event_id=1))
        controller.bus.publish(topics.REQUEST_GAME_STATE, {"reply": replies.append})
        (state,) = replies
        assert state["isRunning"] is False
        assert state["score"] == 0
        assert len(state["pendingThreats"]) == 1
