"""Tests for src.analyzer.escalation — damage model and escalation impact."""

from __future__ import annotations

import pytest

from src.analyzer.escalation import EscalationHandler, calculate_simulated_damage
from src.contracts import topics
from tests.conftest import make_event


@pytest.fixture
def handler(model, bus, escalations_cfg) -> EscalationHandler:
    h = EscalationHandler(model, bus, escalations_cfg)
    h.attach()
    return h


class TestDamage:
    def test_base_damage(self):
        d = calculate_simulated_damage(make_event(severity=3))
        assert d.uptime_impact == 6
        assert d.data_breach is False
        assert d.financial_impact == 3000
        assert d.recovery_time_hours == 2

    def test_breach_above_five(self):
        assert calculate_simulated_damage(make_event(severity=6)).data_breach is True
        assert calculate_simulated_damage(make_event(severity=5)).data_breach is False

    def test_profile_multipliers(self):
        profile = {"uptime_multiplier": 1.5, "financial_multiplier": 2.0,
                   "recovery_multiplier": 1.5, "data_breach": True}
        d = calculate_simulated_damage(make_event(severity=4), profile)
        assert d.uptime_impact == pytest.approx(12.0)
        assert d.financial_impact == pytest.approx(8000.0)
        assert d.recovery_time_hours == pytest.approx(3.0)
        assert d.data_breach is True

    def test_profile_can_force_no_breach(self):
        d = calculate_simulated_damage(make_event(severity=9), {"data_breach": False})
        assert d.data_breach is False

    def test_configured_profiles(self, handler):
        spike = make_event(type="traffic_spike", severity=5)
        assert handler.damage_for(spike).uptime_impact == pytest.approx(15.0)
        sqli = make_event(type="sql_injection", severity=6)
        assert handler.damage_for(sqli).data_breach is True
        assert handler.damage_for(sqli).financial_impact == pytest.approx(12000.0)


class TestEscalationData:
    def test_known_scenario(self, handler):
        data = handler.generate_escalation_data(make_event(type="dns_query", severity=4))
        assert data["eventType"] == "dns_query"
        assert data["tactics"] and data["techniques"]
        assert data["simulatedDamage"]["uptime_impact"] == 8
        assert data["timestamp"].endswith("Z")

    def test_unknown_type_uses_fallback(self, handler):
        data = handler.generate_escalation_data(make_event(type="mystery", severity=2))
        assert data["attackVector"] == handler.fallback["attack_vector"]

    def test_every_malicious_type_has_scenario(self, handler, catalog):
        templates, _ = catalog
        malicious = {t.type for t in templates if t.is_malicious}
        assert malicious <= handler.scenario_types


class TestImpact:
    def test_login_fail_escalation_costs_severity_times_two(self, handler, model, clock, recorder):
        seen = recorder(topics.ESCALATION_STARTED, topics.UPTIME_UPDATED)
        model.add_event(make_event(event_id=1, severity=3))
        clock.advance(45_000)
        model.check_escalations()
        assert model.state.uptime == pytest.approx(94.0)
        assert [t for t, _ in seen] == [topics.ESCALATION_STARTED, topics.UPTIME_UPDATED]

    def test_each_escalated_event_applied_in_order(self, handler, model, clock, recorder):
        seen = recorder(topics.UPTIME_UPDATED)
        model.add_event(make_event(event_id=1, severity=3))
        model.add_event(make_event(event_id=2, severity=4))
        clock.advance(45_000)
        model.check_escalations()
        assert [p["uptime"] for _, p in seen] == [94.0, 86.0]

    def test_uptime_exhaustion_publishes_game_over(self, handler, model, clock, recorder):
        seen = recorder(topics.GAME_OVER)
        for i in range(1, 8):
            model.add_event(make_event(event_id=i, type="service_failure", severity=8))
        clock.advance(45_000)
        model.check_escalations()
        assert model.state.uptime == 0.0
        assert seen[0][1]["reason"] == "network_down"
