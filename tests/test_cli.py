"""End-to-end tests for the headless CLI (src.game.cli)."""

from __future__ import annotations

import json

from src.game.cli import main
from tests.conftest import CONFIG_DIR


class TestCli:
    def test_simulated_run_writes_event_log(self, tmp_path, capsys):
        out = tmp_path / "events.jsonl"
        main([
            "--config-dir", str(CONFIG_DIR),
            "--seed", "42",
            "--duration-sec", "90",
            "--fresh",
            "--out", str(out),
            "--log-level", "WARNING",
        ])
        lines = out.read_text(encoding="utf-8").splitlines()
        # 90 s at one event per 4.5 s, plus false-positive duplicates
        assert len(lines) >= 20
        first = json.loads(lines[0])
        assert first["event_id"] == 1
        assert "Simulation complete" in capsys.readouterr().out

    def test_same_seed_same_log(self, tmp_path):
        paths = [tmp_path / "a.jsonl", tmp_path / "b.jsonl"]
        for p in paths:
            main(["--config-dir", str(CONFIG_DIR), "--seed", "7", "--duration-sec", "60",
                  "--fresh", "--out", str(p), "--log-level", "ERROR"])
        types_a = [json.loads(x)["type"] for x in paths[0].read_text().splitlines()]
        types_b = [json.loads(x)["type"] for x in paths[1].read_text().splitlines()]
        assert types_a == types_b

    def test_rule_flag_handles_matching_events(self, tmp_path, capsys):
        state = tmp_path / "state.json"
        main([
            "--config-dir", str(CONFIG_DIR),
            "--seed", "3",
            "--duration-sec", "30",
            "--state-file", str(state),
            "--rule", '{"conditionType": "login_fail", "threshold": 0}',
            "--rule", "not json",
            "--log-level", "ERROR",
        ])
        saved = json.loads(state.read_text(encoding="utf-8"))
        assert len(saved["rules"]) == 1
        assert saved["rules"][0]["conditionType"] == "login_fail"
        assert "score:" in capsys.readouterr().out
