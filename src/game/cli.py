"""Командний інтерфейс симуляції Defender's Dashboard."""

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path

from src.contracts import topics
from src.contracts.event import Event
from src.game.controller import SimulationController, build_controller
from src.game.persistence import MemorySnapshotStore
from src.shared.clock import ManualClock, SystemClock
from src.shared.logger import setup_logging

log = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="defenders-sim",
        description="Run a headless Defender's Dashboard training session.",
    )
    p.add_argument(
        "--duration-sec",
        type=float,
        default=600.0,
        help="Session length in simulated seconds (default: 600).",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible event stream (default: entropy).",
    )
    p.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="Directory with game.yaml, levels.yaml, threats.yaml, "
        "escalations.yaml and briefs.yaml (default: repository config/).",
    )
    p.add_argument(
        "--state-file",
        type=str,
        default=None,
        help="Snapshot file to resume from and save to. "
        "Defaults to persistence.state_file in game.yaml.",
    )
    p.add_argument(
        "--fresh",
        action="store_true",
        default=False,
        help="Ignore and do not write any saved state.",
    )
    p.add_argument(
        "--rule",
        action="append",
        default=[],
        help='Detection rule as JSON, repeatable. Example: '
        '\'{"conditionType": "login_fail", "threshold": 5}\'',
    )
    p.add_argument(
        "--out",
        type=str,
        default=None,
        help="Write the session's event log as JSONL (optional).",
    )
    p.add_argument(
        "--realtime",
        action="store_true",
        default=False,
        help="Run on the wall clock instead of fast-forwarding simulated time.",
    )
    p.add_argument(
        "--poll-ms",
        type=int,
        default=100,
        help="Scheduler poll interval in --realtime mode, ms (default: 100).",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    return p.parse_args(argv)


def write_jsonl(events: list[Event], path: Path) -> None:
    """Write events to a JSONL file (one JSON per line)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for ev in events:
            fh.write(ev.to_json() + "\n")
    log.info("Wrote %d events to %s", len(events), path)


def run_virtual(controller: SimulationController, duration_ms: int) -> None:
    """Fast-forward a ManualClock-driven session by *duration_ms*."""
    controller.start()
    controller.scheduler.advance(duration_ms)
    controller.pause()


def run_realtime(controller: SimulationController, duration_ms: int, poll_ms: int) -> None:
    clock = controller.scheduler.clock
    deadline = clock.now_ms() + duration_ms
    controller.start()
    try:
        while controller.running and clock.now_ms() < deadline:
            controller.scheduler.run_pending()
            time.sleep(poll_ms / 1000.0)
    finally:
        controller.pause()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    setup_logging(args.log_level)

    clock = SystemClock() if args.realtime else ManualClock(int(time.time() * 1000))
    controller = build_controller(
        args.config_dir,
        clock=clock,
        seed=args.seed,
        store=MemorySnapshotStore() if args.fresh else None,
        state_file=args.state_file,
    )

    for raw in args.rule:
        try:
            data = json.loads(raw)
        except ValueError:
            log.error("--rule is not valid JSON: %s", raw)
            continue
        controller.save_rule(data)

    game_over: list[dict] = []
    controller.bus.subscribe(topics.GAME_OVER, game_over.append)

    duration_ms = int(args.duration_sec * 1000)
    print(f"Simulation -> {controller.model.current_level().name}, "
          f"{args.duration_sec:.0f}s {'realtime' if args.realtime else 'simulated'}")
    try:
        if args.realtime:
            print("  Press Ctrl+C to stop.")
            run_realtime(controller, duration_ms, args.poll_ms)
        else:
            run_virtual(controller, duration_ms)
    except KeyboardInterrupt:
        print("\nSimulation stopped by user.")

    if args.out:
        write_jsonl(controller.model.state.events, Path(args.out))

    stats = controller.model.debrief_stats()
    print(
        f"Simulation complete: {len(controller.model.state.events)} events, "
        f"handled {stats['eventsHandled']}/{stats['totalMalicious']} malicious "
        f"({stats['handlePercentage']}%), escalated {stats['eventsEscalated']}"
    )
    print(f"  score: {stats['currentScore']} / {stats['levelTargetScore']}, "
          f"uptime: {stats['uptime']:.1f}%")
    if game_over:
        print("  GAME OVER: network down")


if __name__ == "__main__":
    main()
