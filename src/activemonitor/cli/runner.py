"""CLI runner that drives a simulation session and emits a run report."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Sequence

from activemonitor.domain.models import MachineSnapshot, snapshot_to_jsonable
from activemonitor.safety.contracts import ReadingAssessment
from activemonitor.simulation.broadcast import Subscription
from activemonitor.simulation.config import RNG_SEED_ENV_VAR, SimulationConfig, rng_seed_from_env
from activemonitor.simulation.fault_injector import FaultAlert
from activemonitor.simulation.session import SimulationSession


logger = logging.getLogger(__name__)


class ActionKind(StrEnum):
    """Session operations that can be scheduled from the command line."""

    ACTIVATE = "activate"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True, slots=True)
class ScheduledAction:
    """Operation to run ``at`` time-units after the session starts."""

    kind: ActionKind
    machine_id: str
    at: float

    def __post_init__(self) -> None:
        if not self.machine_id.strip():
            raise ValueError("machine_id must not be empty")
        if self.at < 0:
            raise ValueError("scheduled time must be >= 0")


@dataclass(frozen=True, slots=True)
class MachineRunSummary:
    """End-of-run state for one machine."""

    snapshot: MachineSnapshot
    assessment: ReadingAssessment
    applied_snapshots: int
    shutdown_phase: str


@dataclass(frozen=True, slots=True)
class SimulationRunResult:
    """Everything observed during one CLI execution."""

    machines: tuple[MachineRunSummary, ...]
    alerts: tuple[FaultAlert, ...]
    menu: tuple[str, ...]
    run_report_path: Path | None = None


def parse_scheduled_action(kind: ActionKind, raw: str) -> ScheduledAction:
    """Parse ``ID@T`` into a scheduled action."""
    machine_id, sep, at_raw = raw.partition("@")
    if not sep:
        raise ValueError(f"expected MACHINE_ID@TIME, got {raw!r}")
    try:
        at = float(at_raw)
    except ValueError as exc:
        raise ValueError(f"invalid time in {raw!r}") from exc
    return ScheduledAction(kind=kind, machine_id=machine_id.strip(), at=at)


def build_parser() -> argparse.ArgumentParser:
    """Create CLI parser for simulation runs."""
    parser = argparse.ArgumentParser(
        prog="activemonitor-sim",
        description="Run the machine telemetry simulation and emit a run report.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=30.0,
        help="Simulated run length in time-units.",
    )
    parser.add_argument(
        "--time-unit-seconds",
        type=float,
        default=1.0,
        help="Wall-clock seconds per simulation time-unit.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help=f"RNG seed. Defaults to ${RNG_SEED_ENV_VAR} when set.",
    )
    parser.add_argument(
        "--activate",
        action="append",
        default=[],
        metavar="ID@T",
        help="Activate a machine at time T. Repeatable.",
    )
    parser.add_argument(
        "--shutdown",
        action="append",
        default=[],
        metavar="ID@T",
        help="Request an emergency stop at time T. Repeatable.",
    )
    parser.add_argument(
        "--wait-for-shutdown",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Let requested shutdown ramps finish even if the duration has elapsed.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for run_report.json. No report is written when omitted.",
    )
    parser.add_argument(
        "--fail-on-alert",
        action="store_true",
        help="Return exit code 1 if any fault alert was raised.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="Logging verbosity.",
    )
    return parser


async def run_simulation(
    config: SimulationConfig,
    *,
    duration: float,
    actions: Sequence[ScheduledAction] = (),
    wait_for_shutdown: bool = True,
) -> SimulationRunResult:
    """Run one session for ``duration`` time-units, applying scheduled actions in time order."""
    if duration < 0:
        raise ValueError("duration must be >= 0")
    late = [action for action in actions if action.at > duration]
    if late:
        raise ValueError(f"scheduled action after end of run: {late[0].kind.value} {late[0].machine_id}@{late[0].at}")

    loop = asyncio.get_running_loop()
    session = SimulationSession(config=config)
    for action in actions:
        session.supervisor(action.machine_id)

    counters: dict[str, asyncio.Task[int]] = {}
    async with session:
        started_at = loop.time()
        for machine_id in session.machine_ids:
            counters[machine_id] = asyncio.create_task(_count_snapshots(session.subscribe(machine_id)))

        for action in sorted(actions, key=lambda item: item.at):
            await _sleep_until(loop, started_at + config.seconds(action.at))
            if action.kind == ActionKind.ACTIVATE:
                accepted = await session.activate(action.machine_id)
            else:
                accepted = await session.request_shutdown(action.machine_id)
            logger.info("%s %s at t=%s accepted=%s", action.kind.value, action.machine_id, action.at, accepted)

        await _sleep_until(loop, started_at + config.seconds(duration))
        if wait_for_shutdown:
            for machine_id in session.machine_ids:
                if session.supervisor(machine_id).shutdown_requested:
                    await session.wait_for_shutdown(machine_id)

        finals = {machine_id: session.lookup(machine_id) for machine_id in session.machine_ids}
        assessments = {machine_id: session.assess(machine_id) for machine_id in session.machine_ids}
        phases = {
            machine_id: session.supervisor(machine_id).shutdown_phase.value for machine_id in session.machine_ids
        }
        alerts = session.alerts
        menu = session.menu()

    counts = {machine_id: await task for machine_id, task in counters.items()}
    summaries = tuple(
        MachineRunSummary(
            snapshot=finals[machine_id],
            assessment=assessments[machine_id],
            # The replayed initial snapshot is not an applied transition.
            applied_snapshots=max(0, counts[machine_id] - 1),
            shutdown_phase=phases[machine_id],
        )
        for machine_id in finals
    )
    return SimulationRunResult(machines=summaries, alerts=alerts, menu=menu)


def run_from_args(args: argparse.Namespace) -> SimulationRunResult:
    """Execute a simulation run and persist the report when requested."""
    seed = args.seed if args.seed is not None else rng_seed_from_env()
    config = SimulationConfig(time_unit_seconds=args.time_unit_seconds, rng_seed=seed)
    actions = [parse_scheduled_action(ActionKind.ACTIVATE, raw) for raw in args.activate]
    actions.extend(parse_scheduled_action(ActionKind.SHUTDOWN, raw) for raw in args.shutdown)

    result = asyncio.run(
        run_simulation(
            config,
            duration=args.duration,
            actions=actions,
            wait_for_shutdown=bool(args.wait_for_shutdown),
        )
    )
    if args.output_dir is None:
        return result

    output_dir = args.output_dir.resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / "run_report.json"
    _write_json(report_path, _run_report(config=config, duration=args.duration, actions=actions, result=result))
    return SimulationRunResult(
        machines=result.machines,
        alerts=result.alerts,
        menu=result.menu,
        run_report_path=report_path,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        result = run_from_args(args)
    except Exception as exc:
        print(f"[ERROR] simulation run failed: {exc}", file=sys.stderr)
        return 2

    for summary in result.machines:
        snapshot = summary.snapshot
        print(
            f"{snapshot.machine_id}: status={snapshot.status.value} temperature={snapshot.temperature} "
            f"rate={snapshot.rate} level={summary.assessment.level.name} "
            f"applied={summary.applied_snapshots} shutdown={summary.shutdown_phase}"
        )
    print(f"alerts: {len(result.alerts)}")
    if result.run_report_path is not None:
        print(f"run_report: {result.run_report_path}")
    if args.fail_on_alert and result.alerts:
        print("[ERROR] Fault alert raised and --fail-on-alert is set.", file=sys.stderr)
        return 1
    return 0


async def _count_snapshots(subscription: Subscription[MachineSnapshot]) -> int:
    count = 0
    async for _ in subscription:
        count += 1
    return count


async def _sleep_until(loop: asyncio.AbstractEventLoop, deadline: float) -> None:
    delay = deadline - loop.time()
    if delay > 0:
        await asyncio.sleep(delay)


def _run_report(
    *,
    config: SimulationConfig,
    duration: float,
    actions: Sequence[ScheduledAction],
    result: SimulationRunResult,
) -> dict[str, Any]:
    return {
        "config": asdict(config),
        "duration": duration,
        "actions": [
            {"kind": action.kind.value, "machine_id": action.machine_id, "at": action.at} for action in actions
        ],
        "machines": {
            summary.snapshot.machine_id: {
                "snapshot": snapshot_to_jsonable(summary.snapshot),
                "level": summary.assessment.level.name,
                "reasons": list(summary.assessment.reasons),
                "applied_snapshots": summary.applied_snapshots,
                "shutdown_phase": summary.shutdown_phase,
            }
            for summary in result.machines
        },
        "alerts": [asdict(alert) for alert in result.alerts],
        "menu": list(result.menu),
    }


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


if __name__ == "__main__":
    raise SystemExit(main())
