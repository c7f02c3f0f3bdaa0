"""Tests for CLI simulation runs, report emission and exit behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from activemonitor.cli import runner
from activemonitor.simulation.config import RNG_SEED_ENV_VAR


def _base_args(tmp_path: Path) -> list[str]:
    return [
        "--duration",
        "40",
        "--time-unit-seconds",
        "0.002",
        "--seed",
        "11",
        "--output-dir",
        str(tmp_path),
    ]


def test_parse_scheduled_action_accepts_id_at_time() -> None:
    action = runner.parse_scheduled_action(runner.ActionKind.SHUTDOWN, "id03@5.5")

    assert action == runner.ScheduledAction(kind=runner.ActionKind.SHUTDOWN, machine_id="id03", at=5.5)


@pytest.mark.parametrize("raw", ["id03", "id03@soon", "@5", "id03@-1"])
def test_parse_scheduled_action_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(ValueError):
        runner.parse_scheduled_action(runner.ActionKind.ACTIVATE, raw)


def test_main_writes_report_and_returns_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = runner.main([*_base_args(tmp_path), "--shutdown", "id03@5", "--activate", "id02@2"])

    assert exit_code == 0
    report = json.loads((tmp_path / "run_report.json").read_text(encoding="utf-8"))
    assert report["config"]["rng_seed"] == 11
    assert report["menu"] == ["id01", "id02"]
    assert [alert["machine_id"] for alert in report["alerts"]] == ["id01"]

    machines = report["machines"]
    assert machines["id01"]["snapshot"]["temperature"] == 200
    assert machines["id01"]["snapshot"]["fault_spiked"] is True
    assert machines["id01"]["level"] == "CRITICAL"
    assert machines["id02"]["snapshot"]["status"] == "on"
    assert "Machine turned ON (machine id02)" in machines["id02"]["snapshot"]["event_log"]
    assert machines["id03"]["snapshot"]["status"] == "off"
    assert machines["id03"]["snapshot"]["fuel_flow_lph"] == 0
    assert machines["id03"]["shutdown_phase"] == "terminated"
    assert machines["id03"]["level"] == "INACTIVE"
    assert machines["id03"]["applied_snapshots"] == machines["id03"]["snapshot"]["version"]

    output = capsys.readouterr().out
    assert "id03: status=off temperature=0 rate=0 level=INACTIVE" in output
    assert "alerts: 1" in output


def test_main_returns_one_when_fail_on_alert_enabled(tmp_path: Path) -> None:
    exit_code = runner.main([*_base_args(tmp_path), "--fail-on-alert"])

    assert exit_code == 1
    assert (tmp_path / "run_report.json").exists()


def test_main_returns_zero_with_fail_on_alert_when_fault_target_stopped_early(tmp_path: Path) -> None:
    exit_code = runner.main([*_base_args(tmp_path), "--fail-on-alert", "--shutdown", "id01@0"])

    assert exit_code == 0
    report = json.loads((tmp_path / "run_report.json").read_text(encoding="utf-8"))
    assert report["alerts"] == []
    assert report["machines"]["id01"]["snapshot"]["fault_spiked"] is False
    assert report["machines"]["id01"]["snapshot"]["extras"]["operating_time"] == 120


@pytest.mark.parametrize(
    "extra",
    [
        ["--shutdown", "id99@1"],
        ["--activate", "id02@50"],
        ["--shutdown", "id03"],
    ],
)
def test_main_returns_two_for_invalid_actions(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], extra: list[str]
) -> None:
    exit_code = runner.main([*_base_args(tmp_path), *extra])

    assert exit_code == 2
    assert "[ERROR]" in capsys.readouterr().err
    assert not (tmp_path / "run_report.json").exists()


def test_main_returns_two_for_bad_seed_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(RNG_SEED_ENV_VAR, "not-a-number")
    args = [arg for arg in _base_args(tmp_path) if arg not in ("--seed", "11")]

    assert runner.main(args) == 2


def test_same_seed_reproduces_seed_event_logs(tmp_path: Path) -> None:
    first_dir = tmp_path / "first"
    second_dir = tmp_path / "second"

    assert runner.main([*_base_args(first_dir), "--duration", "0"]) == 0
    assert runner.main([*_base_args(second_dir), "--duration", "0"]) == 0

    first = json.loads((first_dir / "run_report.json").read_text(encoding="utf-8"))
    second = json.loads((second_dir / "run_report.json").read_text(encoding="utf-8"))
    for machine_id in ("id01", "id02", "id03"):
        assert (
            first["machines"][machine_id]["snapshot"]["event_log"]
            == second["machines"][machine_id]["snapshot"]["event_log"]
        )
