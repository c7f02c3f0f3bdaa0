"""Unit tests for emergency-stop ramp sequencing."""

from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from activemonitor.domain.errors import InvariantViolation
from activemonitor.domain.models import MachineSnapshot, MachineStatus
from activemonitor.domain.seed import DEFAULT_SEED, build_initial_snapshot
from activemonitor.simulation.cancellation import CancellationToken
from activemonitor.simulation.channel import ProposalSource, Transition
from activemonitor.simulation.config import SimulationConfig
from activemonitor.simulation.shutdown import (
    ShutdownPhase,
    ShutdownSequencer,
    is_ramped_down,
    ramp_step,
    terminate_step,
)


FAST = SimulationConfig(time_unit_seconds=0.001)


class _RecordingChannel:
    def __init__(self, snapshot: MachineSnapshot, *, accept: bool = True) -> None:
        self.current = snapshot
        self.token = CancellationToken()
        self.history: list[MachineSnapshot] = []
        self._accept = accept

    async def propose(self, source: ProposalSource, transition: Transition) -> MachineSnapshot | None:
        assert source == ProposalSource.SHUTDOWN
        if not self._accept:
            return None
        self.current = transition(self.current)
        self.history.append(self.current)
        return self.current


def _seed_snapshot(machine_id: str) -> MachineSnapshot:
    entry = next(item for item in DEFAULT_SEED if item.machine_id == machine_id)
    return build_initial_snapshot(entry, np.random.default_rng(0))


def test_conveyor_ramp_step_uses_per_field_steps() -> None:
    stepped = ramp_step(_seed_snapshot("id01"))

    assert stepped.rate == 1150
    assert stepped.temperature == 73
    assert stepped.extras.load_capacity == 45
    assert stepped.extras.belt_tension == 230
    assert stepped.extras.vibration == pytest.approx(0.7)
    assert stepped.extras.operating_time == 120


def test_boiler_ramp_step_uses_per_field_steps() -> None:
    stepped = ramp_step(_seed_snapshot("id03"))

    assert stepped.rate == 9
    assert stepped.temperature == 98
    assert stepped.extras.pressure == 4
    assert stepped.extras.water_level == 83
    assert stepped.extras.heat_output == 590
    assert stepped.extras.co2_emission == 210
    assert stepped.extras.maintenance_cycles == "Last done 20 hours ago"


def test_ramp_step_never_goes_negative() -> None:
    snapshot = replace(_seed_snapshot("id01"), temperature=1, rate=20).with_extras(
        {"load_capacity": 3, "belt_tension": 7, "vibration": 0.2}
    )

    stepped = ramp_step(snapshot)

    assert stepped.readings() == {
        "temperature": 0,
        "rate": 0,
        "load_capacity": 0,
        "belt_tension": 0,
        "vibration": 0.0,
    }
    assert is_ramped_down(stepped)


def test_terminate_step_only_changes_status() -> None:
    snapshot = _seed_snapshot("id03")

    assert terminate_step(snapshot) == replace(snapshot, status=MachineStatus.OFF)


async def test_boiler_sequence_ramps_to_zero_then_turns_off() -> None:
    channel = _RecordingChannel(_seed_snapshot("id03"))
    sequencer = ShutdownSequencer(channel, config=FAST)

    final = await sequencer.run()

    assert sequencer.phase == ShutdownPhase.TERMINATED
    assert sequencer.ramp_ticks == 60
    assert final.status == MachineStatus.OFF
    assert all(value == 0 for value in final.readings().values())
    assert sum("Emergency Stop triggered" in entry for entry in final.event_log) == 1
    assert [snapshot.status for snapshot in channel.history[:-1]] == [MachineStatus.ON] * (len(channel.history) - 1)

    for before, after in zip(channel.history, channel.history[1:]):
        for name, value in after.readings().items():
            assert value <= before.readings()[name]


async def test_conveyor_sequence_keeps_operating_time() -> None:
    channel = _RecordingChannel(_seed_snapshot("id01"))
    sequencer = ShutdownSequencer(channel, config=FAST)

    final = await sequencer.run()

    assert sequencer.ramp_ticks == 38
    assert final.extras.operating_time == 120
    assert final.extras.vibration == 0.0


async def test_already_zero_machine_turns_off_without_ramping() -> None:
    snapshot = replace(_seed_snapshot("id02"), status=MachineStatus.ON)
    channel = _RecordingChannel(snapshot)
    sequencer = ShutdownSequencer(channel, config=FAST)

    final = await sequencer.run()

    assert sequencer.ramp_ticks == 0
    assert final.status == MachineStatus.OFF
    assert len(channel.history) == 2


async def test_dropped_shutdown_proposal_is_an_invariant_violation() -> None:
    channel = _RecordingChannel(_seed_snapshot("id03"), accept=False)
    sequencer = ShutdownSequencer(channel, config=FAST)

    with pytest.raises(InvariantViolation, match="shutdown proposal dropped"):
        await sequencer.run()
