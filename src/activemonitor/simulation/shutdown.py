"""Emergency-stop ramp-down sequencing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from enum import StrEnum
from typing import Any

from activemonitor.domain.errors import InvariantViolation
from activemonitor.domain.models import MachineKind, MachineSnapshot, MachineStatus
from activemonitor.simulation.channel import ProposalChannel, ProposalSource, Transition
from activemonitor.simulation.config import SimulationConfig


logger = logging.getLogger(__name__)

RAMP_STEPS: dict[MachineKind, dict[str, int | float]] = {
    MachineKind.CONVEYOR: {
        "rate": 50,
        "temperature": 2,
        "load_capacity": 5,
        "belt_tension": 20,
        "vibration": 0.5,
    },
    MachineKind.BOILER: {
        "rate": 1,
        "temperature": 2,
        "pressure": 1,
        "water_level": 2,
        "heat_output": 10,
        "co2_emission": 10,
    },
}


class ShutdownPhase(StrEnum):
    """Sequencer state machine phases."""

    IDLE = "idle"
    REQUESTED = "requested"
    RAMPING = "ramping"
    TERMINATED = "terminated"


def ramp_step(snapshot: MachineSnapshot) -> MachineSnapshot:
    """Decrement every populated reading toward zero by its own step."""
    steps = RAMP_STEPS[snapshot.kind]
    temperature = max(0, snapshot.temperature - steps["temperature"])
    rate = max(0, snapshot.rate - steps["rate"])

    updates: dict[str, Any] = {}
    for name in snapshot.extras.reading_fields:
        value = getattr(snapshot.extras, name)
        if value is not None:
            updates[name] = max(type(value)(0), value - steps[name])
    return replace(snapshot, temperature=temperature, rate=rate).with_extras(updates)


def is_ramped_down(snapshot: MachineSnapshot) -> bool:
    return all(value <= 0 for value in snapshot.readings().values())


def announce_step(snapshot: MachineSnapshot) -> MachineSnapshot:
    return snapshot.with_events(f"Emergency Stop triggered (machine {snapshot.machine_id})")


def terminate_step(snapshot: MachineSnapshot) -> MachineSnapshot:
    return replace(snapshot, status=MachineStatus.OFF)


class ShutdownSequencer:
    """Ramps a machine to zero and switches it off. Runs at most once per session."""

    def __init__(self, channel: ProposalChannel, *, config: SimulationConfig) -> None:
        self._channel = channel
        self._config = config
        self._phase = ShutdownPhase.IDLE
        self._ramp_ticks = 0

    @property
    def phase(self) -> ShutdownPhase:
        return self._phase

    @property
    def ramp_ticks(self) -> int:
        return self._ramp_ticks

    async def run(self) -> MachineSnapshot:
        machine_id = self._channel.current.machine_id
        self._phase = ShutdownPhase.REQUESTED
        logger.warning("emergency stop requested for %s", machine_id)
        current = await self._propose(announce_step)

        self._phase = ShutdownPhase.RAMPING
        period_s = self._config.seconds(self._config.ramp_period)
        while not is_ramped_down(current):
            # The token is already cancelled by now; the ramp keeps its own cadence.
            await asyncio.sleep(period_s)
            current = await self._propose(ramp_step)
            self._ramp_ticks += 1

        current = await self._propose(terminate_step)
        self._phase = ShutdownPhase.TERMINATED
        logger.info("%s terminated after %d ramp tick(s)", machine_id, self._ramp_ticks)
        return current

    async def _propose(self, transition: Transition) -> MachineSnapshot:
        applied = await self._channel.propose(ProposalSource.SHUTDOWN, transition)
        if applied is None:
            raise InvariantViolation(
                self._channel.current.machine_id,
                [f"shutdown proposal dropped during {self._phase.value}"],
            )
        return applied

