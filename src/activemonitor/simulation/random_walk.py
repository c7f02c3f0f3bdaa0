"""Bounded random-walk telemetry updates."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

import numpy as np

from activemonitor.domain.models import FIELD_DOMAINS, MachineKind, MachineSnapshot
from activemonitor.simulation.channel import ProposalChannel, ProposalSource
from activemonitor.simulation.config import SimulationConfig


logger = logging.getLogger(__name__)

# Symmetric offset bound per field. Float bounds draw continuous offsets.
WALK_OFFSETS: dict[MachineKind, dict[str, int | float]] = {
    MachineKind.CONVEYOR: {
        "temperature": 2,
        "rate": 10,
        "load_capacity": 5,
        "belt_tension": 20,
        "vibration": 0.5,
    },
    MachineKind.BOILER: {
        "temperature": 2,
        "rate": 1,
        "pressure": 1,
        "water_level": 2,
        "heat_output": 10,
        "co2_emission": 10,
    },
}

OPERATING_TIME_INCREMENT = 2
MAINTENANCE_HOURS_RANGE = (10, 30)


def random_walk_step(snapshot: MachineSnapshot, rng: np.random.Generator) -> MachineSnapshot:
    """Return the next walked snapshot. Temperature is held once a fault has spiked."""
    offsets = WALK_OFFSETS[snapshot.kind]
    domains = FIELD_DOMAINS[snapshot.kind]

    if snapshot.fault_spiked:
        temperature = snapshot.temperature
    else:
        temperature = domains["temperature"].clamp(snapshot.temperature + _offset(rng, offsets["temperature"]))
    rate = domains["rate"].clamp(snapshot.rate + _offset(rng, offsets["rate"]))

    updates: dict[str, Any] = {}
    for name in snapshot.extras.reading_fields:
        value = getattr(snapshot.extras, name)
        if value is None:
            continue
        updates[name] = domains[name].clamp(value + _offset(rng, offsets[name]))

    operating_time = getattr(snapshot.extras, "operating_time", None)
    if operating_time is not None:
        updates["operating_time"] = operating_time + OPERATING_TIME_INCREMENT

    if getattr(snapshot.extras, "maintenance_cycles", None) is not None:
        low, high = MAINTENANCE_HOURS_RANGE
        hours = int(rng.integers(low, high + 1))
        updates["maintenance_cycles"] = f"Last done {hours} hours ago"

    return replace(snapshot, temperature=temperature, rate=rate).with_extras(updates)


def _offset(rng: np.random.Generator, bound: int | float) -> int | float:
    if isinstance(bound, float):
        return float(rng.uniform(-bound, bound))
    return int(rng.integers(-bound, bound + 1))


class RandomWalkUpdater:
    """Periodic task that perturbs one machine's readings within their domains."""

    def __init__(
        self,
        channel: ProposalChannel,
        *,
        config: SimulationConfig,
        rng: np.random.Generator,
    ) -> None:
        self._channel = channel
        self._config = config
        self._rng = rng
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Number of walk snapshots applied so far."""
        return self._ticks

    def step(self, snapshot: MachineSnapshot) -> MachineSnapshot:
        return random_walk_step(snapshot, self._rng)

    async def run(self) -> int:
        machine_id = self._channel.current.machine_id
        logger.info("random walk started for %s", machine_id)
        period_s = self._config.seconds(self._config.walk_period)
        while True:
            if await self._channel.token.sleep(period_s):
                break
            if not self._channel.current.is_on:
                break
            applied = await self._channel.propose(ProposalSource.RANDOM_WALK, self.step)
            if applied is None:
                break
            self._ticks += 1
        logger.info("random walk stopped for %s after %d tick(s)", machine_id, self._ticks)
        return self._ticks
