"""One-shot delayed high-temperature fault."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from activemonitor.domain.models import MachineSnapshot
from activemonitor.simulation.channel import ProposalChannel, ProposalSource
from activemonitor.simulation.config import SimulationConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FaultAlert:
    """Alert raised for the presentation layer when a fault spike is applied."""

    machine_id: str
    temperature: int
    message: str


def fault_spike_step(snapshot: MachineSnapshot, *, sentinel: int) -> MachineSnapshot:
    """Force the temperature to ``sentinel`` and mark the record as spiked."""
    spiked = replace(snapshot, temperature=sentinel, fault_spiked=True)
    return spiked.with_events(f"High temperature spike observed (machine {snapshot.machine_id})")


class FaultInjector:
    """Fires once, ``fault_delay`` time-units after activation, unless cancelled first."""

    def __init__(
        self,
        channel: ProposalChannel,
        *,
        config: SimulationConfig,
        on_alert: Callable[[FaultAlert], None],
    ) -> None:
        self._channel = channel
        self._config = config
        self._on_alert = on_alert
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def step(self, snapshot: MachineSnapshot) -> MachineSnapshot:
        return fault_spike_step(snapshot, sentinel=self._config.fault_sentinel)

    async def run(self) -> bool:
        machine_id = self._channel.current.machine_id
        if await self._channel.token.sleep(self._config.seconds(self._config.fault_delay)):
            logger.info("fault injection cancelled for %s: %s", machine_id, self._channel.token.reason)
            return False
        if not self._channel.current.is_on:
            logger.info("fault injection skipped for %s: machine is off", machine_id)
            return False

        applied = await self._channel.propose(ProposalSource.FAULT_INJECTION, self.step)
        if applied is None:
            logger.info("fault injection for %s superseded by shutdown", machine_id)
            return False

        self._fired = True
        logger.warning("fault spike applied to %s: temperature=%d", machine_id, applied.temperature)
        self._on_alert(
            FaultAlert(
                machine_id=machine_id,
                temperature=applied.temperature,
                message=f"Temperature for machine {machine_id} too high, emergency stop advised.",
            )
        )
        return True
