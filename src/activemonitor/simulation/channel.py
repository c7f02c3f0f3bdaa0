"""Message types exchanged between simulation tasks and their supervisor."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Protocol

from activemonitor.domain.models import MachineSnapshot
from activemonitor.simulation.cancellation import CancellationToken


Transition = Callable[[MachineSnapshot], MachineSnapshot]


class ProposalSource(StrEnum):
    """Which task produced a proposal."""

    ACTIVATION = "activation"
    RANDOM_WALK = "random_walk"
    FAULT_INJECTION = "fault_injection"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True, slots=True)
class Proposal:
    """A state transition waiting in the supervisor queue.

    ``transition`` is evaluated against the snapshot current at apply time;
    ``result`` resolves to the applied snapshot or ``None`` when dropped.
    """

    source: ProposalSource
    transition: Transition
    result: asyncio.Future[MachineSnapshot | None]


class ProposalChannel(Protocol):
    """View of a supervisor handed to the tasks it owns."""

    @property
    def current(self) -> MachineSnapshot: ...

    @property
    def token(self) -> CancellationToken: ...

    async def propose(self, source: ProposalSource, transition: Transition) -> MachineSnapshot | None: ...
