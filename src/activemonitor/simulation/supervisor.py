"""Single-writer supervisor that owns one machine's record and tasks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable

import numpy as np

from activemonitor.domain.errors import InvariantViolation
from activemonitor.domain.invariants import check_transition
from activemonitor.domain.models import MachineSnapshot, MachineStatus
from activemonitor.simulation.broadcast import Broadcaster, Subscription
from activemonitor.simulation.cancellation import CancellationToken
from activemonitor.simulation.channel import Proposal, ProposalSource, Transition
from activemonitor.simulation.config import SimulationConfig
from activemonitor.simulation.fault_injector import FaultAlert, FaultInjector
from activemonitor.simulation.random_walk import RandomWalkUpdater
from activemonitor.simulation.shutdown import ShutdownPhase, ShutdownSequencer


logger = logging.getLogger(__name__)

_SIMULATION_SOURCES = frozenset({ProposalSource.RANDOM_WALK, ProposalSource.FAULT_INJECTION})


def activation_step(snapshot: MachineSnapshot) -> MachineSnapshot:
    switched_on = replace(snapshot, status=MachineStatus.ON)
    return switched_on.with_events(f"Machine turned ON (machine {snapshot.machine_id})")


class MachineSupervisor:
    """Applies proposals for one machine strictly in arrival order.

    Tasks never write the record: they enqueue a :class:`Proposal` and await its
    result. The apply loop is the only code that replaces ``current``.
    """

    def __init__(
        self,
        initial: MachineSnapshot,
        *,
        config: SimulationConfig,
        rng: np.random.Generator,
        fault_target: bool = False,
        on_alert: Callable[[FaultAlert], None] | None = None,
    ) -> None:
        self._current = initial
        self._config = config
        self._rng = rng
        self._fault_target = fault_target
        self._on_alert = on_alert if on_alert is not None else _ignore_alert

        self._queue: asyncio.Queue[Proposal] = asyncio.Queue()
        self._snapshots: Broadcaster[MachineSnapshot] = Broadcaster()
        self._token = CancellationToken()
        self._shutdown_requested = False
        self._sequencer: ShutdownSequencer | None = None
        self._shutdown_task: asyncio.Task[MachineSnapshot] | None = None
        self._apply_task: asyncio.Task[None] | None = None
        self._tasks: list[asyncio.Task[object]] = []
        self._failure: BaseException | None = None
        self._closed = False

    @property
    def machine_id(self) -> str:
        return self._current.machine_id

    @property
    def current(self) -> MachineSnapshot:
        return self._current

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def fault_target(self) -> bool:
        return self._fault_target

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    @property
    def shutdown_phase(self) -> ShutdownPhase:
        if self._sequencer is None:
            return ShutdownPhase.IDLE
        return self._sequencer.phase

    @property
    def running(self) -> bool:
        return self._apply_task is not None and not self._apply_task.done()

    def simulation_tasks_alive(self) -> int:
        """Number of random-walk or fault tasks that have not exited."""
        return sum(1 for task in self._tasks if not task.done())

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError(f"supervisor for {self.machine_id} is closed")
        if self._apply_task is not None:
            return
        self._apply_task = asyncio.create_task(self._apply_loop(), name=f"apply:{self.machine_id}")
        if self._current.is_on:
            self._spawn_simulation()

    async def activate(self) -> bool:
        """Switch an off machine on and start its simulation tasks."""
        self._raise_if_failed()
        self._raise_if_not_running()
        if self._current.is_on:
            logger.debug("activate ignored for %s: already on", self.machine_id)
            return False
        if self._shutdown_requested:
            logger.warning("activate refused for %s: shut down earlier in this session", self.machine_id)
            return False

        applied = await self.propose(ProposalSource.ACTIVATION, activation_step)
        if applied is None:
            return False
        logger.info("%s activated", self.machine_id)
        self._token = CancellationToken()
        self._spawn_simulation()
        return True

    async def request_shutdown(self) -> bool:
        """Start the emergency-stop sequence. Repeated calls have no effect."""
        self._raise_if_failed()
        self._raise_if_not_running()
        if self._shutdown_requested:
            return False
        if not self._current.is_on:
            logger.warning("shutdown ignored for %s: machine is off", self.machine_id)
            return False

        self._shutdown_requested = True
        self._token.cancel("emergency stop")
        self._sequencer = ShutdownSequencer(self, config=self._config)
        self._shutdown_task = asyncio.create_task(self._sequencer.run(), name=f"shutdown:{self.machine_id}")
        return True

    async def wait_for_shutdown(self) -> MachineSnapshot:
        """Wait until the shutdown sequence terminates and return the final snapshot."""
        if self._shutdown_task is None:
            raise RuntimeError(f"no shutdown was requested for {self.machine_id}")
        # Cancelling a waiter must not cancel the ramp.
        return await asyncio.shield(self._shutdown_task)

    def subscribe(self) -> Subscription[MachineSnapshot]:
        return self._snapshots.subscribe(replay=self._current)

    async def propose(self, source: ProposalSource, transition: Transition) -> MachineSnapshot | None:
        """Queue a transition and wait for the apply loop to accept or drop it."""
        self._raise_if_failed()
        self._raise_if_not_running()
        future: asyncio.Future[MachineSnapshot | None] = asyncio.get_running_loop().create_future()
        await self._queue.put(Proposal(source=source, transition=transition, result=future))
        return await future

    async def close(self) -> None:
        """Stop every task owned by this machine and end all subscriptions."""
        self._closed = True
        self._token.cancel("session closed")
        tasks: list[asyncio.Task[object]] = list(self._tasks)
        if self._shutdown_task is not None:
            tasks.append(self._shutdown_task)
        if self._apply_task is not None:
            tasks.append(self._apply_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._drain_pending(None)
        self._snapshots.close_all()
        if self._failure is not None:
            raise self._failure

    def _spawn_simulation(self) -> None:
        walker = RandomWalkUpdater(self, config=self._config, rng=self._rng)
        self._tasks.append(asyncio.create_task(walker.run(), name=f"walk:{self.machine_id}"))
        if self._fault_target:
            injector = FaultInjector(self, config=self._config, on_alert=self._on_alert)
            self._tasks.append(asyncio.create_task(injector.run(), name=f"fault:{self.machine_id}"))

    async def _apply_loop(self) -> None:
        while True:
            proposal = await self._queue.get()
            if proposal.result.done():
                continue
            try:
                applied = self._apply(proposal)
            except Exception as exc:
                logger.critical("halting %s: %s", self.machine_id, exc)
                self._failure = exc
                proposal.result.set_exception(exc)
                self._token.cancel("invariant violation")
                self._drain_pending(exc)
                raise
            proposal.result.set_result(applied)

    def _apply(self, proposal: Proposal) -> MachineSnapshot | None:
        previous = self._current
        if proposal.source in _SIMULATION_SOURCES and (self._shutdown_requested or not previous.is_on):
            logger.debug("dropped %s proposal for %s", proposal.source.value, self.machine_id)
            return None
        if proposal.source == ProposalSource.SHUTDOWN and not previous.is_on:
            return None
        if proposal.source == ProposalSource.ACTIVATION and previous.is_on:
            return None

        candidate = proposal.transition(previous)
        check_transition(previous, candidate, fault_sentinel=self._config.fault_sentinel)
        applied = replace(candidate, version=previous.version + 1)
        self._current = applied
        self._snapshots.publish(applied)
        return applied

    def _drain_pending(self, exc: BaseException | None) -> None:
        while not self._queue.empty():
            pending = self._queue.get_nowait()
            if pending.result.done():
                continue
            if exc is None:
                pending.result.cancel()
            else:
                pending.result.set_exception(exc)

    def _raise_if_not_running(self) -> None:
        if self._closed:
            raise RuntimeError(f"supervisor for {self.machine_id} is closed")
        if self._apply_task is None:
            raise RuntimeError(f"supervisor for {self.machine_id} is not started")

    def _raise_if_failed(self) -> None:
        if self._failure is not None:
            if isinstance(self._failure, InvariantViolation):
                raise self._failure
            raise RuntimeError(f"supervisor for {self.machine_id} halted") from self._failure


def _ignore_alert(alert: FaultAlert) -> None:
    del alert
