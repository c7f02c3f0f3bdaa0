"""Top-level session owning the seed table, supervisors and menu membership."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Sequence

import numpy as np

from activemonitor.domain.errors import UnknownMachineError
from activemonitor.domain.models import MachineSnapshot
from activemonitor.domain.seed import DEFAULT_MENU, DEFAULT_SEED, SeedMachine, build_initial_snapshot
from activemonitor.safety.classifier import ReadingClassifier
from activemonitor.safety.contracts import ReadingAssessment, ReadingPolicy
from activemonitor.simulation.broadcast import Broadcaster, Subscription
from activemonitor.simulation.config import SimulationConfig
from activemonitor.simulation.fault_injector import FaultAlert
from activemonitor.simulation.supervisor import MachineSupervisor


logger = logging.getLogger(__name__)


class SimulationSession:
    """In-process simulation engine consumed by the presentation layer.

    Every machine-addressed method raises :class:`UnknownMachineError` for ids
    absent from the seed table.
    """

    def __init__(
        self,
        *,
        config: SimulationConfig | None = None,
        seed: Sequence[SeedMachine] = DEFAULT_SEED,
        menu: Sequence[str] = DEFAULT_MENU,
        reading_policy: ReadingPolicy | None = None,
    ) -> None:
        self._config = config if config is not None else SimulationConfig()
        machine_ids = [entry.machine_id for entry in seed]
        if len(set(machine_ids)) != len(machine_ids):
            raise ValueError("seed table contains duplicate machine ids")
        unknown_menu = set(menu) - set(machine_ids)
        if unknown_menu:
            raise ValueError(f"menu references unknown machine ids: {', '.join(sorted(unknown_menu))}")

        self._alerts: Broadcaster[FaultAlert] = Broadcaster()
        self._alert_history: list[FaultAlert] = []
        self._classifier = ReadingClassifier(reading_policy if reading_policy is not None else ReadingPolicy())
        self._menu: list[str] = list(menu)
        self._started = False
        self._closed = False

        streams = np.random.SeedSequence(self._config.rng_seed).spawn(len(seed))
        self._supervisors: dict[str, MachineSupervisor] = {}
        for entry, stream in zip(seed, streams):
            rng = np.random.default_rng(stream)
            initial = build_initial_snapshot(entry, rng, event_log_size=self._config.seed_event_log_size)
            self._supervisors[entry.machine_id] = MachineSupervisor(
                initial,
                config=self._config,
                rng=rng,
                fault_target=entry.fault_target,
                on_alert=self._publish_alert,
            )

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def machine_ids(self) -> tuple[str, ...]:
        return tuple(self._supervisors)

    @property
    def alerts(self) -> tuple[FaultAlert, ...]:
        """Every fault alert raised so far, oldest first."""
        return tuple(self._alert_history)

    async def start(self) -> None:
        """Start apply loops, and simulation tasks for machines that are on."""
        if self._closed:
            raise RuntimeError("session is closed")
        if self._started:
            return
        self._started = True
        for supervisor in self._supervisors.values():
            await supervisor.start()
        logger.info("simulation session started with %d machine(s)", len(self._supervisors))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        failures: list[BaseException] = []
        for supervisor in self._supervisors.values():
            try:
                await supervisor.close()
            except Exception as exc:
                failures.append(exc)
        self._alerts.close_all()
        logger.info("simulation session closed")
        if failures:
            raise failures[0]

    async def __aenter__(self) -> SimulationSession:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def supervisor(self, machine_id: str) -> MachineSupervisor:
        try:
            return self._supervisors[machine_id]
        except KeyError:
            raise UnknownMachineError(machine_id) from None

    def lookup(self, machine_id: str) -> MachineSnapshot:
        """Return the current snapshot for a machine."""
        return self.supervisor(machine_id).current

    async def activate(self, machine_id: str) -> bool:
        supervisor = self.supervisor(machine_id)
        self._raise_if_not_running()
        return await supervisor.activate()

    async def request_shutdown(self, machine_id: str) -> bool:
        supervisor = self.supervisor(machine_id)
        self._raise_if_not_running()
        return await supervisor.request_shutdown()

    async def wait_for_shutdown(self, machine_id: str) -> MachineSnapshot:
        return await self.supervisor(machine_id).wait_for_shutdown()

    def subscribe(self, machine_id: str) -> Subscription[MachineSnapshot]:
        """Stream applied snapshots, starting with the last known one.

        On a closed session the subscription yields the final snapshot and ends.
        """
        return self.supervisor(machine_id).subscribe()

    def subscribe_alerts(self) -> Subscription[FaultAlert]:
        return self._alerts.subscribe()

    def get_event_log(self, machine_id: str) -> tuple[str, ...]:
        return self.supervisor(machine_id).current.event_log

    def assess(self, machine_id: str) -> ReadingAssessment:
        return self._classifier.assess(self.lookup(machine_id))

    def menu(self) -> tuple[str, ...]:
        return tuple(self._menu)

    def add_to_menu(self, machine_id: str) -> bool:
        """Add a machine to the quick-access menu. Returns ``False`` if already present."""
        self.supervisor(machine_id)
        if machine_id in self._menu:
            return False
        self._menu.append(machine_id)
        return True

    def _raise_if_not_running(self) -> None:
        if self._closed:
            raise RuntimeError("session is closed")
        if not self._started:
            raise RuntimeError("session is not started")

    def _publish_alert(self, alert: FaultAlert) -> None:
        self._alert_history.append(alert)
        self._alerts.publish(alert)
