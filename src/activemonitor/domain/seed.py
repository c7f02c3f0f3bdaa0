"""Fixed seed table loaded once per session."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from activemonitor.domain.models import (
    BoilerExtras,
    ConveyorExtras,
    MachineExtras,
    MachineSnapshot,
    MachineStatus,
)


SEED_EVENT_TEMPLATES: tuple[str, ...] = (
    "Starting working date",
    "Hours since start",
    "Maintenance scheduled",
    "Random malfunction",
    "Machine turned ON",
    "Machine turned OFF",
    "Operator login",
    "Operator logout",
    "Temperature exceeded threshold",
    "Speed exceeding recommended range",
)


@dataclass(frozen=True, slots=True)
class SeedMachine:
    """Initial record values for one machine in the lookup table."""

    machine_id: str
    name: str
    location: str
    status: MachineStatus
    temperature: int
    rate: int
    extras: MachineExtras
    fault_target: bool = False

    def __post_init__(self) -> None:
        if not self.machine_id.strip():
            raise ValueError("machine_id must not be empty")


DEFAULT_SEED: tuple[SeedMachine, ...] = (
    SeedMachine(
        machine_id="id01",
        name="Conveyor Belt #id01",
        location="Factory A",
        status=MachineStatus.ON,
        temperature=75,
        rate=1200,
        extras=ConveyorExtras(load_capacity=50, belt_tension=250, vibration=1.2, operating_time=120),
        fault_target=True,
    ),
    SeedMachine(
        machine_id="id02",
        name="Conveyor Belt #id02",
        location="Factory A",
        status=MachineStatus.OFF,
        temperature=0,
        rate=0,
        extras=ConveyorExtras(load_capacity=0, belt_tension=0, vibration=0.0, operating_time=0),
    ),
    SeedMachine(
        machine_id="id03",
        name="Industrial Boiler #id03",
        location="Factory A",
        status=MachineStatus.ON,
        temperature=100,
        rate=10,
        extras=BoilerExtras(
            pressure=5,
            water_level=85,
            heat_output=600,
            co2_emission=220,
            maintenance_cycles="Last done 20 hours ago",
        ),
    ),
)

DEFAULT_MENU: tuple[str, ...] = ("id01", "id02")


def generate_seed_event_log(machine_id: str, rng: np.random.Generator, *, size: int = 10) -> tuple[str, ...]:
    """Draw ``size`` synthetic history entries for a machine."""
    if size < 0:
        raise ValueError("size must be >= 0")
    picks = rng.integers(0, len(SEED_EVENT_TEMPLATES), size=size)
    return tuple(f"{SEED_EVENT_TEMPLATES[int(idx)]} (machine {machine_id})" for idx in picks)


def build_initial_snapshot(
    seed: SeedMachine,
    rng: np.random.Generator,
    *,
    event_log_size: int = 10,
) -> MachineSnapshot:
    """Materialize the version-0 snapshot for one seed entry."""
    return MachineSnapshot(
        machine_id=seed.machine_id,
        name=seed.name,
        location=seed.location,
        status=seed.status,
        temperature=seed.temperature,
        rate=seed.rate,
        extras=seed.extras,
        event_log=generate_seed_event_log(seed.machine_id, rng, size=event_log_size),
    )
