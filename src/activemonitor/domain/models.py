"""Core domain models for simulated machine telemetry."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import StrEnum
from typing import Any, ClassVar, Mapping


class MachineKind(StrEnum):
    """Supported machine categories."""

    CONVEYOR = "conveyor"
    BOILER = "boiler"


class MachineStatus(StrEnum):
    """Run state of one machine."""

    ON = "on"
    OFF = "off"


@dataclass(frozen=True, slots=True)
class FieldDomain:
    """Inclusive numeric bounds for one telemetry field."""

    minimum: float
    maximum: float | None = None

    def __post_init__(self) -> None:
        if self.maximum is not None and self.minimum > self.maximum:
            raise ValueError("minimum cannot be greater than maximum")

    def clamp(self, value: float) -> float:
        """Coerce ``value`` into the domain, keeping its numeric type."""
        if value < self.minimum:
            return type(value)(self.minimum)
        if self.maximum is not None and value > self.maximum:
            return type(value)(self.maximum)
        return value

    def contains(self, value: float) -> bool:
        if value < self.minimum:
            return False
        return self.maximum is None or value <= self.maximum


@dataclass(frozen=True, slots=True)
class ConveyorExtras:
    """Conveyor-only telemetry. ``None`` marks a field the machine does not report."""

    kind: ClassVar[MachineKind] = MachineKind.CONVEYOR
    reading_fields: ClassVar[tuple[str, ...]] = ("load_capacity", "belt_tension", "vibration")

    load_capacity: int | None = None
    belt_tension: int | None = None
    vibration: float | None = None
    operating_time: int | None = None


@dataclass(frozen=True, slots=True)
class BoilerExtras:
    """Boiler-only telemetry. ``None`` marks a field the machine does not report."""

    kind: ClassVar[MachineKind] = MachineKind.BOILER
    reading_fields: ClassVar[tuple[str, ...]] = ("pressure", "water_level", "heat_output", "co2_emission")

    pressure: int | None = None
    water_level: int | None = None
    heat_output: int | None = None
    co2_emission: int | None = None
    maintenance_cycles: str | None = None


MachineExtras = ConveyorExtras | BoilerExtras


FIELD_DOMAINS: dict[MachineKind, dict[str, FieldDomain]] = {
    MachineKind.CONVEYOR: {
        "temperature": FieldDomain(0, 120),
        "rate": FieldDomain(0, 2000),
        "load_capacity": FieldDomain(0, 100),
        "belt_tension": FieldDomain(0, 400),
        "vibration": FieldDomain(0.0, 3.0),
        "operating_time": FieldDomain(0),
    },
    MachineKind.BOILER: {
        "temperature": FieldDomain(0, 200),
        "rate": FieldDomain(0, 50),
        "pressure": FieldDomain(0, 20),
        "water_level": FieldDomain(0, 100),
        "heat_output": FieldDomain(0, 1000),
        "co2_emission": FieldDomain(0, 500),
    },
}

RATE_LABELS: dict[MachineKind, str] = {
    MachineKind.CONVEYOR: "speed_rpm",
    MachineKind.BOILER: "fuel_flow_lph",
}


@dataclass(frozen=True, slots=True)
class MachineSnapshot:
    """Immutable full copy of one machine record."""

    machine_id: str
    name: str
    location: str
    status: MachineStatus
    temperature: int
    rate: int
    extras: MachineExtras
    fault_spiked: bool = False
    event_log: tuple[str, ...] = field(default_factory=tuple)
    version: int = 0

    @property
    def kind(self) -> MachineKind:
        return self.extras.kind

    @property
    def is_on(self) -> bool:
        return self.status == MachineStatus.ON

    def populated_extras(self) -> dict[str, Any]:
        """Return extras that the machine reports, in declaration order."""
        values = asdict(self.extras)
        return {name: value for name, value in values.items() if value is not None}

    def readings(self) -> dict[str, float]:
        """Numeric readings that a shutdown ramps to zero."""
        values: dict[str, float] = {"temperature": self.temperature, "rate": self.rate}
        for name in self.extras.reading_fields:
            value = getattr(self.extras, name)
            if value is not None:
                values[name] = value
        return values

    def numeric_fields(self) -> dict[str, float]:
        """All populated numeric fields, including counters."""
        values = self.readings()
        for name, value in self.populated_extras().items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                values.setdefault(name, value)
        return values

    def with_events(self, *entries: str) -> MachineSnapshot:
        return replace(self, event_log=self.event_log + tuple(entries))

    def with_extras(self, updates: Mapping[str, Any]) -> MachineSnapshot:
        return replace(self, extras=replace(self.extras, **updates))


def snapshot_to_jsonable(snapshot: MachineSnapshot) -> dict[str, Any]:
    """Convert a snapshot into a JSON-serializable payload."""
    return {
        "machine_id": snapshot.machine_id,
        "name": snapshot.name,
        "location": snapshot.location,
        "kind": snapshot.kind.value,
        "status": snapshot.status.value,
        "temperature": snapshot.temperature,
        RATE_LABELS[snapshot.kind]: snapshot.rate,
        "extras": snapshot.populated_extras(),
        "fault_spiked": snapshot.fault_spiked,
        "event_log": list(snapshot.event_log),
        "version": snapshot.version,
    }
