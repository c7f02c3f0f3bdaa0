"""Domain models for simulated machine records."""

from activemonitor.domain.errors import ActiveMonitorError, InvariantViolation, UnknownMachineError
from activemonitor.domain.invariants import check_transition, snapshot_domain_failures, transition_failures
from activemonitor.domain.models import (
    FIELD_DOMAINS,
    BoilerExtras,
    ConveyorExtras,
    FieldDomain,
    MachineExtras,
    MachineKind,
    MachineSnapshot,
    MachineStatus,
    snapshot_to_jsonable,
)
from activemonitor.domain.seed import (
    DEFAULT_MENU,
    DEFAULT_SEED,
    SeedMachine,
    build_initial_snapshot,
    generate_seed_event_log,
)

__all__ = [
    "ActiveMonitorError",
    "BoilerExtras",
    "ConveyorExtras",
    "DEFAULT_MENU",
    "DEFAULT_SEED",
    "FIELD_DOMAINS",
    "FieldDomain",
    "InvariantViolation",
    "MachineExtras",
    "MachineKind",
    "MachineSnapshot",
    "MachineStatus",
    "SeedMachine",
    "UnknownMachineError",
    "build_initial_snapshot",
    "check_transition",
    "generate_seed_event_log",
    "snapshot_domain_failures",
    "snapshot_to_jsonable",
    "transition_failures",
]
