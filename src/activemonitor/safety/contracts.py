"""Reading threshold contracts used by the deterministic classifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from activemonitor.domain.models import MachineKind


class ReadingLevel(IntEnum):
    """Ordered severity for one reading. ``INACTIVE`` applies to machines that are off."""

    INACTIVE = 0
    NORMAL = 1
    WARNING = 2
    CRITICAL = 3


@dataclass(frozen=True, slots=True)
class ReadingThreshold:
    """Below ``safe_limit`` is normal, up to ``warning_limit`` is a warning, above is critical."""

    field_name: str
    safe_limit: float
    warning_limit: float

    def __post_init__(self) -> None:
        if not self.field_name.strip():
            raise ValueError("field_name must not be empty")
        if self.safe_limit > self.warning_limit:
            raise ValueError("safe_limit cannot be greater than warning_limit")

    def level_for(self, value: float) -> ReadingLevel:
        if value < self.safe_limit:
            return ReadingLevel.NORMAL
        if value <= self.warning_limit:
            return ReadingLevel.WARNING
        return ReadingLevel.CRITICAL


def _default_thresholds() -> dict[MachineKind, tuple[ReadingThreshold, ...]]:
    return {
        MachineKind.CONVEYOR: (
            ReadingThreshold(field_name="temperature", safe_limit=100, warning_limit=115),
            ReadingThreshold(field_name="rate", safe_limit=1500, warning_limit=1515),
        ),
        MachineKind.BOILER: (
            ReadingThreshold(field_name="temperature", safe_limit=100, warning_limit=115),
        ),
    }


@dataclass(frozen=True, slots=True)
class ReadingPolicy:
    """Per-kind thresholds. Readings without a threshold are always normal while on."""

    thresholds: dict[MachineKind, tuple[ReadingThreshold, ...]] = field(default_factory=_default_thresholds)

    def __post_init__(self) -> None:
        for kind, kind_thresholds in self.thresholds.items():
            names = [threshold.field_name for threshold in kind_thresholds]
            if len(set(names)) != len(names):
                raise ValueError(f"duplicate thresholds for {kind.value}")


@dataclass(frozen=True, slots=True)
class ReadingAssessment:
    """Classification of one snapshot."""

    machine_id: str
    level: ReadingLevel
    field_levels: tuple[tuple[str, ReadingLevel], ...] = ()
    reasons: tuple[str, ...] = ()

    @property
    def needs_attention(self) -> bool:
        """Whether any reading is above its safe limit."""
        return self.level >= ReadingLevel.WARNING
