"""Timing and randomness configuration for the simulation engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from math import isfinite


RNG_SEED_ENV_VAR = "ACTIVEMONITOR_RNG_SEED"


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Periods are expressed in time-units; ``time_unit_seconds`` maps them to wall time."""

    time_unit_seconds: float = 1.0
    walk_period: float = 2.0
    fault_delay: float = 10.0
    ramp_period: float = 0.2
    fault_sentinel: int = 200
    seed_event_log_size: int = 10
    rng_seed: int | None = None

    def __post_init__(self) -> None:
        _assert_positive(self.time_unit_seconds, field_name="time_unit_seconds")
        _assert_positive(self.walk_period, field_name="walk_period")
        _assert_positive(self.fault_delay, field_name="fault_delay")
        _assert_positive(self.ramp_period, field_name="ramp_period")
        if self.fault_sentinel <= 0:
            raise ValueError("fault_sentinel must be > 0")
        if self.seed_event_log_size < 0:
            raise ValueError("seed_event_log_size must be >= 0")
        if self.rng_seed is not None and self.rng_seed < 0:
            raise ValueError("rng_seed must be >= 0")

    def seconds(self, time_units: float) -> float:
        """Convert a duration in time-units to seconds."""
        return time_units * self.time_unit_seconds


def rng_seed_from_env(env_var: str = RNG_SEED_ENV_VAR) -> int | None:
    """Read an optional integer RNG seed from the environment."""
    raw = os.environ.get(env_var)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{env_var} must be an integer, got {raw!r}") from exc


def _assert_positive(value: float, *, field_name: str) -> None:
    if not isfinite(value) or value <= 0.0:
        raise ValueError(f"{field_name} must be > 0")
