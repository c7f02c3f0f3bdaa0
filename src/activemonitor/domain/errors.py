"""Error taxonomy for the simulation core."""

from __future__ import annotations

from typing import Sequence


class ActiveMonitorError(Exception):
    """Base class for all simulation core errors."""


class UnknownMachineError(ActiveMonitorError, LookupError):
    """Raised when a request references a machine id absent from the seed table."""

    def __init__(self, machine_id: str) -> None:
        super().__init__(f"unknown machine id: {machine_id!r}")
        self.machine_id = machine_id


class InvariantViolation(ActiveMonitorError, AssertionError):
    """A proposed snapshot broke a domain invariant. Not recoverable."""

    def __init__(self, machine_id: str, failed_checks: Sequence[str]) -> None:
        if not failed_checks:
            raise ValueError("failed_checks must not be empty")
        super().__init__(f"invariant violation for {machine_id}: " + "; ".join(failed_checks))
        self.machine_id = machine_id
        self.failed_checks = tuple(failed_checks)
