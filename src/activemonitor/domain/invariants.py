"""Domain invariant checks applied to every snapshot before it is published."""

from __future__ import annotations

from dataclasses import fields

from activemonitor.domain.errors import InvariantViolation
from activemonitor.domain.models import FIELD_DOMAINS, FieldDomain, MachineSnapshot


def snapshot_domain_failures(snapshot: MachineSnapshot, *, fault_sentinel: int) -> list[str]:
    """Return domain violations for one snapshot, empty if it is valid."""
    failures: list[str] = []
    domains = FIELD_DOMAINS[snapshot.kind]

    for name, value in snapshot.numeric_fields().items():
        domain = domains[name]
        if name == "temperature" and snapshot.fault_spiked:
            upper = domain.maximum if domain.maximum is not None else fault_sentinel
            domain = FieldDomain(domain.minimum, max(upper, fault_sentinel))
        if not domain.contains(value):
            failures.append(f"{name}={value} outside [{domain.minimum}, {domain.maximum}]")

    if not snapshot.is_on:
        for name, value in snapshot.readings().items():
            if value != 0:
                failures.append(f"{name}={value} must be 0 while status is off")
    return failures


def transition_failures(
    previous: MachineSnapshot,
    proposed: MachineSnapshot,
    *,
    fault_sentinel: int,
) -> list[str]:
    """Return violations for replacing ``previous`` with ``proposed``."""
    failures = snapshot_domain_failures(proposed, fault_sentinel=fault_sentinel)

    for attr in ("machine_id", "name", "location"):
        if getattr(previous, attr) != getattr(proposed, attr):
            failures.append(f"{attr} is immutable")
    if type(previous.extras) is not type(proposed.extras):
        failures.append(f"extras variant changed from {previous.kind.value} to {proposed.kind.value}")
    else:
        for extra_field in fields(previous.extras):
            was_present = getattr(previous.extras, extra_field.name) is not None
            is_present = getattr(proposed.extras, extra_field.name) is not None
            if was_present != is_present:
                failures.append(f"extras field {extra_field.name} changed presence")

    if previous.fault_spiked and not proposed.fault_spiked:
        failures.append("fault_spiked cannot be cleared")

    if len(proposed.event_log) < len(previous.event_log):
        failures.append("event_log shrank")
    elif proposed.event_log[: len(previous.event_log)] != previous.event_log:
        failures.append("event_log history was rewritten")

    old_hours = getattr(previous.extras, "operating_time", None)
    new_hours = getattr(proposed.extras, "operating_time", None)
    if old_hours is not None and new_hours is not None and new_hours < old_hours:
        failures.append(f"operating_time decreased from {old_hours} to {new_hours}")
    return failures


def check_transition(previous: MachineSnapshot, proposed: MachineSnapshot, *, fault_sentinel: int) -> None:
    """Raise :class:`InvariantViolation` if ``proposed`` may not replace ``previous``."""
    failures = transition_failures(previous, proposed, fault_sentinel=fault_sentinel)
    if failures:
        raise InvariantViolation(previous.machine_id, failures)
