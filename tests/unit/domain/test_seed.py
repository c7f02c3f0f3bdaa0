"""Unit tests for the fixed seed table."""

from __future__ import annotations

import numpy as np

from activemonitor.domain.invariants import snapshot_domain_failures
from activemonitor.domain.models import BoilerExtras, ConveyorExtras, MachineStatus
from activemonitor.domain.seed import (
    DEFAULT_MENU,
    DEFAULT_SEED,
    SEED_EVENT_TEMPLATES,
    build_initial_snapshot,
    generate_seed_event_log,
)


def test_seed_table_matches_reference_machines() -> None:
    by_id = {entry.machine_id: entry for entry in DEFAULT_SEED}

    assert tuple(by_id) == ("id01", "id02", "id03")
    assert by_id["id01"].status == MachineStatus.ON
    assert by_id["id01"].temperature == 75
    assert by_id["id01"].fault_target is True
    assert by_id["id02"].status == MachineStatus.OFF
    assert isinstance(by_id["id02"].extras, ConveyorExtras)
    assert isinstance(by_id["id03"].extras, BoilerExtras)
    assert by_id["id03"].extras.maintenance_cycles == "Last done 20 hours ago"
    assert set(DEFAULT_MENU) <= set(by_id)


def test_seed_snapshots_satisfy_domains() -> None:
    rng = np.random.default_rng(0)
    for entry in DEFAULT_SEED:
        snapshot = build_initial_snapshot(entry, rng)
        assert snapshot.version == 0
        assert snapshot.fault_spiked is False
        assert snapshot_domain_failures(snapshot, fault_sentinel=200) == []


def test_seed_event_log_has_ten_tagged_entries() -> None:
    log = generate_seed_event_log("id01", np.random.default_rng(5))

    assert len(log) == 10
    for entry in log:
        template, _, suffix = entry.rpartition(" (")
        assert template in SEED_EVENT_TEMPLATES
        assert suffix == "machine id01)"


def test_seed_event_log_is_reproducible_for_same_seed() -> None:
    first = generate_seed_event_log("id03", np.random.default_rng(11))
    second = generate_seed_event_log("id03", np.random.default_rng(11))

    assert first == second
