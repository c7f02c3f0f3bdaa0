"""Deterministic reading classifier for machine snapshots."""

from __future__ import annotations

from activemonitor.domain.models import MachineSnapshot
from activemonitor.safety.contracts import ReadingAssessment, ReadingLevel, ReadingPolicy


class ReadingClassifier:
    """Map snapshot readings onto severity levels."""

    def __init__(self, policy: ReadingPolicy) -> None:
        self._policy = policy

    def assess(self, snapshot: MachineSnapshot) -> ReadingAssessment:
        readings = snapshot.readings()
        if not snapshot.is_on:
            return ReadingAssessment(
                machine_id=snapshot.machine_id,
                level=ReadingLevel.INACTIVE,
                field_levels=tuple((name, ReadingLevel.INACTIVE) for name in readings),
            )

        thresholds = {t.field_name: t for t in self._policy.thresholds.get(snapshot.kind, ())}
        level = ReadingLevel.NORMAL
        field_levels: list[tuple[str, ReadingLevel]] = []
        reasons: list[str] = []

        for name, value in readings.items():
            threshold = thresholds.get(name)
            field_level = ReadingLevel.NORMAL if threshold is None else threshold.level_for(value)
            field_levels.append((name, field_level))
            if field_level > level:
                level = field_level
            if field_level == ReadingLevel.WARNING:
                reasons.append(f"{name}={value} at or above safe limit {threshold.safe_limit}")
            elif field_level == ReadingLevel.CRITICAL:
                reasons.append(f"{name}={value} above warning limit {threshold.warning_limit}")

        if snapshot.fault_spiked and level < ReadingLevel.CRITICAL:
            level = ReadingLevel.CRITICAL
            reasons.append("fault spike recorded")

        return ReadingAssessment(
            machine_id=snapshot.machine_id,
            level=level,
            field_levels=tuple(field_levels),
            reasons=tuple(reasons),
        )
