from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from app.schemas.constraints import ConstraintScope, ScheduleConstraint, StudentConstraint
from app.schemas.settings import Weekday
from app.schemas.suggestions import ConstraintLayer
from app.services.intervals import Interval, merge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConstraintWarning:
    record_id: str
    layer: ConstraintLayer
    message: str


@dataclass
class BusyTimeline:
    """Merged blocked time for one weekday, with the per-layer breakdown kept."""

    weekday: Weekday
    intervals: list[Interval] = field(default_factory=list)
    layers: dict[ConstraintLayer, list[Interval]] = field(default_factory=dict)
    warnings: list[ConstraintWarning] = field(default_factory=list)


def _constraint_layer(constraint: ScheduleConstraint) -> ConstraintLayer:
    if constraint.scope == ConstraintScope.schoolwide:
        return "schoolwide"
    if constraint.scope == ConstraintScope.grade:
        return "grade"
    raise ValueError(f"Unsupported constraint scope: {constraint.scope}")


def resolve(
    weekday: Weekday,
    grade: int,
    student_ids: Iterable[str],
    constraints: Sequence[ScheduleConstraint],
    student_constraints: Sequence[StudentConstraint],
) -> BusyTimeline:
    roster = set(student_ids)
    timeline = BusyTimeline(weekday=weekday)
    collected: dict[ConstraintLayer, list[Interval]] = {"schoolwide": [], "grade": [], "student": []}

    for constraint in constraints:
        if not constraint.applies_to(weekday, grade):
            continue
        layer = _constraint_layer(constraint)
        if not constraint.is_well_formed:
            timeline.warnings.append(
                ConstraintWarning(
                    record_id=constraint.id,
                    layer=layer,
                    message=(
                        f"Constraint '{constraint.label}' ignored: end time {constraint.end_time} "
                        f"is not after start time {constraint.start_time}"
                    ),
                )
            )
            continue
        collected[layer].append(Interval(constraint.start_minutes, constraint.end_minutes))

    for student_constraint in student_constraints:
        if student_constraint.weekday != weekday or student_constraint.student_id not in roster:
            continue
        if not student_constraint.is_well_formed:
            timeline.warnings.append(
                ConstraintWarning(
                    record_id=student_constraint.id,
                    layer="student",
                    message=(
                        f"Student constraint for {student_constraint.student_id} ignored: end time "
                        f"{student_constraint.end_time} is not after start time {student_constraint.start_time}"
                    ),
                )
            )
            continue
        collected["student"].append(
            Interval(student_constraint.start_minutes, student_constraint.end_minutes)
        )

    for warning in timeline.warnings:
        logger.warning("Dropped malformed %s record %s on %s", warning.layer, warning.record_id, weekday.value)

    timeline.layers = {layer: merge(items) for layer, items in collected.items()}
    timeline.intervals = merge(item for items in collected.values() for item in items)
    return timeline
