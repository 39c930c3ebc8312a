from __future__ import annotations

import logging
from collections import Counter, defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from itertools import combinations
from time import perf_counter
from typing import Any, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError, SchedulerError
from app.schemas.constraints import ScheduleConstraint, StudentConstraint
from app.schemas.sessions import CommittedSession, GroupCadence
from app.schemas.settings import WEEKDAY_INDEX, WEEKDAYS, SuggestionTuning, Weekday, minutes_to_time
from app.schemas.staff import Interventionist
from app.schemas.suggestions import (
    ConstraintLayer,
    InterventionistPlan,
    SuggestedTimeSlot,
    SuggestionDiagnostic,
    SuggestionResult,
)
from app.services.availability import group_intervals, invalid_blocks, overlapping_weekdays, project_free
from app.services.constraint_resolver import BusyTimeline, ConstraintWarning, resolve
from app.services.intervals import Interval, merge
from app.services.scoring import RankedCandidate, ScoringContext, rank, score_all
from app.services.slot_generator import count_eliminations, dominant_layer, generate_slots
from app.services.workload import weekly_minutes

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

CALENDAR_WEEK_DAYS = 7

LAYER_LABELS: dict[ConstraintLayer, str] = {
    "staff_availability": "staff availability and committed sessions",
    "schoolwide": "schoolwide constraints",
    "grade": "grade-level constraints",
    "student": "student constraints and the group's own sessions",
}


@dataclass
class DayEvaluation:
    interventionist_id: str
    weekday: Weekday
    ranked: list[RankedCandidate] = field(default_factory=list)
    eliminated: Counter = field(default_factory=Counter)
    has_availability: bool = False


@dataclass(frozen=True)
class _DayJob:
    interventionist: Interventionist
    weekday: Weekday
    busy: BusyTimeline
    context: ScoringContext


def spread_fit(day_indices: Sequence[int], week_length: int = CALENDAR_WEEK_DAYS) -> float:
    """Smallest calendar gap between chosen weekdays relative to an even split.

    Gaps wrap across the weekend, so Friday to Monday counts as three days.
    """
    ordered = sorted(set(day_indices))
    if not ordered:
        return 0.0
    if len(ordered) == 1:
        return 1.0
    gaps = [right - left for left, right in zip(ordered, ordered[1:])]
    gaps.append(ordered[0] + week_length - ordered[-1])
    ideal = week_length / len(ordered)
    return min(1.0, min(gaps) / ideal)


def coerce_records(
    model: type[ModelT],
    records: Sequence[ModelT | Mapping[str, Any]],
    kind: str,
) -> tuple[list[ModelT], list[SuggestionDiagnostic]]:
    """Validate records one at a time; invalid ones become diagnostics."""
    valid: list[ModelT] = []
    diagnostics: list[SuggestionDiagnostic] = []
    for position, record in enumerate(records):
        if isinstance(record, model):
            valid.append(record)
            continue
        try:
            valid.append(model.model_validate(record))
        except ValidationError as exc:
            raw_id = record.get("id") if isinstance(record, Mapping) else None
            record_id = str(raw_id) if raw_id is not None else None
            errors = [
                {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
                for error in exc.errors()
            ]
            layer = None
            if kind == "student constraint":
                layer = "student"
            elif isinstance(record, Mapping) and record.get("scope") in ("schoolwide", "grade"):
                layer = record["scope"]
            label = record_id or f"#{position + 1}"
            reason = errors[0]["msg"] if errors else "invalid record"
            logger.warning("Skipping malformed %s record %s: %s", kind, label, errors)
            diagnostics.append(
                SuggestionDiagnostic(
                    code="malformed_record",
                    message=f"Skipped {kind} {label}: {reason}",
                    record_id=record_id,
                    layer=layer,
                    details={"errors": errors, "position": position},
                )
            )
    return valid, diagnostics


def _select_pool(interventionists: Sequence[Interventionist], interventionist_id: str | None) -> list[Interventionist]:
    if not interventionists:
        raise SchedulerError(
            message="At least one interventionist is required to suggest times",
            details={"field": "interventionists"},
        )
    pool: list[Interventionist] = []
    seen: set[str] = set()
    for interventionist in interventionists:
        if interventionist.id in seen:
            continue
        seen.add(interventionist.id)
        pool.append(interventionist)
    if interventionist_id is None:
        return pool
    selected = [item for item in pool if item.id == interventionist_id]
    if not selected:
        raise ResourceNotFoundError("Interventionist", interventionist_id)
    return selected


def _anchor_starts(cadence: GroupCadence, committed_sessions: Sequence[CommittedSession]) -> dict[Weekday, tuple[int, ...]]:
    """Start times the group already uses, keyed by the weekday being scored (other days only)."""
    own_sessions = [
        session
        for session in committed_sessions
        if session.group_id == cadence.group_id and session.is_active and session.effective_weekday is not None
    ]
    anchors: dict[Weekday, tuple[int, ...]] = {}
    for weekday in WEEKDAYS:
        starts = {session.start_minutes for session in own_sessions if session.effective_weekday != weekday}
        anchors[weekday] = tuple(sorted(starts))
    return anchors


def _with_group_sessions(
    busy: BusyTimeline,
    cadence: GroupCadence,
    committed_sessions: Sequence[CommittedSession],
    day_bound: Interval,
) -> BusyTimeline:
    """Add the group's own sessions on this weekday to the student layer.

    Unless same-day sessions are allowed, a weekday the group already meets on is
    blocked entirely.
    """
    own = group_intervals(cadence.group_id, busy.weekday, committed_sessions)
    if not own:
        return busy
    if not cadence.allow_same_day:
        own = [day_bound]
    layers = dict(busy.layers)
    layers["student"] = merge([*layers.get("student", []), *own])
    return replace(busy, intervals=merge([*busy.intervals, *own]), layers=layers)


def _warning_diagnostic(warning: ConstraintWarning, weekdays: Sequence[Weekday]) -> SuggestionDiagnostic:
    return SuggestionDiagnostic(
        code="malformed_record",
        message=warning.message,
        weekday=weekdays[0] if len(weekdays) == 1 else None,
        record_id=warning.record_id,
        layer=warning.layer,
        details={"weekdays": [day.value for day in weekdays]},
    )


def _evaluate_day(
    job: _DayJob,
    committed_sessions: Sequence[CommittedSession],
    cadence: GroupCadence,
    tuning: SuggestionTuning,
    day_bound: Interval,
) -> DayEvaluation:
    interventionist = job.interventionist
    evaluation = DayEvaluation(interventionist_id=interventionist.id, weekday=job.weekday)
    evaluation.has_availability = any(block.is_valid for block in interventionist.blocks_for(job.weekday))

    free = project_free(interventionist, job.weekday, committed_sessions, day_bound)
    candidates = generate_slots(free, job.busy.intervals, cadence.session_duration_minutes, tuning.step_minutes)
    scored = score_all(interventionist.id, job.weekday, candidates, job.context)
    evaluation.ranked = rank(scored, limit=tuning.max_per_day)
    evaluation.eliminated = count_eliminations(
        day_bound,
        free,
        job.busy.layers,
        cadence.session_duration_minutes,
        tuning.step_minutes,
    )
    logger.debug(
        "%s on %s: %d free window(s), %d candidate(s), eliminated=%s",
        interventionist.id,
        job.weekday.value,
        len(free),
        len(candidates),
        dict(evaluation.eliminated),
    )
    return evaluation


def _to_slot(item: RankedCandidate) -> SuggestedTimeSlot:
    return SuggestedTimeSlot(
        weekday=item.weekday,
        start_time=minutes_to_time(item.candidate.start),
        end_time=minutes_to_time(item.candidate.end),
        interventionist_id=item.interventionist_id,
        score=item.score,
        rationale=item.rationale,
    )


def choose_combination(
    ranked_by_day: Mapping[Weekday, Sequence[RankedCandidate]],
    required: int,
    spread_weight: float,
    allow_same_day: bool = False,
) -> tuple[list[RankedCandidate], float]:
    """Pick one slot on each of ``required`` distinct weekdays maximising the plan total.

    The plan total is the sum of slot scores plus ``spread_weight`` times how evenly
    the chosen weekdays are spaced. With ``allow_same_day`` any sessions still missing
    once distinct weekdays run out reuse a weekday with a non-overlapping slot.
    """
    days = [day for day in WEEKDAYS if ranked_by_day.get(day)]
    size = min(required, len(days))
    best: list[RankedCandidate] = []
    best_total = 0.0
    best_key: tuple | None = None
    for combo in combinations(days, size):
        picks = [ranked_by_day[day][0] for day in combo]
        total = sum(item.score for item in picks) + spread_weight * spread_fit([WEEKDAY_INDEX[day] for day in combo])
        total = round(total, 6)
        key = (-total, tuple(WEEKDAY_INDEX[day] for day in combo), tuple(item.candidate.start for item in picks))
        if best_key is None or key < best_key:
            best, best_total, best_key = picks, total, key

    if allow_same_day and len(best) < required:
        extras = sorted(
            (item for day in days for item in ranked_by_day[day][1:]),
            key=RankedCandidate.sort_key,
        )
        for item in extras:
            if len(best) >= required:
                break
            clashes = any(
                chosen.weekday == item.weekday and chosen.candidate.window.overlaps(item.candidate.window)
                for chosen in best
            )
            if clashes:
                continue
            best.append(item)
            best_total = round(best_total + item.score, 6)

    best.sort(key=lambda item: (WEEKDAY_INDEX[item.weekday], item.candidate.start))
    return best, best_total


def _shortfall_diagnostic(
    interventionist: Interventionist,
    evaluations: Sequence[DayEvaluation],
    found: int,
    required: int,
) -> SuggestionDiagnostic:
    eliminated: Counter = Counter()
    for evaluation in evaluations:
        eliminated.update(evaluation.eliminated)
    layer = dominant_layer(eliminated)
    empty_days = [evaluation.weekday.value for evaluation in evaluations if not evaluation.ranked]
    message = f"{interventionist.name} can cover {found} of {required} weekly session(s)"
    if layer is not None:
        message += f"; most candidate times were eliminated by {LAYER_LABELS[layer]}"
    if empty_days:
        message += f" (no open time on {', '.join(day.capitalize() for day in empty_days)})"
    return SuggestionDiagnostic(
        code="shortfall",
        message=message,
        interventionist_id=interventionist.id,
        layer=layer,
        details={
            "required": required,
            "found": found,
            "missing": required - found,
            "days_without_slots": empty_days,
            "eliminated": {key: eliminated[key] for key in LAYER_LABELS if eliminated.get(key)},
        },
    )


def _availability_diagnostics(interventionist: Interventionist, evaluated: Sequence[Weekday]) -> list[SuggestionDiagnostic]:
    diagnostics: list[SuggestionDiagnostic] = []
    for block in invalid_blocks(interventionist):
        diagnostics.append(
            SuggestionDiagnostic(
                code="invalid_availability",
                message=(
                    f"Ignored availability block {block.start_time}-{block.end_time} for "
                    f"{interventionist.name}: end time must be after start time"
                ),
                interventionist_id=interventionist.id,
                weekday=block.weekday,
                layer="staff_availability",
            )
        )
    for weekday in overlapping_weekdays(interventionist):
        diagnostics.append(
            SuggestionDiagnostic(
                code="overlapping_availability",
                message=f"Overlapping availability blocks for {interventionist.name} were merged",
                interventionist_id=interventionist.id,
                weekday=weekday,
                layer="staff_availability",
            )
        )
    if not any(block.is_valid and block.weekday in evaluated for block in interventionist.availability):
        diagnostics.append(
            SuggestionDiagnostic(
                code="no_availability",
                message=f"{interventionist.name} has no availability on the requested weekdays",
                interventionist_id=interventionist.id,
                layer="staff_availability",
            )
        )
    return diagnostics


def suggest(
    cadence: GroupCadence,
    interventionists: Sequence[Interventionist],
    constraints: Sequence[ScheduleConstraint | Mapping[str, Any]],
    student_constraints: Sequence[StudentConstraint | Mapping[str, Any]],
    committed_sessions: Sequence[CommittedSession],
    *,
    interventionist_id: str | None = None,
    tuning: SuggestionTuning | None = None,
) -> SuggestionResult:
    started = perf_counter()
    tuning = tuning or SuggestionTuning.from_settings(get_settings())
    pool = _select_pool(interventionists, interventionist_id)

    valid_constraints, diagnostics = coerce_records(ScheduleConstraint, constraints, "constraint")
    valid_student_constraints, student_diagnostics = coerce_records(
        StudentConstraint, student_constraints, "student constraint"
    )
    diagnostics.extend(student_diagnostics)

    weekdays = cadence.evaluated_weekdays
    day_bound = Interval(tuning.day_start_minutes, tuning.day_end_minutes)
    day_length = day_bound.duration

    busy_by_day: dict[Weekday, BusyTimeline] = {}
    warned: dict[tuple[str, str], tuple[ConstraintWarning, list[Weekday]]] = {}
    for weekday in weekdays:
        busy = resolve(weekday, cadence.grade, cadence.student_ids, valid_constraints, valid_student_constraints)
        busy_by_day[weekday] = _with_group_sessions(busy, cadence, committed_sessions, day_bound)
        for warning in busy.warnings:
            warned.setdefault((warning.layer, warning.record_id), (warning, []))[1].append(weekday)
    diagnostics.extend(_warning_diagnostic(warning, days) for warning, days in warned.values())

    anchors = _anchor_starts(cadence, committed_sessions)
    jobs = [
        _DayJob(
            interventionist=interventionist,
            weekday=weekday,
            busy=busy_by_day[weekday],
            context=ScoringContext(
                day_length=day_length,
                weights=tuning.weights,
                preferred_start=cadence.preferred_time_minutes,
                anchor_starts=anchors[weekday],
            ),
        )
        for interventionist in pool
        for weekday in weekdays
    ]

    def run(job: _DayJob) -> DayEvaluation:
        return _evaluate_day(job, committed_sessions, cadence, tuning, day_bound)

    if tuning.max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=tuning.max_workers) as executor:
            evaluations = list(executor.map(run, jobs))
    else:
        evaluations = [run(job) for job in jobs]

    evaluations.sort(key=lambda item: (item.interventionist_id, WEEKDAY_INDEX[item.weekday]))
    by_interventionist: dict[str, list[DayEvaluation]] = defaultdict(list)
    for evaluation in evaluations:
        by_interventionist[evaluation.interventionist_id].append(evaluation)

    required = cadence.required_sessions_per_week
    plans: list[InterventionistPlan] = []
    candidates: list[RankedCandidate] = []
    for interventionist in pool:
        diagnostics.extend(_availability_diagnostics(interventionist, weekdays))
        day_evaluations = by_interventionist[interventionist.id]
        ranked_by_day = {evaluation.weekday: evaluation.ranked for evaluation in day_evaluations}
        for evaluation in day_evaluations:
            candidates.extend(evaluation.ranked)

        chosen, total = choose_combination(
            ranked_by_day,
            required,
            tuning.weights.spread,
            allow_same_day=cadence.allow_same_day,
        )
        shortfall = max(0, required - len(chosen))
        plans.append(
            InterventionistPlan(
                interventionist_id=interventionist.id,
                slots=[_to_slot(item) for item in chosen],
                total_score=total,
                required_sessions=required,
                shortfall=shortfall,
                workload_minutes=weekly_minutes(interventionist.id, committed_sessions),
            )
        )
        if shortfall:
            diagnostics.append(_shortfall_diagnostic(interventionist, day_evaluations, len(chosen), required))

    plans.sort(key=lambda plan: (plan.shortfall, -plan.total_score, plan.workload_minutes, plan.interventionist_id))
    candidates.sort(key=RankedCandidate.sort_key)

    result = SuggestionResult(
        slots=list(plans[0].slots) if plans else [],
        candidates=[_to_slot(item) for item in candidates],
        plans=plans,
        diagnostics=diagnostics,
    )
    logger.info(
        "Suggested %d slot(s) for group %s from %d candidate(s) across %d interventionist(s) in %.1f ms",
        len(result.slots),
        cadence.group_id,
        len(result.candidates),
        len(pool),
        (perf_counter() - started) * 1000,
    )
    return result
