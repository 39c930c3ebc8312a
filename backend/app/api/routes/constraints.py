from fastapi import APIRouter

from app.schemas.constraints import (
    BusyPreviewRequest,
    BusyPreviewResponse,
    BusyWindow,
    ConstraintPermissionRequest,
    ConstraintPermissionResult,
    ScheduleConstraint,
    StudentConstraint,
)
from app.schemas.settings import minutes_to_time
from app.schemas.suggestions import SuggestionDiagnostic
from app.services.constraint_policy import check_permission
from app.services.constraint_resolver import resolve
from app.services.intervals import Interval
from app.services.suggestions import coerce_records

router = APIRouter()


def _windows(intervals: list[Interval]) -> list[BusyWindow]:
    return [BusyWindow(start_time=minutes_to_time(item.start), end_time=minutes_to_time(item.end)) for item in intervals]


@router.post("/constraints/permissions", response_model=ConstraintPermissionResult)
def check_constraint_permission(payload: ConstraintPermissionRequest) -> ConstraintPermissionResult:
    return check_permission(payload.actor, payload.constraint, payload.action)


@router.post("/constraints/busy-preview", response_model=BusyPreviewResponse)
def preview_busy_time(payload: BusyPreviewRequest) -> BusyPreviewResponse:
    constraints, diagnostics = coerce_records(ScheduleConstraint, payload.constraints, "constraint")
    student_constraints, student_diagnostics = coerce_records(
        StudentConstraint, payload.student_constraints, "student constraint"
    )
    diagnostics.extend(student_diagnostics)

    timeline = resolve(payload.weekday, payload.grade, payload.student_ids, constraints, student_constraints)
    diagnostics.extend(
        SuggestionDiagnostic(
            code="malformed_record",
            message=warning.message,
            weekday=payload.weekday,
            record_id=warning.record_id,
            layer=warning.layer,
        )
        for warning in timeline.warnings
    )
    return BusyPreviewResponse(
        weekday=payload.weekday,
        busy=_windows(timeline.intervals),
        layers={layer: _windows(items) for layer, items in timeline.layers.items()},
        diagnostics=diagnostics,
    )
