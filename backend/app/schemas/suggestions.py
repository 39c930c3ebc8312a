from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.sessions import CommittedSession, GroupCadence
from app.schemas.settings import SuggestionTuning, Weekday
from app.schemas.staff import Interventionist

ConstraintLayer = Literal["staff_availability", "schoolwide", "grade", "student"]

DiagnosticCode = Literal[
    "malformed_record",
    "invalid_availability",
    "overlapping_availability",
    "no_availability",
    "shortfall",
]


class SuggestedTimeSlot(BaseModel):
    weekday: Weekday
    start_time: str
    end_time: str
    interventionist_id: str
    score: float
    rationale: str


class SuggestionDiagnostic(BaseModel):
    code: DiagnosticCode
    message: str
    interventionist_id: str | None = None
    weekday: Weekday | None = None
    record_id: str | None = None
    layer: ConstraintLayer | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class InterventionistPlan(BaseModel):
    interventionist_id: str
    slots: list[SuggestedTimeSlot]
    total_score: float
    required_sessions: int
    shortfall: int = 0
    workload_minutes: int = 0

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0


class SuggestionResult(BaseModel):
    slots: list[SuggestedTimeSlot] = Field(default_factory=list)
    candidates: list[SuggestedTimeSlot] = Field(default_factory=list)
    plans: list[InterventionistPlan] = Field(default_factory=list)
    diagnostics: list[SuggestionDiagnostic] = Field(default_factory=list)


class SuggestionRequest(BaseModel):
    cadence: GroupCadence
    interventionists: list[Interventionist] = Field(default_factory=list, max_length=200)
    interventionist_id: str | None = Field(default=None, max_length=64)
    # Raw records; each one is validated on its own so a bad row becomes a diagnostic.
    constraints: list[dict[str, Any]] = Field(default_factory=list, max_length=2000)
    student_constraints: list[dict[str, Any]] = Field(default_factory=list, max_length=5000)
    committed_sessions: list[CommittedSession] = Field(default_factory=list, max_length=5000)
    tuning: SuggestionTuning | None = None


class SuggestionResponse(SuggestionResult):
    group_id: str
    required_sessions_per_week: int
