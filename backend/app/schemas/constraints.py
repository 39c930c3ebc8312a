from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.schemas.settings import Weekday, normalize_weekday, parse_time_to_minutes, validate_time_value
from app.schemas.suggestions import SuggestionDiagnostic


class ConstraintScope(str, Enum):
    schoolwide = "schoolwide"
    grade = "grade"


class ConstraintType(str, Enum):
    lunch = "lunch"
    core_instruction = "core_instruction"
    specials = "specials"
    therapy = "therapy"
    other = "other"


class UserRole(str, Enum):
    admin = "admin"
    interventionist = "interventionist"
    teacher = "teacher"


class _TimedRecord(BaseModel):
    start_time: str
    end_time: str

    model_config = {"frozen": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)

    @property
    def is_well_formed(self) -> bool:
        return self.start_minutes < self.end_minutes


class ScheduleConstraint(_TimedRecord):
    """Institution-level blocked window (lunch, core block, specials...)."""

    id: str = Field(min_length=1, max_length=64)
    scope: ConstraintScope
    applicable_grades: frozenset[int] = Field(default_factory=frozenset)
    label: str = Field(min_length=1, max_length=200)
    type: ConstraintType = ConstraintType.other
    weekdays: frozenset[Weekday] = Field(min_length=1)
    created_by: str | None = Field(default=None, max_length=64)

    @field_validator("weekdays", mode="before")
    @classmethod
    def validate_weekdays(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return [normalize_weekday(item) for item in value]
        return value

    @field_validator("applicable_grades")
    @classmethod
    def validate_grades(cls, value: frozenset[int]) -> frozenset[int]:
        for grade in value:
            if grade < 0 or grade > 12:
                raise ValueError("Grades must be between 0 (kindergarten) and 12")
        return value

    def applies_to(self, weekday: Weekday, grade: int) -> bool:
        if weekday not in self.weekdays:
            return False
        if self.scope == ConstraintScope.schoolwide:
            return True
        if self.scope == ConstraintScope.grade:
            return grade in self.applicable_grades
        raise ValueError(f"Unsupported constraint scope: {self.scope}")


class StudentConstraint(_TimedRecord):
    """Recurring window during which one student is pulled for another service."""

    id: str = Field(min_length=1, max_length=64)
    student_id: str = Field(min_length=1, max_length=64)
    weekday: Weekday
    reason: str | None = Field(default=None, max_length=500)

    @field_validator("weekday", mode="before")
    @classmethod
    def validate_weekday(cls, value: object) -> object:
        return normalize_weekday(value)


class ConstraintActor(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    role: UserRole
    assigned_grades: frozenset[int] = Field(default_factory=frozenset)


class ConstraintDraft(BaseModel):
    scope: ConstraintScope
    applicable_grades: frozenset[int] = Field(default_factory=frozenset)
    created_by: str | None = None


class ConstraintPermissionRequest(BaseModel):
    actor: ConstraintActor
    constraint: ConstraintDraft
    action: str = Field(default="create", pattern=r"^(create|modify)$")


class ConstraintPermissionResult(BaseModel):
    allowed: bool
    default_scope: ConstraintScope
    violations: list[str] = Field(default_factory=list)


class BusyWindow(BaseModel):
    start_time: str
    end_time: str


class BusyPreviewRequest(BaseModel):
    weekday: Weekday
    grade: int = Field(ge=0, le=12)
    student_ids: list[str] = Field(default_factory=list, max_length=100)
    constraints: list[dict[str, Any]] = Field(default_factory=list, max_length=2000)
    student_constraints: list[dict[str, Any]] = Field(default_factory=list, max_length=5000)

    @field_validator("weekday", mode="before")
    @classmethod
    def validate_weekday(cls, value: object) -> object:
        return normalize_weekday(value)


class BusyPreviewResponse(BaseModel):
    weekday: Weekday
    busy: list[BusyWindow] = Field(default_factory=list)
    layers: dict[str, list[BusyWindow]] = Field(default_factory=dict)
    diagnostics: list[SuggestionDiagnostic] = Field(default_factory=list)
