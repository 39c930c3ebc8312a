from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.settings import (
    WEEKDAYS,
    Weekday,
    normalize_weekday,
    parse_time_to_minutes,
    validate_time_value,
)


class CommittedSession(BaseModel):
    id: str | None = Field(default=None, max_length=64)
    group_id: str = Field(min_length=1, max_length=64)
    interventionist_id: str = Field(min_length=1, max_length=64)
    weekday: Weekday | None = None
    session_date: date | None = None
    start_time: str
    duration_minutes: int = Field(gt=0, le=600)
    status: str = Field(default="planned", max_length=30)

    model_config = {"frozen": True}

    @field_validator("weekday", mode="before")
    @classmethod
    def validate_weekday(cls, value: object) -> object:
        return normalize_weekday(value)

    @field_validator("start_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_day_reference(self) -> "CommittedSession":
        if self.weekday is None and self.session_date is None:
            raise ValueError("Either weekday or session_date is required")
        if self.weekday is not None and self.session_date is not None:
            if self.session_date.weekday() >= len(WEEKDAYS) or WEEKDAYS[self.session_date.weekday()] != self.weekday:
                raise ValueError("weekday does not match session_date")
        return self

    @property
    def effective_weekday(self) -> Weekday | None:
        """School weekday this session occupies, or None for weekend dates."""
        if self.session_date is not None:
            index = self.session_date.weekday()
            return WEEKDAYS[index] if index < len(WEEKDAYS) else None
        return self.weekday

    @property
    def is_active(self) -> bool:
        return self.status.strip().lower() != "cancelled"

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


class GroupCadence(BaseModel):
    group_id: str = Field(min_length=1, max_length=64)
    grade: int = Field(ge=0, le=12)
    required_sessions_per_week: int = Field(ge=1, le=10)
    session_duration_minutes: int = Field(gt=0, le=480)
    student_ids: list[str] = Field(default_factory=list, max_length=100)
    preferred_time: str | None = None
    preferred_weekdays: list[Weekday] | None = Field(default=None, max_length=5)
    allow_same_day: bool = False

    @field_validator("preferred_time")
    @classmethod
    def validate_preferred_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_time_value(value)

    @field_validator("preferred_weekdays", mode="before")
    @classmethod
    def validate_preferred_weekdays(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return [normalize_weekday(item) for item in value]
        return value

    @field_validator("student_ids")
    @classmethod
    def normalize_student_ids(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        normalized: list[str] = []
        for item in value:
            student_id = item.strip()
            if not student_id or student_id in seen:
                continue
            seen.add(student_id)
            normalized.append(student_id)
        return normalized

    @model_validator(mode="after")
    def validate_frequency(self) -> "GroupCadence":
        available_days = len(self.evaluated_weekdays)
        if not self.allow_same_day and self.required_sessions_per_week > available_days:
            raise ValueError(
                f"required_sessions_per_week ({self.required_sessions_per_week}) exceeds the "
                f"{available_days} weekday(s) available; set allow_same_day to meet more than once a day"
            )
        return self

    @property
    def preferred_time_minutes(self) -> int | None:
        if self.preferred_time is None:
            return None
        return parse_time_to_minutes(self.preferred_time)

    @property
    def evaluated_weekdays(self) -> tuple[Weekday, ...]:
        if not self.preferred_weekdays:
            return WEEKDAYS
        wanted = set(self.preferred_weekdays)
        return tuple(day for day in WEEKDAYS if day in wanted)
