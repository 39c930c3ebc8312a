from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, Field, field_validator, model_validator

if TYPE_CHECKING:
    from app.core.config import Settings


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"


WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)
WEEKDAY_INDEX = {day: index for index, day in enumerate(WEEKDAYS)}

DAY_SHORT_MAP = {
    "mon": Weekday.monday,
    "tue": Weekday.tuesday,
    "wed": Weekday.wednesday,
    "thu": Weekday.thursday,
    "fri": Weekday.friday,
}

TIME_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_weekday(value: object) -> object:
    """Accept "Monday", "mon", "MON" and friends for the weekday enum."""
    if isinstance(value, Weekday) or not isinstance(value, str):
        return value
    day = value.strip().lower()
    return DAY_SHORT_MAP.get(day[:3], day) if len(day) == 3 else day


def validate_time_value(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class ScoringWeights(BaseModel):
    contiguity: float = Field(default=1.0, ge=0.0, le=100.0)
    preference: float = Field(default=2.0, ge=0.0, le=100.0)
    consistency: float = Field(default=1.5, ge=0.0, le=100.0)
    spread: float = Field(default=1.0, ge=0.0, le=100.0)


class SuggestionTuning(BaseModel):
    day_start: str = "08:00"
    day_end: str = "15:00"
    step_minutes: int = Field(default=5, ge=1, le=120)
    max_per_day: int = Field(default=3, ge=1, le=50)
    max_workers: int = Field(default=1, ge=1, le=32)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    @field_validator("day_start", "day_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_day_bound(self) -> "SuggestionTuning":
        if parse_time_to_minutes(self.day_end) <= parse_time_to_minutes(self.day_start):
            raise ValueError("day_end must be after day_start")
        return self

    @property
    def day_start_minutes(self) -> int:
        return parse_time_to_minutes(self.day_start)

    @property
    def day_end_minutes(self) -> int:
        return parse_time_to_minutes(self.day_end)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SuggestionTuning":
        return cls(
            day_start=settings.suggestion_day_start,
            day_end=settings.suggestion_day_end,
            step_minutes=settings.suggestion_step_minutes,
            max_per_day=settings.suggestion_max_per_day,
            max_workers=settings.suggestion_max_workers,
            weights=ScoringWeights(
                contiguity=settings.score_weight_contiguity,
                preference=settings.score_weight_preference,
                consistency=settings.score_weight_consistency,
                spread=settings.score_weight_spread,
            ),
        )
