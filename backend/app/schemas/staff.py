from pydantic import BaseModel, Field, field_validator

from app.schemas.settings import Weekday, normalize_weekday, parse_time_to_minutes, validate_time_value


class AvailabilityBlock(BaseModel):
    """A recurring weekly window during which an interventionist can be scheduled.

    Start/end order is not validated here; reversed blocks are skipped by the
    availability projector and reported as diagnostics.
    """

    weekday: Weekday
    start_time: str
    end_time: str

    model_config = {"frozen": True}

    @field_validator("weekday", mode="before")
    @classmethod
    def validate_weekday(cls, value: object) -> object:
        return normalize_weekday(value)

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
    def is_valid(self) -> bool:
        return self.start_minutes < self.end_minutes


class Interventionist(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    display_color: str = Field(default="#6366f1", max_length=20)
    availability: list[AvailabilityBlock] = Field(default_factory=list, max_length=200)

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Interventionist name cannot be empty")
        return trimmed

    def blocks_for(self, weekday: Weekday) -> list[AvailabilityBlock]:
        return [block for block in self.availability if block.weekday == weekday]
