from pydantic import BaseModel, Field

from app.schemas.sessions import CommittedSession
from app.schemas.settings import Weekday


class WorkloadRequest(BaseModel):
    interventionist_id: str = Field(min_length=1, max_length=64)
    committed_sessions: list[CommittedSession] = Field(default_factory=list, max_length=5000)


class WorkloadSummary(BaseModel):
    interventionist_id: str
    total_sessions: int = 0
    total_minutes: int = 0
    sessions_by_day: dict[Weekday, int] = Field(default_factory=dict)
    minutes_by_day: dict[Weekday, int] = Field(default_factory=dict)
    sessions_by_hour: dict[int, int] = Field(default_factory=dict)
    average_per_day: float = 0.0
