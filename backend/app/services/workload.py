from __future__ import annotations

from collections import Counter
from typing import Sequence

from app.schemas.sessions import CommittedSession
from app.schemas.settings import WEEKDAYS
from app.schemas.workload import WorkloadSummary


def active_sessions_for(interventionist_id: str, committed_sessions: Sequence[CommittedSession]) -> list[CommittedSession]:
    return [
        session
        for session in committed_sessions
        if session.interventionist_id == interventionist_id
        and session.is_active
        and session.effective_weekday is not None
    ]


def weekly_minutes(interventionist_id: str, committed_sessions: Sequence[CommittedSession]) -> int:
    return sum(session.duration_minutes for session in active_sessions_for(interventionist_id, committed_sessions))


def summarize_workload(interventionist_id: str, committed_sessions: Sequence[CommittedSession]) -> WorkloadSummary:
    sessions = active_sessions_for(interventionist_id, committed_sessions)
    by_day: Counter = Counter()
    minutes_by_day: Counter = Counter()
    by_hour: Counter = Counter()
    for session in sessions:
        by_day[session.effective_weekday] += 1
        minutes_by_day[session.effective_weekday] += session.duration_minutes
        by_hour[session.start_minutes // 60] += 1

    return WorkloadSummary(
        interventionist_id=interventionist_id,
        total_sessions=len(sessions),
        total_minutes=sum(minutes_by_day.values()),
        sessions_by_day={day: by_day.get(day, 0) for day in WEEKDAYS},
        minutes_by_day={day: minutes_by_day.get(day, 0) for day in WEEKDAYS},
        sessions_by_hour=dict(sorted(by_hour.items())),
        average_per_day=round(len(sessions) / len(WEEKDAYS), 2),
    )
