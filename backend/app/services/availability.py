from __future__ import annotations

from typing import Sequence

from app.schemas.sessions import CommittedSession
from app.schemas.settings import Weekday
from app.schemas.staff import AvailabilityBlock, Interventionist
from app.services.intervals import Interval, clip, merge, subtract_all


def committed_intervals(
    interventionist_id: str,
    weekday: Weekday,
    committed_sessions: Sequence[CommittedSession],
) -> list[Interval]:
    """Busy time from this interventionist's active sessions on ``weekday``."""
    return merge(
        Interval(session.start_minutes, session.end_minutes)
        for session in committed_sessions
        if session.interventionist_id == interventionist_id
        and session.is_active
        and session.effective_weekday == weekday
    )


def availability_intervals(interventionist: Interventionist, weekday: Weekday, day_bound: Interval) -> list[Interval]:
    blocks = [
        Interval(block.start_minutes, block.end_minutes)
        for block in interventionist.blocks_for(weekday)
        if block.is_valid
    ]
    return clip(blocks, day_bound)


def project_free(
    interventionist: Interventionist,
    weekday: Weekday,
    committed_sessions: Sequence[CommittedSession],
    day_bound: Interval,
) -> list[Interval]:
    available = availability_intervals(interventionist, weekday, day_bound)
    if not available:
        return []
    busy = committed_intervals(interventionist.id, weekday, committed_sessions)
    return subtract_all(available, busy)


def invalid_blocks(interventionist: Interventionist) -> list[AvailabilityBlock]:
    return [block for block in interventionist.availability if not block.is_valid]


def overlapping_weekdays(interventionist: Interventionist) -> list[Weekday]:
    """Weekdays on which two or more valid availability blocks overlap."""
    flagged: list[Weekday] = []
    for weekday in Weekday:
        windows = sorted(
            Interval(block.start_minutes, block.end_minutes)
            for block in interventionist.blocks_for(weekday)
            if block.is_valid
        )
        if any(left.overlaps(right) for left, right in zip(windows, windows[1:])):
            flagged.append(weekday)
    return flagged


def group_intervals(
    group_id: str,
    weekday: Weekday,
    committed_sessions: Sequence[CommittedSession],
) -> list[Interval]:
    """Time the group already spends in its own active sessions on ``weekday``, with any interventionist."""
    return merge(
        Interval(session.start_minutes, session.end_minutes)
        for session in committed_sessions
        if session.group_id == group_id
        and session.is_active
        and session.effective_weekday == weekday
    )
