"""Time-of-day interval algebra on minutes-since-midnight integers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from app.schemas.settings import minutes_to_time, parse_time_to_minutes


@dataclass(frozen=True, order=True)
class Interval:
    start: int
    end: int

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "Interval":
        return cls(parse_time_to_minutes(start_time), parse_time_to_minutes(end_time))

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    @property
    def label(self) -> str:
        return f"{minutes_to_time(self.start)}-{minutes_to_time(self.end)}"


def overlaps(a: Interval, b: Interval) -> bool:
    return a.overlaps(b)


def duration_minutes(interval: Interval) -> int:
    return interval.duration


def merge(intervals: Iterable[Interval]) -> list[Interval]:
    """Sort and fold overlapping or touching intervals into the minimal set.

    Empty intervals (end <= start) are dropped.
    """
    ordered = sorted(item for item in intervals if not item.is_empty)
    merged: list[Interval] = []
    for item in ordered:
        if merged and item.start <= merged[-1].end:
            last = merged[-1]
            if item.end > last.end:
                merged[-1] = Interval(last.start, item.end)
            continue
        merged.append(item)
    return merged


def subtract(bound: Interval, busy: Iterable[Interval]) -> list[Interval]:
    """Return the free gaps of ``bound`` that ``busy`` does not cover."""
    if bound.is_empty:
        return []
    free: list[Interval] = []
    cursor = bound.start
    for block in merge(busy):
        if block.end <= cursor:
            continue
        if block.start >= bound.end:
            break
        if block.start > cursor:
            free.append(Interval(cursor, block.start))
        cursor = max(cursor, block.end)
        if cursor >= bound.end:
            break
    if cursor < bound.end:
        free.append(Interval(cursor, bound.end))
    return free


def subtract_all(free: Iterable[Interval], busy: Iterable[Interval]) -> list[Interval]:
    merged_busy = merge(busy)
    remaining: list[Interval] = []
    for window in merge(free):
        remaining.extend(subtract(window, merged_busy))
    return remaining


def clip(intervals: Iterable[Interval], bound: Interval) -> list[Interval]:
    clipped = (
        Interval(max(item.start, bound.start), min(item.end, bound.end))
        for item in intervals
    )
    return merge(clipped)


def is_covered(candidate: Interval, intervals: Iterable[Interval]) -> bool:
    """True when a single interval of ``intervals`` fully contains ``candidate``."""
    return any(window.contains(candidate) for window in merge(intervals))


def overlaps_any(candidate: Interval, intervals: Iterable[Interval]) -> bool:
    return any(candidate.overlaps(item) for item in intervals)
