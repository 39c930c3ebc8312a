from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Mapping, Sequence

from app.schemas.suggestions import ConstraintLayer
from app.services.intervals import Interval, is_covered, overlaps_any, subtract_all

DEFAULT_STEP_MINUTES = 5

# Reporting order when two layers eliminate the same number of windows.
LAYER_PRIORITY: tuple[ConstraintLayer, ...] = ("staff_availability", "schoolwide", "grade", "student")


@dataclass(frozen=True)
class CandidateSlot:
    window: Interval
    source: Interval

    @property
    def start(self) -> int:
        return self.window.start

    @property
    def end(self) -> int:
        return self.window.end


def generate_slots(
    free_intervals: Sequence[Interval],
    busy_intervals: Sequence[Interval],
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> list[CandidateSlot]:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    candidates: list[CandidateSlot] = []
    for window in subtract_all(free_intervals, busy_intervals):
        if window.duration < duration_minutes:
            continue
        start = window.start
        while start + duration_minutes <= window.end:
            candidates.append(CandidateSlot(window=Interval(start, start + duration_minutes), source=window))
            start += step_minutes
    return candidates


def day_windows(day_bound: Interval, duration_minutes: int, step_minutes: int) -> list[Interval]:
    windows: list[Interval] = []
    start = day_bound.start
    while start + duration_minutes <= day_bound.end:
        windows.append(Interval(start, start + duration_minutes))
        start += step_minutes
    return windows


def count_eliminations(
    day_bound: Interval,
    staff_free: Sequence[Interval],
    layers: Mapping[ConstraintLayer, Sequence[Interval]],
    duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> Counter[ConstraintLayer]:
    """Attribute each rejected window on the day grid to every layer that blocks it."""
    eliminated: Counter[ConstraintLayer] = Counter()
    for window in day_windows(day_bound, duration_minutes, step_minutes):
        if not is_covered(window, staff_free):
            eliminated["staff_availability"] += 1
        for layer, blocked in layers.items():
            if overlaps_any(window, blocked):
                eliminated[layer] += 1
    return eliminated


def dominant_layer(eliminated: Counter[ConstraintLayer]) -> ConstraintLayer | None:
    best: ConstraintLayer | None = None
    for layer in LAYER_PRIORITY:
        if eliminated.get(layer, 0) <= 0:
            continue
        if best is None or eliminated[layer] > eliminated[best]:
            best = layer
    return best
