"""Weighted scoring and deterministic ranking of candidate slots.

Each component is normalised to ``[0, 1]`` against the length of the day bound,
so weights stay comparable whatever the school day looks like:

* contiguity  - share of the day covered by the free window the slot came from;
* preference  - closeness to the group's preferred start time, if any;
* consistency - closeness to a start time the group already uses on other days.

Higher totals are better. Ties are broken by weekday (Mon first), then start time,
then interventionist id.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from app.schemas.settings import WEEKDAY_INDEX, ScoringWeights, Weekday, minutes_to_time
from app.services.slot_generator import CandidateSlot

SCORE_PRECISION = 6


@dataclass(frozen=True)
class ScoringContext:
    day_length: int
    weights: ScoringWeights
    preferred_start: int | None = None
    anchor_starts: tuple[int, ...] = ()


@dataclass(frozen=True)
class ScoreBreakdown:
    total: float
    contiguity: float
    preference: float
    consistency: float


@dataclass(frozen=True)
class RankedCandidate:
    interventionist_id: str
    weekday: Weekday
    candidate: CandidateSlot
    breakdown: ScoreBreakdown
    rationale: str = field(default="", compare=False)

    @property
    def score(self) -> float:
        return self.breakdown.total

    def sort_key(self) -> tuple:
        return (-self.score, WEEKDAY_INDEX[self.weekday], self.candidate.start, self.interventionist_id)


def _closeness(start: int, target: int, day_length: int) -> float:
    distance = min(abs(start - target), day_length)
    return 1.0 - distance / day_length


def score(candidate: CandidateSlot, context: ScoringContext) -> ScoreBreakdown:
    day_length = max(1, context.day_length)
    contiguity = min(candidate.source.duration, day_length) / day_length
    preference = 0.0
    if context.preferred_start is not None:
        preference = _closeness(candidate.start, context.preferred_start, day_length)
    consistency = 0.0
    if context.anchor_starts:
        consistency = max(_closeness(candidate.start, anchor, day_length) for anchor in context.anchor_starts)

    weights = context.weights
    total = (
        weights.contiguity * contiguity
        + weights.preference * preference
        + weights.consistency * consistency
    )
    return ScoreBreakdown(
        total=round(total, SCORE_PRECISION),
        contiguity=round(contiguity, SCORE_PRECISION),
        preference=round(preference, SCORE_PRECISION),
        consistency=round(consistency, SCORE_PRECISION),
    )


def describe(candidate: CandidateSlot, context: ScoringContext) -> str:
    parts = [f"Inside a {candidate.source.duration}-minute open window ({candidate.source.label})"]
    if context.preferred_start is not None:
        distance = abs(candidate.start - context.preferred_start)
        if distance == 0:
            parts.append(f"matches preferred time {minutes_to_time(context.preferred_start)}")
        else:
            parts.append(f"{distance} min from preferred time {minutes_to_time(context.preferred_start)}")
    if context.anchor_starts:
        nearest = min(context.anchor_starts, key=lambda anchor: (abs(candidate.start - anchor), anchor))
        if nearest == candidate.start:
            parts.append(f"same start time as the group's other sessions ({minutes_to_time(nearest)})")
        else:
            parts.append(f"{abs(candidate.start - nearest)} min from the group's usual {minutes_to_time(nearest)}")
    return "; ".join(parts)


def score_all(
    interventionist_id: str,
    weekday: Weekday,
    candidates: Iterable[CandidateSlot],
    context: ScoringContext,
) -> list[RankedCandidate]:
    return [
        RankedCandidate(
            interventionist_id=interventionist_id,
            weekday=weekday,
            candidate=candidate,
            breakdown=score(candidate, context),
            rationale=describe(candidate, context),
        )
        for candidate in candidates
    ]


def rank(candidates: Sequence[RankedCandidate], limit: int = 3) -> list[RankedCandidate]:
    """Top ``limit`` candidates per (interventionist, weekday), best first.

    Duplicate starts are dropped, and non-overlapping alternatives are preferred
    before windows that overlap one already picked.
    """
    grouped: dict[tuple[str, Weekday], list[RankedCandidate]] = defaultdict(list)
    seen: set[tuple[str, Weekday, int]] = set()
    for item in sorted(candidates, key=RankedCandidate.sort_key):
        key = (item.interventionist_id, item.weekday, item.candidate.start)
        if key in seen:
            continue
        seen.add(key)
        grouped[(item.interventionist_id, item.weekday)].append(item)

    ranked: list[RankedCandidate] = []
    for items in grouped.values():
        picked: list[RankedCandidate] = []
        for item in items:
            if len(picked) >= limit:
                break
            if any(item.candidate.window.overlaps(other.candidate.window) for other in picked):
                continue
            picked.append(item)
        for item in items:
            if len(picked) >= limit:
                break
            if item not in picked:
                picked.append(item)
        ranked.extend(picked)
    return sorted(ranked, key=RankedCandidate.sort_key)
