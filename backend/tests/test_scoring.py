from app.schemas.settings import ScoringWeights, Weekday
from app.services.intervals import Interval
from app.services.scoring import RankedCandidate, ScoreBreakdown, ScoringContext, rank, score, score_all
from app.services.slot_generator import CandidateSlot, generate_slots

DAY_LENGTH = 420


def context(**overrides):
    values = {"day_length": DAY_LENGTH, "weights": ScoringWeights()}
    values.update(overrides)
    return ScoringContext(**values)


def slot(start, end, source_start=None, source_end=None):
    return CandidateSlot(
        window=Interval(start, end),
        source=Interval(source_start if source_start is not None else start, source_end if source_end is not None else end),
    )


def ranked(weekday, start, total, interventionist_id="i-1"):
    return RankedCandidate(
        interventionist_id=interventionist_id,
        weekday=weekday,
        candidate=slot(start, start + 30),
        breakdown=ScoreBreakdown(total=total, contiguity=0.0, preference=0.0, consistency=0.0),
    )


def test_longer_contiguous_window_never_scores_lower():
    short = score(slot(540, 570, 540, 600), context())
    long = score(slot(540, 570, 540, 720), context())
    assert long.total > short.total
    assert long.contiguity > short.contiguity


def test_preference_proximity_decreases_with_distance():
    ctx = context(preferred_start=600)
    at_preferred = score(slot(600, 630, 480, 900), ctx)
    near = score(slot(615, 645, 480, 900), ctx)
    far = score(slot(780, 810, 480, 900), ctx)
    assert at_preferred.total > near.total > far.total
    assert at_preferred.preference == 1.0


def test_consistency_rewards_the_groups_existing_time():
    ctx = context(anchor_starts=(600,))
    same_time = score(slot(600, 630, 480, 900), ctx)
    other_time = score(slot(660, 690, 480, 900), ctx)
    assert same_time.total > other_time.total
    assert same_time.consistency == 1.0


def test_zero_weight_removes_a_component():
    weights = ScoringWeights(contiguity=0.0, preference=1.0, consistency=0.0)
    ctx = context(weights=weights)
    assert score(slot(540, 570, 540, 900), ctx).total == 0.0


def test_rationale_mentions_window_and_preference():
    ctx = context(preferred_start=540, anchor_starts=(600,))
    item = score_all("i-1", Weekday.monday, [slot(555, 585, 480, 690)], ctx)[0]
    assert "210-minute open window (08:00-11:30)" in item.rationale
    assert "15 min from preferred time 09:00" in item.rationale
    assert "45 min from the group's usual 10:00" in item.rationale


def test_rank_breaks_ties_by_weekday_then_start_then_interventionist():
    items = [
        ranked(Weekday.tuesday, 540, 1.0),
        ranked(Weekday.monday, 600, 1.0, interventionist_id="i-2"),
        ranked(Weekday.monday, 600, 1.0, interventionist_id="i-1"),
        ranked(Weekday.monday, 660, 1.0),
        ranked(Weekday.friday, 480, 2.0),
    ]
    ordered = rank(items, limit=5)
    assert [(item.weekday, item.candidate.start, item.interventionist_id) for item in ordered] == [
        (Weekday.friday, 480, "i-1"),
        (Weekday.monday, 600, "i-1"),
        (Weekday.monday, 600, "i-2"),
        (Weekday.monday, 660, "i-1"),
        (Weekday.tuesday, 540, "i-1"),
    ]


def test_rank_limits_per_day_and_prefers_non_overlapping_alternatives():
    candidates = generate_slots([Interval(480, 630)], [], 30, 5)
    scored = score_all("i-1", Weekday.monday, candidates, context(preferred_start=480))

    top = rank(scored, limit=3)

    assert [item.candidate.start for item in top] == [480, 510, 540]


def test_rank_fills_with_overlapping_windows_when_needed():
    candidates = generate_slots([Interval(480, 520)], [], 30, 5)
    scored = score_all("i-1", Weekday.monday, candidates, context(preferred_start=480))

    top = rank(scored, limit=3)

    assert [item.candidate.start for item in top] == [480, 485, 490]


def test_rank_drops_duplicate_starts():
    items = [ranked(Weekday.monday, 540, 1.0), ranked(Weekday.monday, 540, 1.0)]
    assert len(rank(items, limit=3)) == 1


def test_rank_is_independent_of_input_order():
    candidates = generate_slots([Interval(480, 900)], [Interval(690, 735)], 45, 5)
    scored = score_all("i-1", Weekday.wednesday, candidates, context(preferred_start=700))
    assert rank(scored) == rank(list(reversed(scored)))
