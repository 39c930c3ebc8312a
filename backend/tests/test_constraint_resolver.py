from app.schemas.constraints import ScheduleConstraint, StudentConstraint
from app.schemas.settings import Weekday
from app.services.constraint_resolver import resolve
from app.services.intervals import Interval

ALL_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


def make_constraint(constraint_id, start, end, *, scope="schoolwide", grades=(), days=ALL_DAYS, type_="other"):
    return ScheduleConstraint(
        id=constraint_id,
        scope=scope,
        applicable_grades=list(grades),
        label=f"Block {constraint_id}",
        type=type_,
        weekdays=list(days),
        start_time=start,
        end_time=end,
    )


def make_student_constraint(constraint_id, student_id, weekday, start, end):
    return StudentConstraint(
        id=constraint_id,
        student_id=student_id,
        weekday=weekday,
        start_time=start,
        end_time=end,
        reason="Speech therapy",
    )


def test_schoolwide_constraint_applies_to_every_grade():
    lunch = make_constraint("lunch", "11:30", "12:15", type_="lunch")
    for grade in (0, 3, 8):
        timeline = resolve(Weekday.tuesday, grade, [], [lunch], [])
        assert timeline.intervals == [Interval(690, 735)]
        assert timeline.layers["schoolwide"] == [Interval(690, 735)]


def test_grade_constraint_only_applies_to_listed_grades():
    specials = make_constraint("specials", "13:00", "13:45", scope="grade", grades=[3, 4], type_="specials")
    assert resolve(Weekday.monday, 3, [], [specials], []).intervals == [Interval(780, 825)]
    assert resolve(Weekday.monday, 5, [], [specials], []).intervals == []


def test_constraint_only_applies_on_its_weekdays():
    core = make_constraint("core", "09:00", "10:30", days=["monday", "wed"], type_="core_instruction")
    assert resolve(Weekday.wednesday, 2, [], [core], []).intervals == [Interval(540, 630)]
    assert resolve(Weekday.thursday, 2, [], [core], []).intervals == []


def test_student_constraints_union_across_roster_only():
    records = [
        make_student_constraint("sc-1", "s1", "monday", "09:00", "09:30"),
        make_student_constraint("sc-2", "s2", "monday", "09:15", "10:00"),
        make_student_constraint("sc-3", "s3", "monday", "13:00", "14:00"),
        make_student_constraint("sc-4", "s1", "tuesday", "08:00", "08:30"),
    ]
    timeline = resolve(Weekday.monday, 2, ["s1", "s2"], [], records)
    assert timeline.intervals == [Interval(540, 600)]
    assert timeline.layers["student"] == [Interval(540, 600)]


def test_layers_merge_into_single_busy_timeline():
    lunch = make_constraint("lunch", "11:30", "12:15")
    recess = make_constraint("recess", "12:15", "12:30", scope="grade", grades=[2])
    pullout = make_student_constraint("sc-1", "s1", "friday", "12:00", "12:45")
    timeline = resolve(Weekday.friday, 2, ["s1"], [lunch, recess], [pullout])
    assert timeline.intervals == [Interval(690, 765)]
    assert timeline.layers["schoolwide"] == [Interval(690, 735)]
    assert timeline.layers["grade"] == [Interval(735, 750)]
    assert timeline.layers["student"] == [Interval(720, 765)]


def test_reversed_constraint_is_dropped_and_reported():
    broken = make_constraint("broken", "14:00", "09:00")
    lunch = make_constraint("lunch", "11:30", "12:15")
    bad_student = make_student_constraint("sc-bad", "s1", "monday", "10:00", "10:00")

    timeline = resolve(Weekday.monday, 1, ["s1"], [broken, lunch], [bad_student])

    assert timeline.intervals == [Interval(690, 735)]
    assert [(warning.record_id, warning.layer) for warning in timeline.warnings] == [
        ("broken", "schoolwide"),
        ("sc-bad", "student"),
    ]
    assert "Block broken" in timeline.warnings[0].message


def test_reversed_constraint_for_other_grade_is_not_reported():
    broken = make_constraint("broken", "14:00", "09:00", scope="grade", grades=[5])
    timeline = resolve(Weekday.monday, 1, [], [broken], [])
    assert timeline.warnings == []
