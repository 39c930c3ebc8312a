from datetime import date

from app.schemas.sessions import CommittedSession
from app.schemas.settings import Weekday
from app.schemas.staff import AvailabilityBlock, Interventionist
from app.services.availability import group_intervals, invalid_blocks, overlapping_weekdays, project_free
from app.services.intervals import Interval

SCHOOL_DAY = Interval(480, 900)


def make_interventionist(*blocks, interventionist_id="i-1"):
    return Interventionist(
        id=interventionist_id,
        name="Ms. Rivera",
        availability=[
            AvailabilityBlock(weekday=day, start_time=start, end_time=end) for day, start, end in blocks
        ],
    )


def make_session(start, duration, *, weekday="monday", interventionist_id="i-1", status="planned", session_date=None):
    return CommittedSession(
        group_id="g-other",
        interventionist_id=interventionist_id,
        weekday=None if session_date else weekday,
        session_date=session_date,
        start_time=start,
        duration_minutes=duration,
        status=status,
    )


def test_no_block_for_weekday_means_no_free_time():
    staff = make_interventionist(("monday", "08:00", "12:00"))
    assert project_free(staff, Weekday.tuesday, [], SCHOOL_DAY) == []


def test_overlapping_blocks_are_merged():
    staff = make_interventionist(("monday", "08:00", "10:00"), ("monday", "09:30", "11:00"), ("monday", "13:00", "14:00"))
    assert project_free(staff, Weekday.monday, [], SCHOOL_DAY) == [Interval(480, 660), Interval(780, 840)]
    assert overlapping_weekdays(staff) == [Weekday.monday]


def test_free_time_is_clipped_to_day_bound():
    staff = make_interventionist(("thursday", "07:00", "16:30"))
    assert project_free(staff, Weekday.thursday, [], SCHOOL_DAY) == [SCHOOL_DAY]


def test_committed_sessions_subtract_from_free_time():
    staff = make_interventionist(("monday", "08:00", "10:00"))
    sessions = [
        make_session("08:30", 30),
        make_session("09:00", 45, interventionist_id="i-2"),
        make_session("09:30", 30, status="cancelled"),
    ]
    assert project_free(staff, Weekday.monday, sessions, SCHOOL_DAY) == [Interval(480, 510), Interval(540, 600)]


def test_dated_sessions_block_their_weekday_only():
    staff = make_interventionist(("wednesday", "08:00", "10:00"), ("monday", "08:00", "10:00"))
    sessions = [
        make_session("08:00", 60, session_date=date(2024, 1, 3)),  # Wednesday
        make_session("08:00", 60, session_date=date(2024, 1, 6)),  # Saturday
    ]
    assert project_free(staff, Weekday.wednesday, sessions, SCHOOL_DAY) == [Interval(540, 600)]
    assert project_free(staff, Weekday.monday, sessions, SCHOOL_DAY) == [Interval(480, 600)]


def test_reversed_blocks_are_ignored_and_reported():
    staff = make_interventionist(("friday", "12:00", "09:00"), ("friday", "13:00", "14:00"))
    assert project_free(staff, Weekday.friday, [], SCHOOL_DAY) == [Interval(780, 840)]
    assert [(block.start_time, block.end_time) for block in invalid_blocks(staff)] == [("12:00", "09:00")]
    assert overlapping_weekdays(staff) == []


def test_group_intervals_cover_the_groups_own_active_sessions():
    sessions = [
        CommittedSession(group_id="g-1", interventionist_id="i-2", weekday="tuesday", start_time="10:00", duration_minutes=30),
        CommittedSession(group_id="g-1", interventionist_id="i-3", weekday="tuesday", start_time="10:15", duration_minutes=30),
        CommittedSession(group_id="g-1", interventionist_id="i-2", weekday="tuesday", start_time="13:00", duration_minutes=30, status="cancelled"),
        make_session("09:00", 30, weekday="tuesday"),
    ]
    assert group_intervals("g-1", Weekday.tuesday, sessions) == [Interval(600, 645)]
    assert group_intervals("g-1", Weekday.monday, sessions) == []
