from __future__ import annotations

import sys
from datetime import date, time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine.models import Course, Teacher, TimeRange, TimeSlot, Weekday
from engine.timeslots import generate_time_slots

WORKDAYS = (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY)


def _teacher(start: time = time(8), end: time = time(16)) -> Teacher:
    return Teacher(1, "Ada", frozenset({"Math"}), {d: TimeRange(start, end) for d in WORKDAYS})


def test_one_lesson_per_working_day_at_window_start() -> None:
    course = Course(1, "Math", 3, 90, date(2024, 1, 1), date(2024, 1, 5))
    plan = generate_time_slots(_teacher(), course)

    assert plan.complete
    assert [s.date for s in plan.slots] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
    assert all(s.start_time == time(8) and s.end_time == time(9, 30) for s in plan.slots)
    assert all(s.duration_minutes == 90 for s in plan.slots)


def test_weekend_days_are_skipped() -> None:
    # Saturday to Tuesday
    course = Course(1, "Math", 2, 60, date(2024, 1, 6), date(2024, 1, 9))
    plan = generate_time_slots(_teacher(), course)
    assert [s.date for s in plan.slots] == [date(2024, 1, 8), date(2024, 1, 9)]


def test_shortfall_is_reported_not_hidden() -> None:
    course = Course(1, "Math", 5, 60, date(2024, 1, 1), date(2024, 1, 3))
    plan = generate_time_slots(_teacher(), course)
    assert len(plan.slots) == 3
    assert plan.missing_lessons == 2
    assert not plan.complete


def test_busy_block_pushes_lesson_later() -> None:
    course = Course(1, "Math", 1, 90, date(2024, 1, 1), date(2024, 1, 1))
    busy = [TimeSlot(date(2024, 1, 1), time(8), time(9), 60)]
    plan = generate_time_slots(_teacher(), course, busy=busy)
    assert plan.slots == (TimeSlot(date(2024, 1, 1), time(9), time(10, 30), 90),)


def test_pushed_lesson_that_no_longer_fits_moves_to_next_day() -> None:
    course = Course(1, "Math", 1, 90, date(2024, 1, 1), date(2024, 1, 2))
    busy = [TimeSlot(date(2024, 1, 1), time(8), time(9), 60)]
    plan = generate_time_slots(_teacher(time(8), time(10)), course, busy=busy)
    assert [s.date for s in plan.slots] == [date(2024, 1, 2)]
    assert plan.slots[0].start_time == time(8)


def test_no_working_days_in_range_yields_no_slots() -> None:
    teacher = Teacher(1, "Ada", frozenset({"Math"}), {Weekday.MONDAY: TimeRange(time(8), time(16))})
    course = Course(1, "Math", 2, 60, date(2024, 1, 2), date(2024, 1, 5))
    plan = generate_time_slots(teacher, course)
    assert plan.slots == ()
    assert plan.missing_lessons == 2
