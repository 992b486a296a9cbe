from __future__ import annotations

import sys
from datetime import date, time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine.availability import busy_slots_by_teacher, is_available, unavailable_slots
from engine.models import Assignment, AssignmentStatus, Teacher, TimeRange, TimeSlot, Weekday

MONDAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)


def _slot(day: date, start: time, end: time) -> TimeSlot:
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    return TimeSlot(day, start, end, minutes)


def test_slot_inside_window_is_available() -> None:
    t = Teacher(1, "Ada", frozenset({"Math"}), {Weekday.MONDAY: TimeRange(time(8), time(16))})
    assert is_available(t, _slot(MONDAY, time(8), time(9)))
    assert is_available(t, _slot(MONDAY, time(15), time(16)))


def test_slot_outside_window_or_day_is_unavailable() -> None:
    t = Teacher(1, "Ada", frozenset({"Math"}), {Weekday.MONDAY: TimeRange(time(8), time(16))})
    late = _slot(MONDAY, time(15, 30), time(16, 30))
    tuesday = _slot(TUESDAY, time(9), time(10))

    assert not is_available(t, late)
    assert not is_available(t, tuesday)
    assert unavailable_slots(t, [late, _slot(MONDAY, time(9), time(10)), tuesday]) == [late, tuesday]


def test_teacher_without_working_times_is_always_available() -> None:
    t = Teacher(1, "Ada", frozenset({"Math"}))
    assert is_available(t, _slot(TUESDAY, time(20), time(21)))


def test_busy_slots_ignore_completed_and_cancelled() -> None:
    s1 = _slot(MONDAY, time(8), time(9))
    s2 = _slot(MONDAY, time(10), time(11))
    s3 = _slot(MONDAY, time(12), time(13))
    assignments = [
        Assignment(1, 7, 1, (s1,), AssignmentStatus.ACTIVE),
        Assignment(2, 7, 2, (s2,), AssignmentStatus.COMPLETED),
        Assignment(3, 7, 3, (s3,), AssignmentStatus.PENDING),
        Assignment(4, 8, 4, (s1,), AssignmentStatus.CANCELLED),
    ]
    busy = busy_slots_by_teacher(assignments)
    assert busy == {7: [s1, s3]}
