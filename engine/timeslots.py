"""Lesson placement across a course's date range.

Walk the calendar from the course start to its end; on each day the teacher
works, place one lesson at the start of the working window. When the window
start collides with a slot the teacher is already busy with, the lesson is
pushed to the end of the colliding block. A pushed lesson that no longer fits
inside the window is dropped for that day.

Running out of days before every lesson is placed is not an error here; the
shortfall is returned in `SlotPlan.missing_lessons` and surfaced by conflict
detection as an availability conflict.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Course, Teacher, TimeSlot, minutes_of, time_from_minutes


@dataclass(frozen=True)
class SlotPlan:
    slots: Tuple[TimeSlot, ...]
    missing_lessons: int = 0

    @property
    def complete(self) -> bool:
        return self.missing_lessons == 0


def _iter_days(start: date, end: date) -> Iterable[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _make_slot(day: date, start_min: int, duration: int) -> Optional[TimeSlot]:
    start_t = time_from_minutes(start_min)
    end_t = time_from_minutes(start_min + duration)
    if start_t is None or end_t is None:
        return None
    return TimeSlot(date=day, start_time=start_t, end_time=end_t, duration_minutes=int(duration))


def _first_free_start(start_min: int, duration: int, busy: List[Tuple[int, int]]) -> int:
    """Earliest start >= start_min that does not overlap any busy interval."""

    cur = start_min
    for (b_start, b_end) in sorted(busy):
        if b_end <= cur:
            continue
        if b_start >= cur + duration:
            break
        cur = max(cur, b_end)
    return cur


def generate_time_slots(
    teacher: Teacher,
    course: Course,
    busy: Iterable[TimeSlot] = (),
) -> SlotPlan:
    duration = int(course.lesson_duration)
    remaining = int(course.lessons_count)

    busy_by_day: Dict[date, List[Tuple[int, int]]] = {}
    for s in busy:
        busy_by_day.setdefault(s.date, []).append((s.start_minute, s.end_minute))

    slots: List[TimeSlot] = []
    for day in _iter_days(course.start_date, course.end_date):
        if remaining <= 0:
            break
        window = teacher.window_for(day)
        if window is None:
            continue

        window_start = minutes_of(window.start)
        start_min = _first_free_start(window_start, duration, busy_by_day.get(day, []))
        if start_min != window_start and start_min + duration > minutes_of(window.end):
            continue

        slot = _make_slot(day, start_min, duration)
        if slot is None:
            # lesson would run past midnight
            continue
        slots.append(slot)
        remaining -= 1

    return SlotPlan(slots=tuple(slots), missing_lessons=max(0, remaining))
