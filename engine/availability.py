"""Working-window checks for teachers."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .models import Assignment, Teacher, TimeSlot


def is_available(teacher: Teacher, slot: TimeSlot) -> bool:
    """True when `slot` lies inside the teacher's window for that weekday.

    A teacher with no declared working times at all is treated as always
    available; otherwise a weekday without a window means "not working".
    """

    if not teacher.working_times:
        return True
    window = teacher.window_for(slot.date)
    if window is None:
        return False
    return slot.start_time >= window.start and slot.end_time <= window.end and slot.end_minute > slot.start_minute


def unavailable_slots(teacher: Teacher, slots: Iterable[TimeSlot]) -> List[TimeSlot]:
    return [s for s in slots if not is_available(teacher, s)]


def busy_slots_by_teacher(assignments: Sequence[Assignment]) -> Dict[int, List[TimeSlot]]:
    """Slots already occupying each teacher's calendar (active/pending only)."""

    out: Dict[int, List[TimeSlot]] = {}
    for a in assignments:
        if not a.occupies_calendar:
            continue
        out.setdefault(a.teacher_id, []).extend(a.scheduled_slots)
    return out
