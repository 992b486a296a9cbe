"""Conflict detection over a set of assignments.

Only assignments that occupy a calendar (active or pending) are considered.
Detection is side-effect free and always returns the complete list, sorted by
descending severity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .availability import is_available
from .models import (
    Assignment,
    AvailabilityConflict,
    Conflict,
    Course,
    QualificationMismatchConflict,
    Severity,
    Teacher,
    TimeOverlapConflict,
    TimeSlot,
    WorkloadExceededConflict,
)
from .qualification import is_qualified
from .timeslots import generate_time_slots

T = TypeVar("T")


@dataclass(frozen=True)
class DetectionSettings:
    # workload spread, counted in assignments per teacher
    max_assignment_spread: int = 3
    critical_assignment_spread: int = 5
    # optional spread limit in teaching hours; None disables the check
    max_hours_spread: Optional[float] = None


def _scheduled(assignments: Sequence[Assignment]) -> List[Assignment]:
    return sorted((a for a in assignments if a.occupies_calendar), key=lambda a: a.assignment_id)


def _index(items: Iterable[T], key: Callable[[T], int]) -> Dict[int, T]:
    return {key(x): x for x in items}


# ----------------------------
# Individual detectors
# ----------------------------


def detect_time_overlaps(assignments: Sequence[Assignment]) -> List[Conflict]:
    conflicts: List[Conflict] = []
    active = _scheduled(assignments)

    for idx, a in enumerate(active):
        # overlapping lessons inside a single assignment
        slots = sorted(a.scheduled_slots, key=lambda s: (s.date, s.start_minute))
        for k in range(len(slots) - 1):
            if slots[k].overlaps(slots[k + 1]):
                conflicts.append(
                    TimeOverlapConflict(
                        description=(
                            f"Teacher {a.teacher_id} has overlapping lessons inside assignment "
                            f"{a.assignment_id}: {slots[k].label()} and {slots[k + 1].label()}"
                        ),
                        severity=Severity.CRITICAL,
                        affected_assignments=(a.assignment_id,),
                        teacher_id=a.teacher_id,
                        first_slot=slots[k],
                        second_slot=slots[k + 1],
                    )
                )
                break

        for b in active[idx + 1:]:
            if b.teacher_id != a.teacher_id:
                continue
            hit = _first_overlap(a, b)
            if hit is None:
                continue
            s1, s2 = hit
            conflicts.append(
                TimeOverlapConflict(
                    description=(
                        f"Teacher {a.teacher_id} has overlapping time slots between assignments "
                        f"{a.assignment_id} and {b.assignment_id}: {s1.label()} and {s2.label()}"
                    ),
                    severity=Severity.CRITICAL,
                    affected_assignments=(a.assignment_id, b.assignment_id),
                    teacher_id=a.teacher_id,
                    first_slot=s1,
                    second_slot=s2,
                )
            )
    return conflicts


def _first_overlap(a: Assignment, b: Assignment) -> Optional[Tuple[TimeSlot, TimeSlot]]:
    for s1 in sorted(a.scheduled_slots, key=lambda s: (s.date, s.start_minute)):
        for s2 in b.scheduled_slots:
            if s1.overlaps(s2):
                return s1, s2
    return None


def detect_qualification_mismatches(
    assignments: Sequence[Assignment],
    teachers: Mapping[int, Teacher],
    courses: Mapping[int, Course],
) -> List[Conflict]:
    conflicts: List[Conflict] = []
    for a in _scheduled(assignments):
        teacher = teachers.get(a.teacher_id)
        course = courses.get(a.course_id)
        if teacher is None or course is None:
            continue
        if is_qualified(teacher, course):
            continue
        quals = ", ".join(sorted(teacher.qualifications)) or "none"
        conflicts.append(
            QualificationMismatchConflict(
                description=(
                    f"{teacher.name} lacks exact qualification for {course.topic}. "
                    f"Teacher qualifications: {quals}"
                ),
                severity=Severity.CRITICAL,
                affected_assignments=(a.assignment_id,),
                teacher_id=teacher.teacher_id,
                course_id=course.course_id,
                topic=course.topic,
            )
        )
    return conflicts


def detect_availability_conflicts(
    assignments: Sequence[Assignment],
    teachers: Mapping[int, Teacher],
    courses: Mapping[int, Course],
) -> List[Conflict]:
    conflicts: List[Conflict] = []
    for a in _scheduled(assignments):
        teacher = teachers.get(a.teacher_id)
        if teacher is None:
            continue

        for slot in a.scheduled_slots:
            if is_available(teacher, slot):
                continue
            conflicts.append(
                AvailabilityConflict(
                    description=f"{teacher.name} not available during {slot.label()}",
                    severity=Severity.HIGH,
                    affected_assignments=(a.assignment_id,),
                    teacher_id=teacher.teacher_id,
                    slot=slot,
                )
            )

        course = courses.get(a.course_id)
        if course is None:
            continue
        missing = int(course.lessons_count) - len(a.scheduled_slots)
        if missing > 0:
            placed = len(a.scheduled_slots)
            # windows too narrow for the course: high regardless of how many fit
            window_bound = generate_time_slots(teacher, course).missing_lessons > 0
            if window_bound or placed * 2 < int(course.lessons_count):
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM
            conflicts.append(
                AvailabilityConflict(
                    description=(
                        f"Only {placed} of {course.lessons_count} lessons of {course.topic} fit "
                        f"{teacher.name}'s working times between {course.start_date.isoformat()} "
                        f"and {course.end_date.isoformat()}"
                    ),
                    severity=severity,
                    affected_assignments=(a.assignment_id,),
                    teacher_id=teacher.teacher_id,
                    slot=None,
                    missing_lessons=missing,
                )
            )
    return conflicts


def detect_workload_imbalance(
    assignments: Sequence[Assignment],
    teachers: Sequence[Teacher],
    settings: DetectionSettings = DetectionSettings(),
) -> List[Conflict]:
    if not teachers:
        return []

    active = _scheduled(assignments)
    counts: Dict[int, int] = {t.teacher_id: 0 for t in teachers}
    minutes: Dict[int, int] = {t.teacher_id: 0 for t in teachers}
    for a in active:
        if a.teacher_id not in counts:
            continue
        counts[a.teacher_id] += 1
        minutes[a.teacher_id] += a.scheduled_minutes

    conflicts: List[Conflict] = []

    spread = max(counts.values()) - min(counts.values())
    if spread > settings.max_assignment_spread:
        avg = sum(counts.values()) / len(counts)
        overloaded = tuple(sorted(tid for tid, c in counts.items() if c > avg))
        severity = Severity.CRITICAL if spread > settings.critical_assignment_spread else Severity.HIGH
        conflicts.append(
            WorkloadExceededConflict(
                description=(
                    f"Severe workload imbalance: assignment counts range from {min(counts.values())} "
                    f"to {max(counts.values())} ({len(overloaded)} teacher(s) above average)"
                ),
                severity=severity,
                affected_assignments=tuple(a.assignment_id for a in active if a.teacher_id in overloaded),
                spread=float(spread),
                threshold=float(settings.max_assignment_spread),
                metric="assignments",
                overloaded_teacher_ids=overloaded,
            )
        )

    if settings.max_hours_spread is not None:
        hours = {tid: m / 60.0 for tid, m in minutes.items()}
        h_spread = max(hours.values()) - min(hours.values())
        limit = float(settings.max_hours_spread)
        if h_spread > limit:
            avg_h = sum(hours.values()) / len(hours)
            overloaded = tuple(sorted(tid for tid, h in hours.items() if h > avg_h))
            conflicts.append(
                WorkloadExceededConflict(
                    description=(
                        f"Teaching hours range from {min(hours.values()):.1f}h to {max(hours.values()):.1f}h, "
                        f"exceeding the allowed spread of {limit:g}h"
                    ),
                    severity=Severity.CRITICAL if h_spread > 2 * limit else Severity.HIGH,
                    affected_assignments=tuple(a.assignment_id for a in active if a.teacher_id in overloaded),
                    spread=h_spread,
                    threshold=limit,
                    metric="hours",
                    overloaded_teacher_ids=overloaded,
                )
            )

    return conflicts


# ----------------------------
# Entry points
# ----------------------------


def sort_conflicts(conflicts: Sequence[Conflict]) -> List[Conflict]:
    return sorted(conflicts, key=lambda c: c.sort_key())


def detect_conflicts(
    assignments: Sequence[Assignment],
    teachers: Sequence[Teacher],
    courses: Sequence[Course],
    settings: DetectionSettings = DetectionSettings(),
) -> List[Conflict]:
    teacher_map = _index(teachers, lambda t: t.teacher_id)
    course_map = _index(courses, lambda c: c.course_id)

    conflicts: List[Conflict] = []
    conflicts.extend(detect_time_overlaps(assignments))
    conflicts.extend(detect_qualification_mismatches(assignments, teacher_map, course_map))
    conflicts.extend(detect_availability_conflicts(assignments, teacher_map, course_map))
    conflicts.extend(detect_workload_imbalance(assignments, teachers, settings))
    return sort_conflicts(conflicts)


def conflicts_for(assignment_id: int, conflicts: Sequence[Conflict]) -> Tuple[Conflict, ...]:
    return tuple(c for c in conflicts if assignment_id in c.affected_assignments)


def summarize_severity(conflicts: Sequence[Conflict]) -> Dict[str, int]:
    """Weighted total plus per-severity counts."""

    summary = {"total_score": 0, "critical_count": 0, "high_count": 0, "medium_count": 0, "low_count": 0}
    for c in conflicts:
        summary["total_score"] += c.severity.weight
        summary[f"{c.severity.value}_count"] += 1
    return summary
