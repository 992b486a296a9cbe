"""Automatic conflict remediation.

Each conflict type has one fixed treatment:

- time_overlap: regenerate the lessons of one movable assignment around the
  teacher's other slots; keep the new lessons only if the overlap is gone and
  no lesson was lost, otherwise mark the assignment pending.
- availability_conflict: needs another teacher or other course dates, so the
  assignment is marked pending for manual review.
- workload_exceeded: would need a new solver run with another teacher, so the
  affected assignments are marked pending with a reassignment note.
- qualification_mismatch: never resolved; reported as blocking.

Assignments listed in `fixed_ids` (typically pre-existing, persisted ones) are
never modified. No assignment is ever dropped from the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import ClassVar, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .conflicts import detect_time_overlaps, sort_conflicts
from .models import (
    Assignment,
    AssignmentStatus,
    AvailabilityConflict,
    Conflict,
    Course,
    QualificationMismatchConflict,
    Teacher,
    TimeOverlapConflict,
    TimeSlot,
    WorkloadExceededConflict,
)
from .timeslots import generate_time_slots

logger = logging.getLogger(__name__)

RESCHEDULED_NOTE = "Rescheduled to resolve time conflicts."
OVERLAP_NOTE = "Time overlap could not be resolved automatically - manual rescheduling required."
AVAILABILITY_NOTE = "Availability conflict detected - manual resolution required."
WORKLOAD_NOTE = "Workload imbalance detected - consider reassigning."


# ----------------------------
# Actions
# ----------------------------


@dataclass(frozen=True)
class ResolutionAction:
    assignment_id: int
    note: str

    kind: ClassVar[str]


@dataclass(frozen=True)
class RescheduleAction(ResolutionAction):
    old_slots: Tuple[TimeSlot, ...]
    new_slots: Tuple[TimeSlot, ...]

    kind: ClassVar[str] = "reschedule"


@dataclass(frozen=True)
class FlagForReviewAction(ResolutionAction):
    conflict: Conflict

    kind: ClassVar[str] = "flag_for_review"


@dataclass(frozen=True)
class BlockingAction(ResolutionAction):
    conflict: Conflict

    kind: ClassVar[str] = "blocked"


@dataclass(frozen=True)
class ResolutionOutcome:
    assignments: Tuple[Assignment, ...]
    resolved: Tuple[Conflict, ...]
    unresolved: Tuple[Conflict, ...]
    actions: Tuple[ResolutionAction, ...]

    def by_id(self) -> Dict[int, Assignment]:
        return {a.assignment_id: a for a in self.assignments}


# ----------------------------
# Helpers
# ----------------------------


def _with_note(a: Assignment, note: str) -> Optional[str]:
    current = a.rationale or ""
    if note in current:
        return a.rationale
    return f"{note} {current}".strip()


def _mark_pending(a: Assignment, note: str) -> Assignment:
    return replace(a, status=AssignmentStatus.PENDING, rationale=_with_note(a, note))


def _still_overlapping(conflict: TimeOverlapConflict, working: Dict[int, Assignment]) -> bool:
    involved = [working[aid] for aid in conflict.affected_assignments if aid in working]
    return bool(detect_time_overlaps(involved))


def _teacher_slots(working: Dict[int, Assignment], teacher_id: int, exclude: int) -> List[TimeSlot]:
    out: List[TimeSlot] = []
    for aid, a in working.items():
        if aid == exclude or a.teacher_id != teacher_id or not a.occupies_calendar:
            continue
        out.extend(a.scheduled_slots)
    return out


def _try_reschedule(
    a: Assignment,
    working: Dict[int, Assignment],
    teachers: Dict[int, Teacher],
    courses: Dict[int, Course],
) -> Optional[Assignment]:
    teacher = teachers.get(a.teacher_id)
    course = courses.get(a.course_id)
    if teacher is None or course is None:
        return None

    busy = _teacher_slots(working, a.teacher_id, exclude=a.assignment_id)
    plan = generate_time_slots(teacher, course, busy=busy)
    if len(plan.slots) < len(a.scheduled_slots) or not plan.slots:
        return None

    candidate = replace(a, scheduled_slots=plan.slots, rationale=_with_note(a, RESCHEDULED_NOTE))
    same_teacher = [x for aid, x in working.items() if aid != a.assignment_id and x.teacher_id == a.teacher_id]
    remaining = detect_time_overlaps(same_teacher + [candidate])
    if any(a.assignment_id in c.affected_assignments for c in remaining):
        return None
    return candidate


# ----------------------------
# Entry point
# ----------------------------


def resolve_conflicts(
    assignments: Sequence[Assignment],
    conflicts: Sequence[Conflict],
    teachers: Sequence[Teacher],
    courses: Sequence[Course],
    *,
    fixed_ids: Iterable[int] = (),
) -> ResolutionOutcome:
    fixed: FrozenSet[int] = frozenset(fixed_ids)
    working: Dict[int, Assignment] = {a.assignment_id: a for a in assignments}
    teacher_map = {t.teacher_id: t for t in teachers}
    course_map = {c.course_id: c for c in courses}

    resolved: List[Conflict] = []
    unresolved: List[Conflict] = []
    actions: List[ResolutionAction] = []

    def movable(conflict: Conflict) -> List[int]:
        return [aid for aid in sorted(conflict.affected_assignments, reverse=True) if aid in working and aid not in fixed]

    def flag(conflict: Conflict, note: str) -> None:
        ids = movable(conflict)
        for aid in ids:
            working[aid] = _mark_pending(working[aid], note)
        target = ids[0] if ids else (conflict.affected_assignments[0] if conflict.affected_assignments else -1)
        actions.append(FlagForReviewAction(assignment_id=target, note=note, conflict=conflict))
        unresolved.append(conflict)

    for conflict in sort_conflicts(conflicts):
        if isinstance(conflict, QualificationMismatchConflict):
            target = conflict.affected_assignments[0] if conflict.affected_assignments else -1
            actions.append(
                BlockingAction(
                    assignment_id=target,
                    note=f"Qualification mismatch for {conflict.topic} must be resolved manually.",
                    conflict=conflict,
                )
            )
            unresolved.append(conflict)

        elif isinstance(conflict, TimeOverlapConflict):
            if not _still_overlapping(conflict, working):
                resolved.append(conflict)
                continue

            done = False
            for aid in movable(conflict):
                original = working[aid]
                candidate = _try_reschedule(original, working, teacher_map, course_map)
                if candidate is None:
                    continue
                working[aid] = candidate
                actions.append(
                    RescheduleAction(
                        assignment_id=aid,
                        note=RESCHEDULED_NOTE,
                        old_slots=original.scheduled_slots,
                        new_slots=candidate.scheduled_slots,
                    )
                )
                resolved.append(conflict)
                done = True
                logger.debug("rescheduled assignment %s to clear overlap", aid)
                break

            if not done:
                ids = movable(conflict)[:1]
                for aid in ids:
                    working[aid] = _mark_pending(working[aid], OVERLAP_NOTE)
                actions.append(
                    FlagForReviewAction(
                        assignment_id=ids[0] if ids else conflict.affected_assignments[0],
                        note=OVERLAP_NOTE,
                        conflict=conflict,
                    )
                )
                unresolved.append(conflict)

        elif isinstance(conflict, AvailabilityConflict):
            flag(conflict, AVAILABILITY_NOTE)

        elif isinstance(conflict, WorkloadExceededConflict):
            over = ", ".join(str(t) for t in conflict.overloaded_teacher_ids) or "none"
            flag(conflict, f"{WORKLOAD_NOTE} Overloaded teacher(s): {over}.")

        else:
            unresolved.append(conflict)

    logger.debug("resolution: %d resolved, %d unresolved", len(resolved), len(unresolved))
    return ResolutionOutcome(
        assignments=tuple(working[aid] for aid in sorted(working)),
        resolved=tuple(resolved),
        unresolved=tuple(unresolved),
        actions=tuple(actions),
    )
