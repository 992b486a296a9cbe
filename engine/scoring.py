"""Three-factor weighted scoring for teacher/course pairings.

Factors (each 0..1):

- equality: how close the teacher's workload would be to the population
  average after taking this course. Teachers below average score above 0.5,
  teachers above average score below 0.5. A population with identical
  workloads scores 1.0 for everybody.
- continuity: share of the course's lessons that sit back-to-back (end time of
  one equals start time of the next, same date) with another slot of the same
  teacher. Zero or one lesson is neutral (0.5).
- loyalty: 1.0 for an existing non-cancelled assignment to the same course,
  0.7 for an exact qualification, 0.4 for a keyword overlap, 0.1 otherwise.

final = sum(factor * weight / 100), reported as a 0..100 percentage.

Scoring is a pure function of the snapshot held by `ScoringContext`; no clock,
no randomness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .availability import busy_slots_by_teacher
from .models import (
    Assignment,
    AssignmentStatus,
    Course,
    ScoreBreakdown,
    Teacher,
    TimeSlot,
    WeightSettings,
)
from .qualification import is_qualified, keyword_overlap
from .timeslots import generate_time_slots

LOYALTY_HISTORY = 1.0
LOYALTY_QUALIFIED = 0.7
LOYALTY_KEYWORD = 0.4
LOYALTY_NONE = 0.1

NEUTRAL = 0.5


@dataclass(frozen=True)
class ScoringContext:
    """Per-run snapshot: workloads, course history and busy slots per teacher."""

    workloads: Dict[int, int]  # teacher_id -> active minutes
    history: Dict[int, Tuple[Tuple[int, int, AssignmentStatus], ...]]  # teacher_id -> (assignment_id, course_id, status)
    busy: Dict[int, Tuple[TimeSlot, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, teachers: Sequence[Teacher], assignments: Sequence[Assignment]) -> "ScoringContext":
        workloads = {t.teacher_id: 0 for t in teachers}
        history: Dict[int, List[Tuple[int, int, AssignmentStatus]]] = {}
        for a in assignments:
            if a.status == AssignmentStatus.ACTIVE:
                workloads[a.teacher_id] = workloads.get(a.teacher_id, 0) + a.scheduled_minutes
            history.setdefault(a.teacher_id, []).append((a.assignment_id, a.course_id, a.status))

        busy = {tid: tuple(slots) for tid, slots in busy_slots_by_teacher(assignments).items()}
        return cls(
            workloads=workloads,
            history={tid: tuple(rows) for tid, rows in history.items()},
            busy=busy,
        )

    def busy_for(self, teacher_id: int) -> Tuple[TimeSlot, ...]:
        return self.busy.get(teacher_id, ())


# ----------------------------
# Factor scores
# ----------------------------


def equality_score(teacher_id: int, added_minutes: int, workloads: Dict[int, int]) -> float:
    loads = list(workloads.values())
    if not loads:
        return 1.0
    hi, lo = max(loads), min(loads)
    if hi == lo:
        return 1.0

    current = workloads.get(teacher_id, 0)
    added = max(0, int(added_minutes))
    proposed = current + added
    avg_after = (sum(loads) + added) / len(loads)
    spread = (hi - lo) + added

    score = NEUTRAL + (avg_after - proposed) / spread
    return max(0.0, min(1.0, score))


def continuity_score(slots: Sequence[TimeSlot], other_slots: Sequence[TimeSlot] = ()) -> float:
    if len(slots) <= 1:
        return NEUTRAL

    # (date, minute) boundaries of every slot the teacher holds that day
    starts: Dict[Tuple[object, int], int] = {}
    ends: Dict[Tuple[object, int], int] = {}
    for s in list(slots) + list(other_slots):
        starts[(s.date, s.start_minute)] = starts.get((s.date, s.start_minute), 0) + 1
        ends[(s.date, s.end_minute)] = ends.get((s.date, s.end_minute), 0) + 1

    linked = 0
    for s in slots:
        if (s.date, s.start_minute) in ends or (s.date, s.end_minute) in starts:
            linked += 1
    return linked / len(slots)


def loyalty_score(
    teacher: Teacher,
    course: Course,
    ctx: ScoringContext,
    exclude_assignment_id: Optional[int] = None,
) -> float:
    for (aid, cid, status) in ctx.history.get(teacher.teacher_id, ()):
        if aid == exclude_assignment_id:
            continue
        if cid == course.course_id and status != AssignmentStatus.CANCELLED:
            return LOYALTY_HISTORY

    if is_qualified(teacher, course):
        return LOYALTY_QUALIFIED
    if keyword_overlap(course.topic, teacher.qualifications) > 0:
        return LOYALTY_KEYWORD
    return LOYALTY_NONE


# ----------------------------
# Combined score
# ----------------------------


def combine(equality: float, continuity: float, loyalty: float, weights: WeightSettings) -> ScoreBreakdown:
    final = (
        equality * float(weights.equality) / 100.0
        + continuity * float(weights.continuity) / 100.0
        + loyalty * float(weights.loyalty) / 100.0
    )
    return ScoreBreakdown(
        equality=equality,
        continuity=continuity,
        loyalty=loyalty,
        final=max(0.0, min(1.0, final)),
    )


def score_pair(
    teacher: Teacher,
    course: Course,
    weights: WeightSettings,
    ctx: ScoringContext,
    *,
    slots: Optional[Sequence[TimeSlot]] = None,
    exclude_assignment_id: Optional[int] = None,
) -> ScoreBreakdown:
    """Score `teacher` for `course`.

    When `slots` is omitted the would-be lessons are generated against the
    teacher's busy calendar, so continuity reflects the actual placement.
    """

    busy = ctx.busy_for(teacher.teacher_id)
    if slots is None:
        slots = generate_time_slots(teacher, course, busy=busy).slots
    own: Set[TimeSlot] = set(slots)
    others = [s for s in busy if s not in own]

    return combine(
        equality_score(teacher.teacher_id, course.total_minutes, ctx.workloads),
        continuity_score(slots, others),
        loyalty_score(teacher, course, ctx, exclude_assignment_id=exclude_assignment_id),
        weights,
    )


def weighting_explanation(score: ScoreBreakdown, weights: WeightSettings) -> str:
    parts: List[str] = []
    if weights.equality > 0:
        parts.append(f"Equality ({weights.equality:g}%): {score.equality * 100:.1f}% - workload distribution")
    if weights.continuity > 0:
        parts.append(f"Continuity ({weights.continuity:g}%): {score.continuity * 100:.1f}% - lesson scheduling")
    if weights.loyalty > 0:
        parts.append(f"Loyalty ({weights.loyalty:g}%): {score.loyalty * 100:.1f}% - teacher-course history")
    parts.append(f"Final Score: {score.percent:.1f}%")
    return " | ".join(parts)
