"""Last-resort assignment for courses nobody is exactly qualified for.

This is the only place where non-exact matching decides an assignment. The
course topic is split into keywords (longer than two characters); teachers are
ranked by how many keywords appear inside their qualifications. The winner is
assigned with a halved score and a rationale that asks for manual review.
A course without any keyword overlap is reported as unassignable.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .models import (
    Assignment,
    AssignmentResult,
    AssignmentStatus,
    Course,
    Teacher,
    TimeSlot,
    UnassignedCourse,
    WeightSettings,
)
from .qualification import find_qualified_teachers, keyword_overlap, topic_keywords
from .scoring import ScoringContext, score_pair
from .timeslots import generate_time_slots

logger = logging.getLogger(__name__)

FALLBACK_PENALTY = 0.5


def rank_partial_matches(course: Course, teachers: Sequence[Teacher]) -> List[Tuple[Teacher, int]]:
    """Teachers with at least one keyword hit, best first (ties: lowest id)."""

    ranked = []
    for t in teachers:
        hits = keyword_overlap(course.topic, t.qualifications)
        if hits > 0:
            ranked.append((t, hits))
    ranked.sort(key=lambda pair: (-pair[1], pair[0].teacher_id))
    return ranked


def fallback_rationale(teacher: Teacher, course: Course, hits: int) -> str:
    return (
        f"Fallback assignment - no teacher holds the exact qualification '{course.topic}'. "
        f"{teacher.name} matched {hits} topic keyword(s) in their qualifications. "
        f"Manual review required."
    )


def assign_fallback(
    course: Course,
    teachers: Sequence[Teacher],
    weights: WeightSettings,
    ctx: ScoringContext,
    *,
    assignment_id: int,
    has_capacity: Optional[Callable[[int], bool]] = None,
    busy_for: Optional[Callable[[int], Sequence[TimeSlot]]] = None,
) -> Union[AssignmentResult, UnassignedCourse]:
    if find_qualified_teachers(course, teachers):
        raise ValueError(f"Course {course.course_id} has exactly qualified teachers; fallback does not apply")

    if not topic_keywords(course.topic):
        return UnassignedCourse(course=course, reason=f"No qualified teacher for '{course.topic}' and no usable topic keywords")

    ranked = rank_partial_matches(course, teachers)
    related = len(ranked)
    if has_capacity is not None:
        ranked = [(t, hits) for (t, hits) in ranked if has_capacity(t.teacher_id)]
    if not ranked:
        logger.warning("course %s (%s) is unassignable", course.course_id, course.topic)
        if related:
            reason = f"No qualified teacher for '{course.topic}' and every related teacher is at capacity"
        else:
            reason = f"No qualified teacher for '{course.topic}' and no teacher with related qualifications"
        return UnassignedCourse(course=course, reason=reason)

    teacher, hits = ranked[0]
    lookup = busy_for or ctx.busy_for
    plan = generate_time_slots(teacher, course, busy=lookup(teacher.teacher_id))
    breakdown = score_pair(teacher, course, weights, ctx, slots=plan.slots)

    assignment = Assignment(
        assignment_id=assignment_id,
        teacher_id=teacher.teacher_id,
        course_id=course.course_id,
        scheduled_slots=plan.slots,
        status=AssignmentStatus.PENDING,
        rationale=fallback_rationale(teacher, course, hits),
        is_fallback=True,
    )
    logger.info("fallback: course %s -> teacher %s (%d keyword hits)", course.course_id, teacher.teacher_id, hits)
    return AssignmentResult(
        teacher=teacher,
        course=course,
        assignment=assignment,
        score=breakdown.percent * FALLBACK_PENALTY,
        breakdown=breakdown,
    )
