"""End-to-end assignment optimization.

    validate -> match -> cost matrix -> solve -> schedule -> fallback
             -> detect -> resolve -> detect again -> score -> report

The run is a pure function of its arguments: inputs are read-only snapshots,
nothing is persisted and no state survives the call. Progress is reported
through an optional synchronous `on_phase(phase, details)` callback.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import pandas as pd

from optimizer import SolverConfig, solve_assignment
from utils.workload_report import teacher_workload_df, workload_recommendations

from .conflicts import DetectionSettings, conflicts_for, detect_conflicts
from .cost_matrix import FORBIDDEN_COST, CostMatrix, build_cost_matrix
from .fallback import FALLBACK_PENALTY, assign_fallback
from .models import (
    BALANCED_WEIGHTS,
    Assignment,
    AssignmentResult,
    AssignmentStatus,
    Conflict,
    Course,
    ScoreBreakdown,
    Teacher,
    TimeSlot,
    UnassignedCourse,
    WeightSettings,
)
from .qualification import find_qualified_teachers, qualification_matches
from .resolution import ResolutionAction, resolve_conflicts
from .scoring import ScoringContext, score_pair
from .timeslots import generate_time_slots
from .validation import ensure_valid_inputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentConstraints:
    # new assignments per teacher in one run; None = unlimited
    max_assignments_per_teacher: Optional[int] = 1
    auto_resolve: bool = True


class PhaseCallback(Protocol):
    def __call__(self, phase: str, details: Dict[str, object]) -> None:  # pragma: no cover
        """Called synchronously after each phase completes."""


@dataclass
class OptimizationReport:
    results: List[AssignmentResult]
    unassigned: List[UnassignedCourse]
    conflicts: List[Conflict]  # unresolved, including ones between pre-existing assignments
    recommendations: List[str]
    total_score: float
    strategy: str
    optimal: bool
    actions: Tuple[ResolutionAction, ...] = ()
    teachers: Tuple[Teacher, ...] = ()
    assignments: Tuple[Assignment, ...] = ()  # existing + proposed, after resolution

    def workload_frame(self) -> pd.DataFrame:
        return teacher_workload_df(
            teachers=self.teachers,
            assignments=self.assignments,
            include_statuses=(AssignmentStatus.ACTIVE, AssignmentStatus.PENDING),
        )

    @property
    def proposed(self) -> List[Assignment]:
        return [r.assignment for r in self.results]


def formulaic_rationale(teacher: Teacher, course: Course, breakdown: ScoreBreakdown, weights: WeightSettings) -> str:
    return (
        f"{teacher.name} assigned to {course.topic} based on exact qualification match "
        f"and optimization weights ({weights.describe()}). "
        f"Weighted score: {breakdown.percent:.1f}%."
    )


def _notify(on_phase: Optional[PhaseCallback], phase: str, **details) -> None:
    logger.debug("phase %s: %s", phase, details)
    if on_phase is not None:
        on_phase(phase, details)


def _propose(
    matrix: CostMatrix,
    pairs: Sequence[Tuple[int, int]],
    teachers: Dict[int, Teacher],
    courses: Dict[int, Course],
    weights: WeightSettings,
    ctx: ScoringContext,
    next_id: int,
) -> Tuple[List[Assignment], int]:
    chosen = sorted(
        ((matrix.teacher_ids[i], matrix.course_ids[j]) for (i, j) in pairs),
        key=lambda p: (p[1], p[0]),
    )
    placed: Dict[int, List[TimeSlot]] = {}
    proposed: List[Assignment] = []
    for (tid, cid) in chosen:
        teacher, course = teachers[tid], courses[cid]
        busy = list(ctx.busy_for(tid)) + placed.get(tid, [])
        plan = generate_time_slots(teacher, course, busy=busy)
        placed.setdefault(tid, []).extend(plan.slots)

        breakdown = matrix.breakdowns[(tid, cid)]
        proposed.append(
            Assignment(
                assignment_id=next_id,
                teacher_id=tid,
                course_id=cid,
                scheduled_slots=plan.slots,
                status=AssignmentStatus.PENDING,
                rationale=formulaic_rationale(teacher, course, breakdown, weights),
            )
        )
        next_id += 1
    return proposed, next_id


def optimize_assignments(
    teachers: Sequence[Teacher],
    courses: Sequence[Course],
    existing_assignments: Sequence[Assignment] = (),
    weights: WeightSettings = BALANCED_WEIGHTS,
    constraints: AssignmentConstraints = AssignmentConstraints(),
    *,
    solver_config: SolverConfig = SolverConfig(),
    detection_settings: DetectionSettings = DetectionSettings(),
    on_phase: Optional[PhaseCallback] = None,
) -> OptimizationReport:
    ensure_valid_inputs(teachers, courses, weights)
    _notify(on_phase, "validated", teachers=len(teachers), courses=len(courses))

    t_sorted = sorted(teachers, key=lambda t: t.teacher_id)
    c_sorted = sorted(courses, key=lambda c: c.course_id)
    existing = tuple(sorted(existing_assignments, key=lambda a: a.assignment_id))
    teacher_map = {t.teacher_id: t for t in t_sorted}
    course_map = {c.course_id: c for c in c_sorted}
    ctx = ScoringContext.build(t_sorted, existing)

    matches = qualification_matches(c_sorted, t_sorted)
    _notify(on_phase, "matched", pairs=len(matches))

    matrix = build_cost_matrix(t_sorted, c_sorted, weights, ctx)
    _notify(on_phase, "cost_matrix", shape=matrix.shape)

    match = solve_assignment(
        [list(row) for row in matrix.costs],
        forbidden_cost=FORBIDDEN_COST,
        row_capacity=constraints.max_assignments_per_teacher,
        config=solver_config,
    )
    _notify(on_phase, "solved", strategy=match.strategy, optimal=match.optimal, pairs=len(match.pairs))

    next_id = max((a.assignment_id for a in existing), default=0) + 1
    proposed, next_id = _propose(matrix, match.pairs, teacher_map, course_map, weights, ctx, next_id)
    _notify(on_phase, "scheduled", assignments=len(proposed))

    # Courses left over: either nobody qualifies (fallback) or every qualified
    # teacher is already at capacity.
    per_teacher: Dict[int, int] = {}
    for a in proposed:
        per_teacher[a.teacher_id] = per_teacher.get(a.teacher_id, 0) + 1

    def has_capacity(teacher_id: int) -> bool:
        cap = constraints.max_assignments_per_teacher
        return cap is None or per_teacher.get(teacher_id, 0) < cap

    def busy_for(teacher_id: int) -> Tuple[TimeSlot, ...]:
        own = tuple(s for a in proposed if a.teacher_id == teacher_id for s in a.scheduled_slots)
        return ctx.busy_for(teacher_id) + own

    assigned_courses = {a.course_id for a in proposed}
    fallback_ids = set()
    unassigned: List[UnassignedCourse] = []
    for course in c_sorted:
        if course.course_id in assigned_courses:
            continue
        if find_qualified_teachers(course, t_sorted):
            cap = constraints.max_assignments_per_teacher
            unassigned.append(
                UnassignedCourse(
                    course=course,
                    reason=f"All teachers qualified for '{course.topic}' are at capacity ({cap} per teacher)",
                )
            )
            continue
        fb = assign_fallback(
            course,
            t_sorted,
            weights,
            ctx,
            assignment_id=next_id,
            has_capacity=has_capacity,
            busy_for=busy_for,
        )
        if isinstance(fb, UnassignedCourse):
            unassigned.append(fb)
            continue
        next_id += 1
        proposed.append(fb.assignment)
        fallback_ids.add(fb.assignment.assignment_id)
        per_teacher[fb.teacher.teacher_id] = per_teacher.get(fb.teacher.teacher_id, 0) + 1
    _notify(on_phase, "fallback", fallback=len(fallback_ids), unassigned=len(unassigned))

    everything = list(existing) + proposed
    conflicts = detect_conflicts(everything, t_sorted, c_sorted, detection_settings)
    _notify(on_phase, "conflicts_detected", conflicts=len(conflicts))

    actions: Tuple[ResolutionAction, ...] = ()
    if constraints.auto_resolve and conflicts:
        outcome = resolve_conflicts(
            everything,
            conflicts,
            t_sorted,
            c_sorted,
            fixed_ids=[a.assignment_id for a in existing],
        )
        actions = outcome.actions
        everything = list(outcome.assignments)
        conflicts = detect_conflicts(everything, t_sorted, c_sorted, detection_settings)
        _notify(on_phase, "resolved", actions=len(actions), remaining=len(conflicts))

    final = {a.assignment_id: a for a in everything}
    results: List[AssignmentResult] = []
    for original in proposed:
        a = final[original.assignment_id]
        teacher, course = teacher_map[a.teacher_id], course_map[a.course_id]
        breakdown = score_pair(teacher, course, weights, ctx, slots=a.scheduled_slots)
        score = breakdown.percent * (FALLBACK_PENALTY if a.is_fallback else 1.0)
        results.append(
            AssignmentResult(
                teacher=teacher,
                course=course,
                assignment=a,
                conflicts=conflicts_for(a.assignment_id, conflicts),
                score=max(0.0, min(100.0, score)),
                breakdown=breakdown,
            )
        )
    results.sort(key=lambda r: r.course.course_id)

    workload = teacher_workload_df(
        teachers=t_sorted,
        assignments=everything,
        include_statuses=(AssignmentStatus.ACTIVE, AssignmentStatus.PENDING),
    )
    recommendations = workload_recommendations(workload, weights)
    if unassigned:
        recommendations.append(
            f"{len(unassigned)} course(s) could not be assigned. Review qualifications or teacher capacity."
        )

    total = sum(r.score for r in results) / len(results) if results else 0.0
    logger.info(
        "assigned %d of %d course(s) (%d fallback, %d unassigned, %d open conflict(s), solver=%s)",
        len(results),
        len(c_sorted),
        len(fallback_ids),
        len(unassigned),
        len(conflicts),
        match.strategy,
    )
    _notify(on_phase, "completed", results=len(results), total_score=total)

    return OptimizationReport(
        results=results,
        unassigned=unassigned,
        conflicts=list(conflicts),
        recommendations=recommendations,
        total_score=total,
        strategy=match.strategy,
        optimal=match.optimal,
        actions=actions,
        teachers=tuple(t_sorted),
        assignments=tuple(everything),
    )
