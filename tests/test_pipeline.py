from __future__ import annotations

import sys
from datetime import date, time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine import (
    Assignment,
    AssignmentConstraints,
    AssignmentStatus,
    ConflictType,
    Course,
    InputValidationError,
    Severity,
    Teacher,
    TimeRange,
    TimeSlot,
    WeightSettings,
    Weekday,
    optimize_assignments,
)
from optimizer import SolverConfig

WORKDAYS = (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY)
HOURS = {d: TimeRange(time(8), time(16)) for d in WORKDAYS}
MONDAY = date(2024, 1, 1)
FRIDAY = date(2024, 1, 5)


def _course(course_id: int, topic: str, lessons: int = 2) -> Course:
    return Course(course_id, topic, lessons, 60, MONDAY, FRIDAY)


def _school():
    teachers = [
        Teacher(1, "Ada", frozenset({"Math", "Physics"}), HOURS),
        Teacher(2, "Ben", frozenset({"English"}), HOURS),
        Teacher(3, "Cy", frozenset({"Biology"}), HOURS),
    ]
    courses = [_course(1, "Math"), _course(2, "Physics"), _course(3, "English"), _course(4, "Art")]
    return teachers, courses


def test_three_teachers_four_courses_one_per_teacher() -> None:
    teachers, courses = _school()

    report = optimize_assignments(teachers, courses)

    pairs = {(r.teacher.teacher_id, r.course.topic) for r in report.results}
    assert (2, "English") in pairs
    assert len([p for p in pairs if p[0] == 1]) == 1
    assert {p[1] for p in pairs if p[0] == 1} <= {"Math", "Physics"}

    unassigned = {u.course.topic: u.reason for u in report.unassigned}
    assert "Art" in unassigned
    assert len(unassigned) == 2
    left_over = ({"Math", "Physics"} - {p[1] for p in pairs}).pop()
    assert "capacity" in unassigned[left_over]

    assert report.strategy == "exact"
    assert report.optimal
    assert any("could not be assigned" in r for r in report.recommendations)


def test_unlimited_capacity_gives_teacher_both_subjects() -> None:
    teachers, courses = _school()

    report = optimize_assignments(
        teachers,
        courses,
        constraints=AssignmentConstraints(max_assignments_per_teacher=None),
    )

    assert [(r.teacher.teacher_id, r.course.course_id) for r in report.results] == [(1, 1), (1, 2), (2, 3)]
    assert [u.course.topic for u in report.unassigned] == ["Art"]
    assert report.conflicts == []

    # second subject is placed around the first one
    math, physics = report.results[0].assignment, report.results[1].assignment
    assert all(not s.overlaps(o) for s in math.scheduled_slots for o in physics.scheduled_slots)
    assert physics.scheduled_slots[0].start_time == time(9)

    for r in report.results:
        assert r.teacher.qualifications >= {r.course.topic}
        assert 0.0 <= r.score <= 100.0
        assert r.assignment.status == AssignmentStatus.PENDING
        assert r.assignment.rationale.startswith(f"{r.teacher.name} assigned to {r.course.topic}")
    assert report.total_score == pytest.approx(sum(r.score for r in report.results) / 3)


def test_partial_match_becomes_penalized_fallback() -> None:
    teachers, courses = _school()
    teachers.append(Teacher(4, "Dee", frozenset({"Art History"}), HOURS))

    report = optimize_assignments(teachers, courses)

    art = next(r for r in report.results if r.course.topic == "Art")
    assert art.teacher.teacher_id == 4
    assert art.assignment.is_fallback
    assert "Manual review required." in art.assignment.rationale
    assert art.score == pytest.approx(art.breakdown.percent * 0.5)
    assert art.has_blocking_conflict
    assert ConflictType.QUALIFICATION_MISMATCH in {c.type for c in art.conflicts}


def test_monday_only_teacher_raises_availability_conflict() -> None:
    teacher = Teacher(1, "Ada", frozenset({"Math"}), {Weekday.MONDAY: TimeRange(time(8), time(16))})
    course = Course(1, "Math", 2, 60, date(2024, 1, 2), FRIDAY)

    report = optimize_assignments([teacher], [course])

    (result,) = report.results
    assert result.assignment.scheduled_slots == ()
    kinds = [(c.type, c.severity) for c in result.conflicts]
    assert kinds
    assert all(t == ConflictType.AVAILABILITY_CONFLICT for (t, _s) in kinds)
    assert all(s in (Severity.HIGH, Severity.CRITICAL) for (_t, s) in kinds)
    assert result.assignment.status == AssignmentStatus.PENDING


def test_full_equality_weight_prefers_underloaded_teacher() -> None:
    teachers = [
        Teacher(1, "Ada", frozenset({"Math"}), HOURS),
        Teacher(2, "Ben", frozenset({"Math"}), HOURS),
    ]
    busy = Assignment(
        50,
        1,
        99,
        (TimeSlot(MONDAY, time(12), time(14), 120),),
        AssignmentStatus.ACTIVE,
    )

    report = optimize_assignments(
        teachers,
        [_course(1, "Math")],
        [busy],
        WeightSettings(100, 0, 0, "Equality Only"),
    )

    (result,) = report.results
    assert result.teacher.teacher_id == 2
    assert result.assignment.assignment_id == 51


def test_existing_overlaps_are_flagged_and_kept() -> None:
    teachers = [
        Teacher(1, "Ada", frozenset({"Math"}), HOURS),
        Teacher(2, "Ben", frozenset({"English"}), HOURS),
    ]
    first = Assignment(1, 1, 10, (TimeSlot(MONDAY, time(10), time(11), 60),), AssignmentStatus.ACTIVE)
    second = Assignment(2, 1, 11, (TimeSlot(MONDAY, time(10, 30), time(11, 30), 60),), AssignmentStatus.ACTIVE)

    report = optimize_assignments(teachers, [_course(3, "English")], [first, second])

    overlaps = [c for c in report.conflicts if c.type == ConflictType.TIME_OVERLAP]
    assert len(overlaps) == 1
    assert overlaps[0].severity == Severity.CRITICAL
    assert overlaps[0].affected_assignments == (1, 2)

    kept = {a.assignment_id: a for a in report.assignments}
    assert kept[1] == first
    assert kept[2] == second
    assert [r.assignment.assignment_id for r in report.results] == [3]


def test_runs_are_deterministic_and_inputs_untouched() -> None:
    teachers, courses = _school()
    teachers_before, courses_before = list(teachers), list(courses)

    one = optimize_assignments(teachers, courses)
    two = optimize_assignments(list(reversed(teachers)), list(reversed(courses)))

    assert one.results == two.results
    assert one.unassigned == two.unassigned
    assert teachers == teachers_before
    assert courses == courses_before


def test_phase_callback_reports_each_phase() -> None:
    teachers, courses = _school()
    seen = []

    optimize_assignments(
        teachers,
        courses,
        constraints=AssignmentConstraints(max_assignments_per_teacher=None),
        on_phase=lambda phase, details: seen.append(phase),
    )

    assert seen == [
        "validated",
        "matched",
        "cost_matrix",
        "solved",
        "scheduled",
        "fallback",
        "conflicts_detected",
        "completed",
    ]


def test_invalid_weights_fail_before_any_phase() -> None:
    teachers, courses = _school()
    seen = []
    with pytest.raises(InputValidationError):
        optimize_assignments(
            teachers,
            courses,
            weights=WeightSettings(50, 30, 30, "Broken"),
            on_phase=lambda phase, details: seen.append(phase),
        )
    assert seen == []


def test_greedy_strategy_and_workload_frame() -> None:
    teachers, courses = _school()

    report = optimize_assignments(teachers, courses, solver_config=SolverConfig(strategy="greedy"))

    assert report.strategy == "greedy"
    frame = report.workload_frame()
    assert list(frame["teacher_id"]) == [1, 2, 3]
    assert list(frame["assignment_count"]) == [1, 1, 0]


def test_nan_weight_stops_the_run() -> None:
    teachers, courses = _school()
    with pytest.raises(InputValidationError):
        optimize_assignments(teachers, courses, weights=WeightSettings(float("nan"), 50, 50, "NaN"))


def test_monday_only_teacher_with_partial_placement_is_high() -> None:
    teacher = Teacher(1, "Ada", frozenset({"Math"}), {Weekday.MONDAY: TimeRange(time(8), time(16))})
    course = Course(1, "Math", 3, 60, MONDAY, date(2024, 1, 9))

    report = optimize_assignments([teacher], [course])

    (result,) = report.results
    assert len(result.assignment.scheduled_slots) == 2
    assert [(c.type, c.severity) for c in result.conflicts] == [
        (ConflictType.AVAILABILITY_CONFLICT, Severity.HIGH)
    ]
