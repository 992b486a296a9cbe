"""Input validation run before any scoring.

The helpers return `(ok, message)` pairs so callers can collect every problem
at once; `ensure_valid_inputs` raises `InputValidationError` with the full list.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from .models import WEIGHT_SUM_TOLERANCE, Course, Teacher, WeightSettings


class InputValidationError(ValueError):
    """Raised when an optimization run cannot start; no partial result exists."""

    def __init__(self, errors: Sequence[str]):
        self.errors: Tuple[str, ...] = tuple(errors)
        super().__init__("; ".join(self.errors) or "invalid input")


def validate_weight_range(value: float, field: str) -> Tuple[bool, str]:
    if value is None:
        return False, f"{field} weight is required"
    if not math.isfinite(float(value)):
        return False, f"{field} weight must be a finite number"
    if float(value) < 0 or float(value) > 100:
        return False, f"{field} weight must be between 0 and 100"
    return True, ""


def validate_weights(weights: WeightSettings) -> List[str]:
    errors: List[str] = []
    for name, value in [
        ("Equality", weights.equality),
        ("Continuity", weights.continuity),
        ("Loyalty", weights.loyalty),
    ]:
        ok, msg = validate_weight_range(value, name)
        if not ok:
            errors.append(msg)

    if not errors and abs(weights.total - 100.0) > WEIGHT_SUM_TOLERANCE:
        errors.append(f"Total weights must equal 100, got {weights.total:g}")

    if not weights.profile_name or not weights.profile_name.strip():
        errors.append("Profile name is required")
    return errors


def validate_course(course: Course) -> List[str]:
    errors: List[str] = []
    label = f"Course {course.course_id}"
    if not course.topic or not course.topic.strip():
        errors.append(f"{label}: topic is required")
    if int(course.lessons_count) <= 0:
        errors.append(f"{label}: lessons count must be greater than 0")
    if int(course.lesson_duration) <= 0:
        errors.append(f"{label}: lesson duration must be greater than 0")
    if course.end_date < course.start_date:
        errors.append(f"{label}: end date must not be before start date")
    return errors


def validate_unique_ids(values: Iterable[int], field: str) -> Tuple[bool, str]:
    vals = list(values)
    if len(vals) != len(set(vals)):
        return False, f"{field} contains duplicates"
    return True, ""


def ensure_valid_inputs(
    teachers: Sequence[Teacher],
    courses: Sequence[Course],
    weights: WeightSettings,
) -> None:
    errors: List[str] = []

    if not teachers:
        errors.append("No teachers available for assignment")
    if not courses:
        errors.append("No courses available for assignment")

    ok, msg = validate_unique_ids((t.teacher_id for t in teachers), "Teacher ids")
    if not ok:
        errors.append(msg)
    ok, msg = validate_unique_ids((c.course_id for c in courses), "Course ids")
    if not ok:
        errors.append(msg)

    errors.extend(validate_weights(weights))
    for course in courses:
        errors.extend(validate_course(course))

    if errors:
        raise InputValidationError(errors)
