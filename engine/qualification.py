"""Qualification matching between teachers and course topics.

Normal assignment uses exact, case-sensitive matching only. Keyword overlap is
provided for the loyalty factor and for fallback assignment; it is never used
to decide a regular match.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .models import Course, Teacher


def is_qualified(teacher: Teacher, course: Course) -> bool:
    return course.topic in teacher.qualifications


def find_qualified_teachers(course: Course, teachers: Sequence[Teacher]) -> List[Teacher]:
    return [t for t in teachers if is_qualified(t, course)]


def qualification_matches(
    courses: Sequence[Course],
    teachers: Sequence[Teacher],
) -> List[Tuple[Teacher, Course]]:
    """All (teacher, course) pairs with an exact qualification match."""

    matches: List[Tuple[Teacher, Course]] = []
    for course in courses:
        for teacher in find_qualified_teachers(course, teachers):
            matches.append((teacher, course))
    return matches


def topic_keywords(topic: str) -> List[str]:
    # words of 2 chars or fewer ("of", "to", ...) carry no signal
    return [w for w in str(topic or "").lower().split() if len(w) > 2]


def keyword_overlap(topic: str, qualifications: Iterable[str]) -> int:
    """Count (keyword, qualification) pairs where the keyword occurs in the qualification."""

    words = topic_keywords(topic)
    if not words:
        return 0
    count = 0
    for qual in qualifications:
        q = str(qual).lower()
        for w in words:
            if w in q:
                count += 1
    return count
