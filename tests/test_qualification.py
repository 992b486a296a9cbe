from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine.models import Course, Teacher
from engine.qualification import (
    find_qualified_teachers,
    is_qualified,
    keyword_overlap,
    qualification_matches,
    topic_keywords,
)


def _course(course_id: int, topic: str) -> Course:
    return Course(course_id, topic, 2, 60, date(2024, 1, 1), date(2024, 1, 5))


def test_exact_match_is_case_sensitive() -> None:
    t = Teacher(1, "Ada", frozenset({"Math", "Physics"}))
    assert is_qualified(t, _course(1, "Math"))
    assert not is_qualified(t, _course(2, "math"))
    assert not is_qualified(t, _course(3, "Mathematics"))


def test_qualification_matches_three_teachers_four_courses() -> None:
    teachers = [
        Teacher(1, "Ada", frozenset({"Math", "Physics"})),
        Teacher(2, "Ben", frozenset({"English"})),
        Teacher(3, "Cy", frozenset({"Biology"})),
    ]
    courses = [_course(1, "Math"), _course(2, "Physics"), _course(3, "English"), _course(4, "Art")]

    pairs = [(t.teacher_id, c.course_id) for (t, c) in qualification_matches(courses, teachers)]
    assert pairs == [(1, 1), (1, 2), (2, 3)]
    assert find_qualified_teachers(courses[3], teachers) == []


def test_topic_keywords_drop_short_words() -> None:
    assert topic_keywords("Art of Drawing") == ["art", "drawing"]
    assert topic_keywords("") == []


def test_keyword_overlap_counts_substring_hits() -> None:
    assert keyword_overlap("Art History", {"Fine Arts", "History"}) == 2
    assert keyword_overlap("Art", {"Math", "Physics"}) == 0
