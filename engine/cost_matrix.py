"""Cost matrix consumed by the assignment solver (lower cost = better).

Rows are teachers, columns are courses, both sorted by id. Pairs without an
exact qualification carry `FORBIDDEN_COST`. A qualified pair starts at 0 and
gets

    + workload penalty   (1 - equality)  * equality weight
    - continuity bonus   continuity      * continuity weight
    - loyalty bonus      loyalty         * loyalty weight

so for a fixed weight profile the cost equals `equality weight - score%`, and
minimizing total cost maximizes the total weighted score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .models import Course, ScoreBreakdown, Teacher, WeightSettings
from .qualification import is_qualified
from .scoring import ScoringContext, score_pair

FORBIDDEN_COST = 1000.0


@dataclass(frozen=True)
class CostMatrix:
    teacher_ids: Tuple[int, ...]
    course_ids: Tuple[int, ...]
    costs: Tuple[Tuple[float, ...], ...]
    # (teacher_id, course_id) -> breakdown, qualified pairs only
    breakdowns: Dict[Tuple[int, int], ScoreBreakdown]

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.teacher_ids), len(self.course_ids))

    def cost(self, teacher_id: int, course_id: int) -> float:
        return self.costs[self.teacher_ids.index(teacher_id)][self.course_ids.index(course_id)]

    def is_forbidden(self, row: int, col: int) -> bool:
        return self.costs[row][col] >= FORBIDDEN_COST

    def qualified_course_ids(self) -> List[int]:
        return sorted({cid for (_tid, cid) in self.breakdowns})


def pair_cost(breakdown: ScoreBreakdown, weights: WeightSettings) -> float:
    workload_penalty = (1.0 - breakdown.equality) * float(weights.equality)
    continuity_bonus = breakdown.continuity * float(weights.continuity)
    loyalty_bonus = breakdown.loyalty * float(weights.loyalty)
    return 0.0 + workload_penalty - continuity_bonus - loyalty_bonus


def build_cost_matrix(
    teachers: Sequence[Teacher],
    courses: Sequence[Course],
    weights: WeightSettings,
    ctx: ScoringContext,
) -> CostMatrix:
    t_sorted = sorted(teachers, key=lambda t: t.teacher_id)
    c_sorted = sorted(courses, key=lambda c: c.course_id)

    rows: List[Tuple[float, ...]] = []
    breakdowns: Dict[Tuple[int, int], ScoreBreakdown] = {}
    for teacher in t_sorted:
        row: List[float] = []
        for course in c_sorted:
            if not is_qualified(teacher, course):
                row.append(FORBIDDEN_COST)
                continue
            b = score_pair(teacher, course, weights, ctx)
            breakdowns[(teacher.teacher_id, course.course_id)] = b
            row.append(pair_cost(b, weights))
        rows.append(tuple(row))

    return CostMatrix(
        teacher_ids=tuple(t.teacher_id for t in t_sorted),
        course_ids=tuple(c.course_id for c in c_sorted),
        costs=tuple(rows),
        breakdowns=breakdowns,
    )
