from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

WORKLOAD_COLUMNS = [
    "teacher_id",
    "name",
    "assignment_count",
    "total_lessons",
    "total_minutes",
    "total_hours",
]

OVERLOAD_FACTOR = 1.5
UNDERUSE_FACTOR = 0.5
EMPHASIS_THRESHOLD = 70


def teacher_workload_df(
    *,
    teachers: Sequence,
    assignments: Sequence,
    include_statuses: Iterable[str] = ("active",),
) -> pd.DataFrame:
    """Per-teacher workload table (one row per teacher, zero rows included).

    Only assignments whose status is in `include_statuses` are counted.
    """

    statuses = {str(getattr(s, "value", s)) for s in include_statuses}

    rows = {}
    for t in teachers:
        rows[t.teacher_id] = {
            "teacher_id": t.teacher_id,
            "name": getattr(t, "name", ""),
            "assignment_count": 0,
            "total_lessons": 0,
            "total_minutes": 0,
        }

    for a in assignments:
        status = str(getattr(a.status, "value", a.status))
        if status not in statuses or a.teacher_id not in rows:
            continue
        row = rows[a.teacher_id]
        row["assignment_count"] += 1
        row["total_lessons"] += len(a.scheduled_slots)
        row["total_minutes"] += sum(int(s.duration_minutes) for s in a.scheduled_slots)

    out = pd.DataFrame(list(rows.values()), columns=WORKLOAD_COLUMNS[:-1])
    out["total_hours"] = out["total_minutes"] / 60.0
    return out.sort_values("teacher_id").reset_index(drop=True)


def workload_recommendations(workload_df: pd.DataFrame, weights) -> List[str]:
    """Plain-text observations about load balance and the weight profile."""

    recommendations: List[str] = []
    if workload_df is None or workload_df.empty:
        return recommendations

    avg_hours = float(workload_df["total_hours"].mean())
    if avg_hours > 0:
        overloaded = int((workload_df["total_hours"] > avg_hours * OVERLOAD_FACTOR).sum())
        if overloaded:
            recommendations.append(
                f"{overloaded} teacher(s) are significantly overloaded. Consider redistributing assignments."
            )
        underused = int((workload_df["total_hours"] < avg_hours * UNDERUSE_FACTOR).sum())
        if underused:
            recommendations.append(
                f"{underused} teacher(s) are underutilized. Consider assigning more courses."
            )

    if float(weights.equality) > EMPHASIS_THRESHOLD:
        recommendations.append("High equality weighting detected. Focus on balancing workload distribution.")
    if float(weights.continuity) > EMPHASIS_THRESHOLD:
        recommendations.append("High continuity weighting detected. Prioritizing consecutive lesson scheduling.")
    if float(weights.loyalty) > EMPHASIS_THRESHOLD:
        recommendations.append("High loyalty weighting detected. Maintaining teacher-subject relationships.")

    return recommendations
