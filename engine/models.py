"""Data model for the instructor assignment engine.

Everything here is an immutable snapshot. Teachers and courses are created
and updated by the surrounding application; the engine only reads them and
produces new `Assignment` values.

Conflicts form a closed set of variants (one class per conflict type), each
carrying the data that is specific to that type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple


# ----------------------------
# Enums
# ----------------------------


class Weekday(Enum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls(day.weekday())


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that occupy a teacher's calendar.
SCHEDULED_STATUSES = frozenset({AssignmentStatus.ACTIVE, AssignmentStatus.PENDING})


class ConflictType(str, Enum):
    TIME_OVERLAP = "time_overlap"
    QUALIFICATION_MISMATCH = "qualification_mismatch"
    WORKLOAD_EXCEEDED = "workload_exceeded"
    AVAILABILITY_CONFLICT = "availability_conflict"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def weight(self) -> int:
        """Weight used when totalling conflicts for prioritisation."""

        return _SEVERITY_WEIGHT[self]


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2, Severity.CRITICAL: 3}
_SEVERITY_WEIGHT = {Severity.LOW: 1, Severity.MEDIUM: 4, Severity.HIGH: 7, Severity.CRITICAL: 10}


# ----------------------------
# Time helpers
# ----------------------------


def minutes_of(t: time) -> int:
    return t.hour * 60 + t.minute


def time_from_minutes(total: int) -> Optional[time]:
    """Return a wall-clock time, or None when `total` falls outside the day."""

    if total < 0 or total >= 24 * 60:
        return None
    return time(total // 60, total % 60)


# ----------------------------
# Input snapshots
# ----------------------------


@dataclass(frozen=True)
class TimeRange:
    start: time
    end: time

    @property
    def minutes(self) -> int:
        return minutes_of(self.end) - minutes_of(self.start)


@dataclass(frozen=True)
class Teacher:
    teacher_id: int
    name: str
    qualifications: FrozenSet[str]
    # weekday -> working window; a missing weekday means "not working"
    working_times: Mapping[Weekday, TimeRange] = field(default_factory=dict, hash=False)

    def window_for(self, day: date) -> Optional[TimeRange]:
        return self.working_times.get(Weekday.of(day))


@dataclass(frozen=True)
class Course:
    course_id: int
    topic: str
    lessons_count: int
    lesson_duration: int  # minutes
    start_date: date
    end_date: date

    @property
    def total_minutes(self) -> int:
        return int(self.lessons_count) * int(self.lesson_duration)


@dataclass(frozen=True)
class TimeSlot:
    date: date
    start_time: time
    end_time: time
    duration_minutes: int

    @property
    def start_minute(self) -> int:
        return minutes_of(self.start_time)

    @property
    def end_minute(self) -> int:
        return minutes_of(self.end_time)

    def overlaps(self, other: "TimeSlot") -> bool:
        if self.date != other.date:
            return False
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute

    def label(self) -> str:
        return f"{self.date.isoformat()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass(frozen=True)
class Assignment:
    assignment_id: int
    teacher_id: int
    course_id: int
    scheduled_slots: Tuple[TimeSlot, ...] = ()
    status: AssignmentStatus = AssignmentStatus.PENDING
    rationale: Optional[str] = None
    is_fallback: bool = False

    @property
    def scheduled_minutes(self) -> int:
        return sum(int(s.duration_minutes) for s in self.scheduled_slots)

    @property
    def occupies_calendar(self) -> bool:
        return self.status in SCHEDULED_STATUSES


# ----------------------------
# Weights
# ----------------------------


WEIGHT_SUM_TOLERANCE = 0.1


@dataclass(frozen=True)
class WeightSettings:
    """Percentages for the three weighting factors; they must sum to 100."""

    equality: float = 33.0
    continuity: float = 33.0
    loyalty: float = 34.0
    profile_name: str = "Balanced"

    @property
    def total(self) -> float:
        return float(self.equality) + float(self.continuity) + float(self.loyalty)

    def describe(self) -> str:
        return (
            f"Equality: {self.equality:g}%, Continuity: {self.continuity:g}%, "
            f"Loyalty: {self.loyalty:g}%"
        )


BALANCED_WEIGHTS = WeightSettings(33, 33, 34, "Balanced")
EMERGENCY_WEIGHTS = WeightSettings(60, 40, 0, "Emergency")
CONTINUITY_FOCUS_WEIGHTS = WeightSettings(25, 60, 15, "Continuity Focus")

WEIGHT_PRESETS: Dict[str, WeightSettings] = {
    w.profile_name: w for w in (BALANCED_WEIGHTS, EMERGENCY_WEIGHTS, CONTINUITY_FOCUS_WEIGHTS)
}


# ----------------------------
# Conflicts
# ----------------------------


@dataclass(frozen=True)
class Conflict:
    description: str
    severity: Severity
    affected_assignments: Tuple[int, ...]

    type: ClassVar[ConflictType]

    @property
    def blocking(self) -> bool:
        return False

    def sort_key(self) -> Tuple[int, str, Tuple[int, ...], str]:
        return (-self.severity.rank, self.type.value, self.affected_assignments, self.description)


@dataclass(frozen=True)
class TimeOverlapConflict(Conflict):
    teacher_id: int
    first_slot: TimeSlot
    second_slot: TimeSlot

    type: ClassVar[ConflictType] = ConflictType.TIME_OVERLAP


@dataclass(frozen=True)
class QualificationMismatchConflict(Conflict):
    teacher_id: int
    course_id: int
    topic: str

    type: ClassVar[ConflictType] = ConflictType.QUALIFICATION_MISMATCH

    @property
    def blocking(self) -> bool:
        return True


@dataclass(frozen=True)
class AvailabilityConflict(Conflict):
    teacher_id: int
    slot: Optional[TimeSlot] = None  # None when lessons could not be placed at all
    missing_lessons: int = 0

    type: ClassVar[ConflictType] = ConflictType.AVAILABILITY_CONFLICT


@dataclass(frozen=True)
class WorkloadExceededConflict(Conflict):
    spread: float
    threshold: float
    metric: str  # "assignments" | "hours"
    overloaded_teacher_ids: Tuple[int, ...] = ()

    type: ClassVar[ConflictType] = ConflictType.WORKLOAD_EXCEEDED


# ----------------------------
# Results
# ----------------------------


@dataclass(frozen=True)
class ScoreBreakdown:
    equality: float
    continuity: float
    loyalty: float
    final: float  # 0..1

    @property
    def percent(self) -> float:
        return max(0.0, min(100.0, self.final * 100.0))


@dataclass(frozen=True)
class AssignmentResult:
    teacher: Teacher
    course: Course
    assignment: Assignment
    conflicts: Tuple[Conflict, ...] = ()
    score: float = 0.0  # 0..100
    breakdown: Optional[ScoreBreakdown] = None

    @property
    def has_blocking_conflict(self) -> bool:
        return any(c.blocking for c in self.conflicts)


@dataclass(frozen=True)
class UnassignedCourse:
    course: Course
    reason: str
