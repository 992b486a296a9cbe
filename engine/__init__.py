"""Instructor assignment engine (matching, scoring, solving, conflicts, fallback)."""

from .models import (
	BALANCED_WEIGHTS,
	CONTINUITY_FOCUS_WEIGHTS,
	EMERGENCY_WEIGHTS,
	WEIGHT_PRESETS,
	Assignment,
	AssignmentResult,
	AssignmentStatus,
	AvailabilityConflict,
	Conflict,
	ConflictType,
	Course,
	QualificationMismatchConflict,
	ScoreBreakdown,
	Severity,
	Teacher,
	TimeOverlapConflict,
	TimeRange,
	TimeSlot,
	UnassignedCourse,
	WeightSettings,
	Weekday,
	WorkloadExceededConflict,
)

from .validation import InputValidationError, ensure_valid_inputs, validate_weights
from .conflicts import DetectionSettings, detect_conflicts, summarize_severity
from .resolution import ResolutionOutcome, resolve_conflicts
from .pipeline import AssignmentConstraints, OptimizationReport, optimize_assignments
from .workflow import AssignmentRepository, AssignmentWorkflow, RationaleProvider

__all__ = [
	"BALANCED_WEIGHTS",
	"CONTINUITY_FOCUS_WEIGHTS",
	"EMERGENCY_WEIGHTS",
	"WEIGHT_PRESETS",
	"Assignment",
	"AssignmentResult",
	"AssignmentStatus",
	"AvailabilityConflict",
	"Conflict",
	"ConflictType",
	"Course",
	"QualificationMismatchConflict",
	"ScoreBreakdown",
	"Severity",
	"Teacher",
	"TimeOverlapConflict",
	"TimeRange",
	"TimeSlot",
	"UnassignedCourse",
	"WeightSettings",
	"Weekday",
	"WorkloadExceededConflict",
	"InputValidationError",
	"ensure_valid_inputs",
	"validate_weights",
	"DetectionSettings",
	"detect_conflicts",
	"summarize_severity",
	"ResolutionOutcome",
	"resolve_conflicts",
	"AssignmentConstraints",
	"OptimizationReport",
	"optimize_assignments",
	"AssignmentRepository",
	"AssignmentWorkflow",
	"RationaleProvider",
]
