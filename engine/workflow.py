"""Orchestration above the engine.

The engine never reaches out to storage or to a text generator. This layer
does: it loads snapshots from an `AssignmentRepository`, runs
`optimize_assignments`, optionally asks a `RationaleProvider` for a richer
explanation per assignment and optionally saves the proposals back.

A failing provider never fails the run; the formulaic rationale produced by
the engine is kept and a warning is logged. Timeouts and retries are the
provider's own business.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import List, Optional, Protocol, Sequence

from .models import Assignment, AssignmentResult, Course, Teacher, WeightSettings
from .pipeline import AssignmentConstraints, OptimizationReport, PhaseCallback, optimize_assignments

logger = logging.getLogger(__name__)


class AssignmentRepository(Protocol):
    def load_teachers(self) -> Sequence[Teacher]: ...

    def load_courses(self) -> Sequence[Course]: ...

    def load_assignments(self) -> Sequence[Assignment]: ...

    def load_weights(self) -> WeightSettings: ...

    def save_assignments(self, assignments: Sequence[Assignment]) -> None: ...


class RationaleProvider(Protocol):
    def explain(self, result: AssignmentResult, weights: WeightSettings) -> str: ...


class AssignmentWorkflow:
    def __init__(
        self,
        repository: AssignmentRepository,
        rationale_provider: Optional[RationaleProvider] = None,
    ) -> None:
        self.repository = repository
        self.rationale_provider = rationale_provider

    def _explain(self, result: AssignmentResult, weights: WeightSettings) -> AssignmentResult:
        if self.rationale_provider is None or result.assignment.is_fallback:
            return result
        try:
            text = self.rationale_provider.explain(result, weights)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "rationale provider failed for assignment %s: %s",
                result.assignment.assignment_id,
                exc,
            )
            return result
        if not text or not str(text).strip():
            return result
        return replace(result, assignment=replace(result.assignment, rationale=str(text).strip()))

    def run(
        self,
        *,
        weights: Optional[WeightSettings] = None,
        constraints: AssignmentConstraints = AssignmentConstraints(),
        save: bool = False,
        on_phase: Optional[PhaseCallback] = None,
        **engine_options,
    ) -> OptimizationReport:
        teachers = list(self.repository.load_teachers())
        courses = list(self.repository.load_courses())
        existing = list(self.repository.load_assignments())
        if weights is None:
            weights = self.repository.load_weights()

        report = optimize_assignments(
            teachers,
            courses,
            existing,
            weights,
            constraints,
            on_phase=on_phase,
            **engine_options,
        )

        results: List[AssignmentResult] = [self._explain(r, weights) for r in report.results]
        updated = {r.assignment.assignment_id: r.assignment for r in results}
        report = replace(
            report,
            results=results,
            assignments=tuple(updated.get(a.assignment_id, a) for a in report.assignments),
        )

        if save and results:
            self.repository.save_assignments([r.assignment for r in results])
            logger.info("saved %d proposed assignment(s)", len(results))
        return report
