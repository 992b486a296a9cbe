"""Optimization engines used by the assignment engine."""

from .matching import MatchResult, SolverConfig, solve_assignment, solve_exact, solve_greedy

__all__ = ["MatchResult", "SolverConfig", "solve_assignment", "solve_exact", "solve_greedy"]
