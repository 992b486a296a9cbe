"""Minimum-cost bipartite assignment.

This module is problem-agnostic: it works on a plain cost matrix (rows =
workers, columns = jobs) and knows nothing about teachers or courses.

Two strategies share one entry point, `solve_assignment`:

exact
    Maximum-cardinality, minimum-cost matching with an optional per-row
    capacity, solved as a min-cost flow with OR-Tools:

        source --(cap)--> row_i --(1, cost_ij)--> col_j --(1)--> sink

    `solve_max_flow_with_min_cost` first routes as many jobs as possible and
    then minimizes cost among those solutions. Costs are scaled to integers and
    perturbed lexicographically so ties resolve to the lowest row index, then
    the lowest column index.

greedy
    Cheapest-pair-first selection. Not guaranteed optimal; kept for very large
    instances where building the flow network is not worth it.

`auto` picks exact when rows * cols <= `exact_size_limit`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Sequence, Tuple

from ortools.graph.python import min_cost_flow

logger = logging.getLogger(__name__)

STRATEGIES = ("auto", "exact", "greedy")
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class SolverConfig:
    """Solver selection.

    Attributes:
        strategy: "auto" | "exact" | "greedy".
        exact_size_limit: Largest rows * cols handled by the exact solver under "auto".
        cost_resolution: Integer steps per cost unit when scaling for the flow solver.
    """

    strategy: str = "auto"
    exact_size_limit: int = 250_000
    cost_resolution: int = 1000


@dataclass
class MatchResult:
    pairs: List[Tuple[int, int]] = field(default_factory=list)  # (row, col), sorted
    total_cost: float = 0.0
    strategy: str = "exact"
    optimal: bool = False


def _row_capacity(capacity: Optional[int], n_cols: int) -> int:
    if capacity is None:
        return n_cols
    return max(0, min(int(capacity), n_cols))


def _result(pairs: List[Tuple[int, int]], costs: Sequence[Sequence[float]], strategy: str, optimal: bool) -> MatchResult:
    pairs = sorted(pairs)
    return MatchResult(
        pairs=pairs,
        total_cost=float(sum(costs[i][j] for (i, j) in pairs)),
        strategy=strategy,
        optimal=optimal,
    )


def _tie_scale(n: int, m: int, flow_units: int, max_scaled: int) -> Optional[int]:
    """Multiplier that keeps index tie-breaks below one scaled cost unit.

    Every arc gets `i * m + j` added, so any matching adds less than
    `flow_units * n * m`. Returns 1 when that headroom would overflow int64
    (ties are then left to the solver) and None when even the plain scaled
    costs do not fit.
    """

    limit = max(flow_units, n + m + 2)
    scale = flow_units * n * m + 1
    if (max_scaled * scale + n * m) * limit <= INT64_MAX:
        return scale
    if max_scaled * limit <= INT64_MAX:
        return 1
    return None


def solve_greedy(
    costs: Sequence[Sequence[float]],
    *,
    forbidden_cost: float,
    row_capacity: Optional[int] = 1,
) -> MatchResult:
    n = len(costs)
    m = len(costs[0]) if n else 0
    cap = _row_capacity(row_capacity, m)

    nodes = [
        (float(costs[i][j]), i, j)
        for i in range(n)
        for j in range(m)
        if costs[i][j] < forbidden_cost
    ]
    nodes.sort()

    used_rows = [0] * n
    used_cols = [False] * m
    pairs: List[Tuple[int, int]] = []
    for (_cost, i, j) in nodes:
        if used_cols[j] or used_rows[i] >= cap:
            continue
        pairs.append((i, j))
        used_rows[i] += 1
        used_cols[j] = True

    return _result(pairs, costs, "greedy", optimal=False)


def solve_exact(
    costs: Sequence[Sequence[float]],
    *,
    forbidden_cost: float,
    row_capacity: Optional[int] = 1,
    cost_resolution: int = 1000,
) -> Optional[MatchResult]:
    """Return the optimal matching, or None if the flow solver did not reach optimality."""

    n = len(costs)
    m = len(costs[0]) if n else 0
    cap = _row_capacity(row_capacity, m)

    allowed = [(i, j) for i in range(n) for j in range(m) if costs[i][j] < forbidden_cost]
    if not allowed or cap == 0:
        return _result([], costs, "exact", optimal=True)

    # Shift to non-negative integers. Every unit of flow crosses exactly one
    # row->col arc and the flow value is fixed at its maximum, so a constant
    # shift does not change which matching is cheapest.
    floor = min(float(costs[i][j]) for (i, j) in allowed)
    scaled = {
        (i, j): int(round((float(costs[i][j]) - floor) * cost_resolution)) for (i, j) in allowed
    }
    tie_scale = _tie_scale(n, m, min(m, n * cap), max(scaled.values()))
    if tie_scale is None:
        logger.warning("cost range too wide for the flow solver (%dx%d)", n, m)
        return None
    if tie_scale == 1:
        logger.warning("cost range too wide for index tie-breaking; equal-cost ties follow solver order")

    source = 0
    sink = n + m + 1
    smcf = min_cost_flow.SimpleMinCostFlow()

    for i in range(n):
        smcf.add_arc_with_capacity_and_unit_cost(source, 1 + i, cap, 0)

    arc_pairs = {}
    for (i, j) in allowed:
        tie = (i * m + j) if tie_scale > 1 else 0
        unit_cost = scaled[(i, j)] * tie_scale + tie
        arc = smcf.add_arc_with_capacity_and_unit_cost(1 + i, 1 + n + j, 1, unit_cost)
        arc_pairs[arc] = (i, j)

    for j in range(m):
        smcf.add_arc_with_capacity_and_unit_cost(1 + n + j, sink, 1, 0)

    smcf.set_node_supply(source, m)
    smcf.set_node_supply(sink, -m)

    status = smcf.solve_max_flow_with_min_cost()
    if status != smcf.OPTIMAL:
        logger.warning("min-cost flow returned status %s", status)
        return None

    pairs = [pair for arc, pair in arc_pairs.items() if smcf.flow(arc) > 0]
    return _result(pairs, costs, "exact", optimal=True)


def solve_assignment(
    costs: Sequence[Sequence[float]],
    *,
    forbidden_cost: float,
    row_capacity: Optional[int] = 1,
    config: SolverConfig = SolverConfig(),
) -> MatchResult:
    """Pick (row, col) pairs minimizing total cost; forbidden cells are never used.

    Each column is used at most once; each row at most `row_capacity` times
    (None = unlimited).
    """

    if config.strategy not in STRATEGIES:
        raise ValueError(f"Unknown solver strategy: {config.strategy!r}")

    n = len(costs)
    m = len(costs[0]) if n else 0
    if n == 0 or m == 0:
        return MatchResult(strategy="exact", optimal=True)

    strategy = config.strategy
    if strategy == "auto":
        strategy = "exact" if n * m <= int(config.exact_size_limit) else "greedy"

    if strategy == "exact":
        result = solve_exact(
            costs,
            forbidden_cost=forbidden_cost,
            row_capacity=row_capacity,
            cost_resolution=int(config.cost_resolution),
        )
        if result is not None:
            return result
        logger.warning("exact solver unavailable for %dx%d instance; using greedy", n, m)

    return solve_greedy(costs, forbidden_cost=forbidden_cost, row_capacity=row_capacity)
