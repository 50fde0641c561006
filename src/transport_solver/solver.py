"""Public solver entrypoints."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .balancing import balance
from .data import (
    AllocationPlan,
    BalancedProblem,
    Cell,
    SolverOptions,
    TransportProblem,
    TransportResult,
    build_problem,
)
from .degeneracy import resolve_degeneracy
from .differential_rent import DifferentialRentSolver
from .events import EventCallback, InitialPlanReady, notify, snapshot
from .exceptions import SolverConfigurationError
from .initial_plan import build_initial_plan
from .io import load_problem as load_problem_file
from .io import save_result as save_result_file
from .potentials import optimize_by_potentials

METHODS = ("potentials", "differential_rent")


@dataclass(eq=False)
class SolverContext:
    """State threaded through the phases of one solve.

    Attributes:
        balanced: Balanced problem the phases work on.
        plan: Current allocation plan (None until a phase produces one).
        degeneracy_resolved: False if the basis could not be completed.
        messages: Diagnostics collected from each phase, in order.
    """

    balanced: BalancedProblem
    plan: AllocationPlan | None = None
    degeneracy_resolved: bool = True
    messages: list[str] = field(default_factory=list)


class TransportSolver:
    """Runs a full solve of one validated transportation problem.

    The potential method chains balancing, the minimum-cost initial plan,
    degeneracy resolution and MODI. The differential rent method runs on the
    balanced problem directly.
    """

    def __init__(
        self,
        problem: TransportProblem,
        options: SolverOptions | None = None,
        callback: EventCallback | None = None,
    ) -> None:
        self.problem = problem
        self.options = options if options is not None else SolverOptions()
        self.callback = callback
        self.logger = logging.getLogger(__name__)

    def solve(self, method: str = "potentials") -> TransportResult:
        if method not in METHODS:
            raise SolverConfigurationError(
                f"Unknown method '{method}'. Expected one of: {', '.join(METHODS)}."
            )
        self.logger.info(
            "Solving transportation problem",
            extra={
                "method": method,
                "suppliers": self.problem.shape[0],
                "consumers": self.problem.shape[1],
            },
        )
        context = self._balance()
        if method == "potentials":
            return self._solve_by_potentials(context)
        return self._solve_by_differential_rent(context)

    def _balance(self) -> SolverContext:
        balanced = balance(
            self.problem.costs,
            self.problem.supplies,
            self.problem.demands,
            tolerance=self.options.tolerance,
            callback=self.callback,
        )
        context = SolverContext(balanced=balanced)
        if balanced.is_supply_dummy:
            context.messages.append(
                f"Added a dummy supplier with supply {balanced.supplies[-1]:g}."
            )
        elif balanced.is_demand_dummy:
            context.messages.append(
                f"Added a dummy consumer with demand {balanced.demands[-1]:g}."
            )
        return context

    def _solve_by_potentials(self, context: SolverContext) -> TransportResult:
        costs, supplies, demands = context.balanced.costs, context.balanced.supplies, context.balanced.demands

        plan = build_initial_plan(costs, supplies, demands, tolerance=self.options.tolerance)
        context.plan = plan
        notify(
            self.callback,
            InitialPlanReady(
                plan=snapshot(plan.as_array()),
                total_cost=plan.total_cost(costs),
                basic_cells=plan.basic_count,
            ),
        )

        report = resolve_degeneracy(plan, costs, callback=self.callback)
        context.degeneracy_resolved = report.resolved
        context.messages.append(report.message)

        outcome = optimize_by_potentials(costs, plan, options=self.options, callback=self.callback)
        context.messages.append(outcome.message)

        return TransportResult(
            method="potentials",
            status=outcome.status,
            plan=outcome.plan,
            total_cost=outcome.total_cost,
            iterations=outcome.iterations,
            u=outcome.u,
            v=outcome.v,
            is_supply_dummy=context.balanced.is_supply_dummy,
            is_demand_dummy=context.balanced.is_demand_dummy,
            original_shape=context.balanced.original_shape,
            degeneracy_resolved=context.degeneracy_resolved,
            messages=context.messages,
            entering_cell=outcome.entering_cell,
        )

    def _solve_by_differential_rent(self, context: SolverContext) -> TransportResult:
        balanced = context.balanced
        rent_solver = DifferentialRentSolver(
            balanced.costs,
            balanced.supplies,
            balanced.demands,
            options=self.options,
            callback=self.callback,
        )
        solution = rent_solver.solve()
        context.messages.append(rent_solver.message)

        if solution is None:
            return TransportResult(
                method="differential_rent",
                status="failed",
                plan=None,
                total_cost=float("nan"),
                iterations=rent_solver.iteration,
                is_supply_dummy=balanced.is_supply_dummy,
                is_demand_dummy=balanced.is_demand_dummy,
                original_shape=balanced.original_shape,
                messages=context.messages,
            )

        plan = AllocationPlan(*solution.allocations.shape)
        for i, j in zip(*np.nonzero(solution.allocations > 0.0)):
            plan.set_basic(Cell(int(i), int(j)), float(solution.allocations[i, j]))
        context.plan = plan

        return TransportResult(
            method="differential_rent",
            status="optimal",
            plan=plan,
            total_cost=plan.total_cost(balanced.costs),
            iterations=solution.iterations,
            is_supply_dummy=balanced.is_supply_dummy,
            is_demand_dummy=balanced.is_demand_dummy,
            original_shape=balanced.original_shape,
            messages=context.messages,
        )


def solve_transportation(
    costs: Sequence[Sequence[float]] | np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    method: str = "potentials",
    options: SolverOptions | None = None,
    callback: EventCallback | None = None,
) -> TransportResult:
    """Solve a transportation problem.

    This is the main entry point. The input is validated, balanced with a
    zero-cost dummy supplier or consumer if supply and demand differ, and then
    solved with the selected method.

    Args:
        costs: M×N matrix of non-negative per-unit shipping costs.
        supplies: Length-M supplier capacities.
        demands: Length-N consumer demands.
        method: 'potentials' (minimum-cost initial plan improved with MODI) or
                'differential_rent'.
        options: Solver configuration options. If None, uses defaults.
        callback: Optional function receiving a SolverEvent after every
                  meaningful state change.

    Returns:
        TransportResult containing:
        - status: 'optimal', 'iteration_limit', 'cycle_not_found' or 'failed'
        - plan: Allocation plan on the balanced problem (dummy row/column last)
        - total_cost: Cost of the plan against the original costs
        - iterations: Optimizer iterations performed
        - u, v: Final potentials (potential method only)

    Raises:
        InvalidProblemError: If the input is malformed (mismatched dimensions,
                             negative or non-finite numbers).
        SolverConfigurationError: If ``method`` is unknown.

    Examples:
        >>> result = solve_transportation([[1, 2], [3, 4]], [10, 10], [10, 10])
        >>> result.status, result.total_cost
        ('optimal', 50.0)
        >>> solve_transportation([[1, 2], [3, 4]], [10, 10], [10, 10],
        ...                      method="differential_rent").total_cost
        50.0

    See Also:
        - TransportResult.raise_for_status(): Turn a non-optimal status into an exception
        - SolverOptions: Tolerances and iteration ceilings
    """
    resolved_options = options if options is not None else SolverOptions()
    problem = build_problem(costs, supplies, demands, tolerance=resolved_options.tolerance)
    solver = TransportSolver(problem, options=resolved_options, callback=callback)
    return solver.solve(method=method)


def load_problem(path: str | Path) -> TransportProblem:
    """Load a transportation problem from a JSON file.

    Args:
        path: Path to a JSON file with 'costs', 'supplies' and 'demands'.

    Returns:
        Validated TransportProblem.

    Raises:
        FileNotFoundError: If file does not exist.
        InvalidProblemError: If JSON is malformed or problem is invalid.

    Examples:
        >>> problem = load_problem("examples/default_problem.json")
        >>> result = TransportSolver(problem).solve()
    """
    return load_problem_file(path)


def save_result(path: str | Path, result: TransportResult) -> None:
    """Save a transportation result to a JSON file.

    Args:
        path: Path where JSON file will be written.
        result: TransportResult from solve_transportation().

    Raises:
        OSError: If file cannot be written.
    """
    save_result_file(path, result)
