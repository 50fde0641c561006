"""Potential method (MODI) for optimizing a basic feasible transportation plan."""

from __future__ import annotations

import logging

import numpy as np

from .basis import Potentials, compute_deltas, compute_potentials, find_cycle
from .data import AllocationPlan, Cell, OptimizationResult, SolverOptions
from .diagnostics import CostHistory
from .events import (
    CycleFound,
    DeltasComputed,
    EventCallback,
    MaxIterationsReached,
    OptimalReached,
    PotentialsComputed,
    Reallocated,
    notify,
    snapshot,
)
from .exceptions import InvalidProblemError


class PotentialMethodOptimizer:
    """Improves a basic feasible plan to optimality with the potential method.

    Every iteration computes potentials ``u``/``v`` on the basis, prices the
    non-basic cells with ``delta = u[i] + v[j] - cost[i][j]``, lets the cell with
    the largest positive delta enter the basis and shifts the largest feasible
    amount θ around the loop it closes. The cell on a decreasing leg that drops to
    zero first leaves the basis, so the basis keeps m+n-1 cells.

    Terminal states:
        - 'optimal': no delta exceeds the tolerance.
        - 'iteration_limit': the iteration ceiling was reached first.
        - 'cycle_not_found': the entering cell closes no loop (the basis is not a
          spanning tree); the last valid plan is returned.

    The plan is modified in place.

    Attributes:
        costs: M×N cost matrix of the balanced problem.
        plan: Basic feasible plan being optimized.
        options: Solver options (tolerance and max_iterations are used).
        history: Total cost after each reallocation.

    See Also:
        - optimize_by_potentials(): Functional wrapper.
        - basis: Potentials and cycle search on the basis graph.
    """

    METHOD = "potentials"

    def __init__(
        self,
        costs: np.ndarray,
        plan: AllocationPlan,
        options: SolverOptions | None = None,
        callback: EventCallback | None = None,
    ) -> None:
        self.options = options if options is not None else SolverOptions()
        self.logger = logging.getLogger(__name__)
        self.costs = np.asarray(costs, dtype=float)
        if self.costs.shape != plan.shape:
            raise InvalidProblemError(
                f"Cost matrix shape {self.costs.shape} does not match plan shape {plan.shape}."
            )
        self.plan = plan
        self.callback = callback
        self.tolerance = self.options.tolerance
        self.history = CostHistory(tolerance=self.tolerance)

    def calculate_potentials(self) -> Potentials:
        return compute_potentials(self.costs, self.plan.basic)

    def calculate_deltas(self, potentials: Potentials) -> np.ndarray:
        return compute_deltas(self.costs, self.plan.basic, potentials.u, potentials.v)

    def find_entering_cell(self, deltas: np.ndarray) -> tuple[float, Cell | None]:
        """Return the largest delta and its cell (first in row-major order on ties)."""
        if np.isnan(deltas).all():
            return -np.inf, None
        flat_index = int(np.nanargmax(deltas))
        row, col = divmod(flat_index, deltas.shape[1])
        return float(deltas[row, col]), Cell(row, col)

    def find_cycle(self, entering: Cell) -> list[Cell] | None:
        """Find the reallocation loop for ``entering``.

        Loop search is only sound on a spanning-tree basis, so a basis with the wrong
        number of cells yields no loop instead of a guess.
        """
        required = self.plan.required_basis_size
        if self.plan.basic_count != required:
            self.logger.warning(
                "Basis size differs from m+n-1, cannot search for a reallocation cycle",
                extra={"basic_cells": self.plan.basic_count, "required": required},
            )
            return None
        return find_cycle(self.plan.basic, entering)

    def reallocate(self, cycle: list[Cell]) -> tuple[float, Cell | None]:
        """Shift θ around ``cycle`` and drop the leaving cell from the basis.

        Returns:
            (θ, leaving cell). θ is the smallest amount on a decreasing leg.
        """
        plan = self.plan
        decreasing = cycle[1::2]
        theta = min(float(plan.values[cell.row, cell.col]) for cell in decreasing)

        for position, cell in enumerate(cycle):
            if position % 2 == 0:
                plan.add(cell, theta)
            else:
                plan.add(cell, -theta)

        leaving = next(
            (
                cell
                for cell in decreasing
                if abs(plan.values[cell.row, cell.col]) < self.tolerance
            ),
            None,
        )
        if leaving is not None:
            plan.clear(leaving)
        return theta, leaving

    def total_cost(self) -> float:
        return self.plan.total_cost(self.costs)

    def optimize(self, max_iterations: int | None = None) -> OptimizationResult:
        """Run potential-method iterations until a terminal state is reached.

        Args:
            max_iterations: Reallocation ceiling. Defaults to options.max_iterations.

        Returns:
            OptimizationResult with the final plan, its cost, the number of
            reallocations and the last potentials.
        """
        if max_iterations is None:
            max_iterations = self.options.max_iterations

        iterations = 0
        total_cost = self.total_cost()
        self.history.record(total_cost)

        self.logger.info(
            "Starting potential method",
            extra={
                "rows": self.plan.rows,
                "cols": self.plan.cols,
                "basic_cells": self.plan.basic_count,
                "max_iterations": max_iterations,
                "total_cost": total_cost,
            },
        )

        entering: Cell | None = None
        while True:
            step = iterations + 1
            potentials = self.calculate_potentials()
            if potentials.unreached:
                self.logger.warning(
                    "Basis is disconnected, unreachable potentials default to 0",
                    extra={"unreached": potentials.unreached, "iteration": step},
                )
            notify(
                self.callback,
                PotentialsComputed(
                    iteration=step,
                    u=snapshot(potentials.u),
                    v=snapshot(potentials.v),
                    reference_row=potentials.reference_row,
                ),
            )
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    f"Assuming u{potentials.reference_row + 1} = 0 (row with the most allocations)",
                    extra={"u": potentials.u.tolist(), "v": potentials.v.tolist()},
                )

            deltas = self.calculate_deltas(potentials)
            max_delta, entering = self.find_entering_cell(deltas)
            notify(
                self.callback,
                DeltasComputed(
                    iteration=step,
                    deltas=snapshot(deltas),
                    max_delta=max_delta,
                    entering_cell=entering,
                ),
            )

            if entering is None or max_delta <= self.tolerance:
                status = "optimal"
                message = "All deltas are <= 0. The current plan is optimal."
                self.logger.info(
                    "Optimal plan reached",
                    extra={"iterations": iterations, "total_cost": total_cost},
                )
                notify(
                    self.callback,
                    OptimalReached(
                        method=self.METHOD,
                        iterations=iterations,
                        total_cost=total_cost,
                        plan=snapshot(self.plan.as_array()),
                    ),
                )
                entering = None
                break

            if iterations >= max_iterations:
                status = "iteration_limit"
                message = (
                    "Maximum number of iterations reached. The solution may not be optimal."
                )
                self.logger.warning(
                    "Iteration limit reached before optimality",
                    extra={
                        "iterations": iterations,
                        "max_iterations": max_iterations,
                        "max_delta": max_delta,
                    },
                )
                notify(
                    self.callback,
                    MaxIterationsReached(
                        method=self.METHOD,
                        iterations=iterations,
                        total_cost=total_cost,
                        plan=snapshot(self.plan.as_array()),
                    ),
                )
                entering = None
                break

            self.logger.debug(
                f"Plan is not optimal, maximum delta {max_delta:.6g} in cell {entering}",
                extra={"iteration": step, "max_delta": max_delta},
            )

            cycle = self.find_cycle(entering)
            if cycle is None:
                status = "cycle_not_found"
                message = (
                    f"Could not find a reallocation cycle for cell {entering}. "
                    "Further optimization is not possible."
                )
                self.logger.error(
                    "Could not find a reallocation cycle",
                    extra={
                        "iteration": step,
                        "entering_row": entering.row,
                        "entering_col": entering.col,
                        "basic_cells": self.plan.basic_count,
                    },
                )
                break
            notify(self.callback, CycleFound(iteration=step, cycle=tuple(cycle)))

            theta, leaving = self.reallocate(cycle)
            iterations += 1
            total_cost = self.total_cost()
            self.history.record(total_cost, theta=theta)
            if self.history.increased():
                self.logger.warning(
                    "Total cost increased after reallocation",
                    extra={"iteration": step, "change": self.history.last_change()},
                )
            if leaving is None:
                self.logger.warning(
                    "No decreasing cell reached zero, basis grew by one cell",
                    extra={"iteration": step, "theta": theta},
                )

            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    f"Reallocated theta={theta:.6g} along {len(cycle)}-cell cycle",
                    extra={
                        "iteration": step,
                        "theta": theta,
                        "cycle": [str(cell) for cell in cycle],
                        "leaving": str(leaving) if leaving is not None else None,
                        "total_cost": total_cost,
                    },
                )
            notify(
                self.callback,
                Reallocated(
                    iteration=step,
                    theta=theta,
                    entering_cell=entering,
                    leaving_cell=leaving,
                    plan=snapshot(self.plan.as_array()),
                    total_cost=total_cost,
                ),
            )

        self.logger.info(
            "Potential method complete",
            extra={
                "status": status,
                "iterations": iterations,
                "total_cost": total_cost,
                **self.history.get_diagnostic_summary(),
            },
        )
        return OptimizationResult(
            plan=self.plan,
            total_cost=total_cost,
            iterations=iterations,
            status=status,
            u=potentials.u,
            v=potentials.v,
            message=message,
            entering_cell=entering,
        )


def optimize_by_potentials(
    costs: np.ndarray,
    plan: AllocationPlan,
    options: SolverOptions | None = None,
    max_iterations: int | None = None,
    callback: EventCallback | None = None,
) -> OptimizationResult:
    """Optimize a basic feasible plan in place with the potential method.

    Args:
        costs: M×N cost matrix of a balanced problem.
        plan: Basic feasible plan, normally with m+n-1 basic cells (see
              resolve_degeneracy()).
        options: Solver options. If None, uses defaults.
        max_iterations: Overrides options.max_iterations if provided.
        callback: Optional event callback.

    Returns:
        OptimizationResult with status 'optimal', 'iteration_limit' or
        'cycle_not_found'.

    Examples:
        >>> costs = np.array([[1.0, 2.0], [3.0, 4.0]])
        >>> plan = AllocationPlan.from_rows([[10.0, 0.0], [None, 10.0]])
        >>> optimize_by_potentials(costs, plan).status
        'optimal'
    """
    optimizer = PotentialMethodOptimizer(costs, plan, options=options, callback=callback)
    return optimizer.optimize(max_iterations=max_iterations)
