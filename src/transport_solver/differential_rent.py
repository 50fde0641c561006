"""Differential rent method for balanced transportation problems.

The method never builds a basis. It keeps a working tariff table, ships only
through the cheapest tariff of every column and, while that conditionally
optimal allocation leaves supply undelivered, raises the tariffs of the
"deficit" suppliers by the smallest rent that lets a "surplus" supplier
compete for one of their columns. When the allocation becomes feasible the
tariff table certifies optimality: every shipment sits on a column minimum of
costs shifted by a per-row constant.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable

import numpy as np

from .data import Cell, RentSolution, SolverOptions
from .events import (
    AllocationBuilt,
    EventCallback,
    MaxIterationsReached,
    OptimalReached,
    RentComputed,
    TariffsUpdated,
    notify,
    snapshot,
)
from .exceptions import InvalidProblemError


class DifferentialRentSolver:
    """Solves a balanced transportation problem by iterative tariff adjustment.

    Each iteration:
        1. Collect the minimum-tariff cells of every column. On the first
           iteration a tied column keeps only the row with the largest supply;
           later iterations keep every tied row.
        2. Allocate through those cells (unique column candidates, then unique
           row candidates, then the cheapest remaining candidate).
        3. Stop with a solution if every supply and demand is met.
        4. Split rows into surplus and deficit rows, compute the rent of every
           column whose minimum lies in a deficit row and raise the deficit rows
           by the smallest rent.

    ``solve()`` returns None when no column yields a rent, when a zero rent
    leaves the allocation unchanged with no positive rent to fall back on, when
    the tariff table repeats up to a constant shift (the method is cycling), or
    when the iteration ceiling is reached. ``message`` then holds the reason.

    Attributes:
        costs: Original cost matrix (never modified).
        tariffs: Working tariff table, non-decreasing across iterations.
        tolerance: Amount and tariff tolerance (options.rent_tolerance).
        iteration: Number of the iteration in progress or last completed.
        message: Diagnostic for the last outcome.
    """

    METHOD = "differential_rent"

    def __init__(
        self,
        costs: np.ndarray,
        supplies: Iterable[float],
        demands: Iterable[float],
        options: SolverOptions | None = None,
        callback: EventCallback | None = None,
    ) -> None:
        self.options = options if options is not None else SolverOptions()
        self.logger = logging.getLogger(__name__)
        self.costs = np.array(costs, dtype=float, copy=True)
        self.supplies = np.array(list(supplies), dtype=float)
        self.demands = np.array(list(demands), dtype=float)
        if self.costs.shape != (len(self.supplies), len(self.demands)):
            raise InvalidProblemError(
                f"Cost matrix shape {self.costs.shape} does not match "
                f"{len(self.supplies)} suppliers and {len(self.demands)} consumers."
            )
        self.tariffs = self.costs.copy()
        self.tolerance = self.options.rent_tolerance
        self.callback = callback
        self.iteration = 0
        self.message = ""
        self._zero_rent_allocation: np.ndarray | None = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.costs.shape  # type: ignore[return-value]

    def is_balanced(self) -> bool:
        return abs(self.supplies.sum() - self.demands.sum()) < self.tolerance

    def column_minimum_cells(self) -> list[Cell]:
        """Minimum-tariff cells of every column, column by column."""
        m, n = self.shape
        candidates: list[Cell] = []
        for j in range(n):
            minimum = np.inf
            rows: list[int] = []
            for i in range(m):
                tariff = self.tariffs[i, j]
                if tariff < minimum - self.tolerance:
                    minimum = tariff
                    rows = [i]
                elif abs(tariff - minimum) < self.tolerance:
                    rows.append(i)

            if self.iteration == 1 and len(rows) > 1:
                # First max in row order wins on equal supply.
                chosen = max(rows, key=lambda row: (self.supplies[row], -row))
                candidates.append(Cell(chosen, j))
            else:
                candidates.extend(Cell(i, j) for i in rows)
        return candidates

    def build_allocation(self, candidates: list[Cell]) -> np.ndarray:
        """Ship as much as possible through ``candidates``, each cell at most once."""
        m, n = self.shape
        allocation = np.zeros((m, n), dtype=float)
        remaining_supply = self.supplies.copy()
        remaining_demand = self.demands.copy()
        processed: set[Cell] = set()
        tol = self.tolerance

        def fill(cell: Cell, reason: str) -> None:
            amount = min(remaining_supply[cell.row], remaining_demand[cell.col])
            allocation[cell.row, cell.col] += amount
            remaining_supply[cell.row] -= amount
            remaining_demand[cell.col] -= amount
            processed.add(cell)
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    f"Filled cell {cell} with {amount:.6g} ({reason})",
                    extra={"iteration": self.iteration, "row": cell.row, "col": cell.col},
                )

        def compare(a: Cell, b: Cell) -> int:
            cost_a = self.tariffs[a.row, a.col]
            cost_b = self.tariffs[b.row, b.col]
            if abs(cost_a - cost_b) > tol:
                return -1 if cost_a < cost_b else 1
            supply_gap = remaining_supply[b.row] - remaining_supply[a.row]
            if abs(supply_gap) > tol:
                return -1 if supply_gap < 0 else 1
            return a.row - b.row

        changed = True
        while changed:
            changed = False

            for j in range(n):
                if remaining_demand[j] < tol:
                    continue
                available = [
                    cell
                    for cell in candidates
                    if cell.col == j and remaining_supply[cell.row] > tol and cell not in processed
                ]
                if len(available) == 1:
                    cell = available[0]
                    if min(remaining_supply[cell.row], remaining_demand[j]) > tol:
                        fill(cell, "only candidate in its column")
                        changed = True

            for i in range(m):
                if remaining_supply[i] < tol:
                    continue
                available = [
                    cell
                    for cell in candidates
                    if cell.row == i and remaining_demand[cell.col] > tol and cell not in processed
                ]
                if len(available) == 1:
                    cell = available[0]
                    if min(remaining_supply[i], remaining_demand[cell.col]) > tol:
                        fill(cell, "only candidate in its row")
                        changed = True

            if not changed:
                open_cells = [
                    cell
                    for cell in candidates
                    if remaining_supply[cell.row] > tol
                    and remaining_demand[cell.col] > tol
                    and cell not in processed
                ]
                if open_cells:
                    fill(min(open_cells, key=functools.cmp_to_key(compare)), "cheapest candidate")
                    changed = True

        return allocation

    def is_feasible(self, allocation: np.ndarray) -> bool:
        row_gap = np.abs(allocation.sum(axis=1) - self.supplies)
        col_gap = np.abs(allocation.sum(axis=0) - self.demands)
        return bool((row_gap <= self.tolerance).all() and (col_gap <= self.tolerance).all())

    def classify_rows(self, allocation: np.ndarray) -> tuple[list[int], list[int]]:
        """Split rows into (surplus, deficit).

        A row with supply left over is surplus. An exhausted row is deficit when
        it holds the minimum tariff of a column whose demand is still unmet, and
        surplus otherwise.
        """
        remaining = self.supplies - allocation.sum(axis=1)
        unmet = allocation.sum(axis=0) < self.demands - self.tolerance
        column_minimum = self.tariffs.min(axis=0)
        holds_unmet_minimum = (
            (np.abs(self.tariffs - column_minimum[None, :]) < self.tolerance) & unmet[None, :]
        ).any(axis=1)

        surplus: list[int] = []
        deficit: list[int] = []
        for i, left in enumerate(remaining):
            if left > self.tolerance:
                surplus.append(i)
            elif abs(left) < self.tolerance:
                if holds_unmet_minimum[i]:
                    deficit.append(i)
                else:
                    surplus.append(i)
        return surplus, deficit

    def column_rents(self, surplus: list[int], deficit: list[int]) -> dict[int, float]:
        """Rent of every column whose minimum tariff lies in a deficit row.

        The rent is the gap between that minimum and the closest surplus-row
        tariff at or above it. Columns without such a surplus tariff have no rent.
        """
        rents: dict[int, float] = {}
        for j in range(self.shape[1]):
            column = self.tariffs[:, j]
            minimum = column.min()
            if not any(abs(column[i] - minimum) < self.tolerance for i in deficit):
                continue
            eligible = [column[i] for i in surplus if column[i] >= minimum - self.tolerance]
            if eligible:
                nearest = min(eligible, key=lambda tariff: abs(tariff - minimum))
                rents[j] = float(nearest - minimum)
        return rents

    def raise_tariffs(self, deficit_rows: list[int], rent: float) -> None:
        self.tariffs[deficit_rows, :] += rent

    def select_rent(self, rents: dict[int, float], allocation: np.ndarray) -> float | None:
        """Pick the rent for this iteration, or None if the method cannot progress.

        The smallest rent is used. A zero rent only widens the tie set, so a zero
        rent on an allocation already seen with a zero rent falls back to the
        smallest positive rent.
        """
        rent = min(rents.values())
        if rent > self.tolerance:
            self._zero_rent_allocation = None
            return rent

        previous = self._zero_rent_allocation
        if previous is not None and np.allclose(allocation, previous, atol=self.tolerance):
            positive = [value for value in rents.values() if value > self.tolerance]
            if not positive:
                return None
            self.logger.debug(
                "Zero rent did not change the allocation, using the smallest positive rent",
                extra={"iteration": self.iteration},
            )
            self._zero_rent_allocation = None
            return min(positive)

        self._zero_rent_allocation = allocation.copy()
        return rent

    def state_key(self) -> tuple[bytes, bytes | None]:
        """Hashable snapshot of everything the next iteration depends on.

        Candidates and rents only see tariff differences, so tariffs are keyed
        relative to their minimum. Values are rounded to the rent tolerance.
        """
        relative = np.round((self.tariffs - self.tariffs.min()) / self.tolerance).astype(np.int64)
        pending = self._zero_rent_allocation
        if pending is None:
            return relative.tobytes(), None
        return relative.tobytes(), np.round(pending / self.tolerance).astype(np.int64).tobytes()

    def total_cost(self, allocation: np.ndarray) -> float:
        return float((allocation * self.costs).sum())

    def solve(self) -> RentSolution | None:
        """Run the method until the allocation is feasible or no progress is possible."""
        if not self.is_balanced():
            self.message = (
                f"The problem is unbalanced. Total supply: {self.supplies.sum():.1f}, "
                f"total demand: {self.demands.sum():.1f}."
            )
            self.logger.error(
                self.message,
                extra={
                    "total_supply": float(self.supplies.sum()),
                    "total_demand": float(self.demands.sum()),
                },
            )
            return None

        max_iterations = self.options.rent_max_iterations
        self.logger.info(
            "Starting differential rent method",
            extra={
                "rows": self.shape[0],
                "cols": self.shape[1],
                "max_iterations": max_iterations,
            },
        )

        seen_states: set[tuple[bytes, bytes | None]] = set()
        for iteration in range(1, max_iterations + 1):
            self.iteration = iteration
            if iteration > 1:
                state = self.state_key()
                if state in seen_states:
                    self.message = (
                        "The tariff table repeated up to a constant shift. "
                        "The method is cycling and cannot reach a feasible plan."
                    )
                    self.logger.error(
                        self.message,
                        extra={"iteration": iteration, "states_seen": len(seen_states)},
                    )
                    return None
                seen_states.add(state)

            candidates = self.column_minimum_cells()
            allocation = self.build_allocation(candidates)
            allocated = float(allocation.sum())
            notify(
                self.callback,
                AllocationBuilt(
                    iteration=iteration,
                    allocations=snapshot(allocation),
                    tariffs=snapshot(self.tariffs),
                    candidates=tuple(candidates),
                    allocated=allocated,
                ),
            )
            self.logger.debug(
                f"Allocated {allocated:.6g} of {self.supplies.sum():.6g}",
                extra={"iteration": iteration, "candidates": len(candidates)},
            )

            if self.is_feasible(allocation):
                total_cost = self.total_cost(allocation)
                self.message = "The plan is feasible. Optimal solution found."
                self.logger.info(
                    "Differential rent method found an optimal plan",
                    extra={"iterations": iteration, "total_cost": total_cost},
                )
                notify(
                    self.callback,
                    OptimalReached(
                        method=self.METHOD,
                        iterations=iteration,
                        total_cost=total_cost,
                        plan=snapshot(allocation),
                    ),
                )
                return RentSolution(
                    allocations=allocation,
                    total_cost=total_cost,
                    iterations=iteration,
                    tariffs=self.tariffs.copy(),
                )

            surplus, deficit = self.classify_rows(allocation)
            rents = self.column_rents(surplus, deficit)
            minimum_rent = min(rents.values()) if rents else float("inf")
            notify(
                self.callback,
                RentComputed(
                    iteration=iteration,
                    column_rents=dict(rents),
                    minimum_rent=minimum_rent,
                    surplus_rows=tuple(surplus),
                    deficit_rows=tuple(deficit),
                ),
            )

            if not rents:
                self.message = (
                    "Could not find a valid rent to improve the plan further."
                )
                self.logger.error(
                    self.message,
                    extra={"iteration": iteration, "surplus": surplus, "deficit": deficit},
                )
                return None

            rent = self.select_rent(rents, allocation)
            if rent is None:
                self.message = (
                    "A zero rent left the allocation unchanged; the method cannot make progress."
                )
                self.logger.error(self.message, extra={"iteration": iteration})
                return None

            if rent > self.tolerance:
                self.raise_tariffs(deficit, rent)
                self.logger.debug(
                    f"Rent {rent:.6g} added to deficit rows",
                    extra={"iteration": iteration, "deficit": deficit},
                )
                notify(
                    self.callback,
                    TariffsUpdated(
                        iteration=iteration,
                        rent=rent,
                        deficit_rows=tuple(deficit),
                        tariffs=snapshot(self.tariffs),
                    ),
                )
            else:
                self.logger.debug(
                    "Zero rent, tariffs unchanged but tied minima widen the candidate set",
                    extra={"iteration": iteration},
                )

        self.message = "Maximum number of iterations reached without a feasible plan."
        self.logger.error(
            self.message,
            extra={"iterations": self.iteration, "max_iterations": max_iterations},
        )
        notify(
            self.callback,
            MaxIterationsReached(
                method=self.METHOD,
                iterations=self.iteration,
                total_cost=self.total_cost(allocation),
                plan=snapshot(allocation),
            ),
        )
        return None


def solve_by_differential_rent(
    costs: np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    options: SolverOptions | None = None,
    callback: EventCallback | None = None,
) -> RentSolution | None:
    """Solve a balanced problem with the differential rent method.

    Args:
        costs: M×N cost matrix.
        supplies: Supplier capacities (must sum to total demand).
        demands: Consumer demands.
        options: Solver options; rent_tolerance and rent_max_iterations apply.
        callback: Optional event callback.

    Returns:
        RentSolution with the allocation and its cost on the original costs, or
        None if the problem is unbalanced or the method fails.

    Examples:
        >>> solution = solve_by_differential_rent([[1, 2], [3, 4]], [10, 10], [10, 10])
        >>> solution.total_cost
        50.0
    """
    solver = DifferentialRentSolver(costs, supplies, demands, options=options, callback=callback)
    return solver.solve()
