"""Progress events emitted by the transportation solvers.

Events are frozen snapshots: every array they carry is a read-only copy, so a
callback can keep, render or mutate-by-copy them without touching solver state.
Rendering is entirely up to the consumer; the solvers only ever call the
callback synchronously after a state change.

Example:
    >>> events = []
    >>> result = solve_transportation(costs, supplies, demands, callback=events.append)
    >>> [event.kind for event in events][:3]
    ['BalanceChecked', 'InitialPlanReady', 'DegeneracyResolved']
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .data import Cell


def snapshot(array: np.ndarray) -> np.ndarray:
    """Return a read-only copy of ``array`` suitable for an event payload."""
    frozen = np.array(array, dtype=float, copy=True)
    frozen.setflags(write=False)
    return frozen


@dataclass(frozen=True, eq=False)
class SolverEvent:
    """Base class for all solver events."""

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, eq=False)
class BalanceChecked(SolverEvent):
    """Supplies and demands were compared and a dummy added if needed."""

    total_supply: float
    total_demand: float
    difference: float
    is_supply_dummy: bool
    is_demand_dummy: bool


@dataclass(frozen=True, eq=False)
class InitialPlanReady(SolverEvent):
    """The minimum-cost method produced a basic feasible plan.

    ``plan`` holds NaN in unallocated cells.
    """

    plan: np.ndarray
    total_cost: float
    basic_cells: int


@dataclass(frozen=True, eq=False)
class DegeneracyResolved(SolverEvent):
    """Degeneracy check finished; ``added_cells`` received zero allocations."""

    added_cells: tuple[Cell, ...]
    resolved: bool
    basic_cells: int
    required: int
    plan: np.ndarray


@dataclass(frozen=True, eq=False)
class PotentialsComputed(SolverEvent):
    iteration: int
    u: np.ndarray
    v: np.ndarray
    reference_row: int


@dataclass(frozen=True, eq=False)
class DeltasComputed(SolverEvent):
    """Reduced costs of non-basic cells (NaN on basic cells)."""

    iteration: int
    deltas: np.ndarray
    max_delta: float
    entering_cell: Cell | None


@dataclass(frozen=True, eq=False)
class CycleFound(SolverEvent):
    """Reallocation loop; even positions increase, odd positions decrease."""

    iteration: int
    cycle: tuple[Cell, ...]


@dataclass(frozen=True, eq=False)
class Reallocated(SolverEvent):
    iteration: int
    theta: float
    entering_cell: Cell
    leaving_cell: Cell | None
    plan: np.ndarray
    total_cost: float


@dataclass(frozen=True, eq=False)
class OptimalReached(SolverEvent):
    method: str
    iterations: int
    total_cost: float
    plan: np.ndarray


@dataclass(frozen=True, eq=False)
class MaxIterationsReached(SolverEvent):
    method: str
    iterations: int
    total_cost: float
    plan: np.ndarray


@dataclass(frozen=True, eq=False)
class AllocationBuilt(SolverEvent):
    """Conditionally optimal allocation of one differential rent iteration."""

    iteration: int
    allocations: np.ndarray
    tariffs: np.ndarray
    candidates: tuple[Cell, ...]
    allocated: float


@dataclass(frozen=True, eq=False)
class RentComputed(SolverEvent):
    """Per-column rents (column index -> rent) and their minimum."""

    iteration: int
    column_rents: dict[int, float]
    minimum_rent: float
    surplus_rows: tuple[int, ...]
    deficit_rows: tuple[int, ...]


@dataclass(frozen=True, eq=False)
class TariffsUpdated(SolverEvent):
    iteration: int
    rent: float
    deficit_rows: tuple[int, ...]
    tariffs: np.ndarray


# Type alias for event callback function
EventCallback = Callable[[SolverEvent], None]


def notify(callback: EventCallback | None, event: SolverEvent) -> None:
    if callback is not None:
        callback(event)
