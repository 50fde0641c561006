"""Core data structures for transportation problems."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from .exceptions import (
    CycleNotFoundError,
    DegeneracyUnresolvedError,
    InvalidProblemError,
    IterationLimitError,
    RentUndefinedError,
    SolverConfigurationError,
)

EPSILON = 1e-9  # Zero tolerance for balancing, construction and the potential method.
MAX_ITERATIONS = 10  # Potential method iteration ceiling.
RENT_TOLERANCE = 1e-4  # Tariff/amount tolerance of the differential rent method.
RENT_MAX_ITERATIONS = 50  # Differential rent iteration ceiling.


@dataclass(frozen=True, order=True)
class Cell:
    """A (row, col) position in the cost matrix or allocation plan.

    Attributes:
        row: Zero-based supplier index.
        col: Zero-based consumer index.

    Examples:
        >>> Cell(0, 1) == Cell(0, 1)
        True
        >>> str(Cell(0, 1))
        '(1, 2)'
    """

    row: int
    col: int

    def __str__(self) -> str:
        return f"({self.row + 1}, {self.col + 1})"


class CellState(enum.Enum):
    """Allocation state of a single plan cell."""

    UNALLOCATED = "unallocated"
    BASIC_ZERO = "basic_zero"
    BASIC = "basic"


class AllocationPlan:
    """M×N shipment plan distinguishing basic cells from unallocated ones.

    A basic cell belongs to the spanning basis and holds a real, possibly zero,
    shipment amount. Zero-valued basic cells ("basic zero") are what degeneracy
    resolution adds; they are distinct from cells that carry no allocation at all.

    Attributes:
        values: Shipment amounts. Only meaningful where ``basic`` is True.
        basic: Boolean basis mask.

    Examples:
        >>> plan = AllocationPlan(2, 2)
        >>> plan.set_basic(Cell(0, 0), 10.0)
        >>> plan.set_basic(Cell(0, 1), 0.0)
        >>> plan.state(Cell(0, 1))
        <CellState.BASIC_ZERO: 'basic_zero'>
        >>> plan.basic_count
        2
    """

    def __init__(self, rows: int, cols: int) -> None:
        self.values = np.zeros((rows, cols), dtype=float)
        self.basic = np.zeros((rows, cols), dtype=bool)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float | None]]) -> AllocationPlan:
        """Build a plan from nested rows where None (or NaN) marks an unallocated cell."""
        row_count = len(rows)
        col_count = len(rows[0]) if row_count else 0
        plan = cls(row_count, col_count)
        for i, row in enumerate(rows):
            for j, value in enumerate(row):
                if value is None or (isinstance(value, float) and math.isnan(value)):
                    continue
                plan.set_basic(Cell(i, j), float(value))
        return plan

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape  # type: ignore[return-value]

    @property
    def rows(self) -> int:
        return self.values.shape[0]

    @property
    def cols(self) -> int:
        return self.values.shape[1]

    @property
    def required_basis_size(self) -> int:
        """Number of basic cells in a non-degenerate plan (m + n - 1)."""
        return self.rows + self.cols - 1

    @property
    def basic_count(self) -> int:
        return int(self.basic.sum())

    def state(self, cell: Cell) -> CellState:
        if not self.basic[cell.row, cell.col]:
            return CellState.UNALLOCATED
        if abs(self.values[cell.row, cell.col]) < EPSILON:
            return CellState.BASIC_ZERO
        return CellState.BASIC

    def is_basic(self, cell: Cell) -> bool:
        return bool(self.basic[cell.row, cell.col])

    def value(self, cell: Cell) -> float | None:
        """Return the shipment in ``cell`` or None when the cell is unallocated."""
        if not self.basic[cell.row, cell.col]:
            return None
        return float(self.values[cell.row, cell.col])

    def set_basic(self, cell: Cell, amount: float) -> None:
        self.basic[cell.row, cell.col] = True
        self.values[cell.row, cell.col] = amount

    def add(self, cell: Cell, amount: float) -> None:
        """Add ``amount`` to a cell, making it basic if it was unallocated."""
        if not self.basic[cell.row, cell.col]:
            self.set_basic(cell, 0.0)
        self.values[cell.row, cell.col] += amount

    def clear(self, cell: Cell) -> None:
        self.basic[cell.row, cell.col] = False
        self.values[cell.row, cell.col] = 0.0

    def basic_cells(self) -> list[Cell]:
        """Basic cells in row-major order."""
        rows, cols = np.nonzero(self.basic)
        return [Cell(int(i), int(j)) for i, j in zip(rows, cols)]

    def unallocated_cells(self) -> Iterator[Cell]:
        rows, cols = np.nonzero(~self.basic)
        for i, j in zip(rows, cols):
            yield Cell(int(i), int(j))

    def shipments(self) -> np.ndarray:
        """Dense shipment matrix with unallocated cells as 0.0."""
        return np.where(self.basic, self.values, 0.0)

    def row_sums(self) -> np.ndarray:
        return self.shipments().sum(axis=1)

    def col_sums(self) -> np.ndarray:
        return self.shipments().sum(axis=0)

    def total_cost(self, costs: np.ndarray) -> float:
        return float((self.shipments() * costs).sum())

    def as_array(self) -> np.ndarray:
        """Plan as a float array with NaN in unallocated cells."""
        return np.where(self.basic, self.values, np.nan)

    def to_list(self) -> list[list[float | None]]:
        """Plan as nested lists with None in unallocated cells."""
        return [
            [float(self.values[i, j]) if self.basic[i, j] else None for j in range(self.cols)]
            for i in range(self.rows)
        ]

    def copy(self) -> AllocationPlan:
        clone = AllocationPlan(self.rows, self.cols)
        clone.values = self.values.copy()
        clone.basic = self.basic.copy()
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AllocationPlan):
            return NotImplemented
        return (
            self.shape == other.shape
            and bool(np.array_equal(self.basic, other.basic))
            and bool(np.array_equal(self.shipments(), other.shipments()))
        )

    def __repr__(self) -> str:
        return f"AllocationPlan(shape={self.shape}, basic_cells={self.basic_count})"


@dataclass(eq=False)
class TransportProblem:
    """Encapsulates a transportation problem instance.

    Attributes:
        costs: M×N matrix of per-unit shipping costs.
        supplies: Length-M supplier capacities.
        demands: Length-N consumer demands.
        tolerance: Numerical tolerance for the balance check (default: 1e-9).

    Examples:
        >>> problem = build_problem([[1, 2], [3, 4]], [10, 10], [10, 10])
        >>> problem.shape
        (2, 2)
        >>> problem.is_balanced
        True

    See Also:
        - build_problem(): Construct and validate from nested lists.
        - solve_transportation(): Solve the problem.
    """

    costs: np.ndarray
    supplies: np.ndarray
    demands: np.ndarray
    tolerance: float = EPSILON

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.supplies), len(self.demands))

    @property
    def total_supply(self) -> float:
        return float(self.supplies.sum())

    @property
    def total_demand(self) -> float:
        return float(self.demands.sum())

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_supply - self.total_demand) < self.tolerance

    def validate(self) -> None:
        m, n = self.shape
        if m == 0 or n == 0:
            raise InvalidProblemError(
                f"Problem must have at least one supplier and one consumer, got {m} suppliers "
                f"and {n} consumers."
            )
        if self.costs.ndim != 2 or self.costs.shape != (m, n):
            raise InvalidProblemError(
                f"Cost matrix shape {self.costs.shape} does not match {m} suppliers and "
                f"{n} consumers."
            )
        for (i, j), cost in np.ndenumerate(self.costs):
            if not math.isfinite(cost) or cost < 0:
                raise InvalidProblemError(
                    f"Cost at row {i + 1}, column {j + 1} must be a finite non-negative "
                    f"number, got {cost}."
                )
        for i, supply in enumerate(self.supplies):
            if not math.isfinite(supply) or supply < 0:
                raise InvalidProblemError(
                    f"Supply {i + 1} must be a finite non-negative number, got {supply}."
                )
        for j, demand in enumerate(self.demands):
            if not math.isfinite(demand) or demand < 0:
                raise InvalidProblemError(
                    f"Demand {j + 1} must be a finite non-negative number, got {demand}."
                )


@dataclass(eq=False)
class BalancedProblem:
    """A transportation problem whose supplies and demands sum to the same total.

    Attributes:
        costs: Cost matrix, extended by a zero-cost row or column when a dummy was added.
        supplies: Supplier capacities (with the dummy supplier last, if any).
        demands: Consumer demands (with the dummy consumer last, if any).
        is_supply_dummy: True if a dummy supplier row was appended.
        is_demand_dummy: True if a dummy consumer column was appended.
        original_shape: (M, N) before balancing.
    """

    costs: np.ndarray
    supplies: np.ndarray
    demands: np.ndarray
    is_supply_dummy: bool = False
    is_demand_dummy: bool = False
    original_shape: tuple[int, int] = (0, 0)

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.supplies), len(self.demands))

    @property
    def is_balanced(self) -> bool:
        """True when the input was already balanced and no dummy was added."""
        return not (self.is_supply_dummy or self.is_demand_dummy)

    def __iter__(self) -> Iterator[object]:
        # Allows ``costs, supplies, demands, supply_dummy, demand_dummy = balance(...)``.
        yield self.costs
        yield self.supplies
        yield self.demands
        yield self.is_supply_dummy
        yield self.is_demand_dummy


@dataclass(eq=False)
class OptimizationResult:
    """Output of the potential method (MODI).

    Attributes:
        plan: Final allocation plan (the same object that was optimized in place).
        total_cost: Cost of the final plan.
        iterations: Number of completed reallocations.
        status: 'optimal', 'iteration_limit' or 'cycle_not_found'.
        u: Supplier potentials from the last potential computation.
        v: Consumer potentials from the last potential computation.
        message: Human-readable diagnostic for the termination reason.
        entering_cell: Cell that failed to enter the basis (cycle_not_found only).
    """

    plan: AllocationPlan
    total_cost: float
    iterations: int
    status: str
    u: np.ndarray
    v: np.ndarray
    message: str = ""
    entering_cell: Cell | None = None


@dataclass(eq=False)
class RentSolution:
    """Output of the differential rent method.

    Attributes:
        allocations: Dense M×N shipment matrix (zeros where nothing is shipped).
        total_cost: Cost against the ORIGINAL cost matrix, never the inflated tariffs.
        iterations: Number of iterations used, including the final feasible one.
        tariffs: Working tariff table at termination.
    """

    allocations: np.ndarray
    total_cost: float
    iterations: int
    tariffs: np.ndarray


@dataclass(eq=False)
class TransportResult:
    """Represents the output of a full transportation solve.

    Attributes:
        method: 'potentials' or 'differential_rent'.
        status: 'optimal', 'iteration_limit', 'cycle_not_found' or 'failed'.
        plan: Final allocation plan on the balanced problem (None when the method failed).
        total_cost: Cost of the final plan.
        iterations: Optimizer iterations performed.
        u: Final supplier potentials (potential method only).
        v: Final consumer potentials (potential method only).
        is_supply_dummy: True if the balanced problem has a dummy supplier row.
        is_demand_dummy: True if the balanced problem has a dummy consumer column.
        original_shape: (M, N) of the input before balancing.
        degeneracy_resolved: False if the basis could not be topped up to m+n-1 cells.
        messages: Diagnostics collected along the way, in order.
        entering_cell: Cell that failed to enter the basis (cycle_not_found only).

    Examples:
        >>> result = solve_transportation([[1, 2], [3, 4]], [10, 10], [10, 10])
        >>> result.status, result.total_cost
        ('optimal', 50.0)
    """

    method: str
    status: str
    plan: AllocationPlan | None
    total_cost: float
    iterations: int = 0
    u: np.ndarray | None = None
    v: np.ndarray | None = None
    is_supply_dummy: bool = False
    is_demand_dummy: bool = False
    original_shape: tuple[int, int] = (0, 0)
    degeneracy_resolved: bool = True
    messages: list[str] = field(default_factory=list)
    entering_cell: Cell | None = None

    @property
    def is_optimal(self) -> bool:
        return self.status == "optimal"

    def raise_for_status(self) -> None:
        """Raise the exception matching a non-optimal status.

        An unresolved degeneracy is reported in preference to the optimizer
        status because it leaves the basis invalid for the potential method.
        """
        if self.is_optimal:
            return
        detail = self.messages[-1] if self.messages else self.status
        if not self.degeneracy_resolved and self.plan is not None:
            raise DegeneracyUnresolvedError(
                detail,
                basic_cells=self.plan.basic_count,
                required=self.plan.required_basis_size,
            )
        if self.status == "iteration_limit":
            raise IterationLimitError(detail, iterations=self.iterations, objective=self.total_cost)
        if self.status == "cycle_not_found":
            entering = self.entering_cell
            raise CycleNotFoundError(
                detail,
                entering_cell=(entering.row, entering.col) if entering is not None else None,
            )
        raise RentUndefinedError(detail)


@dataclass
class SolverOptions:
    """Configuration options for the transportation solvers.

    Attributes:
        tolerance: Zero tolerance for balancing, plan construction and the potential
                   method (default: 1e-9).
        max_iterations: Potential method iteration ceiling (default: 10).
        rent_tolerance: Tariff and amount tolerance of the differential rent method
                        (default: 1e-4).
        rent_max_iterations: Differential rent iteration ceiling (default: 50).

    Examples:
        >>> options = SolverOptions(max_iterations=100)
        >>> options = SolverOptions(tolerance=1e-6, rent_max_iterations=200)
    """

    tolerance: float = EPSILON
    max_iterations: int = MAX_ITERATIONS
    rent_tolerance: float = RENT_TOLERANCE
    rent_max_iterations: int = RENT_MAX_ITERATIONS

    def __post_init__(self) -> None:
        if self.tolerance <= 0:
            raise SolverConfigurationError(
                f"Tolerance must be positive, got {self.tolerance}. "
                f"Tolerance controls how close to zero a value must be to count as zero."
            )
        if self.rent_tolerance <= 0:
            raise SolverConfigurationError(
                f"Rent tolerance must be positive, got {self.rent_tolerance}."
            )
        if self.max_iterations <= 0:
            raise SolverConfigurationError(
                f"max_iterations must be positive, got {self.max_iterations}."
            )
        if self.rent_max_iterations <= 0:
            raise SolverConfigurationError(
                f"rent_max_iterations must be positive, got {self.rent_max_iterations}."
            )


def _as_vector(values: Iterable[float], label: str) -> np.ndarray:
    try:
        return np.array([float(value) for value in values], dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidProblemError(f"{label} must contain only numbers: {exc}") from exc


def build_problem(
    costs: Sequence[Sequence[float]] | np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    tolerance: float = EPSILON,
) -> TransportProblem:
    """Factory helper used by the solver facade and IO layer to assemble a TransportProblem."""
    supply_vec = _as_vector(supplies, "Supplies")
    demand_vec = _as_vector(demands, "Demands")
    m, n = len(supply_vec), len(demand_vec)

    # Check the raw shape before numpy gets a chance to build a ragged object array.
    if len(costs) != m:
        raise InvalidProblemError(
            f"Cost matrix has {len(costs)} rows, but {m} suppliers provided."
        )
    for i, row in enumerate(costs):
        if len(row) != n:
            raise InvalidProblemError(
                f"Row {i + 1} has {len(row)} columns, but {n} consumers provided."
            )
    cost_rows = [_as_vector(row, f"Cost row {i + 1}") for i, row in enumerate(costs)]
    cost_matrix = np.array(cost_rows, dtype=float).reshape(m, n)

    problem = TransportProblem(
        costs=cost_matrix,
        supplies=supply_vec,
        demands=demand_vec,
        tolerance=float(tolerance),
    )
    problem.validate()
    return problem
