"""Custom exceptions for the transportation solver library."""

from __future__ import annotations


class TransportSolverError(Exception):
    """Base exception for all transportation solver errors.

    All custom exceptions in the transport_solver package inherit from this class,
    allowing users to catch all solver-related errors with a single except clause.

    Example:
        try:
            result = solve_transportation(costs, supplies, demands)
            result.raise_for_status()
        except TransportSolverError as e:
            print(f"Solver error: {e}")
    """


class InvalidProblemError(TransportSolverError):
    """Raised when a problem definition is invalid or malformed.

    This includes:
    - Cost matrix dimensions not matching the supply/demand vectors
    - Negative, NaN or infinite costs, supplies or demands
    - Empty problems (no suppliers or no consumers)
    - Malformed JSON input

    Unbalanced problems are NOT invalid: the balancer corrects them by adding
    a dummy supplier or consumer.

    Example:
        InvalidProblemError("Cost matrix has 3 rows, but 2 suppliers provided")
    """


class SolverConfigurationError(TransportSolverError):
    """Raised when solver configuration or options are invalid.

    This includes:
    - Non-positive tolerances or iteration limits
    - Unknown solution method names

    Example:
        SolverConfigurationError("max_iterations must be positive, got -1")
    """


class IterationLimitError(TransportSolverError):
    """Raised when an optimizer reached its iteration ceiling before converging.

    The solver itself never raises this: it returns a result with
    status="iteration_limit". Call TransportResult.raise_for_status() to turn
    that status into this exception.
    """

    def __init__(self, message: str, iterations: int = 0, objective: float | None = None):
        """Initialize with message and solution state."""
        super().__init__(message)
        self.iterations = iterations
        self.objective = objective


class CycleNotFoundError(TransportSolverError):
    """Raised for a potential-method run that could not close a reallocation cycle.

    The entering cell is recorded so callers can inspect the basis around it.
    """

    def __init__(self, message: str, entering_cell: tuple[int, int] | None = None):
        """Initialize with message and the cell that failed to enter the basis."""
        super().__init__(message)
        self.entering_cell = entering_cell


class DegeneracyUnresolvedError(TransportSolverError):
    """Raised when zero allocations could not restore a basis of m+n-1 cells.

    Example:
        DegeneracyUnresolvedError(
            "Could not add a zero allocation without creating a cycle",
            basic_cells=4,
            required=5,
        )
    """

    def __init__(self, message: str, basic_cells: int = 0, required: int = 0):
        """Initialize with message and basis size information."""
        super().__init__(message)
        self.basic_cells = basic_cells
        self.required = required


class RentUndefinedError(TransportSolverError):
    """Raised when the differential rent method failed to produce a feasible plan.

    This covers an undefined intermediate rent (no improving column), the
    iteration ceiling and a stalled zero-rent iteration.
    """
