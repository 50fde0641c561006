"""High-level entrypoints for the transportation problem solver library."""

from .balancing import balance
from .basis import Potentials, compute_potentials, find_cycle, is_acyclic
from .data import (
    EPSILON,
    MAX_ITERATIONS,
    RENT_MAX_ITERATIONS,
    RENT_TOLERANCE,
    AllocationPlan,
    BalancedProblem,
    Cell,
    CellState,
    OptimizationResult,
    RentSolution,
    SolverOptions,
    TransportProblem,
    TransportResult,
    build_problem,
)
from .degeneracy import DegeneracyReport, resolve_degeneracy
from .diagnostics import CostHistory
from .differential_rent import DifferentialRentSolver, solve_by_differential_rent
from .events import (
    AllocationBuilt,
    BalanceChecked,
    CycleFound,
    DegeneracyResolved,
    DeltasComputed,
    EventCallback,
    InitialPlanReady,
    MaxIterationsReached,
    OptimalReached,
    PotentialsComputed,
    Reallocated,
    RentComputed,
    SolverEvent,
    TariffsUpdated,
)
from .exceptions import (
    CycleNotFoundError,
    DegeneracyUnresolvedError,
    InvalidProblemError,
    IterationLimitError,
    RentUndefinedError,
    SolverConfigurationError,
    TransportSolverError,
)
from .initial_plan import build_initial_plan
from .potentials import PotentialMethodOptimizer, optimize_by_potentials
from .solver import SolverContext, TransportSolver, load_problem, save_result, solve_transportation
from .utils import Shipment, ValidationResult, compute_total_cost, extract_shipments, validate_plan

__version__ = "0.1.0"

__all__ = [
    # Main API
    "build_problem",
    "load_problem",
    "solve_transportation",
    "save_result",
    "TransportSolver",
    "SolverContext",
    # Core phases
    "balance",
    "build_initial_plan",
    "resolve_degeneracy",
    "optimize_by_potentials",
    "solve_by_differential_rent",
    "PotentialMethodOptimizer",
    "DifferentialRentSolver",
    "DegeneracyReport",
    # Basis helpers
    "is_acyclic",
    "compute_potentials",
    "find_cycle",
    "Potentials",
    # Data model
    "Cell",
    "CellState",
    "AllocationPlan",
    "TransportProblem",
    "BalancedProblem",
    "OptimizationResult",
    "RentSolution",
    "TransportResult",
    # Configuration
    "SolverOptions",
    "EPSILON",
    "MAX_ITERATIONS",
    "RENT_TOLERANCE",
    "RENT_MAX_ITERATIONS",
    # Progress events
    "EventCallback",
    "SolverEvent",
    "BalanceChecked",
    "InitialPlanReady",
    "DegeneracyResolved",
    "PotentialsComputed",
    "DeltasComputed",
    "CycleFound",
    "Reallocated",
    "OptimalReached",
    "MaxIterationsReached",
    "AllocationBuilt",
    "RentComputed",
    "TariffsUpdated",
    # Utilities
    "validate_plan",
    "extract_shipments",
    "compute_total_cost",
    "Shipment",
    "ValidationResult",
    # Diagnostics
    "CostHistory",
    # Exceptions
    "TransportSolverError",
    "InvalidProblemError",
    "SolverConfigurationError",
    "IterationLimitError",
    "CycleNotFoundError",
    "DegeneracyUnresolvedError",
    "RentUndefinedError",
]
