"""Utility functions for analyzing and validating transportation plans."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .data import AllocationPlan, TransportResult


@dataclass
class Shipment:
    """One non-zero route of a plan.

    Attributes:
        row: Zero-based supplier index.
        col: Zero-based consumer index.
        amount: Units shipped.
        is_dummy: True if the route touches a dummy supplier or consumer added by
                  balancing (the amount is then unused supply or unmet demand).
    """

    row: int
    col: int
    amount: float
    is_dummy: bool = False

    def __str__(self) -> str:
        return f"Ship {self.amount:g} units from Supplier {self.row + 1} to Consumer {self.col + 1}"


@dataclass
class ValidationResult:
    """Results from validating a transportation plan.

    Attributes:
        is_valid: True if the plan satisfies all constraints.
        errors: List of validation error messages (empty if valid).
        row_residuals: Supply minus shipped amount per supplier.
        col_residuals: Demand minus received amount per consumer.
        negative_cells: Cells holding a negative amount.
    """

    is_valid: bool
    errors: list[str]
    row_residuals: list[float]
    col_residuals: list[float]
    negative_cells: list[tuple[int, int]]


def _dense(allocation: AllocationPlan | np.ndarray) -> np.ndarray:
    if isinstance(allocation, AllocationPlan):
        return allocation.shipments()
    return np.nan_to_num(np.asarray(allocation, dtype=float), nan=0.0)


def compute_total_cost(allocation: AllocationPlan | np.ndarray, costs: np.ndarray) -> float:
    """Total cost of ``allocation`` against ``costs`` (unallocated cells count as zero)."""
    return float((_dense(allocation) * np.asarray(costs, dtype=float)).sum())


def validate_plan(
    allocation: AllocationPlan | np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    tolerance: float = 1e-6,
) -> ValidationResult:
    """Validate that a plan ships exactly the supplies and demands.

    Checks:
    - Every row sums to its supply
    - Every column sums to its demand
    - No cell holds a negative amount

    Args:
        allocation: AllocationPlan or dense matrix (NaN treated as unallocated).
        supplies: Supplier capacities.
        demands: Consumer demands.
        tolerance: Numerical tolerance for constraint violations (default: 1e-6).

    Returns:
        ValidationResult with detailed information about any violations.
    """
    matrix = _dense(allocation)
    supply_vec = np.array(list(supplies), dtype=float)
    demand_vec = np.array(list(demands), dtype=float)
    errors: list[str] = []

    if matrix.shape != (len(supply_vec), len(demand_vec)):
        errors.append(
            f"Plan shape {matrix.shape} does not match {len(supply_vec)} suppliers and "
            f"{len(demand_vec)} consumers"
        )
        return ValidationResult(
            is_valid=False,
            errors=errors,
            row_residuals=[],
            col_residuals=[],
            negative_cells=[],
        )

    row_residuals = supply_vec - matrix.sum(axis=1)
    col_residuals = demand_vec - matrix.sum(axis=0)

    for i, residual in enumerate(row_residuals):
        if abs(residual) > tolerance:
            errors.append(
                f"Supplier {i + 1} ships {supply_vec[i] - residual:g} but has supply {supply_vec[i]:g}"
            )
    for j, residual in enumerate(col_residuals):
        if abs(residual) > tolerance:
            errors.append(
                f"Consumer {j + 1} receives {demand_vec[j] - residual:g} but demands {demand_vec[j]:g}"
            )

    negative_cells = [(int(i), int(j)) for i, j in zip(*np.nonzero(matrix < -tolerance))]
    for i, j in negative_cells:
        errors.append(f"Cell ({i + 1}, {j + 1}) holds negative amount {matrix[i, j]:g}")

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        row_residuals=row_residuals.tolist(),
        col_residuals=col_residuals.tolist(),
        negative_cells=negative_cells,
    )


def extract_shipments(result: TransportResult, tolerance: float = 1e-9) -> list[Shipment]:
    """List the routes of a solved problem that carry more than ``tolerance``.

    Routes are returned in row-major order. Routes through a dummy supplier or
    consumer are flagged with ``is_dummy``.

    Examples:
        >>> result = solve_transportation([[1, 2], [3, 4]], [10, 10], [10, 10])
        >>> [str(s) for s in extract_shipments(result)]
        ['Ship 10 units from Supplier 1 to Consumer 1', 'Ship 10 units from Supplier 2 to Consumer 2']
    """
    if result.plan is None:
        return []

    matrix = result.plan.shipments()
    rows, cols = matrix.shape
    dummy_row = rows - 1 if result.is_supply_dummy else None
    dummy_col = cols - 1 if result.is_demand_dummy else None

    shipments: list[Shipment] = []
    for i, j in zip(*np.nonzero(matrix > tolerance)):
        shipments.append(
            Shipment(
                row=int(i),
                col=int(j),
                amount=float(matrix[i, j]),
                is_dummy=bool(i == dummy_row or j == dummy_col),
            )
        )
    return shipments
