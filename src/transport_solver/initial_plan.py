"""Initial basic feasible plan via the minimum-cost method."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from .data import EPSILON, AllocationPlan, Cell

logger = logging.getLogger(__name__)


def build_initial_plan(
    costs: np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    tolerance: float = EPSILON,
) -> AllocationPlan:
    """Build a basic feasible plan by repeatedly shipping through the cheapest open cell.

    Each step picks the open cell with the globally minimum cost (first in
    row-major order on ties) and ships as much as its row and column allow. An
    exhausted row closes its remaining open cells, then an exhausted column does
    the same, so closed cells are never scanned again. Closed cells are local to
    this function and come back as plain unallocated cells.

    The problem must be balanced. Row and column sums of the returned plan match
    ``supplies`` and ``demands`` exactly up to ``tolerance``.
    """
    cost_matrix = np.asarray(costs, dtype=float)
    remaining_supply = np.array(list(supplies), dtype=float)
    remaining_demand = np.array(list(demands), dtype=float)
    m, n = cost_matrix.shape

    plan = AllocationPlan(m, n)
    closed = np.zeros((m, n), dtype=bool)

    while (remaining_supply > tolerance).any() and (remaining_demand > tolerance).any():
        open_cells = ~(plan.basic | closed)
        if not open_cells.any():
            break
        # argmin over a flattened masked matrix returns the first minimum in row-major order.
        masked = np.where(open_cells, cost_matrix, np.inf)
        row, col = divmod(int(np.argmin(masked)), n)

        shipment = min(remaining_supply[row], remaining_demand[col])
        plan.set_basic(Cell(row, col), float(shipment))
        remaining_supply[row] -= shipment
        remaining_demand[col] -= shipment

        if abs(remaining_supply[row]) < tolerance:
            closed[row, :] |= ~plan.basic[row, :]
        if abs(remaining_demand[col]) < tolerance:
            closed[:, col] |= ~plan.basic[:, col]

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Shipped {shipment} through cell {Cell(row, col)}",
                extra={
                    "row": row,
                    "col": col,
                    "cost": float(cost_matrix[row, col]),
                    "shipment": float(shipment),
                },
            )

    logger.info(
        "Initial plan built with the minimum-cost method",
        extra={
            "basic_cells": plan.basic_count,
            "required_cells": plan.required_basis_size,
            "total_cost": plan.total_cost(cost_matrix),
        },
    )
    return plan
