"""Balancing of open transportation problems with a dummy supplier or consumer."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from .data import EPSILON, BalancedProblem
from .events import BalanceChecked, EventCallback, notify

logger = logging.getLogger(__name__)


def balance(
    costs: Sequence[Sequence[float]] | np.ndarray,
    supplies: Iterable[float],
    demands: Iterable[float],
    tolerance: float = EPSILON,
    callback: EventCallback | None = None,
) -> BalancedProblem:
    """Close an open transportation problem.

    When total supply and total demand differ by at least ``tolerance``, a dummy
    supplier (supply < demand) or dummy consumer (supply > demand) absorbs the
    difference. Dummy routes cost nothing, so they never change the cost of the
    real shipments.

    Args:
        costs: M×N cost matrix.
        supplies: Length-M supplier capacities.
        demands: Length-N consumer demands.
        tolerance: Balance tolerance (default: 1e-9).
        callback: Optional event callback, receives a BalanceChecked event.

    Returns:
        BalancedProblem with copied (and possibly extended) arrays. The inputs are
        never mutated.

    Examples:
        >>> balanced = balance([[2], [4]], [5, 10], [8])
        >>> balanced.demands.tolist(), balanced.is_demand_dummy
        ([8.0, 7.0], True)
    """
    cost_matrix = np.array(costs, dtype=float)
    supply_vec = np.array(list(supplies), dtype=float)
    demand_vec = np.array(list(demands), dtype=float)
    original_shape = (len(supply_vec), len(demand_vec))

    total_supply = float(supply_vec.sum())
    total_demand = float(demand_vec.sum())
    difference = abs(total_supply - total_demand)

    is_supply_dummy = False
    is_demand_dummy = False
    if difference < tolerance:
        logger.info(
            "Problem is closed (balanced)",
            extra={"total_supply": total_supply, "total_demand": total_demand},
        )
    elif total_supply < total_demand:
        supply_vec = np.append(supply_vec, difference)
        cost_matrix = np.vstack([cost_matrix, np.zeros((1, len(demand_vec)))])
        is_supply_dummy = True
        logger.info(
            f"Problem is open: supply < demand, adding dummy supplier {len(supply_vec)}",
            extra={
                "total_supply": total_supply,
                "total_demand": total_demand,
                "dummy_supply": difference,
            },
        )
    else:
        demand_vec = np.append(demand_vec, difference)
        cost_matrix = np.hstack([cost_matrix, np.zeros((len(supply_vec), 1))])
        is_demand_dummy = True
        logger.info(
            f"Problem is open: supply > demand, adding dummy consumer {len(demand_vec)}",
            extra={
                "total_supply": total_supply,
                "total_demand": total_demand,
                "dummy_demand": difference,
            },
        )

    notify(
        callback,
        BalanceChecked(
            total_supply=total_supply,
            total_demand=total_demand,
            difference=difference,
            is_supply_dummy=is_supply_dummy,
            is_demand_dummy=is_demand_dummy,
        ),
    )
    return BalancedProblem(
        costs=cost_matrix,
        supplies=supply_vec,
        demands=demand_vec,
        is_supply_dummy=is_supply_dummy,
        is_demand_dummy=is_demand_dummy,
        original_shape=original_shape,
    )
