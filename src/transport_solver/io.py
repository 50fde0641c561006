"""File I/O helpers for transportation problems."""

from __future__ import annotations

import json
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from .data import EPSILON, TransportProblem, TransportResult, build_problem
from .exceptions import InvalidProblemError

_REQUIRED_FIELDS = ("costs", "supplies", "demands")


def load_problem(path: str | Path) -> TransportProblem:
    """Load a transportation problem from a JSON file."""
    with Path(path).open("r", encoding="utf-8") as fh:
        payload: MutableMapping[str, Any] = json.load(fh)
    if not isinstance(payload, dict):
        raise InvalidProblemError(
            f"Invalid problem format: expected a JSON object, got {type(payload).__name__}."
        )
    missing = [name for name in _REQUIRED_FIELDS if not isinstance(payload.get(name), list)]
    if missing:
        raise InvalidProblemError(
            "Invalid problem format: JSON must include 'costs', 'supplies' and 'demands' arrays. "
            f"Missing or not an array: {', '.join(missing)}"
        )
    tolerance = float(payload.get("tolerance", EPSILON))
    return build_problem(
        costs=payload["costs"],
        supplies=payload["supplies"],
        demands=payload["demands"],
        tolerance=tolerance,
    )


def save_result(path: str | Path, result: TransportResult) -> None:
    """Persist a solver result to JSON."""
    shipments = []
    if result.plan is not None:
        # Basic zeros are written too, in row-major order.
        for cell in result.plan.basic_cells():
            shipments.append(
                {"row": cell.row, "col": cell.col, "amount": result.plan.value(cell)}
            )
    potentials = None
    if result.u is not None and result.v is not None:
        potentials = {"u": result.u.tolist(), "v": result.v.tolist()}

    data = {
        "status": result.status,
        "method": result.method,
        "objective": result.total_cost,
        "iterations": result.iterations,
        "shipments": shipments,
        "potentials": potentials,
        "is_supply_dummy": result.is_supply_dummy,
        "is_demand_dummy": result.is_demand_dummy,
        "messages": list(result.messages),
    }
    with Path(path).open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, sort_keys=False)
