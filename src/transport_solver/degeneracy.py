"""Degeneracy resolution: topping a plan up to m+n-1 basic cells."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from .basis import is_acyclic
from .data import AllocationPlan, Cell
from .events import DegeneracyResolved, EventCallback, notify, snapshot

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class DegeneracyReport:
    """Outcome of a degeneracy check.

    Attributes:
        plan: The plan that was checked (modified in place).
        added_cells: Cells that received a zero allocation, in insertion order.
        resolved: False if no acyclic candidate was left before the basis was full.
        required: Basis size of a non-degenerate plan (m + n - 1).
        message: Human-readable summary for logs and results.
    """

    plan: AllocationPlan
    added_cells: list[Cell] = field(default_factory=list)
    resolved: bool = True
    required: int = 0
    message: str = ""

    @property
    def was_degenerate(self) -> bool:
        return bool(self.added_cells) or not self.resolved


def resolve_degeneracy(
    plan: AllocationPlan,
    costs: np.ndarray,
    callback: EventCallback | None = None,
) -> DegeneracyReport:
    """Add zero allocations until the plan has m+n-1 basic cells.

    Each missing slot goes to the cheapest unallocated cell (row-major on equal
    cost) whose addition keeps the basis acyclic. This is a heuristic: it yields a
    valid spanning-tree basis but makes no attempt to pick the zero cells that
    shorten the later optimization.

    If every remaining candidate would close a loop, resolution stops early and
    the report is marked unresolved; the plan keeps whatever was added so far and
    later optimization on it is best-effort.

    Args:
        plan: Plan to top up, modified in place.
        costs: M×N cost matrix.
        callback: Optional event callback, receives a DegeneracyResolved event.
    """
    required = plan.required_basis_size
    filled = plan.basic_count
    report = DegeneracyReport(plan=plan, required=required)

    if filled >= required:
        report.message = (
            f"The plan is non-degenerate. Filled cells: {filled} (m+n-1 = {required})."
        )
        logger.info(report.message, extra={"basic_cells": filled, "required": required})
    else:
        missing = required - filled
        logger.info(
            f"Plan is degenerate, adding {missing} zero allocation(s)",
            extra={"basic_cells": filled, "required": required},
        )
        for _ in range(missing):
            cell = _cheapest_acyclic_cell(plan, costs)
            if cell is None:
                report.resolved = False
                break
            plan.set_basic(cell, 0.0)
            report.added_cells.append(cell)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    f"Added zero allocation to cell {cell}",
                    extra={"row": cell.row, "col": cell.col, "cost": float(costs[cell.row, cell.col])},
                )

        if report.resolved:
            added = ", ".join(str(cell) for cell in report.added_cells)
            report.message = f"Added zero allocation(s) to cell(s) {added}."
            logger.info(report.message, extra={"basic_cells": plan.basic_count})
        else:
            report.message = (
                "Could not add a zero allocation without creating a cycle: "
                f"basis has {plan.basic_count} of {required} cells."
            )
            logger.warning(
                report.message,
                extra={"basic_cells": plan.basic_count, "required": required},
            )

    notify(
        callback,
        DegeneracyResolved(
            added_cells=tuple(report.added_cells),
            resolved=report.resolved,
            basic_cells=plan.basic_count,
            required=required,
            plan=snapshot(plan.as_array()),
        ),
    )
    return report


def _cheapest_acyclic_cell(plan: AllocationPlan, costs: np.ndarray) -> Cell | None:
    candidates = sorted(plan.unallocated_cells(), key=lambda c: (costs[c.row, c.col], c.row, c.col))
    trial = plan.basic.copy()
    for cell in candidates:
        trial[cell.row, cell.col] = True
        if is_acyclic(trial):
            return cell
        trial[cell.row, cell.col] = False
    return None
