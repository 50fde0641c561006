"""Basis graph utilities for transportation plans.

The basic cells of an M×N plan are viewed as a bipartite graph: suppliers
(rows) and consumers (columns) are nodes, every basic cell (i, j) is an edge
between row i and column j. A non-degenerate basis of m+n-1 cells is a spanning
tree of that graph, which is what makes potentials unique (up to the reference
choice) and gives every entering cell exactly one reallocation cycle.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

import numpy as np

from .data import Cell

_ROW = 0
_COL = 1


@dataclass(eq=False)
class Potentials:
    """Dual potentials of a basis.

    Attributes:
        u: Supplier potentials.
        v: Consumer potentials.
        reference_row: Row whose potential was fixed to 0.
        unreached: Number of rows plus columns not connected to the reference row.
                   Their potentials default to 0; anything above zero means the basis
                   is not a spanning tree.
    """

    u: np.ndarray
    v: np.ndarray
    reference_row: int
    unreached: int = 0


def prune_leaves(basic: np.ndarray) -> np.ndarray:
    """Strip cells that are alone in their row or column until none are left.

    Every sweep removes all current leaves at once. What survives is the union of
    the cycles of the basis graph; a forest prunes down to nothing.

    Args:
        basic: Boolean M×N basis mask (not modified).

    Returns:
        Boolean mask of the cells that survive pruning.
    """
    remaining = np.array(basic, dtype=bool, copy=True)
    while remaining.any():
        row_counts = remaining.sum(axis=1)
        col_counts = remaining.sum(axis=0)
        leaves = remaining & ((row_counts[:, None] == 1) | (col_counts[None, :] == 1))
        if not leaves.any():
            break
        remaining &= ~leaves
    return remaining


def is_acyclic(basic: np.ndarray) -> bool:
    """Return True if the basic cells contain no closed row/column loop."""
    return not prune_leaves(basic).any()


def compute_potentials(costs: np.ndarray, basic: np.ndarray) -> Potentials:
    """Solve ``u[i] + v[j] = costs[i, j]`` over the basic cells.

    The row with the most basic cells (first on ties) is the reference and gets
    ``u = 0``. Potentials then spread breadth-first across basic cells, rows and
    columns alternating, so each one is derived exactly once from an already
    known neighbour.

    Args:
        costs: M×N cost matrix.
        basic: Boolean M×N basis mask.

    Returns:
        Potentials. Rows or columns unreachable from the reference row get 0.
    """
    m, n = basic.shape
    u = np.full(m, np.nan)
    v = np.full(n, np.nan)

    reference_row = int(np.argmax(basic.sum(axis=1)))
    u[reference_row] = 0.0
    queue: deque[tuple[int, int]] = deque([(_ROW, reference_row)])

    while queue:
        kind, idx = queue.popleft()
        if kind == _ROW:
            for j in np.flatnonzero(basic[idx, :]):
                if np.isnan(v[j]):
                    v[j] = costs[idx, j] - u[idx]
                    queue.append((_COL, int(j)))
        else:
            for i in np.flatnonzero(basic[:, idx]):
                if np.isnan(u[i]):
                    u[i] = costs[i, idx] - v[idx]
                    queue.append((_ROW, int(i)))

    unreached = int(np.isnan(u).sum() + np.isnan(v).sum())
    return Potentials(
        u=np.nan_to_num(u, nan=0.0),
        v=np.nan_to_num(v, nan=0.0),
        reference_row=reference_row,
        unreached=unreached,
    )


def compute_deltas(
    costs: np.ndarray, basic: np.ndarray, u: np.ndarray, v: np.ndarray
) -> np.ndarray:
    """Reduced costs ``u[i] + v[j] - costs[i, j]`` on non-basic cells, NaN on basic ones."""
    return np.where(basic, np.nan, u[:, None] + v[None, :] - costs)


def find_cycle(basic: np.ndarray, entering: Cell) -> list[Cell] | None:
    """Return the reallocation loop that ``entering`` closes in the basis.

    The entering cell joins the basis, leaves are pruned, and the surviving cells
    are walked starting at the entering cell: along its row, then along a
    column, alternating until no unvisited cell is adjacent. The walk is a valid
    loop when it has more than two cells and ends in the entering cell's row or
    column.

    Only correct when the basis is a spanning tree (m+n-1 acyclic cells), so that
    exactly one loop survives pruning. Callers check the basis size first.

    Args:
        basic: Boolean M×N basis mask (not modified).
        entering: Non-basic cell entering the basis.

    Returns:
        Cells of the loop starting with ``entering`` (even positions gain the
        reallocated amount, odd positions lose it), or None if no loop exists.
    """
    work = np.array(basic, dtype=bool, copy=True)
    work[entering.row, entering.col] = True
    remaining = prune_leaves(work)

    if not remaining[entering.row, entering.col] or int(remaining.sum()) < 4:
        return None

    rows, cols = np.nonzero(remaining)
    points = [Cell(int(i), int(j)) for i, j in zip(rows, cols)]
    points.remove(entering)

    path = [entering]
    current = entering
    along_row = True
    while points:
        if along_row:
            step = next((p for p in points if p.row == current.row), None)
        else:
            step = next((p for p in points if p.col == current.col), None)
        if step is None:
            break
        path.append(step)
        points.remove(step)
        current = step
        along_row = not along_row

    last = path[-1]
    if len(path) > 2 and (last.row == entering.row or last.col == entering.col):
        return path
    return None
