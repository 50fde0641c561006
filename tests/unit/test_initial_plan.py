"""Tests for the minimum-cost initial plan."""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver.data import Cell, CellState  # noqa: E402
from transport_solver.initial_plan import build_initial_plan  # noqa: E402

DEFAULT_COSTS = np.array(
    [[4, 9, 1, 3], [2, 5, 5, 6], [2, 5, 10, 4], [3, 7, 2, 6]], dtype=float
)
DEFAULT_SUPPLIES = [43, 20, 30, 32]
DEFAULT_DEMANDS = [18, 50, 22, 35]


def test_two_by_two_closes_row_and_column():
    """Filling (1, 1) exhausts both its row and column, so (2, 2) follows."""
    plan = build_initial_plan(np.array([[1.0, 2.0], [3.0, 4.0]]), [10, 10], [10, 10])

    assert plan.value(Cell(0, 0)) == 10.0
    assert plan.value(Cell(1, 1)) == 10.0
    assert plan.state(Cell(0, 1)) is CellState.UNALLOCATED
    assert plan.state(Cell(1, 0)) is CellState.UNALLOCATED
    assert plan.basic_count == 2


def test_ties_break_in_row_major_order():
    """Equal minimum costs resolve to the first cell in row-major order."""
    plan = build_initial_plan(np.array([[2.0, 1.0], [1.0, 2.0]]), [5, 7], [7, 5])

    # (1, 2) and (2, 1) both cost 1; (1, 2) is filled first and takes 5 units.
    assert plan.value(Cell(0, 1)) == 5.0
    assert plan.value(Cell(1, 0)) == 7.0
    assert plan.basic_count == 2


def test_default_problem_allocations():
    plan = build_initial_plan(DEFAULT_COSTS, DEFAULT_SUPPLIES, DEFAULT_DEMANDS)

    expected = {
        Cell(0, 2): 22.0,
        Cell(0, 3): 21.0,
        Cell(1, 0): 18.0,
        Cell(1, 1): 2.0,
        Cell(2, 1): 16.0,
        Cell(2, 3): 14.0,
        Cell(3, 1): 32.0,
    }
    assert {cell: plan.value(cell) for cell in plan.basic_cells()} == expected
    assert plan.total_cost(DEFAULT_COSTS) == pytest.approx(491.0)
    assert plan.basic_count == plan.required_basis_size


def test_plan_is_feasible():
    """Row and column sums match supplies and demands exactly."""
    plan = build_initial_plan(DEFAULT_COSTS, DEFAULT_SUPPLIES, DEFAULT_DEMANDS)

    np.testing.assert_allclose(plan.row_sums(), DEFAULT_SUPPLIES)
    np.testing.assert_allclose(plan.col_sums(), DEFAULT_DEMANDS)


def test_fractional_amounts():
    costs = np.array([[1.0, 3.0], [2.0, 1.0]])
    plan = build_initial_plan(costs, [2.5, 1.5], [1.0, 3.0])

    np.testing.assert_allclose(plan.row_sums(), [2.5, 1.5])
    np.testing.assert_allclose(plan.col_sums(), [1.0, 3.0])


def test_single_cell_problem():
    plan = build_initial_plan(np.array([[7.0]]), [4], [4])
    assert plan.basic_cells() == [Cell(0, 0)]
    assert plan.value(Cell(0, 0)) == 4.0
