"""Tests for basis graph helpers: acyclicity, potentials, reduced costs and cycles."""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver.basis import (  # noqa: E402
    compute_deltas,
    compute_potentials,
    find_cycle,
    is_acyclic,
    prune_leaves,
)
from transport_solver.data import AllocationPlan, Cell  # noqa: E402


def _mask(rows, cols, cells):
    basic = np.zeros((rows, cols), dtype=bool)
    for i, j in cells:
        basic[i, j] = True
    return basic


DEFAULT_COSTS = np.array(
    [[4, 9, 1, 3], [2, 5, 5, 6], [2, 5, 10, 4], [3, 7, 2, 6]], dtype=float
)
# Minimum-cost initial basis of the default problem.
DEFAULT_BASIS = _mask(4, 4, [(0, 2), (0, 3), (1, 0), (1, 1), (2, 1), (2, 3), (3, 1)])


class TestAcyclicity:
    def test_tree_is_acyclic(self):
        assert is_acyclic(_mask(2, 2, [(0, 0), (0, 1), (1, 1)]))

    def test_rectangle_is_a_cycle(self):
        assert not is_acyclic(_mask(2, 2, [(0, 0), (0, 1), (1, 0), (1, 1)]))

    def test_empty_basis_is_acyclic(self):
        assert is_acyclic(np.zeros((3, 3), dtype=bool))

    def test_pruning_keeps_only_cycle_cells(self):
        """A dangling cell is pruned while the rectangle survives."""
        basic = _mask(3, 3, [(0, 0), (0, 1), (1, 0), (1, 1), (1, 2)])
        remaining = prune_leaves(basic)
        assert remaining.sum() == 4
        assert not remaining[1, 2]

    def test_pruning_does_not_modify_input(self):
        basic = _mask(2, 2, [(0, 0)])
        prune_leaves(basic)
        assert basic[0, 0]


class TestPotentials:
    def test_two_by_two_potentials(self):
        """Reference row 1 (two basic cells) gives u = [0, 2], v = [1, 2]."""
        costs = np.array([[1.0, 2.0], [3.0, 4.0]])
        potentials = compute_potentials(costs, _mask(2, 2, [(0, 0), (0, 1), (1, 1)]))

        assert potentials.reference_row == 0
        assert potentials.u.tolist() == [0.0, 2.0]
        assert potentials.v.tolist() == [1.0, 2.0]
        assert potentials.unreached == 0

    def test_reference_row_has_most_basic_cells(self):
        costs = np.array([[1.0, 2.0], [3.0, 4.0]])
        potentials = compute_potentials(costs, _mask(2, 2, [(0, 0), (1, 0), (1, 1)]))

        assert potentials.reference_row == 1
        assert potentials.u[1] == 0.0

    def test_potentials_satisfy_basic_cells(self):
        potentials = compute_potentials(DEFAULT_COSTS, DEFAULT_BASIS)

        for i, j in zip(*np.nonzero(DEFAULT_BASIS)):
            assert potentials.u[i] + potentials.v[j] == pytest.approx(DEFAULT_COSTS[i, j])
        assert potentials.u.tolist() == [0.0, 1.0, 1.0, 3.0]
        assert potentials.v.tolist() == [1.0, 4.0, 1.0, 3.0]

    def test_disconnected_basis_defaults_to_zero(self):
        """Rows and columns not reachable from the reference row get 0."""
        costs = np.array([[5.0, 1.0], [1.0, 5.0]])
        potentials = compute_potentials(costs, _mask(2, 2, [(0, 0), (1, 1)]))

        assert potentials.unreached == 2
        assert potentials.u.tolist() == [0.0, 0.0]
        assert potentials.v.tolist() == [5.0, 0.0]


class TestDeltas:
    def test_deltas_are_nan_on_basic_cells(self):
        potentials = compute_potentials(DEFAULT_COSTS, DEFAULT_BASIS)
        deltas = compute_deltas(DEFAULT_COSTS, DEFAULT_BASIS, potentials.u, potentials.v)

        assert np.isnan(deltas[DEFAULT_BASIS]).all()
        assert deltas[3, 2] == pytest.approx(2.0)
        assert deltas[3, 0] == pytest.approx(1.0)
        assert deltas[2, 2] == pytest.approx(-8.0)
        assert np.nanmax(deltas) == pytest.approx(2.0)


class TestFindCycle:
    def test_default_problem_cycle(self):
        """The entering cell (4, 3) closes a six-cell loop through rows 4, 3 and 1."""
        cycle = find_cycle(DEFAULT_BASIS, Cell(3, 2))

        assert cycle == [
            Cell(3, 2),
            Cell(3, 1),
            Cell(2, 1),
            Cell(2, 3),
            Cell(0, 3),
            Cell(0, 2),
        ]

    def test_cycle_alternates_rows_and_columns(self):
        cycle = find_cycle(DEFAULT_BASIS, Cell(3, 0))
        assert cycle is not None
        assert len(cycle) % 2 == 0
        for position, (current, following) in enumerate(zip(cycle, cycle[1:] + cycle[:1])):
            if position % 2 == 0:
                assert current.row == following.row
            else:
                assert current.col == following.col

    def test_rectangle_cycle(self):
        basic = _mask(2, 2, [(0, 0), (0, 1), (1, 1)])
        assert find_cycle(basic, Cell(1, 0)) == [Cell(1, 0), Cell(1, 1), Cell(0, 1), Cell(0, 0)]

    def test_no_cycle_in_disconnected_basis(self):
        """An entering cell that only joins two components closes no loop."""
        basic = _mask(2, 2, [(0, 0), (1, 1)])
        assert find_cycle(basic, Cell(0, 1)) is None

    def test_entering_cell_outside_existing_cycle(self):
        """A loop elsewhere in the basis is not mistaken for the entering cell's loop."""
        basic = _mask(3, 3, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 2)])
        assert find_cycle(basic, Cell(2, 0)) is None

    def test_input_mask_is_not_modified(self):
        basic = DEFAULT_BASIS.copy()
        find_cycle(basic, Cell(3, 2))
        np.testing.assert_array_equal(basic, DEFAULT_BASIS)

    def test_works_with_plan_mask(self):
        plan = AllocationPlan.from_rows([[10, 0], [None, 10]])
        assert find_cycle(plan.basic, Cell(1, 0)) is not None
