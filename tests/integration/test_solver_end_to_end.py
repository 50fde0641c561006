import json
import math
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver import SolverOptions, validate_plan  # noqa: E402
from transport_solver.solver import (  # noqa: E402
    TransportSolver,
    load_problem,
    save_result,
    solve_transportation,
)

EXAMPLES_DIR = PROJECT_ROOT / "examples"


def test_solver_end_to_end(tmp_path: Path):
    # Exercise the public solver facade by round-tripping a tiny JSON instance.
    problem_payload = {
        "costs": [[1, 2], [3, 4]],
        "supplies": [10, 10],
        "demands": [10, 10],
    }

    problem_path = tmp_path / "problem.json"
    problem_path.write_text(json.dumps(problem_payload), encoding="utf-8")

    problem = load_problem(problem_path)
    result = TransportSolver(problem).solve()

    assert result.status == "optimal"
    assert result.total_cost == pytest.approx(50.0)

    result_path = tmp_path / "result.json"
    save_result(result_path, result)

    saved = json.loads(result_path.read_text(encoding="utf-8"))
    assert saved["status"] == "optimal"
    assert saved["objective"] == pytest.approx(50.0)
    assert saved["iterations"] == 0
    assert len(saved["shipments"]) == 3


@pytest.mark.parametrize("method", ["potentials", "differential_rent"])
def test_default_problem_fixture(method):
    problem = load_problem(EXAMPLES_DIR / "default_problem.json")

    result = TransportSolver(problem).solve(method=method)

    assert result.status == "optimal"
    assert result.total_cost == pytest.approx(445.0)
    assert validate_plan(result.plan, problem.supplies, problem.demands).is_valid


def test_open_problem_fixture(tmp_path: Path):
    problem = load_problem(EXAMPLES_DIR / "open_problem.json")

    result = TransportSolver(problem).solve()

    assert result.status == "optimal"
    assert result.total_cost == pytest.approx(32.0)
    assert result.is_demand_dummy
    assert result.plan.shape == (2, 3)
    # The dummy column absorbs the 13 surplus units.
    assert result.plan.col_sums()[-1] == pytest.approx(13.0)

    artifact = tmp_path / "open_solution.json"
    save_result(artifact, result)
    saved = json.loads(artifact.read_text(encoding="utf-8"))
    assert saved["is_demand_dummy"] is True
    assert saved["messages"][0] == "Added a dummy consumer with demand 13."


def test_both_methods_agree_on_three_by_four_problem():
    costs = [[8, 6, 10, 9], [9, 12, 13, 7], [14, 9, 16, 5]]
    supplies = [35, 50, 40]
    demands = [45, 20, 30, 30]

    modi = solve_transportation(costs, supplies, demands, options=SolverOptions(max_iterations=100))
    rent = solve_transportation(costs, supplies, demands, method="differential_rent")

    assert modi.status == "optimal"
    if rent.status == "optimal":
        assert rent.total_cost == pytest.approx(modi.total_cost)
    else:
        assert math.isnan(rent.total_cost)


def test_potentials_satisfy_optimality_conditions():
    problem = load_problem(EXAMPLES_DIR / "default_problem.json")
    result = TransportSolver(problem).solve()

    deltas = result.u[:, None] + result.v[None, :] - problem.costs
    assert (deltas <= 1e-9).all()
    np.testing.assert_allclose(deltas[result.plan.basic], 0.0, atol=1e-9)
