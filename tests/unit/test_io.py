import json
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver.data import SolverOptions  # noqa: E402
from transport_solver.exceptions import InvalidProblemError  # noqa: E402
from transport_solver.io import load_problem, save_result  # noqa: E402
from transport_solver.solver import solve_transportation  # noqa: E402

# These tests pin the JSON contract implemented by transport_solver.io.

EXAMPLES_DIR = PROJECT_ROOT / "examples"


def _write_payload(tmp_path: Path, payload) -> Path:
    path = tmp_path / "problem.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_bundled_default_problem():
    problem = load_problem(EXAMPLES_DIR / "default_problem.json")

    assert problem.shape == (4, 4)
    assert problem.supplies.tolist() == [43.0, 20.0, 30.0, 32.0]
    assert problem.demands.tolist() == [18.0, 50.0, 22.0, 35.0]
    assert problem.costs[2, 2] == 10.0
    assert problem.is_balanced


def test_load_problem_reads_tolerance(tmp_path: Path):
    payload = {"costs": [[1, 2]], "supplies": [3], "demands": [1, 2], "tolerance": 1e-4}

    problem = load_problem(_write_payload(tmp_path, payload))

    assert problem.tolerance == pytest.approx(1e-4)


def test_load_problem_requires_all_arrays(tmp_path: Path):
    # Missing fields are listed in the error so the file can be fixed.
    payload = {"costs": [[1]], "supplies": [1]}

    path = _write_payload(tmp_path, payload)
    with pytest.raises(InvalidProblemError, match="Missing or not an array: demands"):
        load_problem(path)


def test_load_problem_requires_list_payloads(tmp_path: Path):
    payload = {"costs": [[1]], "supplies": 1, "demands": [1]}

    path = _write_payload(tmp_path, payload)
    with pytest.raises(InvalidProblemError, match="Invalid problem format"):
        load_problem(path)


def test_load_problem_rejects_non_object(tmp_path: Path):
    path = _write_payload(tmp_path, [[1, 2], [3, 4]])
    with pytest.raises(InvalidProblemError, match="expected a JSON object, got list"):
        load_problem(path)


def test_load_problem_validates_contents(tmp_path: Path):
    # Structural checks pass, but a negative cost must still be rejected by the builder.
    payload = {"costs": [[1, -2]], "supplies": [3], "demands": [1, 2]}

    path = _write_payload(tmp_path, payload)
    with pytest.raises(InvalidProblemError, match="non-negative"):
        load_problem(path)


def test_load_problem_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_problem(tmp_path / "absent.json")


def test_save_result_potentials(tmp_path: Path):
    result = solve_transportation([[1, 2], [3, 4]], [10, 10], [10, 10])
    path = tmp_path / "solution.json"

    save_result(path, result)
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert list(payload) == [
        "status",
        "method",
        "objective",
        "iterations",
        "shipments",
        "potentials",
        "is_supply_dummy",
        "is_demand_dummy",
        "messages",
    ]
    assert payload["status"] == "optimal"
    assert payload["objective"] == pytest.approx(50.0)
    # Basic zeros are part of the basis and are written out.
    assert payload["shipments"] == [
        {"row": 0, "col": 0, "amount": 10.0},
        {"row": 0, "col": 1, "amount": 0.0},
        {"row": 1, "col": 1, "amount": 10.0},
    ]
    assert payload["potentials"] == {"u": [0.0, 2.0], "v": [1.0, 2.0]}
    assert payload["messages"] == result.messages


def test_save_result_differential_rent(tmp_path: Path):
    result = solve_transportation(
        [[1, 2], [3, 4]], [10, 10], [10, 10], method="differential_rent"
    )
    path = tmp_path / "solution.json"

    save_result(path, result)
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["method"] == "differential_rent"
    assert payload["potentials"] is None
    assert payload["iterations"] == 2
    assert [entry["amount"] for entry in payload["shipments"]] == [10.0, 10.0]


def test_save_result_failed_solve(tmp_path: Path):
    result = solve_transportation(
        [[4, 9, 1, 3], [2, 5, 5, 6], [2, 5, 10, 4], [3, 7, 2, 6]],
        [43, 20, 30, 32],
        [18, 50, 22, 35],
        method="differential_rent",
        options=SolverOptions(rent_max_iterations=1),
    )
    path = tmp_path / "solution.json"

    save_result(path, result)
    # NaN objectives are written with json's NaN extension and read back as NaN.
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["status"] == "failed"
    assert payload["shipments"] == []
    assert np.isnan(payload["objective"])


def test_save_result_flags_dummy(tmp_path: Path):
    result = solve_transportation([[2], [4]], [5, 10], [8])
    path = tmp_path / "solution.json"

    save_result(path, result)
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["is_demand_dummy"] is True
    assert payload["is_supply_dummy"] is False
    assert payload["objective"] == pytest.approx(22.0)
