"""Tests for custom exception hierarchy."""

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver import (  # noqa: E402
    CycleNotFoundError,
    DegeneracyUnresolvedError,
    InvalidProblemError,
    IterationLimitError,
    RentUndefinedError,
    SolverConfigurationError,
    TransportSolverError,
    solve_transportation,
)
from transport_solver.io import load_problem  # noqa: E402


def test_all_exceptions_inherit_from_base():
    """Test that all custom exceptions inherit from TransportSolverError."""
    assert issubclass(InvalidProblemError, TransportSolverError)
    assert issubclass(SolverConfigurationError, TransportSolverError)
    assert issubclass(IterationLimitError, TransportSolverError)
    assert issubclass(CycleNotFoundError, TransportSolverError)
    assert issubclass(DegeneracyUnresolvedError, TransportSolverError)
    assert issubclass(RentUndefinedError, TransportSolverError)


def test_base_exception_is_exception():
    """Test that TransportSolverError inherits from Exception."""
    assert issubclass(TransportSolverError, Exception)


def test_exception_attributes():
    """Test that structured exceptions keep their context."""
    limit = IterationLimitError("limit", iterations=7, objective=12.5)
    assert limit.iterations == 7
    assert limit.objective == 12.5

    cycle = CycleNotFoundError("no cycle", entering_cell=(1, 0))
    assert cycle.entering_cell == (1, 0)

    degeneracy = DegeneracyUnresolvedError("stuck", basic_cells=4, required=5)
    assert degeneracy.basic_cells == 4
    assert degeneracy.required == 5


def test_invalid_problem_dimension_mismatch():
    """Test InvalidProblemError raised for a cost row that does not match the consumers."""
    with pytest.raises(InvalidProblemError) as exc_info:
        solve_transportation([[5, 5]], [15], [10])

    assert "columns" in str(exc_info.value)


def test_unknown_method_is_configuration_error():
    """Test SolverConfigurationError for an unknown method name."""
    with pytest.raises(SolverConfigurationError, match="Unknown method 'simplex'"):
        solve_transportation([[1]], [1], [1], method="simplex")


def test_invalid_json_problem(tmp_path: Path):
    """Test InvalidProblemError for JSON missing required arrays."""
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"costs": [[1]], "supplies": [1]}), encoding="utf-8")

    with pytest.raises(InvalidProblemError, match="demands"):
        load_problem(path)


def test_catch_all_with_base_class():
    """Test that the base class catches solver errors."""
    with pytest.raises(TransportSolverError):
        solve_transportation([[1, -1]], [1], [1, 0])
