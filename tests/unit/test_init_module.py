"""Unit tests for __init__.py module public API."""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

import transport_solver  # noqa: E402


class TestPublicAPI:
    """Tests for the names exported by the package."""

    def test_version_is_exposed(self):
        """Test that the package version is a dotted string."""
        assert isinstance(transport_solver.__version__, str)
        assert transport_solver.__version__.count(".") == 2

    def test_all_names_resolve(self):
        """Test that every name in __all__ is importable from the package."""
        for name in transport_solver.__all__:
            assert hasattr(transport_solver, name), f"{name} listed in __all__ but missing"

    def test_all_has_no_duplicates(self):
        assert len(transport_solver.__all__) == len(set(transport_solver.__all__))

    def test_main_entrypoints_are_callable(self):
        for name in ("solve_transportation", "load_problem", "save_result", "build_problem"):
            assert callable(getattr(transport_solver, name))

    def test_exceptions_share_base_class(self):
        for name in (
            "InvalidProblemError",
            "SolverConfigurationError",
            "IterationLimitError",
            "CycleNotFoundError",
            "DegeneracyUnresolvedError",
            "RentUndefinedError",
        ):
            assert issubclass(getattr(transport_solver, name), transport_solver.TransportSolverError)
