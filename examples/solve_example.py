"""CLI script that solves a transportation problem stored as JSON."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver import (  # noqa: E402
    SolverOptions,
    TransportSolver,
    extract_shipments,
    load_problem,
    save_result,
)


def main() -> None:
    base_dir = Path(__file__).resolve().parent

    parser = argparse.ArgumentParser(description="Solve a transportation problem from JSON")
    parser.add_argument(
        "problem",
        nargs="?",
        type=Path,
        default=base_dir / "default_problem.json",
        help="Problem file with 'costs', 'supplies' and 'demands' (default: default_problem.json)",
    )
    parser.add_argument(
        "-m",
        "--method",
        choices=("potentials", "differential_rent"),
        default="potentials",
        help="Optimization method (default: potentials)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Iteration ceiling of the selected method",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    )
    args = parser.parse_args()

    # Configure logging based on verbosity
    if args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose >= 1:
        level = logging.INFO
    else:
        level = logging.ERROR

    logging.basicConfig(
        level=level,
        format="%(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    options = SolverOptions()
    if args.max_iterations is not None:
        options = SolverOptions(
            max_iterations=args.max_iterations,
            rent_max_iterations=args.max_iterations,
        )

    problem_path: Path = args.problem
    output_path = problem_path.with_name(f"{problem_path.stem.replace('_problem', '')}_solution.json")

    problem = load_problem(problem_path)
    result = TransportSolver(problem, options=options).solve(method=args.method)
    save_result(output_path, result)

    print(
        f"Solved {problem_path.name}: status={result.status}, "
        f"method={result.method}, total_cost={result.total_cost:g}"
    )
    for message in result.messages:
        print(f"  {message}")

    shipments = [shipment for shipment in extract_shipments(result) if not shipment.is_dummy]
    if shipments:
        print("\nShipments:")
        for shipment in shipments:
            print(f"  {shipment}")


if __name__ == "__main__":
    main()
