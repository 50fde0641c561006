"""Example printing the step-by-step events of both optimization methods."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from transport_solver import (  # noqa: E402
    AllocationBuilt,
    CycleFound,
    DeltasComputed,
    PotentialsComputed,
    Reallocated,
    RentComputed,
    SolverEvent,
    TariffsUpdated,
    solve_transportation,
)

COSTS = [[4, 9, 1, 3], [2, 5, 5, 6], [2, 5, 10, 4], [3, 7, 2, 6]]
SUPPLIES = [43, 20, 30, 32]
DEMANDS = [18, 50, 22, 35]


def print_event(event: SolverEvent) -> None:
    if isinstance(event, PotentialsComputed):
        print(f"  [{event.iteration}] u={event.u.tolist()} v={event.v.tolist()}")
    elif isinstance(event, DeltasComputed):
        print(f"  [{event.iteration}] max delta {event.max_delta:g} at {event.entering_cell}")
    elif isinstance(event, CycleFound):
        print(f"  [{event.iteration}] cycle " + " -> ".join(str(cell) for cell in event.cycle))
    elif isinstance(event, Reallocated):
        print(
            f"  [{event.iteration}] theta={event.theta:g}, {event.leaving_cell} leaves, "
            f"cost={event.total_cost:g}"
        )
    elif isinstance(event, AllocationBuilt):
        print(f"  [{event.iteration}] allocated {event.allocated:g} units")
    elif isinstance(event, RentComputed):
        print(
            f"  [{event.iteration}] rents={event.column_rents} surplus={list(event.surplus_rows)} "
            f"deficit={list(event.deficit_rows)}"
        )
    elif isinstance(event, TariffsUpdated):
        print(f"  [{event.iteration}] rent {event.rent:g} added to rows {list(event.deficit_rows)}")
    else:
        print(f"  {event.kind}")


def main() -> None:
    for method in ("potentials", "differential_rent"):
        print("=" * 70)
        print(f"METHOD: {method}")
        print("=" * 70)
        result = solve_transportation(COSTS, SUPPLIES, DEMANDS, method=method, callback=print_event)
        print(f"Status: {result.status}, total cost: {result.total_cost:g}\n")


if __name__ == "__main__":
    main()
