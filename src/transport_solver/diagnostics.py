"""Convergence diagnostics for the potential method.

Tracks the total cost after every reallocation so the optimizer can flag steps
that break the non-increasing cost guarantee (a symptom of an invalid basis) and
report how many reallocations moved a zero amount.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CostHistory:
    """Records total plan cost across optimizer iterations.

    Attributes:
        tolerance: Cost differences at or below this are treated as no change.
        costs: Total cost of the initial plan followed by one entry per reallocation.
        degenerate_steps: Reallocations with θ = 0 (basis changed, cost did not).

    Examples:
        >>> history = CostHistory(tolerance=1e-9)
        >>> history.record(120.0)
        >>> history.record(100.0, theta=5.0)
        >>> history.is_monotone()
        True
    """

    tolerance: float = 1e-9
    costs: list[float] = field(default_factory=list)
    degenerate_steps: int = 0

    def record(self, total_cost: float, theta: float | None = None) -> None:
        """Record a cost; ``theta`` is the amount moved by the reallocation, if any."""
        self.costs.append(total_cost)
        if theta is not None and abs(theta) <= self.tolerance:
            self.degenerate_steps += 1

    def last_change(self) -> float | None:
        """Cost change of the most recent step (negative = improvement)."""
        if len(self.costs) < 2:
            return None
        return self.costs[-1] - self.costs[-2]

    def increased(self) -> bool:
        """True if the most recent step made the plan more expensive."""
        change = self.last_change()
        return change is not None and change > self.tolerance

    def is_monotone(self) -> bool:
        return all(
            later <= earlier + self.tolerance
            for earlier, later in zip(self.costs, self.costs[1:])
        )

    def get_total_improvement(self) -> float:
        if not self.costs:
            return 0.0
        return self.costs[0] - self.costs[-1]

    def get_diagnostic_summary(self) -> dict[str, float | bool | int]:
        return {
            "steps": max(0, len(self.costs) - 1),
            "degenerate_steps": self.degenerate_steps,
            "is_monotone": self.is_monotone(),
            "total_improvement": self.get_total_improvement(),
        }
