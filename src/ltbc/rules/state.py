from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RuleState:
    """Invocation counter backing the ``every`` cadence of a single rule."""

    every: int | None = None
    count: int = 0

    def tick(self) -> bool:
        """Count one evaluation and report whether the rule fires on it."""
        self.count += 1
        if self.every is not None and self.count % self.every != 0:
            return False
        return True
