from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .outcome import OUTCOME_FIELDS, TIERS, ProviderOutcome

"""OutputRecord model: one per input row, keyed by ``Sl``.

Either ``error`` is set (validation failure, no dispatch happened) or
``timestamp`` and ``outcomes`` are set (row was dispatched).
"""

__all__ = [
    "OutputRecord",
]


@dataclass(frozen=True)
class OutputRecord:
    sl: int
    error: str | None = None
    timestamp: str | None = None  # ISO8601 UTC, dispatch completion
    outcomes: dict[str, ProviderOutcome | None] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def tier_fields(self, tier: str) -> dict[str, Any]:
        """Flattened ``{tier}_*`` fields; all ``None`` when the tier failed."""
        outcome = self.outcomes.get(tier)
        values = outcome.as_fields() if outcome is not None else {}
        return {f"{tier}_{name}": values.get(name) for name in OUTCOME_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        if self.is_error:
            return {"Sl": self.sl, "Error": self.error}
        data: dict[str, Any] = {"Sl": self.sl, "timestamp": self.timestamp}
        for tier in TIERS:
            data.update(self.tier_fields(tier))
        return data
