from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = [
    "TIERS",
    "ProviderOutcome",
    "OUTCOME_FIELDS",
]

# Dispatch / output column order
TIERS: tuple[str, ...] = ("ondemand", "1year", "3year")

# Flattened per-tier output fields: {tier}_{field}
OUTCOME_FIELDS: tuple[str, ...] = ("price", "url", "machineType", "specs")


@dataclass(frozen=True)
class ProviderOutcome:
    """Successful response of one pricing provider for one tier.

    A failed call is represented by ``None`` rather than by an instance.
    """
    price: Any = None
    url: Any = None
    machine_type: Any = None
    specs: Any = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProviderOutcome:
        return cls(
            price=payload.get("price"),
            url=payload.get("url"),
            machine_type=payload.get("machineType"),
            specs=payload.get("specs"),
        )

    def as_fields(self) -> dict[str, Any]:
        return {
            "price": self.price,
            "url": self.url,
            "machineType": self.machine_type,
            "specs": self.specs,
        }
