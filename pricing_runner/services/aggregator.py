from __future__ import annotations

from datetime import UTC, datetime

from ..models.outcome import TIERS, ProviderOutcome
from ..models.output_record import OutputRecord
from ..models.row import CanonicalRow, ValidationFailure

"""Merge a row's normalization outcome and provider outcomes into one OutputRecord."""

__all__ = [
    "aggregate",
    "utc_timestamp",
]


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def aggregate(
    sl: int,
    normalized: CanonicalRow | ValidationFailure,
    outcomes: dict[str, ProviderOutcome | None] | None = None,
    *,
    timestamp: str | None = None,
) -> OutputRecord:
    """Build the OutputRecord for row ``sl``.

    A ValidationFailure yields an error-only record. Otherwise every tier
    gets an entry; tiers missing from ``outcomes`` count as failed.
    ``timestamp`` defaults to now, so call this right after dispatch
    completes.
    """
    if isinstance(normalized, ValidationFailure):
        return OutputRecord(sl=sl, error=normalized.message)
    outcomes = outcomes or {}
    return OutputRecord(
        sl=sl,
        timestamp=timestamp or utc_timestamp(),
        outcomes={tier: outcomes.get(tier) for tier in TIERS},
    )
