from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Normalization outcomes for a single source row.

A row is normalized into exactly one of:
- ``CanonicalRow``: required fields present, defaults applied, ready for dispatch
- ``ValidationFailure``: one or more required fields missing, never dispatched
"""

__all__ = [
    "CanonicalRow",
    "ValidationFailure",
]


@dataclass(frozen=True)
class CanonicalRow:
    """Validated and defaulted row.

    ``values`` holds every source column plus the defaulted ones and the
    ``Sl`` key; callers must treat it as read-only.
    """
    sl: int  # 1-based position in the source
    values: dict[str, Any]

    def payload(self, *, first: bool, last: bool, mode: str | None = None) -> dict[str, Any]:
        """Build a provider request body (a fresh dict on every call)."""
        body = dict(self.values)
        body["first"] = first
        body["last"] = last
        if mode is not None:
            body["mode"] = mode
        return body


@dataclass(frozen=True)
class ValidationFailure:
    """Row rejected because required fields are missing."""
    sl: int
    missing_fields: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Missing required fields: {', '.join(self.missing_fields)}"
