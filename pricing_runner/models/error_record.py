from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Row-level and tier-level failures are recovered locally and kept as data in
the output; each one is also recorded here so a run leaves a durable trail.
``row=-1`` is used for failures not tied to a source row (sharing, for
example).
"""

__all__ = [
    "ErrorRecord",
    "ROW_VALIDATION_ERROR",
    "PROVIDER_FAILURE",
    "SHARING_FAILURE",
]

ROW_VALIDATION_ERROR = "ROW_VALIDATION_ERROR"
PROVIDER_FAILURE = "PROVIDER_FAILURE"
SHARING_FAILURE = "SHARING_FAILURE"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        sheet: Source tab (or results spreadsheet id for sharing failures)
        row: ``Sl`` of the affected row, -1 when not row-specific
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
