from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ROW_VALIDATION_ERROR, ErrorRecord

"""Per-run error log.

Row validation errors, provider failures and sharing failures are collected
while the run executes and written once, as JSON Lines, to
``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC). Rows finish out of order when
several are priced concurrently, so ``flush()`` writes the buffer grouped by
``Sl``: a row's validation error first, then its provider failures in the
order they arrived. Records not tied to a row (``row=-1``) come last.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def _sl_order(record: ErrorRecord) -> tuple[bool, int, bool]:
    return (record.row < 0, record.row, record.error_type != ROW_VALIDATION_ERROR)


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; single event loop, no locking."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._pending: list[ErrorRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回アクセス時に run 単位のファイル名を確定
        if self._path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self._logs_dir / f"errors-{datetime.now(UTC).strftime(TIMESTAMP_FMT)}.log"
        return self._path

    @property
    def records(self) -> list[ErrorRecord]:
        """Pending records in the order ``flush()`` will write them."""
        return sorted(self._pending, key=_sl_order)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def counts(self) -> dict[str, int]:
        return dict(Counter(r.error_type for r in self._pending))

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the run's log; None when there was nothing to write."""
        if not self._pending:
            return None
        lines = "".join(r.to_json_line() + "\n" for r in self.records)
        path = self.file_path
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
