from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .output_record import OutputRecord

"""Run result models: aggregated metrics for the SUMMARY line."""


@dataclass(frozen=True)
class TierStat:
    """Per-tier success / failure counts over dispatched rows."""
    tier: str
    succeeded: int
    failed: int


@dataclass(frozen=True)
class RunResult:
    """Aggregated results of one pricing run."""
    records: list[OutputRecord]  # Sl 昇順 (入力順)
    valid_rows: int
    invalid_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    tier_stats: list[TierStat] = field(default_factory=list)
    results_url: str | None = None  # 結果シート URL (sink 書き込み後)

    @property
    def total_rows(self) -> int:
        return len(self.records)
