from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..models.output_record import OutputRecord
from ..sheets.store import SpreadsheetStore

"""Results table population."""

__all__ = [
    "RESULTS_HEADER",
    "build_result_rows",
    "results_title",
    "publish_results",
]

logger = logging.getLogger(__name__)

RESULTS_HEADER: list[str] = [
    "Sl", "machineType", "specs",
    "ondemand_price", "ondemand_url",
    "1year_price", "1year_url",
    "3year_price", "3year_url",
    "timestamp",
]


def build_result_rows(records: list[OutputRecord], summary_tier: str) -> list[list[Any]]:
    """One value row per dispatched record, in ``RESULTS_HEADER`` column order.

    Error-only records are excluded. ``machineType`` / ``specs`` come from
    ``summary_tier``.
    """
    rows: list[list[Any]] = []
    for record in records:
        if record.is_error:
            continue
        flat = record.to_dict()
        summary = record.tier_fields(summary_tier)
        flat["machineType"] = summary[f"{summary_tier}_machineType"]
        flat["specs"] = summary[f"{summary_tier}_specs"]
        rows.append([flat.get(col) for col in RESULTS_HEADER])
    return rows


def results_title(prefix: str, now: datetime | None = None) -> str:
    now = now or datetime.now().astimezone()
    return f"{prefix} - {now:%Y-%m-%d %H:%M:%S}"


async def publish_results(
    store: SpreadsheetStore,
    records: list[OutputRecord],
    *,
    title: str,
    tab: str,
    summary_tier: str,
) -> str:
    """Create the results spreadsheet and append the dispatched rows.

    Returns:
        Spreadsheet id of the new results table
    """
    logger.info("creating results spreadsheet: %s", title)
    spreadsheet_id = await store.create_results_sheet(title, tab, RESULTS_HEADER)
    rows = build_result_rows(records, summary_tier)
    await store.append_rows(spreadsheet_id, tab, rows)
    logger.info("appended %d result rows to %s", len(rows), store.url_for(spreadsheet_id))
    return spreadsheet_id
