from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import RunConfig
from ..models.error_record import ROW_VALIDATION_ERROR, ErrorRecord
from ..models.outcome import TIERS
from ..models.output_record import OutputRecord
from ..models.row import CanonicalRow, ValidationFailure
from ..models.run_result import RunResult, TierStat
from ..sheets.locator import InvalidLocatorError, extract_sheet_id
from ..sheets.store import SpreadsheetStore, StoreError
from .aggregator import aggregate
from .dispatcher import PricingDispatcher
from .dump import dump_normalized, dump_results
from .normalizer import normalize
from .progress import ProgressTracker
from .sharing import share_results
from .sink import publish_results, results_title

logger = logging.getLogger(__name__)

"""Pipeline orchestration.

Flow of one run:
1. Resolve the spreadsheet id from the locator and fetch the source tab
2. Normalize every row (Sl = 1..N in source order)
3. Dispatch valid rows to the pricing providers (three tiers concurrently
   per row, rows sequentially or through a bounded worker pool)
4. Aggregate one OutputRecord per row, ordered by Sl
5. Dump artifacts, populate the results table, share it

Only locator / fetch / sink failures are fatal (``ProcessingError``). Row and
tier failures are data in the returned records.
"""


class ProcessingError(Exception):
    """Fatal error that aborts the run."""
    pass


def normalize_rows(
    raw_rows: Sequence[Mapping[str, Any]],
    *,
    error_log: ErrorLogBuffer | None = None,
    sheet: str = "",
) -> list[CanonicalRow | ValidationFailure]:
    """Normalize rows in source order, assigning ``Sl`` 1..N."""
    normalized: list[CanonicalRow | ValidationFailure] = []
    for index, raw in enumerate(raw_rows):
        sl = index + 1
        result = normalize(raw, sl)
        if isinstance(result, ValidationFailure):
            logger.info("skipping row %d: %s", sl, result.message)
            if error_log is not None:
                error_log.append(ErrorRecord.create(sheet, sl, ROW_VALIDATION_ERROR, result.message))
        else:
            logger.debug("row %d standardized", sl)
        normalized.append(result)
    return normalized


async def dispatch_rows(
    normalized: Sequence[CanonicalRow | ValidationFailure],
    dispatcher: PricingDispatcher,
    *,
    max_concurrent_rows: int = 1,
    progress: ProgressTracker | None = None,
) -> list[OutputRecord]:
    """Turn normalization outcomes into OutputRecords.

    ``first`` / ``last`` refer to the row's position among all rows of the
    run, valid or not. With ``max_concurrent_rows > 1`` rows overlap, but
    the returned list is always ordered by ``Sl``.
    """
    if max_concurrent_rows < 1:
        raise ValueError("max_concurrent_rows must be >= 1")
    total = len(normalized)
    gate = asyncio.Semaphore(max_concurrent_rows)

    async def _one(index: int, item: CanonicalRow | ValidationFailure) -> OutputRecord:
        if isinstance(item, ValidationFailure):
            record = aggregate(item.sl, item)
        else:
            async with gate:
                outcomes = await dispatcher.dispatch(
                    item, is_first=(index == 0), is_last=(index == total - 1)
                )
            record = aggregate(item.sl, item, outcomes)
            logger.info("completed pricing for Sl %d", item.sl)
        if progress is not None:
            progress.finish_row()
        return record

    records = await asyncio.gather(*(_one(i, item) for i, item in enumerate(normalized)))
    return sorted(records, key=lambda r: r.sl)


async def run_rows(
    raw_rows: Sequence[Mapping[str, Any]],
    dispatcher: PricingDispatcher,
    *,
    max_concurrent_rows: int = 1,
    error_log: ErrorLogBuffer | None = None,
    sheet: str = "",
) -> list[OutputRecord]:
    """Normalize -> dispatch -> aggregate; exactly one record per input row."""
    normalized = normalize_rows(raw_rows, error_log=error_log, sheet=sheet)
    return await dispatch_rows(normalized, dispatcher, max_concurrent_rows=max_concurrent_rows)


def compute_tier_stats(records: Sequence[OutputRecord]) -> list[TierStat]:
    stats: list[TierStat] = []
    dispatched = [r for r in records if not r.is_error]
    for tier in TIERS:
        ok = sum(1 for r in dispatched if r.outcomes.get(tier) is not None)
        stats.append(TierStat(tier=tier, succeeded=ok, failed=len(dispatched) - ok))
    return stats


async def process_all(
    config: RunConfig,
    store: SpreadsheetStore,
    dispatcher: PricingDispatcher,
    *,
    error_log: ErrorLogBuffer | None = None,
) -> RunResult:
    """Run the whole pipeline for the configured source.

    Raises:
        ProcessingError: invalid locator, unreadable / missing / empty source
            tab, or a failure while writing the results table
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    tab = config.source.tab
    dump_dir = Path(config.output.dump_directory)

    try:
        try:
            sheet_id = extract_sheet_id(config.source.locator)
        except InvalidLocatorError as e:
            raise ProcessingError(str(e)) from e

        logger.info("downloading %s tab...", tab)
        try:
            source = await store.fetch_rows(sheet_id, tab)
        except StoreError as e:
            raise ProcessingError(f"fetch failed: {e}") from e
        if not source.rows:
            raise ProcessingError(f"no rows found in {tab} tab")

        normalized = normalize_rows(source.rows, error_log=error_log, sheet=tab)
        dump_normalized(dump_dir, tab, normalized)

        with ProgressTracker(len(normalized)) as progress:
            records = await dispatch_rows(
                normalized,
                dispatcher,
                max_concurrent_rows=config.pipeline.max_concurrent_rows,
                progress=progress,
            )
        dump_results(dump_dir, config.output.results_tab, records)

        try:
            spreadsheet_id = await publish_results(
                store,
                records,
                title=results_title(config.output.results_title_prefix),
                tab=config.output.results_tab,
                summary_tier=config.output.summary_tier,
            )
        except StoreError as e:
            raise ProcessingError(f"writing results failed: {e}") from e

        await share_results(
            store,
            spreadsheet_id,
            config.sharing.emails,
            make_public=config.sharing.make_public,
            public_role=config.sharing.public_role,
            error_log=error_log,
        )
        results_url = store.url_for(spreadsheet_id)
        logger.info("sheet URL: %s", results_url)
    finally:
        counts = error_log.counts()
        try:
            path = error_log.flush()
            if path is not None:
                logger.info(
                    "error log: %s (%s)",
                    path,
                    ", ".join(f"{kind}={n}" for kind, n in sorted(counts.items())),
                )
        except OSError as e:
            # エラーログの書き込み失敗で run 全体を失敗させない
            logger.warning("error log flush failed: %s", e)

    end_time = datetime.now(UTC)
    invalid = sum(1 for r in records if r.is_error)
    return RunResult(
        records=records,
        valid_rows=len(records) - invalid,
        invalid_rows=invalid,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        tier_stats=compute_tier_stats(records),
        results_url=results_url,
    )
