from __future__ import annotations

import argparse
import sys
import asyncio
import json
from pathlib import Path

import httpx
from dotenv import load_dotenv

from pricing_runner.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from pricing_runner.logging.error_log import ErrorLogBuffer
from pricing_runner.logging.init import log_summary, setup_logging
from pricing_runner.models.config_models import RunConfig
from pricing_runner.models.run_result import RunResult
from pricing_runner.services.dispatcher import PricingDispatcher
from pricing_runner.services.orchestrator import ProcessingError, process_all
from pricing_runner.services.summary import render_summary_line
from pricing_runner.sheets.excel import ExcelWorkbookStore
from pricing_runner.sheets.google import GoogleSheetsStore
from pricing_runner.sheets.locator import InvalidLocatorError, extract_sheet_id
from pricing_runner.sheets.store import SpreadsheetStore, StoreError

"""CLI application.

Flow:
- Load ``.env`` (overrides process environment) and the YAML config
- Build the store and the pricing dispatcher around one shared httpx client
- Run the pipeline and print the SUMMARY line

Exit codes: 0 when the run completes (row / tier failures included),
1 on any fatal configuration, fetch or sink error.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spreadsheet -> multi-tier pricing runner")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print source headers & first rows then exit")
    return p.parse_args(argv)


def _make_client(cfg: RunConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=cfg.providers.timeout_seconds)


def _build_store(cfg: RunConfig, client: httpx.AsyncClient) -> SpreadsheetStore:
    if cfg.store.backend == "excel":
        return ExcelWorkbookStore(Path(cfg.store.workbook_directory))
    return GoogleSheetsStore(client, cfg.store.access_token or "")


async def _inspect_data(cfg: RunConfig) -> int:
    async with _make_client(cfg) as client:
        store = _build_store(cfg, client)
        try:
            source = await store.fetch_rows(extract_sheet_id(cfg.source.locator), cfg.source.tab)
        except (InvalidLocatorError, StoreError) as e:
            print(f"inspect: {e}")
            return EXIT_FATAL
    print(f"SHEET: {cfg.source.tab} cols={source.headers} rows={len(source.rows)}")
    print("  sample_rows=", json.dumps(source.rows[:3], ensure_ascii=False, default=str))
    return EXIT_SUCCESS


async def _run(cfg: RunConfig) -> RunResult:
    error_log = ErrorLogBuffer()
    async with _make_client(cfg) as client:
        store = _build_store(cfg, client)
        dispatcher = PricingDispatcher(
            client,
            cfg.providers.endpoints,
            timeout_seconds=cfg.providers.timeout_seconds,
            error_log=error_log,
            sheet=cfg.source.tab,
        )
        return await process_all(cfg, store, dispatcher, error_log=error_log)


def main(argv: list[str] | None = None) -> int:
    # 空リスト [] はそのまま使う (None のときのみ sys.argv を読む)
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    logger = setup_logging(debug=args.debug)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return asyncio.run(_inspect_data(cfg))

    logger.info(f"source tab={cfg.source.tab} backend={cfg.store.backend}")
    try:
        result = asyncio.run(_run(cfg))
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except (httpx.HTTPError, OSError) as e:
        logger.error(f"io: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    # log_summary が "SUMMARY " を付与するので本文のみ渡す
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS
