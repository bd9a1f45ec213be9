from __future__ import annotations

import asyncio
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .store import EmptySheetError, SheetNotFoundError, SheetRows, StoreError

"""Local Excel workbook store.

Offline stand-in for the Google store: the spreadsheet id extracted from the
locator names ``<workbook_directory>/<id>.xlsx``. The first row of a tab is
its header, remaining rows are data. Trailing blank rows are trimmed; an
interior blank row is kept as an all-``None`` mapping so ``Sl`` stays the
row's position in the tab. Result spreadsheets are written to the
same directory. Sharing has no meaning for local files and is only logged.

pandas I/O is blocking, so each call runs in a worker thread.
"""

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^A-Za-z0-9_]+")


def _cell(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):  # list-like cells
        pass
    # datetime セルはそのままでは JSON 化できないため ISO 文字列へ
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class ExcelWorkbookStore:
    """SpreadsheetStore backed by ``.xlsx`` files in one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _workbook(self, spreadsheet_id: str) -> Path:
        return self.directory / f"{spreadsheet_id}.xlsx"

    def _read_tab(self, sheet_id: str, tab: str) -> SheetRows:
        path = self._workbook(sheet_id)
        if not path.exists():
            raise StoreError(f"workbook not found: {path}")
        try:
            xls = pd.ExcelFile(path)
        except Exception as e:
            raise StoreError(f"cannot open workbook {path}: {e}") from e
        with xls:
            if tab not in [str(n) for n in xls.sheet_names]:
                raise SheetNotFoundError(f'sheet "{tab}" not found')
            df = xls.parse(tab, header=None, dtype=object)
        if df.shape[0] < 1:
            raise EmptySheetError(f'no header row in sheet "{tab}"')
        headers = [str(c).strip() for c in df.iloc[0].tolist()]
        body = df.iloc[1:]
        # 末尾の全セル空行のみ除去 (途中の空行は残す)
        filled = ~body.isna().all(axis=1)
        if filled.any():
            body = body.iloc[: filled.to_numpy().nonzero()[0][-1] + 1]
        else:
            body = body.iloc[:0]
        rows: list[dict[str, Any]] = [
            {col: _cell(val) for col, val in zip(headers, raw, strict=False)}
            for raw in body.itertuples(index=False, name=None)
        ]
        return SheetRows(headers=headers, rows=rows)

    async def fetch_rows(self, sheet_id: str, tab: str) -> SheetRows:
        return await asyncio.to_thread(self._read_tab, sheet_id, tab)

    def _new_id(self, title: str) -> str:
        stamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
        base = _SLUG_RE.sub("-", title).strip("-").lower() or "results"
        candidate = f"{base}-{stamp}"
        n = 1
        while self._workbook(candidate).exists():
            n += 1
            candidate = f"{base}-{stamp}-{n}"
        return candidate

    def _write_tab(self, spreadsheet_id: str, tab: str, df: pd.DataFrame) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(self._workbook(spreadsheet_id), engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=tab, index=False)

    async def create_results_sheet(self, title: str, tab: str, headers: list[str]) -> str:
        spreadsheet_id = self._new_id(title)
        await asyncio.to_thread(self._write_tab, spreadsheet_id, tab, pd.DataFrame(columns=headers))
        logger.info("created workbook %s (%s)", self._workbook(spreadsheet_id), title)
        return spreadsheet_id

    def _append(self, spreadsheet_id: str, tab: str, rows: list[list[Any]]) -> None:
        path = self._workbook(spreadsheet_id)
        if not path.exists():
            raise StoreError(f"workbook not found: {path}")
        existing = pd.read_excel(path, sheet_name=tab, dtype=object)
        added = pd.DataFrame(rows, columns=list(existing.columns))
        combined = added if existing.empty else pd.concat([existing, added], ignore_index=True)
        self._write_tab(spreadsheet_id, tab, combined)

    async def append_rows(self, spreadsheet_id: str, tab: str, rows: list[list[Any]]) -> None:
        if not rows:
            return
        await asyncio.to_thread(self._append, spreadsheet_id, tab, rows)

    async def make_public(self, spreadsheet_id: str, role: str) -> None:
        logger.info("local workbook %s: make_public(%s) skipped", spreadsheet_id, role)

    async def share_with(self, spreadsheet_id: str, email: str) -> None:
        logger.info("local workbook %s: share with %s skipped", spreadsheet_id, email)

    def url_for(self, spreadsheet_id: str) -> str:
        return self._workbook(spreadsheet_id).resolve().as_uri()
