from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

"""Spreadsheet store interface.

The pipeline touches the store at most once for reading (whole tab) and once
for writing (results table creation + append). Sharing calls are side
effects on the finished results spreadsheet.
"""

__all__ = [
    "StoreError",
    "SheetNotFoundError",
    "EmptySheetError",
    "SheetRows",
    "SpreadsheetStore",
]


class StoreError(Exception):
    """Raised when the store cannot be reached or rejects a request."""


class SheetNotFoundError(StoreError):
    """Raised when the named tab does not exist in the spreadsheet."""


class EmptySheetError(StoreError):
    """Raised when the named tab holds no data rows."""


@dataclass
class SheetRows:
    headers: list[str]
    rows: list[dict[str, Any]]  # 列名 -> セル値 (空セルは "" または None)


class SpreadsheetStore(Protocol):
    async def fetch_rows(self, sheet_id: str, tab: str) -> SheetRows: ...

    async def create_results_sheet(self, title: str, tab: str, headers: list[str]) -> str: ...

    async def append_rows(self, spreadsheet_id: str, tab: str, rows: list[list[Any]]) -> None: ...

    async def make_public(self, spreadsheet_id: str, role: str) -> None: ...

    async def share_with(self, spreadsheet_id: str, email: str) -> None: ...

    def url_for(self, spreadsheet_id: str) -> str: ...


def rows_from_values(headers: list[str], values: list[list[Any]]) -> list[dict[str, Any]]:
    """Zip value rows against the header, padding ragged rows with ""."""
    rows: list[dict[str, Any]] = []
    for raw in values:
        padded = list(raw) + [""] * (len(headers) - len(raw))
        rows.append(dict(zip(headers, padded, strict=False)))
    return rows
