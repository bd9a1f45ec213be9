from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .locator import sheet_url
from .store import EmptySheetError, SheetNotFoundError, SheetRows, StoreError, rows_from_values

"""Google Sheets / Drive store over the REST APIs.

Authentication is a bearer access token passed in at construction; the
store never loads credentials itself. The ``httpx.AsyncClient`` is owned by
the caller (shared with the pricing dispatcher).
"""

logger = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_API = "https://www.googleapis.com/drive/v3/files"


class GoogleSheetsStore:
    """SpreadsheetStore backed by Google Sheets."""

    def __init__(self, client: httpx.AsyncClient, access_token: str) -> None:
        self._client = client
        self._headers = {"Authorization": f"Bearer {access_token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            res = await self._client.request(method, url, headers=self._headers, **kwargs)
            res.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{method} {url} -> {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {url} failed: {e}") from e
        if not res.content:
            return {}
        try:
            return res.json()
        except ValueError as e:
            raise StoreError(f"{method} {url} returned non-JSON body") from e

    async def fetch_rows(self, sheet_id: str, tab: str) -> SheetRows:
        meta = await self._request(
            "GET", f"{SHEETS_API}/{sheet_id}", params={"fields": "sheets.properties.title"}
        )
        titles = [s.get("properties", {}).get("title") for s in meta.get("sheets", [])]
        if tab not in titles:
            raise SheetNotFoundError(f'sheet "{tab}" not found')

        data = await self._request("GET", f"{SHEETS_API}/{sheet_id}/values/{quote(tab, safe='')}")
        values: list[list[Any]] = data.get("values", [])
        if not values:
            raise EmptySheetError(f'no header row in sheet "{tab}"')
        headers = [str(h).strip() for h in values[0]]
        rows = rows_from_values(headers, values[1:])
        logger.debug("fetched tab=%s headers=%s rows=%d", tab, headers, len(rows))
        return SheetRows(headers=headers, rows=rows)

    async def create_results_sheet(self, title: str, tab: str, headers: list[str]) -> str:
        # 既定の Sheet1 を作らず、結果タブのみで新規作成する
        created = await self._request(
            "POST",
            SHEETS_API,
            json={
                "properties": {"title": title},
                "sheets": [{"properties": {"title": tab}}],
            },
        )
        spreadsheet_id = created.get("spreadsheetId")
        if not spreadsheet_id:
            raise StoreError("create spreadsheet response lacks spreadsheetId")
        await self.append_rows(spreadsheet_id, tab, [headers])
        return spreadsheet_id

    async def append_rows(self, spreadsheet_id: str, tab: str, rows: list[list[Any]]) -> None:
        if not rows:
            return
        await self._request(
            "POST",
            f"{SHEETS_API}/{spreadsheet_id}/values/{quote(tab, safe='')}!A1:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [["" if v is None else v for v in row] for row in rows]},
        )

    async def make_public(self, spreadsheet_id: str, role: str) -> None:
        await self._request(
            "POST",
            f"{DRIVE_API}/{spreadsheet_id}/permissions",
            json={"role": role, "type": "anyone"},
        )

    async def share_with(self, spreadsheet_id: str, email: str) -> None:
        await self._request(
            "POST",
            f"{DRIVE_API}/{spreadsheet_id}/permissions",
            params={"sendNotificationEmail": "true"},
            json={"role": "writer", "type": "user", "emailAddress": email},
        )

    def url_for(self, spreadsheet_id: str) -> str:
        return sheet_url(spreadsheet_id)
