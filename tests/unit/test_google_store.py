from __future__ import annotations

import json
from urllib.parse import unquote

import httpx
import pytest

from pricing_runner.sheets.google import DRIVE_API, SHEETS_API, GoogleSheetsStore
from pricing_runner.sheets.store import EmptySheetError, SheetNotFoundError, StoreError


def _store(handler) -> tuple[GoogleSheetsStore, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleSheetsStore(client, "tok-123"), client


def _sheets_handler(values, titles=("CloudSql",)):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok-123"
        path = unquote(request.url.path)
        if path.endswith("/values/CloudSql"):
            return httpx.Response(200, json={"values": values})
        return httpx.Response(200, json={"sheets": [{"properties": {"title": t}} for t in titles]})
    return handler


@pytest.mark.asyncio
async def test_fetch_rows_pads_ragged_rows():
    store, client = _store(_sheets_handler([
        ["No. of Instances", "Datacenter Location", "OS with version"],
        ["3", "us-east1", "MySQL 8.0"],
        ["1", "asia-south1"],
    ]))
    async with client:
        source = await store.fetch_rows("sid", "CloudSql")
    assert source.headers == ["No. of Instances", "Datacenter Location", "OS with version"]
    assert source.rows[1] == {"No. of Instances": "1", "Datacenter Location": "asia-south1", "OS with version": ""}


@pytest.mark.asyncio
async def test_fetch_rows_missing_tab():
    store, client = _store(_sheets_handler([], titles=("Compute",)))
    async with client:
        with pytest.raises(SheetNotFoundError):
            await store.fetch_rows("sid", "CloudSql")


@pytest.mark.asyncio
async def test_fetch_rows_empty_tab():
    store, client = _store(_sheets_handler([]))
    async with client:
        with pytest.raises(EmptySheetError):
            await store.fetch_rows("sid", "CloudSql")


@pytest.mark.asyncio
async def test_http_errors_become_store_errors():
    store, client = _store(lambda request: httpx.Response(403, json={"error": "denied"}))
    async with client:
        with pytest.raises(StoreError, match="403"):
            await store.fetch_rows("sid", "CloudSql")


@pytest.mark.asyncio
async def test_create_results_sheet_writes_header():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if str(request.url) == SHEETS_API:
            return httpx.Response(200, json={"spreadsheetId": "new-sid"})
        return httpx.Response(200, json={})

    store, client = _store(handler)
    async with client:
        sid = await store.create_results_sheet("Results - now", "cloudsql", ["Sl", "timestamp"])
        await store.append_rows(sid, "cloudsql", [[1, None]])

    assert sid == "new-sid"
    create_body = json.loads(requests[0].content)
    assert create_body["properties"]["title"] == "Results - now"
    assert create_body["sheets"] == [{"properties": {"title": "cloudsql"}}]
    assert json.loads(requests[1].content) == {"values": [["Sl", "timestamp"]]}
    assert unquote(requests[1].url.path).endswith("/values/cloudsql!A1:append")
    # None cells are sent as empty strings
    assert json.loads(requests[2].content) == {"values": [[1, ""]]}


@pytest.mark.asyncio
async def test_permissions_requests():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "perm"})

    store, client = _store(handler)
    async with client:
        await store.make_public("sid", "reader")
        await store.share_with("sid", "a@example.com")

    assert str(requests[0].url) == f"{DRIVE_API}/sid/permissions"
    assert json.loads(requests[0].content) == {"role": "reader", "type": "anyone"}
    assert json.loads(requests[1].content) == {"role": "writer", "type": "user", "emailAddress": "a@example.com"}
    assert requests[1].url.params["sendNotificationEmail"] == "true"
    assert store.url_for("sid") == "https://docs.google.com/spreadsheets/d/sid"
