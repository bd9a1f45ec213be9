from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from conftest import SHEET_ID, make_workbook
from pricing_runner.sheets.excel import ExcelWorkbookStore
from pricing_runner.models.row import ValidationFailure
from pricing_runner.services.orchestrator import normalize_rows
from pricing_runner.sheets.store import SheetNotFoundError, StoreError, rows_from_values


@pytest.mark.asyncio
async def test_fetch_rows_uses_first_row_as_header(temp_workdir: Path, source_workbook: Path):
    store = ExcelWorkbookStore(temp_workdir / "data")
    source = await store.fetch_rows(SHEET_ID, "CloudSql")
    assert source.headers[:3] == ["No. of Instances", "Datacenter Location", "OS with version"]
    assert len(source.rows) == 3
    assert source.rows[0]["Datacenter Location"] == "us-east1"
    # empty cells come back as None
    assert source.rows[1]["OS with version"] is None
    assert source.rows[2]["vCPUs"] is None


@pytest.mark.asyncio
async def test_interior_blank_rows_keep_their_position(temp_workdir: Path):
    make_workbook(
        temp_workdir / "data" / "blank.xlsx",
        {"CloudSql": [["a", "b"], [1, 2], [None, None], [3, 4], [None, None]]},
    )
    source = await ExcelWorkbookStore(temp_workdir / "data").fetch_rows("blank", "CloudSql")
    # 途中の空行は残り、末尾の空行だけ落ちる
    assert [r["a"] for r in source.rows] == [1, None, 3]
    assert source.rows[1] == {"a": None, "b": None}


@pytest.mark.asyncio
async def test_blank_row_numbering_matches_google_values(temp_workdir: Path):
    header = ["No. of Instances", "Datacenter Location", "OS with version"]
    make_workbook(
        temp_workdir / "data" / "gap.xlsx",
        {"CloudSql": [header, [1, "us", "MySQL"], [None, None, None], [3, "eu", "PG"]]},
    )
    source = await ExcelWorkbookStore(temp_workdir / "data").fetch_rows("gap", "CloudSql")
    google_rows = rows_from_values(header, [["1", "us", "MySQL"], [], ["3", "eu", "PG"]])

    def shape(rows):
        out = []
        for item in normalize_rows(rows):
            if isinstance(item, ValidationFailure):
                out.append((item.sl, "ERR"))
            else:
                out.append((item.sl, item.values["Datacenter Location"]))
        return out

    assert shape(source.rows) == shape(google_rows) == [(1, "us"), (2, "ERR"), (3, "eu")]


@pytest.mark.asyncio
async def test_missing_tab_raises_not_found(temp_workdir: Path, source_workbook: Path):
    with pytest.raises(SheetNotFoundError):
        await ExcelWorkbookStore(temp_workdir / "data").fetch_rows(SHEET_ID, "Compute")


@pytest.mark.asyncio
async def test_missing_workbook_raises_store_error(temp_workdir: Path):
    with pytest.raises(StoreError, match="workbook not found"):
        await ExcelWorkbookStore(temp_workdir / "data").fetch_rows("nope", "CloudSql")


@pytest.mark.asyncio
async def test_create_and_append_results(temp_workdir: Path):
    store = ExcelWorkbookStore(temp_workdir / "out")
    sid = await store.create_results_sheet("Pricing Results - 2024/01/01 10:00", "cloudsql", ["Sl", "price"])
    await store.append_rows(sid, "cloudsql", [[1, "10"], [3, None]])
    await store.append_rows(sid, "cloudsql", [[4, "12"]])

    path = temp_workdir / "out" / f"{sid}.xlsx"
    assert path.exists()
    assert sid.startswith("pricing-results-2024-01-01-10-00-")
    df = pd.read_excel(path, sheet_name="cloudsql", dtype=object)
    assert list(df.columns) == ["Sl", "price"]
    assert df["Sl"].tolist() == [1, 3, 4]
    assert store.url_for(sid).startswith("file://")


@pytest.mark.asyncio
async def test_sharing_is_a_noop(temp_workdir: Path):
    store = ExcelWorkbookStore(temp_workdir / "out")
    await store.make_public("x", "reader")
    await store.share_with("x", "a@example.com")


@pytest.mark.asyncio
async def test_source_workbook_is_closed_after_read(temp_workdir: Path, source_workbook: Path, monkeypatch):
    closed: list[bool] = []
    original_close = pd.ExcelFile.close

    def spy_close(self):
        closed.append(True)
        return original_close(self)

    monkeypatch.setattr(pd.ExcelFile, "close", spy_close)
    store = ExcelWorkbookStore(temp_workdir / "data")
    await store.fetch_rows(SHEET_ID, "CloudSql")
    assert closed
    # 存在しないタブでも閉じる
    closed.clear()
    with pytest.raises(SheetNotFoundError):
        await store.fetch_rows(SHEET_ID, "Compute")
    assert closed
