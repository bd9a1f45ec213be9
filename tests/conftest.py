# Shared pytest fixtures
from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pandas as pd
import pytest

from pricing_runner.logging.init import LOGGER_NAME, reset_logging

SHEET_ID = "1AbC-dEf_123"
SHEET_URL = f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit#gid=0"

SOURCE_HEADER = [
    "No. of Instances", "Datacenter Location", "OS with version",
    "vCPUs", "RAM", "Avg no. of hrs", "Cloud SQL", "Instance Type",
]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for key in ("SHEET_URL", "GOOGLE_ACCESS_TOKEN", "EMAILS"):
        monkeypatch.delenv(key, raising=False)
    reset_logging()
    yield
    reset_logging()
    # 前テストの capsys ストリームに束縛されたハンドラを残さない
    app_logger = logging.getLogger(LOGGER_NAME)
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return f"""source:
  locator: {SHEET_URL}
  tab: CloudSql
store:
  backend: excel
  workbook_directory: ./data
providers:
  timeout_seconds: 5
output:
  dump_directory: ./tmp
sharing:
  make_public: true
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "pricing.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Create a real .xlsx file; first row of each sheet is the header."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def source_workbook(temp_workdir: Path) -> Path:
    return make_workbook(
        temp_workdir / "data" / f"{SHEET_ID}.xlsx",
        {
            "CloudSql": [
                SOURCE_HEADER,
                [3, "us-east1", "MySQL 8.0", 4, 16, 730, "Enterprise", "db-custom"],
                [1, "asia-south1", None, 2, 8, None, None, None],
                ["2", "europe-west1", "PostgreSQL 15", None, None, None, None, None],
            ]
        },
    )


def priced(tier: str, sl: Any) -> dict[str, Any]:
    return {
        "price": f"{tier}-{sl}",
        "url": f"https://calc.example/{tier}/{sl}",
        "machineType": f"db-custom-{tier}",
        "specs": "4 vCPU / 16 GB",
    }


def provider_transport(
    behaviour: Callable[[str, dict[str, Any]], httpx.Response] | None = None,
    calls: list[dict[str, Any]] | None = None,
) -> httpx.MockTransport:
    """MockTransport emulating the three pricing providers.

    ``behaviour(tier, payload)`` may return a response or raise an httpx
    exception; by default every tier answers 200 with ``priced()``.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if calls is not None:
            calls.append(payload)
        tier = payload["mode"]
        if behaviour is None:
            return httpx.Response(200, json=priced(tier, payload["Sl"]))
        return behaviour(tier, payload)

    return httpx.MockTransport(handler)
