from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_ENDPOINTS,
    OutputConfig,
    PipelineConfig,
    ProvidersConfig,
    RunConfig,
    SharingConfig,
    SourceConfig,
    StoreConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/pricing.yml``)
- Validate against ``config_schema.json`` (unknown keys rejected)
- Apply defaults and environment overrides
  (SHEET_URL, GOOGLE_ACCESS_TOKEN, EMAILS)

Environment values take precedence over YAML; the CLI loads ``.env`` with
override=True before calling ``load_config``.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/pricing.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or config violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def parse_email_list(raw: str | None) -> tuple[str, ...]:
    """Split a comma separated address list, trimming and dropping empties."""
    if not raw:
        return ()
    return tuple(e.strip() for e in raw.split(",") if e.strip())


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> RunConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    src_raw = data.get("source", {})
    locator = os.getenv("SHEET_URL") or src_raw.get("locator")
    if not locator:
        raise ConfigError("source locator missing (set SHEET_URL or source.locator)")

    store_raw = data.get("store", {})
    backend = store_raw.get("backend", "google")
    token = os.getenv("GOOGLE_ACCESS_TOKEN") or store_raw.get("access_token")
    if backend == "google" and not token:
        raise ConfigError("google backend requires an access token (set GOOGLE_ACCESS_TOKEN or store.access_token)")

    prov_raw = data.get("providers", {})
    endpoints = {tier: prov_raw.get(tier, url) for tier, url in DEFAULT_ENDPOINTS.items()}

    out_raw = data.get("output", {})
    share_raw = data.get("sharing", {})
    env_emails = os.getenv("EMAILS")
    if env_emails is not None:
        emails = parse_email_list(env_emails)
    else:
        emails = tuple(e.strip() for e in share_raw.get("emails", []) if e.strip())

    return RunConfig(
        source=SourceConfig(
            locator=locator,
            tab=src_raw.get("tab", "CloudSql"),
        ),
        store=StoreConfig(
            backend=backend,
            access_token=token,
            workbook_directory=store_raw.get("workbook_directory", "./data"),
        ),
        providers=ProvidersConfig(
            endpoints=endpoints,
            timeout_seconds=float(prov_raw.get("timeout_seconds", 30)),
        ),
        pipeline=PipelineConfig(
            max_concurrent_rows=data.get("pipeline", {}).get("max_concurrent_rows", 1),
        ),
        output=OutputConfig(
            results_title_prefix=out_raw.get("results_title_prefix", "GCP cloudsql Pricing Results"),
            results_tab=out_raw.get("results_tab", "cloudsql"),
            summary_tier=out_raw.get("summary_tier", "ondemand"),
            dump_directory=out_raw.get("dump_directory", "./tmp"),
        ),
        sharing=SharingConfig(
            make_public=share_raw.get("make_public", True),
            public_role=share_raw.get("public_role", "reader"),
            emails=emails,
        ),
    )
