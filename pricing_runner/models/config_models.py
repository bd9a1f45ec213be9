from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the spreadsheet pricing runner.

These are built once by ``pricing_runner.config.loader.load_config`` at run
start and passed explicitly to the store, dispatcher and orchestrator.
Nothing here is mutated after construction.
"""

DEFAULT_ENDPOINTS = {
    "ondemand": "http://localhost:5001/cloudsql",
    "1year": "http://localhost:5002/cloudsql",
    "3year": "http://localhost:5003/cloudsql",
}


@dataclass(frozen=True)
class SourceConfig:
    """Where the input rows come from."""
    locator: str  # Spreadsheet URL containing /spreadsheets/d/<id>
    tab: str = "CloudSql"


@dataclass(frozen=True)
class StoreConfig:
    """Spreadsheet store backend selection.

    ``access_token`` is the capability handed to the Google store; it is
    never read from a process-wide singleton.
    """
    backend: str = "google"  # google | excel
    access_token: str | None = None
    workbook_directory: str = "./data"


@dataclass(frozen=True)
class ProvidersConfig:
    """Pricing provider endpoints, one per tier."""
    endpoints: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class PipelineConfig:
    max_concurrent_rows: int = 1  # 1 = 参照実装と同じ逐次処理


@dataclass(frozen=True)
class OutputConfig:
    results_title_prefix: str = "GCP cloudsql Pricing Results"
    results_tab: str = "cloudsql"
    summary_tier: str = "ondemand"  # machineType / specs 列の出所
    dump_directory: str = "./tmp"


@dataclass(frozen=True)
class SharingConfig:
    make_public: bool = True
    public_role: str = "reader"
    emails: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunConfig:
    """Root configuration object for one pricing run."""
    source: SourceConfig
    store: StoreConfig
    providers: ProvidersConfig
    pipeline: PipelineConfig
    output: OutputConfig
    sharing: SharingConfig
