"""Domain models for the spreadsheet pricing runner.

This package contains the dataclasses passed between the pipeline stages:
configuration, normalized rows, provider outcomes, output records and the
aggregated run result.
"""

from .config_models import (
    OutputConfig,
    PipelineConfig,
    ProvidersConfig,
    RunConfig,
    SharingConfig,
    SourceConfig,
    StoreConfig,
)
from .outcome import TIERS, ProviderOutcome
from .output_record import OutputRecord
from .row import CanonicalRow, ValidationFailure
from .run_result import RunResult, TierStat

__all__ = [
    # Configuration models
    "OutputConfig",
    "PipelineConfig",
    "ProvidersConfig",
    "RunConfig",
    "SharingConfig",
    "SourceConfig",
    "StoreConfig",
    # Processing models
    "CanonicalRow",
    "ValidationFailure",
    "ProviderOutcome",
    "TIERS",
    "OutputRecord",
    "RunResult",
    "TierStat",
]
