from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..models.output_record import OutputRecord
from ..models.row import CanonicalRow, ValidationFailure

"""Run artifacts written to the dump directory.

- ``<tab>.json``: normalized rows / validation errors in input order,
  written before dispatch
- ``<results_tab>-results.json``: every OutputRecord keyed by ``Sl``, written
  before the results table is populated (error-only records live here, not
  in the results table)
"""

logger = logging.getLogger(__name__)


def _write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    return path


def dump_normalized(
    directory: Path, tab: str, normalized: Iterable[CanonicalRow | ValidationFailure]
) -> Path:
    entries: list[dict[str, Any]] = []
    for item in normalized:
        if isinstance(item, ValidationFailure):
            entries.append({"Sl": item.sl, "Error": item.message})
        else:
            entries.append(dict(item.values))
    path = _write_json(directory / f"{tab}.json", entries)
    logger.info("processed data saved to: %s", path)
    return path


def dump_results(directory: Path, results_tab: str, records: Iterable[OutputRecord]) -> Path:
    # JSON object keys are strings; Sl order is preserved by insertion
    data = {str(r.sl): r.to_dict() for r in records}
    path = _write_json(directory / f"{results_tab}-results.json", data)
    logger.info("results written to %s", path)
    return path
