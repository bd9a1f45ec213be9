from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from ..models.row import CanonicalRow, ValidationFailure

"""Row normalization: required-field check and defaulting.

``normalize`` is pure: it copies the raw row, never raises on malformed
cells, and returns either a ``CanonicalRow`` or a ``ValidationFailure``.

Empty / missing cells are detected by truthiness, so ``0`` in a numeric
column is treated the same as an empty cell and receives the default.
"""

__all__ = [
    "REQUIRED_FIELDS",
    "DEFAULTS",
    "normalize",
    "format_instances",
]

logger = logging.getLogger(__name__)

INSTANCES = "No. of Instances"

# 検査順 = エラーメッセージ内の列挙順
REQUIRED_FIELDS: tuple[str, ...] = ("No. of Instances", "Datacenter Location", "OS with version")

DEFAULTS: dict[str, Any] = {
    "vCPUs": 0,
    "RAM": 0,
    "Datacenter Location": "ap-south1",
    "Avg no. of hrs": 730,
    "Cloud SQL": "Enterprise",
    "Instance Type": "Custom machine type",
}

# Leading decimal literal, e.g. "3", "2.5 nodes", "-1e3"
_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _is_missing(value: Any) -> bool:
    if isinstance(value, float) and value != value:  # NaN
        return True
    return not value


def format_instances(value: Any) -> str:
    """Render an instance count with two fractional digits, ``"0.00"`` if unparseable."""
    if isinstance(value, bool):
        return "0.00"
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_FLOAT_RE.match(str(value))
        if not match:
            return "0.00"
        number = float(match.group(0))
    if number != number or number in (float("inf"), float("-inf")):
        return "0.00"
    return f"{number:.2f}"


def normalize(raw_row: Mapping[str, Any], sl: int) -> CanonicalRow | ValidationFailure:
    """Validate required fields and apply defaults to one source row.

    Args:
        raw_row: Column name -> raw cell value
        sl: 1-based position of the row in the source

    Returns:
        CanonicalRow with ``Sl`` set, or ValidationFailure listing every
        missing required field in check order
    """
    missing = tuple(f for f in REQUIRED_FIELDS if _is_missing(raw_row.get(f)))
    if missing:
        return ValidationFailure(sl=sl, missing_fields=missing)

    logger.debug("standardizing row Sl=%d", sl)
    values = dict(raw_row)
    values["Sl"] = sl
    values[INSTANCES] = format_instances(values.get(INSTANCES))
    for column, default in DEFAULTS.items():
        if _is_missing(values.get(column)):
            values[column] = default
    return CanonicalRow(sl=sl, values=values)
