from __future__ import annotations

import re

__all__ = [
    "InvalidLocatorError",
    "extract_sheet_id",
    "sheet_url",
]

_SHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")


class InvalidLocatorError(Exception):
    """Raised when no spreadsheet id can be extracted from a locator."""


def extract_sheet_id(locator: str) -> str:
    """Return the id following ``/spreadsheets/d/`` up to the next path separator."""
    match = _SHEET_ID_RE.search(locator or "")
    if not match:
        raise InvalidLocatorError(f"invalid spreadsheet locator: {locator!r}")
    return match.group(1)


def sheet_url(sheet_id: str) -> str:
    return f"https://docs.google.com/spreadsheets/d/{sheet_id}"
