"""Spreadsheet-driven multi-tier pricing runner."""

__version__ = "0.1.0"
