from __future__ import annotations

from ..models.run_result import RunResult

"""SUMMARY line rendering.

Format::

    SUMMARY rows={n} valid={v} invalid={i} ondemand_ok={a} 1year_ok={b} 3year_ok={c} elapsed_sec={e} results={url|-}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = RunResult(records=[], valid_rows=0, invalid_rows=0,
        ...               start_time=t, end_time=t, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY rows=0 valid=0 invalid=0 ondemand_ok=0 1year_ok=0 3year_ok=0 elapsed_sec=2 results=-'
    """
    ok = {s.tier: s.succeeded for s in result.tier_stats}
    return (
        f"SUMMARY rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"invalid={result.invalid_rows} "
        f"ondemand_ok={ok.get('ondemand', 0)} "
        f"1year_ok={ok.get('1year', 0)} "
        f"3year_ok={ok.get('3year', 0)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)} "
        f"results={result.results_url or '-'}"
    )
