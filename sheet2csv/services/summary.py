from __future__ import annotations

from ..models.export_result import ExportResult

"""Summary line rendering for the sheet exporter.

Format (the SUMMARY label is added by the log formatter):
    {rows} {columns}-column rows exported from "{sheet}" decode_errors={n} elapsed_sec={s}

Counts use thousands separators; the header record is not counted.
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # 指数表記を避ける
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: ExportResult) -> str:
    """Render the body of the SUMMARY log line for a finished export.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ExportResult(
        ...     sheet_name="Orders", rows_exported=12345, columns=4, decode_errors=0,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        '12,345 4-column rows exported from "Orders" decode_errors=0 elapsed_sec=2'
    """
    return (
        f"{result.rows_exported:,} {result.columns:,}-column rows exported "
        f'from "{result.sheet_name}" '
        f"decode_errors={result.decode_errors:,} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
