from __future__ import annotations

from dataclasses import dataclass

from .whitelist import DEFAULT_DATES_WHITELIST

"""Config dataclass for the sheet -> CSV exporter.

This is the fully resolved configuration: CLI flags, environment variables
and the optional YAML file have already been merged by
sheet2csv.config.loader.
"""

__all__ = [
    "ExportConfig",
]


@dataclass(frozen=True)
class ExportConfig:
    """Root configuration object for one export run.

    `sheet` is kept as the raw user text; interpretation (name / index /
    fallback) happens in the sheet resolver once the sheet list is known.
    """
    input_path: str | None = None  # Workbook path
    sheet: str = "0"  # Sheet name or zero-based index (negative = from the end)
    list_sheets: bool = False  # index,sheet_name 一覧のみ出力
    flexible: bool = False  # Allow records of differing width
    trim: bool = False  # Strip fields and flatten embedded line breaks
    dates_whitelist: str = DEFAULT_DATES_WHITELIST
    delimiter: str | None = None  # None -> inferred from output extension / env
    output: str | None = None  # None -> stdout
    error_log_dir: str | None = None  # Decode error JSON Lines 出力先
