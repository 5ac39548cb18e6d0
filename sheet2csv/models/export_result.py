from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Export result model.

Aggregated metrics for one sheet export, used for the SUMMARY line and
returned to programmatic callers of export_sheet().
"""

__all__ = [
    "ExportResult",
]


@dataclass(frozen=True)
class ExportResult:
    """Results of exporting a single sheet.

    `rows_exported` does not include the header record.
    """
    sheet_name: str  # 実際に出力したシート名
    rows_exported: int  # データ行数 (ヘッダ除く)
    columns: int  # ヘッダ列数
    decode_errors: int  # 日付変換に失敗したセル数
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
