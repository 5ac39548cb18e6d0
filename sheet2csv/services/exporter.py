from __future__ import annotations

import csv
import logging
import time
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TextIO

from ..excel.reader import WorkbookSource
from ..logging.error_log import ErrorLogBuffer
from ..models.cell import EMPTY, Cell
from ..models.error_record import ErrorRecord
from ..models.export_result import ExportResult
from ..models.sheet_ref import SheetResolution
from ..models.whitelist import WhitelistSpec
from .assembler import assemble_record
from .date_whitelist import classify_columns
from .progress import RowProgress
from .sheet_resolver import resolve_sheet
from .transcoder import transcode_cell, transcode_with_error

"""Sheet export pipeline.

    open_sheet()   resolve the sheet and read its header row
    export_sheet() header -> flag vector, then transcode / assemble / write
                   every data row, one at a time
    list_sheets()  index,sheet_name table instead of sheet data

Nothing is written before open_sheet() has succeeded, so an unreadable
workbook or sheet never leaves partial output behind. Once streaming has
started, rows already written stay in the sink.
"""

__all__ = [
    "ExportError",
    "RecordLengthError",
    "RecordWriter",
    "SheetStream",
    "infer_delimiter",
    "list_sheets",
    "open_sheet",
    "export_sheet",
]

logger = logging.getLogger(__name__)

_TAB_EXTENSIONS = (".tsv", ".tab")


class ExportError(Exception):
    """Base exception for export failures."""


class RecordLengthError(ExportError):
    """Raised when a record's width differs from the first record's."""


def infer_delimiter(explicit: str | None, output: str | None) -> str:
    """Pick the output delimiter: explicit value, else by output extension."""
    if explicit:
        return explicit
    if output and output.lower().endswith(_TAB_EXTENSIONS):
        return "\t"
    return ","


class RecordWriter:
    """csv.writer wrapper enforcing a constant record width.

    In flexible mode records may have any width.
    """

    def __init__(self, stream: TextIO, *, delimiter: str = ",", flexible: bool = False) -> None:
        self._writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
        self.flexible = flexible
        self.width: int | None = None
        self.records_written = 0

    def write_record(self, record: Sequence[str]) -> None:
        if not self.flexible:
            if self.width is None:
                self.width = len(record)
            elif len(record) != self.width:
                raise RecordLengthError(
                    f"found record with {len(record)} fields, but the previous record has "
                    f"{self.width} fields (record {self.records_written + 1})"
                )
        self._writer.writerow(record)
        self.records_written += 1


@dataclass
class SheetStream:
    """A resolved sheet whose header row has already been read."""
    resolution: SheetResolution
    header: list[Cell] | None  # None: シートが空
    rows: Iterator[list[Cell]]
    total_rows: int | None = None  # header 含む / 不明なら None


def list_sheets(source: WorkbookSource, writer: RecordWriter) -> list[str]:
    """Write the index,sheet_name table and return the sheet names."""
    names = source.list_sheet_names()
    writer.write_record(["index", "sheet_name"])
    for i, name in enumerate(names):
        writer.write_record([str(i), name])
    logger.info(f"listed sheet names: {names}")
    return names


def open_sheet(source: WorkbookSource, identifier: str) -> SheetStream:
    """Resolve `identifier` and read the header row of the chosen sheet.

    Raises:
        SheetResolutionError: no sheet could be chosen
        SourceError: the sheet data cannot be read
    """
    resolution = resolve_sheet(identifier, source.list_sheet_names())
    logger.debug(f'exporting sheet "{resolution.name}" (position {resolution.position})')
    total_rows = source.row_count(resolution.name)
    rows = iter(source.get_sheet_rows(resolution.name))
    header = next(rows, None)
    return SheetStream(resolution=resolution, header=header, rows=rows, total_rows=total_rows)


def export_sheet(
    stream: SheetStream,
    writer: RecordWriter,
    *,
    whitelist: WhitelistSpec,
    trim: bool = False,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "",
) -> ExportResult:
    """Stream the sheet into `writer`, header first.

    Date flags are derived from the header row only and read-only afterwards.
    Decode errors are written inline, counted, and recorded in `error_log`
    when one is given.
    """
    sheet = stream.resolution.name
    start_time = datetime.now(UTC)
    t0 = time.perf_counter()
    columns = 0
    count = 0
    decode_errors = 0

    try:
        if stream.header is not None:
            header_fields = [transcode_cell(c, False) for c in stream.header]
            flags = classify_columns(whitelist, header_fields)
            columns = len(header_fields)
            writer.write_record(assemble_record(header_fields, trim))

            data_rows = stream.total_rows - 1 if stream.total_rows else None
            with RowProgress(data_rows) as progress:
                for row_idx, row in enumerate(stream.rows, start=1):
                    if len(row) < columns:
                        row = row + [EMPTY] * (columns - len(row))
                    fields: list[str] = []
                    for col_idx, cell in enumerate(row):
                        # ヘッダ幅を超える列は日付扱いしない
                        is_date = col_idx < columns and flags[col_idx]
                        field, err = transcode_with_error(cell, is_date)
                        if err is not None:
                            decode_errors += 1
                            logger.debug(f"row {row_idx} column {col_idx}: {err.message}")
                            if error_log is not None:
                                error_log.append(
                                    ErrorRecord.create(file_name, sheet, row_idx, col_idx, err.error_type, err.message)
                                )
                        fields.append(field)
                    writer.write_record(assemble_record(fields, trim))
                    count += 1
                    progress.advance()
        else:
            logger.warning(f'sheet "{sheet}" is empty')
    finally:
        if error_log is not None:
            path = error_log.flush()
            if path is not None:
                logger.info(f"decode errors written to {path}")

    elapsed = time.perf_counter() - t0
    return ExportResult(
        sheet_name=sheet,
        rows_exported=count,
        columns=columns,
        decode_errors=decode_errors,
        start_time=start_time,
        end_time=datetime.now(UTC),
        elapsed_seconds=elapsed,
    )
