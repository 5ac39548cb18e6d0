from __future__ import annotations

import math
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import openpyxl
import pandas as pd
from openpyxl.utils.datetime import to_excel

from ..config.loader import ConfigError
from ..models.cell import EMPTY, BoolCell, Cell, DateTimeCell, ErrorCell, FloatCell, IntCell, TextCell

"""Workbook readers.

Two backends sit behind the same small interface (list_sheet_names /
get_sheet_rows):

- .xlsx / .xlsm: openpyxl read-only mode. Rows are streamed straight from
  the sheet XML and never buffered.
- .xls / .xlsb / .ods: pandas.ExcelFile with the matching engine
  (xlrd / pyxlsb / odf). pandas parses the whole sheet into a DataFrame
  first, so these formats are not streamed.

Both backends turn raw values into the closed Cell union. Date-formatted
cells come back from the libraries as datetime objects; they are converted
back to day-count serials (1899-12-30 epoch) so that rendering as a date is
decided per column by the whitelist, not by the cell format.
"""

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "SourceError",
    "WorkbookOpenError",
    "SheetReadError",
    "UnsupportedFileTypeError",
    "WorkbookSource",
    "OpenpyxlWorkbook",
    "PandasWorkbook",
    "open_workbook",
    "cell_from_value",
]

_OPENPYXL_EXTENSIONS = {".xlsx", ".xlsm"}
_PANDAS_ENGINES = {
    ".xls": "xlrd",
    ".xlsb": "pyxlsb",
    ".ods": "odf",
}
SUPPORTED_EXTENSIONS = frozenset(_OPENPYXL_EXTENSIONS | set(_PANDAS_ENGINES))


class SourceError(Exception):
    """Raised when the workbook or one of its sheets cannot be read."""


class WorkbookOpenError(SourceError):
    """Raised when the workbook container cannot be opened."""


class SheetReadError(SourceError):
    """Raised when a sheet's data cannot be read."""


class UnsupportedFileTypeError(ConfigError):
    """Raised when the input path does not have a spreadsheet extension."""


class WorkbookSource(Protocol):
    path: Path

    def list_sheet_names(self) -> list[str]: ...

    def get_sheet_rows(self, name: str) -> Iterator[list[Cell]]: ...

    def row_count(self, name: str) -> int | None: ...

    def close(self) -> None: ...


def _serial(value: datetime | date | time | timedelta) -> float:
    # openpyxl の既定 epoch (1899-12-30) で serial に戻す
    return float(to_excel(value))


def cell_from_value(value: Any, *, numbers_as_float: bool = False) -> Cell:
    """Convert a plain Python / numpy / pandas scalar into a Cell.

    numbers_as_float=True maps integers to FloatCell as well. pandas narrows
    integral doubles to int when reading workbooks, which would otherwise
    hide whole-number date serials from date conversion.
    """
    if value is None or value is pd.NaT:
        return EMPTY
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return EMPTY
    if isinstance(value, (bool, np.bool_)):
        return BoolCell(bool(value))
    if isinstance(value, (int, np.integer)):
        return FloatCell(float(value)) if numbers_as_float else IntCell(int(value))
    if isinstance(value, (float, np.floating)):
        return FloatCell(float(value))
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, (datetime, date, time, timedelta)):
        return DateTimeCell(_serial(value))
    if isinstance(value, str):
        return EMPTY if value == "" else TextCell(value)
    return TextCell(str(value))


def _cell_from_openpyxl(cell: Any) -> Cell:
    value = cell.value
    if value is None:
        return EMPTY
    data_type = cell.data_type
    if data_type == "b":
        return BoolCell(bool(value))
    if data_type == "e":
        return ErrorCell(str(value))
    if data_type == "d" or isinstance(value, (datetime, date, time, timedelta)):
        return DateTimeCell(_serial(value))
    if data_type == "n":
        # xlsx stores every number as a double
        return FloatCell(float(value))
    return TextCell(str(value))


class OpenpyxlWorkbook:
    """Streaming reader for .xlsx / .xlsm workbooks."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self._wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
        except Exception as e:
            raise WorkbookOpenError(f"Cannot open workbook: {e}.") from e

    def list_sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def _worksheet(self, name: str) -> Any:
        try:
            ws = self._wb[name]
        except KeyError as e:
            raise SheetReadError(f"Cannot get worksheet data from {name}") from e
        # chartsheet 等はセルを持たない
        if not hasattr(ws, "iter_rows"):
            raise SheetReadError(f"Cannot get worksheet data from {name}")
        if ws.max_row is None or ws.max_column is None:
            self._calculate_dimension(ws, name)
        return ws

    @staticmethod
    def _calculate_dimension(ws: Any, name: str) -> None:
        """Size a sheet that has no <dimension> tag.

        Without a size openpyxl yields ragged rows. One extra streaming pass
        fixes max_row / max_column so every row is padded to the same width.
        """
        rows = ws.iter_rows()
        try:
            first = next(rows, None)
        finally:
            rows.close()
        # 行が無いシートは calculate_dimension が失敗する
        if first is None:
            return
        try:
            ws.calculate_dimension(force=True)
        except Exception as e:
            raise SheetReadError(f"Cannot get worksheet data from {name}: {e}") from e

    def row_count(self, name: str) -> int | None:
        return self._worksheet(name).max_row

    def get_sheet_rows(self, name: str) -> Iterator[list[Cell]]:
        ws = self._worksheet(name)
        try:
            # max_col を渡してヘッダも含め全行を同じ幅に揃える
            for row in ws.iter_rows(max_col=ws.max_column):
                yield [_cell_from_openpyxl(c) for c in row]
        except SourceError:
            raise
        except Exception as e:
            raise SheetReadError(f"Cannot get worksheet data from {name}: {e}") from e

    def close(self) -> None:
        self._wb.close()


class PandasWorkbook:
    """Reader for .xls / .xlsb / .ods via pandas.ExcelFile.

    keep_default_na=False keeps strings such as "NA" or "null" as text; only
    genuinely empty cells become EmptyCell.
    """

    def __init__(self, path: Path, engine: str) -> None:
        self.path = path
        self.engine = engine
        try:
            self._xls = pd.ExcelFile(path, engine=engine)
        except Exception as e:
            raise WorkbookOpenError(f"Cannot open workbook: {e}.") from e

    def list_sheet_names(self) -> list[str]:
        return [str(n) for n in self._xls.sheet_names]

    def _parse(self, name: str) -> pd.DataFrame:
        try:
            return self._xls.parse(
                name, header=None, dtype=object, keep_default_na=False, na_values=[]
            )
        except Exception as e:
            raise SheetReadError(f"Cannot get worksheet data from {name}: {e}") from e

    def row_count(self, name: str) -> int | None:
        # 全体を読まないと行数が分からないため None (進捗バー無効)
        return None

    def get_sheet_rows(self, name: str) -> Iterator[list[Cell]]:
        df = self._parse(name)
        for raw in df.itertuples(index=False, name=None):
            yield [cell_from_value(v, numbers_as_float=True) for v in raw]

    def close(self) -> None:
        self._xls.close()


def open_workbook(path: Path) -> WorkbookSource:
    """Open a workbook with the backend matching its extension.

    Raises:
        UnsupportedFileTypeError: extension is not a spreadsheet format
        WorkbookOpenError: the library could not open the file
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Expecting an Excel/ODS file. Supported extensions: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
    if suffix in _OPENPYXL_EXTENSIONS:
        return OpenpyxlWorkbook(path)
    return PandasWorkbook(path, _PANDAS_ENGINES[suffix])
