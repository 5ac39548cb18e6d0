from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import assert_never

from ..models.cell import BoolCell, Cell, DateTimeCell, EmptyCell, ErrorCell, FloatCell, IntCell, TextCell

"""Cell transcoding: typed cell -> output field text.

Numeric cells in a date column are decoded from day-count serials
(1899-12-30 epoch, the spreadsheet 1900 date system):

    40729               -> "2011-07-05"           (no fractional part: date)
    37145.354166666664  -> "2001-09-11 08:30:00"  (fractional part: date-time)

A serial that cannot be decoded does not fail the row; the field gets an
inline "ERROR: Cannot convert ..." text instead.
"""

__all__ = [
    "EXCEL_EPOCH",
    "CellDecodeError",
    "format_float",
    "render_error_code",
    "serial_to_datetime",
    "transcode_cell",
    "transcode_with_error",
]

EXCEL_EPOCH = datetime(1899, 12, 30)
SECONDS_PER_DAY = 86400

# スプレッドシートのエラー表記 -> 種別名
_ERROR_KINDS = {
    "#DIV/0!": "Div0",
    "#N/A": "NA",
    "#NAME?": "Name",
    "#NULL!": "Null",
    "#NUM!": "Num",
    "#REF!": "Ref",
    "#VALUE!": "Value",
    "#GETTING_DATA": "GettingData",
}


class CellDecodeError(ValueError):
    """A day-count serial could not be decoded to a calendar value.

    `message` is the inline text written to the field.
    """

    def __init__(self, serial: float, target: str) -> None:
        self.serial = serial
        self.target = target  # "date" | "datetime"
        self.message = f"ERROR: Cannot convert {format_float(serial)} to {target}"
        super().__init__(self.message)

    @property
    def error_type(self) -> str:
        return f"{self.target.upper()}_DECODE"


def format_float(value: float) -> str:
    """Render a float as shortest round-trip decimal text.

    No exponent and no trailing ".0": 40729.0 -> "40729", 1e-07 -> "0.0000001".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def render_error_code(code: str) -> str:
    if not code:
        return "Unknown"
    return _ERROR_KINDS.get(code.strip().upper(), code)


def serial_to_datetime(serial: float) -> datetime:
    """Decode a day-count serial; time of day is rounded to whole seconds.

    Raises:
        OverflowError / ValueError: non-finite serial or a result outside
        the years 1..9999
    """
    days = math.floor(serial)
    seconds = round((serial - days) * SECONDS_PER_DAY)
    return EXCEL_EPOCH + timedelta(days=days, seconds=seconds)


def _decode_datetime(serial: float) -> datetime:
    try:
        return serial_to_datetime(serial)
    except (OverflowError, ValueError) as e:
        raise CellDecodeError(serial, "datetime") from e


def _decode_date(serial: float) -> date:
    try:
        return serial_to_datetime(serial).date()
    except (OverflowError, ValueError) as e:
        raise CellDecodeError(serial, "date") from e


def _render_serial(serial: float) -> str:
    if math.modf(serial)[0] > 0:
        return _decode_datetime(serial).isoformat(sep=" ", timespec="seconds")
    return _decode_date(serial).isoformat()


def transcode_with_error(cell: Cell, is_date_column: bool) -> tuple[str, CellDecodeError | None]:
    """Transcode one cell, also returning the decode error if one occurred."""
    match cell:
        case EmptyCell():
            return "", None
        case TextCell(value=text):
            return text, None
        case IntCell(value=number):
            return str(number), None
        case BoolCell(value=flag):
            return ("true" if flag else "false"), None
        case ErrorCell(code=code):
            return render_error_code(code), None
        case FloatCell(value=serial) | DateTimeCell(serial=serial):
            if not is_date_column:
                return format_float(serial), None
            try:
                return _render_serial(serial), None
            except CellDecodeError as e:
                return e.message, e
        case _:
            assert_never(cell)


def transcode_cell(cell: Cell, is_date_column: bool) -> str:
    """Transcode one cell into its output field text."""
    field, _ = transcode_with_error(cell, is_date_column)
    return field
