from __future__ import annotations

import math

import pytest

from sheet2csv.models.cell import (
    BoolCell,
    DateTimeCell,
    EmptyCell,
    ErrorCell,
    FloatCell,
    IntCell,
    TextCell,
)
from sheet2csv.services.transcoder import (
    CellDecodeError,
    format_float,
    serial_to_datetime,
    transcode_cell,
    transcode_with_error,
)


def test_date_only_serial():
    assert transcode_cell(FloatCell(40729.0), True) == "2011-07-05"


def test_datetime_serial():
    assert transcode_cell(FloatCell(37145.354166666664), True) == "2001-09-11 08:30:00"


def test_datetime_cell_follows_same_rules():
    assert transcode_cell(DateTimeCell(40729.0), True) == "2011-07-05"
    assert transcode_cell(DateTimeCell(37145.354166666664), True) == "2001-09-11 08:30:00"


def test_non_date_column_renders_number():
    assert transcode_cell(FloatCell(40729.0), False) == "40729"
    assert transcode_cell(DateTimeCell(40729.5), False) == "40729.5"


def test_time_rounds_to_whole_seconds():
    # 0.5 日 + 0.4 秒 -> 12:00:00
    serial = 40729.5 + 0.4 / 86400
    assert transcode_cell(FloatCell(serial), True) == "2011-07-05 12:00:00"


def test_fraction_rounding_up_rolls_to_next_day():
    serial = 40729 + (86399.7 / 86400)
    assert transcode_cell(FloatCell(serial), True) == "2011-07-06 00:00:00"


def test_epoch_serial_zero():
    assert transcode_cell(FloatCell(0.0), True) == "1899-12-30"


def test_date_decode_failure_is_inline():
    field, err = transcode_with_error(FloatCell(1e12), True)
    assert field == "ERROR: Cannot convert 1000000000000 to date"
    assert isinstance(err, CellDecodeError)
    assert err.error_type == "DATE_DECODE"


def test_datetime_decode_failure_is_inline():
    field, err = transcode_with_error(FloatCell(1e12 + 0.5), True)
    assert field == "ERROR: Cannot convert 1000000000000.5 to datetime"
    assert err is not None and err.error_type == "DATETIME_DECODE"


@pytest.mark.parametrize("value,text", [(math.nan, "NaN"), (math.inf, "inf")])
def test_non_finite_serial_is_date_error(value: float, text: str):
    assert transcode_cell(FloatCell(value), True) == f"ERROR: Cannot convert {text} to date"


def test_serial_to_datetime_raises_outside_range():
    with pytest.raises(OverflowError):
        serial_to_datetime(1e9)


@pytest.mark.parametrize(
    "cell,expected",
    [
        (EmptyCell(), ""),
        (TextCell("  hello\nworld "), "  hello\nworld "),
        (IntCell(-42), "-42"),
        (BoolCell(True), "true"),
        (BoolCell(False), "false"),
        (ErrorCell("#DIV/0!"), "Div0"),
        (ErrorCell("#N/A"), "NA"),
        (ErrorCell("#REF!"), "Ref"),
        (ErrorCell("#SPILL!"), "#SPILL!"),
        (ErrorCell(""), "Unknown"),
    ],
)
def test_non_numeric_cells(cell, expected: str):
    # 日付列フラグは数値以外に影響しない
    assert transcode_cell(cell, False) == expected
    assert transcode_cell(cell, True) == expected


def test_int_cell_in_date_column_is_not_converted():
    assert transcode_cell(IntCell(40729), True) == "40729"


@pytest.mark.parametrize(
    "value,expected",
    [
        (40729.0, "40729"),
        (1500.5, "1500.5"),
        (0.1 + 0.2, "0.30000000000000004"),
        (1e-7, "0.0000001"),
        (1e20, "100000000000000000000"),
        (-2.5, "-2.5"),
        (-math.inf, "-inf"),
    ],
)
def test_format_float(value: float, expected: str):
    assert format_float(value) == expected


@pytest.mark.parametrize("value", [3.14159, 1e-7, 123456789.125, -0.001, 2.0**60])
def test_plain_numbers_reparse_to_same_value(value: float):
    assert float(transcode_cell(FloatCell(value), False)) == value
