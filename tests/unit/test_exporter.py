from __future__ import annotations

import io
import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from sheet2csv.logging.error_log import ErrorLogBuffer
from sheet2csv.models.cell import Cell, ErrorCell, FloatCell, TextCell
from sheet2csv.services.date_whitelist import parse_whitelist
from sheet2csv.services.exporter import (
    RecordLengthError,
    RecordWriter,
    export_sheet,
    infer_delimiter,
    list_sheets,
    open_sheet,
)
from sheet2csv.services.sheet_resolver import EmptyWorkbookError


class FakeWorkbook:
    """In-memory WorkbookSource for exporter tests."""

    def __init__(self, sheets: dict[str, list[list[Cell]]]) -> None:
        self.path = Path("fake.xlsx")
        self.sheets = sheets
        self.fetched: list[str] = []

    def list_sheet_names(self) -> list[str]:
        return list(self.sheets)

    def get_sheet_rows(self, name: str) -> Iterator[list[Cell]]:
        for row in self.sheets[name]:
            self.fetched.append(name)
            yield row

    def row_count(self, name: str) -> int | None:
        return len(self.sheets[name])

    def close(self) -> None:
        pass


def _lines(buf: io.StringIO) -> list[str]:
    return buf.getvalue().splitlines()


ORDERS = [
    [TextCell("OrderDate"), TextCell("Amount"), TextCell("Note")],
    [FloatCell(40729.0), FloatCell(40729.0), TextCell(" first\nline ")],
    [FloatCell(37145.354166666664), FloatCell(12.5), TextCell("second")],
]


def test_end_to_end_header_plus_two_rows_in_order():
    source = FakeWorkbook({"Orders": ORDERS})
    buf = io.StringIO()
    stream = open_sheet(source, "0")
    result = export_sheet(stream, RecordWriter(buf), whitelist=parse_whitelist("date"))
    assert _lines(buf) == [
        "OrderDate,Amount,Note",
        '2011-07-05,40729," first',
        'line "',
        "2001-09-11 08:30:00,12.5,second",
    ]
    assert result.rows_exported == 2
    assert result.columns == 3
    assert result.decode_errors == 0
    assert result.sheet_name == "Orders"


def test_trim_applies_to_every_record():
    source = FakeWorkbook({"Orders": [[TextCell(" Order Date ")]] + [r[:1] for r in ORDERS[1:]]})
    buf = io.StringIO()
    export_sheet(open_sheet(source, "Orders"), RecordWriter(buf), whitelist=parse_whitelist("date"), trim=True)
    assert _lines(buf) == ["Order Date", "2011-07-05", "2001-09-11 08:30:00"]


def test_trim_flattens_embedded_line_breaks():
    source = FakeWorkbook({"Orders": ORDERS})
    buf = io.StringIO()
    export_sheet(open_sheet(source, "Orders"), RecordWriter(buf), whitelist=parse_whitelist("none"), trim=True)
    assert _lines(buf)[1] == "40729,40729,first line"


def test_index_whitelist():
    source = FakeWorkbook({"Orders": ORDERS})
    buf = io.StringIO()
    export_sheet(open_sheet(source, "Orders"), RecordWriter(buf), whitelist=parse_whitelist("1"))
    assert _lines(buf)[1].startswith("40729,2011-07-05,")


def test_header_is_never_date_converted():
    source = FakeWorkbook({"S": [[FloatCell(40729.0)], [FloatCell(1.0)]]})
    buf = io.StringIO()
    export_sheet(open_sheet(source, "S"), RecordWriter(buf), whitelist=parse_whitelist("all"))
    assert _lines(buf) == ["40729", "1899-12-31"]


def test_short_rows_are_padded_to_header_width():
    source = FakeWorkbook({"S": [[TextCell("a"), TextCell("b")], [TextCell("x")]]})
    buf = io.StringIO()
    result = export_sheet(open_sheet(source, "S"), RecordWriter(buf), whitelist=parse_whitelist("none"))
    assert _lines(buf) == ["a,b", "x,"]
    assert result.rows_exported == 1


def test_decode_errors_are_inline_and_logged(temp_workdir: Path):
    source = FakeWorkbook({"S": [[TextCell("due")], [FloatCell(1e12)], [ErrorCell("#N/A")]]})
    buf = io.StringIO()
    error_log = ErrorLogBuffer(temp_workdir / "logs")
    result = export_sheet(
        open_sheet(source, "S"),
        RecordWriter(buf),
        whitelist=parse_whitelist("due"),
        error_log=error_log,
        file_name="fake.xlsx",
    )
    assert _lines(buf) == ["due", "ERROR: Cannot convert 1000000000000 to date", "NA"]
    assert result.decode_errors == 1

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    rec = json.loads(logs[0].read_text(encoding="utf-8").strip())
    assert rec["file"] == "fake.xlsx"
    assert rec["sheet"] == "S"
    assert rec["row"] == 1
    assert rec["column"] == 0
    assert rec["error_type"] == "DATE_DECODE"


class _TrackingErrorLog(ErrorLogBuffer):
    """Records the largest number of buffered records seen."""

    max_buffered = 0

    def append(self, record):
        super().append(record)
        self.max_buffered = max(self.max_buffered, len(self))


def test_error_log_memory_is_bounded_on_many_failing_rows(temp_workdir: Path):
    rows = [[TextCell("due")]] + [[FloatCell(1e12)] for _ in range(5000)]
    source = FakeWorkbook({"S": rows})
    error_log = _TrackingErrorLog(temp_workdir / "logs", flush_threshold=50)
    result = export_sheet(
        open_sheet(source, "S"),
        RecordWriter(io.StringIO()),
        whitelist=parse_whitelist("due"),
        error_log=error_log,
        file_name="fake.xlsx",
    )
    assert result.decode_errors == 5000
    assert error_log.max_buffered < 50
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert len(logs[0].read_text(encoding="utf-8").splitlines()) == 5000


def test_no_error_log_file_without_errors(temp_workdir: Path):
    source = FakeWorkbook({"Orders": ORDERS})
    export_sheet(
        open_sheet(source, "Orders"),
        RecordWriter(io.StringIO()),
        whitelist=parse_whitelist("date"),
        error_log=ErrorLogBuffer(temp_workdir / "logs"),
    )
    assert not (temp_workdir / "logs").exists()


def test_empty_sheet_writes_nothing():
    source = FakeWorkbook({"Empty": []})
    buf = io.StringIO()
    result = export_sheet(open_sheet(source, "Empty"), RecordWriter(buf), whitelist=parse_whitelist("all"))
    assert buf.getvalue() == ""
    assert result.rows_exported == 0
    assert result.columns == 0


def test_open_sheet_reads_only_the_header():
    source = FakeWorkbook({"A": [[TextCell("h")], [TextCell("1")]], "B": [[TextCell("x")]]})
    stream = open_sheet(source, "-1")
    assert stream.resolution.name == "B"
    assert stream.header == [TextCell("x")]
    assert source.fetched == ["B"]


def test_open_sheet_fallback():
    source = FakeWorkbook({"A": [[TextCell("h")]], "B": [[TextCell("x")]]})
    stream = open_sheet(source, "missing")
    assert stream.resolution.name == "A"
    assert stream.resolution.fallback is True


def test_open_sheet_empty_workbook():
    with pytest.raises(EmptyWorkbookError):
        open_sheet(FakeWorkbook({}), "0")


def test_list_sheets():
    source = FakeWorkbook({"A": [], "B": []})
    buf = io.StringIO()
    names = list_sheets(source, RecordWriter(buf))
    assert names == ["A", "B"]
    assert _lines(buf) == ["index,sheet_name", "0,A", "1,B"]


def test_record_writer_rejects_width_change():
    writer = RecordWriter(io.StringIO())
    writer.write_record(["a", "b"])
    with pytest.raises(RecordLengthError):
        writer.write_record(["a"])


def test_record_writer_flexible():
    buf = io.StringIO()
    writer = RecordWriter(buf, flexible=True)
    writer.write_record(["a", "b"])
    writer.write_record(["a"])
    assert _lines(buf) == ["a,b", "a"]


def test_record_writer_delimiter_and_quoting():
    buf = io.StringIO()
    RecordWriter(buf, delimiter="\t").write_record(["a,b", 'say "hi"'])
    assert buf.getvalue() == 'a,b\t"say ""hi"""\n'


@pytest.mark.parametrize(
    "explicit,output,expected",
    [
        (None, None, ","),
        (None, "out.csv", ","),
        (None, "out.TSV", "\t"),
        (None, "out.tab", "\t"),
        (";", "out.tsv", ";"),
    ],
)
def test_infer_delimiter(explicit, output, expected):
    assert infer_delimiter(explicit, output) == expected
