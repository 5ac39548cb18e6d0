from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from sheet2csv.config.loader import ConfigError, load_config
from sheet2csv.excel.reader import SourceError, open_workbook
from sheet2csv.logging.error_log import ErrorLogBuffer
from sheet2csv.logging.init import log_summary, set_debug, setup_logging
from sheet2csv.models.config_models import ExportConfig
from sheet2csv.services.date_whitelist import parse_whitelist
from sheet2csv.services.exporter import (
    ExportError,
    RecordWriter,
    export_sheet,
    infer_delimiter,
    list_sheets,
    open_sheet,
)
from sheet2csv.services.sheet_resolver import SheetResolutionError
from sheet2csv.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, YAML config and CLI flags into one ExportConfig
- Open the workbook (extension decides the backend)
- --list-sheets: write the index,sheet_name table and stop
- otherwise resolve the sheet, read its header, and only then open the
  output and stream the rows
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

DESCRIPTION = """\
Exports a specified Excel/ODS sheet to a CSV file.

Spreadsheets store dates as a number of days since 1899-12-30. Numeric
values in columns that satisfy the dates whitelist are converted to ISO 8601
text: whole numbers become dates, values with a fractional part become
date-times (40729 is 2011-07-05, 37145.354166666664 is 2001-09-11 08:30:00).
"""


def _load_env_file(path: Path) -> None:
    """Load .env using python-dotenv without overriding the real environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="sheet2csv",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("input", help="Workbook path (.xls, .xlsx, .xlsm, .xlsb, .ods)")
    p.add_argument(
        "-s", "--sheet",
        help="Name or zero-based index of the sheet to export. Negative indices start "
             "from the end (-1 = last sheet). Unknown sheets fall back to the first sheet. "
             "[default: 0]",
    )
    p.add_argument(
        "--list-sheets", action="store_const", const=True, default=None,
        help="Write index,sheet_name for every sheet. All other options are ignored.",
    )
    p.add_argument(
        "--flexible", action="store_const", const=True, default=None,
        help="Continue even if the number of columns differs from the previous record.",
    )
    p.add_argument(
        "--trim", action="store_const", const=True, default=None,
        help="Trim leading & trailing whitespace and replace embedded line breaks with a space.",
    )
    p.add_argument(
        "--dates-whitelist",
        help='Case-insensitive header patterns marking date columns. "all" converts every '
             'numeric column, "none" disables date processing, and a list of integers is '
             "read as zero-based column indices. [default: date,time,due,opened,closed]",
    )
    p.add_argument("-d", "--delimiter", help="Output field delimiter [default: ','; tab for .tsv/.tab]")
    p.add_argument("-o", "--output", help="Write output to this file instead of stdout")
    p.add_argument("--config", help="YAML config file [default: config/export.yml if present]")
    p.add_argument("--error-log", dest="error_log_dir", help="Directory for JSON Lines decode error logs")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


@contextmanager
def _open_writer(cfg: ExportConfig) -> Iterator[RecordWriter]:
    delimiter = infer_delimiter(cfg.delimiter, cfg.output)
    if cfg.output is None:
        yield RecordWriter(sys.stdout, delimiter=delimiter, flexible=cfg.flexible)
        sys.stdout.flush()
        return
    with open(cfg.output, "w", newline="", encoding="utf-8") as f:
        yield RecordWriter(f, delimiter=delimiter, flexible=cfg.flexible)


def _run(cfg: ExportConfig) -> int:
    logger = setup_logging()
    path = Path(cfg.input_path or "")
    source = open_workbook(path)
    try:
        if cfg.list_sheets:
            with _open_writer(cfg) as writer:
                list_sheets(source, writer)
            return EXIT_SUCCESS

        whitelist = parse_whitelist(cfg.dates_whitelist)
        stream = open_sheet(source, cfg.sheet)
        error_log = ErrorLogBuffer(Path(cfg.error_log_dir)) if cfg.error_log_dir else None
        with _open_writer(cfg) as writer:
            result = export_sheet(
                stream,
                writer,
                whitelist=whitelist,
                trim=cfg.trim,
                error_log=error_log,
                file_name=path.name,
            )
    finally:
        source.close()

    if result.decode_errors:
        logger.warning(f"{result.decode_errors} cell(s) could not be converted to dates")
    log_summary(render_summary_line(result))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] はそのまま使う)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    cli_values = {
        "input_path": args.input,
        "sheet": args.sheet,
        "list_sheets": args.list_sheets,
        "flexible": args.flexible,
        "trim": args.trim,
        "dates_whitelist": args.dates_whitelist,
        "delimiter": args.delimiter,
        "output": args.output,
        "error_log_dir": args.error_log_dir,
    }
    try:
        cfg = load_config(cli_values, config_path=Path(args.config) if args.config else None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        return _run(cfg)
    except ConfigError as e:
        logger.error(f"config: {e}")
    except SourceError as e:
        logger.error(f"source: {e}")
    except SheetResolutionError as e:
        logger.error(f"sheet: {e}")
    except ExportError as e:
        logger.error(f"export: {e}")
    return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
