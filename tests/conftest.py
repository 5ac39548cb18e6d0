# Shared pytest fixtures
from __future__ import annotations
import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from sheet2csv.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # 開発者環境の設定がテストに混入しないように
    for var in ("SHEET2CSV_SHEET", "SHEET2CSV_DATES_WHITELIST", "SHEET2CSV_DEFAULT_DELIMITER"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield
    reset_logging()


def _write_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Factory: make_workbook("book.xlsx", {"Sheet": [[header...], [row...]]})."""
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return _write_workbook(temp_workdir / "data" / name, sheets)
    return _make


@pytest.fixture()
def orders_workbook(make_workbook) -> Path:
    return make_workbook(
        "orders.xlsx",
        {
            "Summary": [
                ["key", "value"],
                ["orders", 2],
            ],
            "Orders": [
                ["OrderDate", "Amount", "Customer"],
                [40729.0, 1500.5, "Alice"],
                [37145.354166666664, 800, "Bob"],
            ],
            "Archive": [
                ["id"],
                [1],
            ],
        },
    )
