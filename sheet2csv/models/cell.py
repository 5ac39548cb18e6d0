from __future__ import annotations

from dataclasses import dataclass
from typing import Union

"""Typed cell model for sheet -> CSV export.

A workbook reader yields one of these per cell. The set is closed: every
consumer matches on all seven kinds, so a new kind has to be handled
everywhere before the code type-checks again.

Float and DateTime both carry a day-count serial (days since 1899-12-30).
DateTime is what the reader produces for cells formatted as dates; whether
either kind is rendered as a calendar value is decided per column, not per
cell.
"""

__all__ = [
    "Cell",
    "EmptyCell",
    "TextCell",
    "IntCell",
    "FloatCell",
    "BoolCell",
    "ErrorCell",
    "DateTimeCell",
]


@dataclass(frozen=True)
class EmptyCell:
    pass


@dataclass(frozen=True)
class TextCell:
    value: str


@dataclass(frozen=True)
class IntCell:
    value: int


@dataclass(frozen=True)
class FloatCell:
    value: float


@dataclass(frozen=True)
class BoolCell:
    value: bool


@dataclass(frozen=True)
class ErrorCell:
    code: str  # ワークブック上の表記 (例: "#DIV/0!")


@dataclass(frozen=True)
class DateTimeCell:
    serial: float  # 1899-12-30 起点の日数


Cell = Union[EmptyCell, TextCell, IntCell, FloatCell, BoolCell, ErrorCell, DateTimeCell]

EMPTY = EmptyCell()
