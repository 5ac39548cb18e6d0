from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Dates whitelist model.

The whitelist decides which columns have their numeric values rendered as
calendar dates. It is parsed once, before the first row is read, into one of
four modes and never changes afterwards.
"""

__all__ = [
    "WhitelistMode",
    "WhitelistSpec",
    "DEFAULT_DATES_WHITELIST",
]

DEFAULT_DATES_WHITELIST = "date,time,due,opened,closed"


class WhitelistMode(Enum):
    """Column classification mode.

    - ALL: every column is a date candidate
    - NONE: date processing disabled
    - INDEX_SET: zero-based column positions
    - PATTERN_SET: case-insensitive substrings of the header text
    """
    ALL = "all"
    NONE = "none"
    INDEX_SET = "index_set"
    PATTERN_SET = "pattern_set"


@dataclass(frozen=True)
class WhitelistSpec:
    mode: WhitelistMode
    # INDEX_SET: ソート済みの10進文字列 / PATTERN_SET: 小文字化済トークン (入力順)
    tokens: tuple[str, ...] = ()
