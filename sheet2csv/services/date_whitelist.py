from __future__ import annotations

import logging
import re
from bisect import bisect_left
from collections.abc import Sequence
from typing import assert_never

from ..models.whitelist import WhitelistMode, WhitelistSpec

"""Dates whitelist parsing and header classification.

The whitelist string is parsed once into a WhitelistSpec; the header row is
then turned into an immutable per-column flag vector. Data rows only ever
read that vector.

    "all"        -> every column
    "none"       -> no column
    "0,3"        -> columns 0 and 3 (all tokens non-negative integers)
    "date,due"   -> columns whose header contains "date" or "due"
"""

__all__ = [
    "parse_whitelist",
    "classify_columns",
]

logger = logging.getLogger(__name__)

_NON_NEGATIVE_INT = re.compile(r"\+?[0-9]+")


def parse_whitelist(raw: str) -> WhitelistSpec:
    """Parse a comma separated whitelist into one of the four modes."""
    lowered = raw.lower()
    whole = lowered.strip()
    if whole == "all":
        return WhitelistSpec(mode=WhitelistMode.ALL)
    if whole == "none":
        return WhitelistSpec(mode=WhitelistMode.NONE)

    tokens = [t.strip() for t in lowered.split(",")]
    if all(_NON_NEGATIVE_INT.fullmatch(t) for t in tokens):
        # "01" と "1" を同一視するため int を経由して文字列化
        indices = sorted(str(int(t)) for t in tokens)
        logger.info(f"using column index dates whitelist: {','.join(indices)}")
        return WhitelistSpec(mode=WhitelistMode.INDEX_SET, tokens=tuple(indices))

    logger.info(f"using date-whitelist: {lowered}")
    return WhitelistSpec(mode=WhitelistMode.PATTERN_SET, tokens=tuple(tokens))


def _in_sorted(tokens: tuple[str, ...], key: str) -> bool:
    i = bisect_left(tokens, key)
    return i < len(tokens) and tokens[i] == key


def _matches_pattern(tokens: tuple[str, ...], header: str) -> bool:
    lowered = header.lower()
    for token in tokens:
        if token in lowered:
            logger.info(f"date-whitelisted: {header}")
            return True
    return False


def classify_columns(spec: WhitelistSpec, header: Sequence[str]) -> tuple[bool, ...]:
    """Build the per-column "treat as date" flags from the header row.

    The result has exactly len(header) entries.
    """
    match spec.mode:
        case WhitelistMode.ALL:
            return tuple(True for _ in header)
        case WhitelistMode.NONE:
            return tuple(False for _ in header)
        case WhitelistMode.INDEX_SET:
            return tuple(_in_sorted(spec.tokens, str(i)) for i in range(len(header)))
        case WhitelistMode.PATTERN_SET:
            return tuple(_matches_pattern(spec.tokens, name) for name in header)
        case _:
            assert_never(spec.mode)
