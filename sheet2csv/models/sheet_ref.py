from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Sheet identifier and resolution models.

The user names a sheet either by its exact name or by a zero-based index
(negative values count from the end). Anything else is kept as UNPARSED and
resolves to the first sheet.
"""

__all__ = [
    "SheetIdentifierKind",
    "SheetIdentifier",
    "SheetResolution",
]


class SheetIdentifierKind(Enum):
    """How a raw --sheet value was interpreted."""
    NAME = "name"
    INDEX = "index"
    UNPARSED = "unparsed"


@dataclass(frozen=True)
class SheetIdentifier:
    raw: str
    kind: SheetIdentifierKind
    index: int | None = None  # kind == INDEX の場合のみ


@dataclass(frozen=True)
class SheetResolution:
    """Outcome of resolving a SheetIdentifier against a workbook's sheet list.

    `fallback` is True when the identifier matched nothing and the first
    sheet was substituted.
    """
    name: str
    position: int
    identifier: SheetIdentifier
    fallback: bool = False
