from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..models.sheet_ref import SheetIdentifier, SheetIdentifierKind, SheetResolution

"""Sheet resolution service.

Maps the user supplied --sheet value onto one of the workbook's sheet names:

1. exact (case-sensitive) name match
2. signed integer: zero-based index, negative values count from the end
   (-1 = last sheet); values below -N clamp to the first sheet
3. anything else: first sheet, with a WARN diagnostic
"""

__all__ = [
    "SheetResolutionError",
    "EmptyWorkbookError",
    "SheetIndexOutOfRangeError",
    "parse_sheet_identifier",
    "resolve_sheet",
    "resolve_sheet_name",
]

logger = logging.getLogger(__name__)

_SIGNED_INT = re.compile(r"[+-]?[0-9]+")


class SheetResolutionError(Exception):
    """Base exception for sheet selection failures."""


class EmptyWorkbookError(SheetResolutionError):
    """Raised when the workbook has no sheets to fall back to."""


class SheetIndexOutOfRangeError(SheetResolutionError):
    """Raised when a non-negative index is beyond the last sheet."""


def parse_sheet_identifier(raw: str, names: Sequence[str]) -> SheetIdentifier:
    """Classify a raw sheet value as NAME, INDEX or UNPARSED.

    A value that is both a sheet name and a number (a sheet literally
    called "2") is a NAME.
    """
    if raw in names:
        return SheetIdentifier(raw=raw, kind=SheetIdentifierKind.NAME)
    if _SIGNED_INT.fullmatch(raw):
        return SheetIdentifier(raw=raw, kind=SheetIdentifierKind.INDEX, index=int(raw))
    return SheetIdentifier(raw=raw, kind=SheetIdentifierKind.UNPARSED)


def resolve_sheet(identifier: str, names: Sequence[str]) -> SheetResolution:
    """Resolve `identifier` against the ordered sheet list `names`.

    Raises:
        EmptyWorkbookError: `names` is empty and the identifier is not a name
        SheetIndexOutOfRangeError: non-negative index >= len(names)
    """
    ident = parse_sheet_identifier(identifier, names)
    if ident.kind is SheetIdentifierKind.NAME:
        return SheetResolution(name=identifier, position=list(names).index(identifier), identifier=ident)

    count = len(names)
    if count == 0:
        raise EmptyWorkbookError("workbook has no sheets")

    if ident.kind is SheetIdentifierKind.INDEX and ident.index is not None:
        k = ident.index
        if k >= 0:
            if k >= count:
                raise SheetIndexOutOfRangeError(
                    f"sheet index {k} out of range: workbook has {count} sheet(s)"
                )
            position = k
        else:
            # 末尾から数える。-N より小さい値は先頭シートに丸める
            position = max(0, min(count - 1, count - abs(k)))
        return SheetResolution(name=names[position], position=position, identifier=ident)

    first = names[0]
    logger.warning(f'Invalid sheet "{identifier}". Using the first sheet "{first}" instead.')
    return SheetResolution(name=first, position=0, identifier=ident, fallback=True)


def resolve_sheet_name(identifier: str, names: Sequence[str]) -> str:
    """Convenience wrapper returning only the chosen sheet name."""
    return resolve_sheet(identifier, names).name
