from __future__ import annotations

import re
from collections.abc import Sequence

"""Record assembly: transcoded fields -> output record."""

__all__ = [
    "assemble_record",
]

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")


def _trim_field(field: str) -> str:
    field = field.strip()
    # 改行は削除せず空白に置換 (単語が連結しないように)
    if "\n" in field or "\r" in field:
        field = _LINE_BREAKS.sub(" ", field)
    return field


def assemble_record(fields: Sequence[str], trim: bool) -> list[str]:
    """Build one output record.

    With trim=True every field is stripped and each embedded line break
    becomes a single space: " a\\nb " -> "a b".
    """
    if not trim:
        return list(fields)
    return [_trim_field(f) for f in fields]
