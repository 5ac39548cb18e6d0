from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

The CSV goes to stdout, so the bar is drawn on stderr and only when stderr
is a terminal. In non-TTY environments (CI, pipes) it is disabled to avoid
ANSI control sequence spam.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True if stderr is a TTY and progress should be displayed."""
    return sys.stderr.isatty()


class RowProgress:
    """Progress bar over the data rows of one sheet.

    Disabled when stderr is not a TTY or the row count is unknown
    (legacy formats read through pandas).
    """

    def __init__(self, total_rows: int | None, *, description: str = "Exporting rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.enabled = is_tty_enabled() and total_rows is not None
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                file=sys.stderr,
                leave=False,
                ncols=80,
                ascii=True,
                mininterval=1.0,
            )
        else:
            self.pbar = None

    def advance(self, rows: int = 1) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(rows)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
