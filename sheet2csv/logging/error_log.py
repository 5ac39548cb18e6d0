from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Decode error log buffering.

- JSON Lines, fixed key set (see ErrorRecord)
- one file per run: `<dir>/errors-YYYYMMDD-HHMMSS.log` (UTC), created lazily
- records are buffered and appended to the file on flush(); the buffer
  flushes itself once it holds `flush_threshold` records
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "DEFAULT_FLUSH_THRESHOLD",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"
DEFAULT_FLUSH_THRESHOLD = 100


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush appends JSON Lines.

    The file path is fixed on first access; nothing is written to disk while
    the buffer has never held a record. At most `flush_threshold` records
    are held in memory.
    """
    def __init__(self, logs_dir: Path, *, flush_threshold: int = DEFAULT_FLUSH_THRESHOLD) -> None:
        if flush_threshold < 1:
            raise ValueError("flush_threshold must be >= 1")
        self.logs_dir = logs_dir
        self.flush_threshold = flush_threshold
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)
        if len(self._records) >= self.flush_threshold:
            self.flush()

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
