from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for decode error logging.

A cell whose serial cannot be turned into a calendar value does not stop the
export; the field carries an inline error string instead. When an error log
directory is configured, each such cell is also recorded as one JSON line so
it can be found without scanning the CSV output.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook filename being exported
        sheet: Sheet name within the workbook
        row: Zero-based row index within the sheet (0 is the header)
        column: Zero-based column index
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Inline error text that was written to the field
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    column: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, column: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            column=column,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (fixed key set)."""
        return json.dumps(asdict(self), ensure_ascii=False)
