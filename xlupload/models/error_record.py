from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

row is the zero-based worksheet row; -1 when the failure is not tied to a row
(workbook load errors, configuration errors, write errors of a whole batch).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: workbook file name (or "<stream>")
        sheet: sheet name, empty when not resolved yet
        operation_id: bulk-write operation id
        row: worksheet row, -1 if unknown
        error_type: UPPER_SNAKE_CASE classification
        message: error description
        committed_rows: affected rows committed before the failure
    """
    timestamp: str
    source: str
    sheet: str
    operation_id: str
    row: int
    error_type: str
    message: str
    committed_rows: int = 0

    @staticmethod
    def create(
        source: str,
        sheet: str,
        operation_id: str,
        row: int,
        error_type: str,
        message: str,
        committed_rows: int = 0,
    ) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            sheet=sheet,
            operation_id=operation_id,
            row=row,
            error_type=error_type,
            message=message,
            committed_rows=committed_rows,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, default=str)
