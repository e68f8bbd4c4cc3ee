from __future__ import annotations

"""Exception hierarchy for the spreadsheet bulk uploader.

Each failure kind of an upload has its own class so callers can react to it
without parsing messages:

- ConfigurationError: no mapper / no writer / invalid arguments (raised before any row is read)
- WorkbookLoadError: file or stream could not be opened as a workbook
- MappingError: a row could not be converted to a record (aborts the whole upload)
- BulkWriteError: the backend rejected a batch (propagated as-is, never retried)
- UploadCancelledError: cancellation observed between two batches
"""

__all__ = [
    "UploadError",
    "ConfigurationError",
    "WorkbookLoadError",
    "MappingError",
    "BulkWriteError",
    "UploadCancelledError",
]


class UploadError(Exception):
    """Base class for all errors raised by xlupload."""


class ConfigurationError(UploadError):
    pass


class WorkbookLoadError(UploadError):
    pass


class MappingError(UploadError):
    """Raised when a worksheet row cannot be mapped to a record.

    Attributes:
        row_index: zero-based worksheet row that failed (-1 if unknown)
        committed_rows: affected rows already committed by earlier batches
    """

    def __init__(self, message: str, row_index: int = -1, committed_rows: int = 0) -> None:
        super().__init__(message)
        self.row_index = row_index
        self.committed_rows = committed_rows


class BulkWriteError(UploadError):
    pass


class UploadCancelledError(UploadError):
    def __init__(self, committed_rows: int, next_row: int) -> None:
        super().__init__(f"upload cancelled at row {next_row} (committed_rows={committed_rows})")
        self.committed_rows = committed_rows
        self.next_row = next_row
