"""Domain models for the spreadsheet bulk uploader."""

from .config_models import DatabaseConfig, UploadConfig
from .error_record import ErrorRecord
from .upload_result import BatchMetrics, BatchStatsAccumulator, UploadResult

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "UploadConfig",
    # Result models
    "BatchMetrics",
    "BatchStatsAccumulator",
    "UploadResult",
    "ErrorRecord",
]
