"""Chunked spreadsheet -> database bulk uploader.

Streams worksheet rows through a row mapper and commits them to a bulk writer
(psycopg2 or SQLAlchemy backend) one fixed-size batch at a time.
"""

from .db.statements import InsertStatement, StatementCatalog
from .db.writers import BulkWriter, DryRunWriter, Psycopg2BulkWriter, SqlAlchemyBulkWriter, select_writer
from .errors import (
    BulkWriteError,
    ConfigurationError,
    MappingError,
    UploadCancelledError,
    UploadError,
    WorkbookLoadError,
)
from .excel.reader import Workbook, load_workbook, write_workbook
from .excel.worksheet import MISSING_ROW, DataFrameWorksheet, Row, Worksheet
from .mapping.mapper import ColumnRowMapper, RowMapper
from .mapping.registry import MapperRegistry, MapperSpec, default_registry
from .models.upload_result import BatchMetrics, UploadResult
from .services.pipeline import BatchUploadPipeline, MapperInstantiation

__version__ = "0.1.0"

__all__ = [
    # pipeline
    "BatchUploadPipeline",
    "MapperInstantiation",
    "BatchMetrics",
    "UploadResult",
    # worksheet / workbook
    "MISSING_ROW",
    "Row",
    "Worksheet",
    "DataFrameWorksheet",
    "Workbook",
    "load_workbook",
    "write_workbook",
    # mapping
    "RowMapper",
    "ColumnRowMapper",
    "MapperRegistry",
    "MapperSpec",
    "default_registry",
    # writers
    "BulkWriter",
    "InsertStatement",
    "StatementCatalog",
    "Psycopg2BulkWriter",
    "SqlAlchemyBulkWriter",
    "DryRunWriter",
    "select_writer",
    # errors
    "UploadError",
    "ConfigurationError",
    "WorkbookLoadError",
    "MappingError",
    "BulkWriteError",
    "UploadCancelledError",
]
