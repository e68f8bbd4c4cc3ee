from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..mapping.registry import MapperSpec

"""Config dataclasses for the spreadsheet bulk uploader.

Built by xlupload.config.loader from config/upload.yml after schema validation.
"""

__all__ = [
    "DatabaseConfig",
    "UploadConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables (DATABASE_URL / PGDSN / PG*) are not set.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    url: str | None = None  # SQLAlchemy URL for the modern backend


@dataclass(frozen=True)
class UploadConfig:
    """Root configuration for one upload run."""
    source: str  # workbook path
    operation_id: str  # key into operations
    operations: dict[str, dict[str, Any]]  # operation id -> {table, columns}
    mapper: MapperSpec
    sheet: int | str = 0  # sheet index or name
    start_row: int = 0
    commit_count: int = 0  # 0 = one batch with all remaining rows
    backend: str = "legacy"  # legacy (psycopg2) | modern (SQLAlchemy)
    mapper_instantiation: str = "per_batch"  # per_batch | per_call
    page_size: int = 1000  # execute_values page size (legacy backend)
    keep_na_strings: list[str] | None = None
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
