from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import psycopg2
from sqlalchemy import column, insert, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import BulkWriteError, ConfigurationError
from .batch_insert import BatchInsertError, batch_insert
from .statements import StatementCatalog, record_params, record_values

"""Bulk writer backends.

Contract: ``bulk_insert(operation_id, batch) -> affected_row_count``, one database
round trip (and one commit) per batch. Two generations of persistence layer
implement it:

- legacy: raw psycopg2 connection + execute_values (Psycopg2BulkWriter)
- modern: SQLAlchemy engine + Core insert() executemany (SqlAlchemyBulkWriter)

Failures are raised as BulkWriteError after rolling the batch back; nothing is
retried here.
"""

__all__ = [
    "BulkWriter",
    "Psycopg2BulkWriter",
    "SqlAlchemyBulkWriter",
    "DryRunWriter",
    "select_writer",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class BulkWriter(Protocol):
    def bulk_insert(self, operation_id: str, batch: Sequence[Any]) -> int:
        ...


class Psycopg2BulkWriter:
    """Legacy backend: psycopg2 connection, one execute_values call + commit per batch."""

    backend = "legacy"

    def __init__(self, connection: Any, catalog: StatementCatalog, page_size: int = 1000) -> None:
        self.connection = connection
        self.catalog = catalog
        self.page_size = page_size

    def bulk_insert(self, operation_id: str, batch: Sequence[Any]) -> int:
        stmt = self.catalog.get(operation_id)
        if not batch:
            return 0
        rows = [record_values(r, stmt.columns) for r in batch]
        try:
            with self.connection.cursor() as cur:
                result = batch_insert(cur, stmt.table, stmt.columns, rows, page_size=self.page_size)
            self.connection.commit()
        except (BatchInsertError, psycopg2.Error) as e:
            self._rollback()
            raise BulkWriteError(f"operation '{operation_id}' failed on {stmt.table}: {e}") from e
        logger.debug("legacy bulk_insert op=%s table=%s rows=%d", operation_id, stmt.table, result.inserted_rows)
        return result.inserted_rows

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        except psycopg2.Error:
            logger.warning("rollback failed after bulk insert error", exc_info=True)


class SqlAlchemyBulkWriter:
    """Modern backend: SQLAlchemy Core insert() executed with a parameter list."""

    backend = "modern"

    def __init__(self, engine: Engine, catalog: StatementCatalog) -> None:
        self.engine = engine
        self.catalog = catalog

    def bulk_insert(self, operation_id: str, batch: Sequence[Any]) -> int:
        stmt = self.catalog.get(operation_id)
        if not batch:
            return 0
        schema, name = stmt.schema_and_name
        target = table(name, *(column(c) for c in stmt.columns), schema=schema)
        params = [record_params(r, stmt.columns) for r in batch]
        try:
            # engine.begin() commits on exit, rolls back on error
            with self.engine.begin() as conn:
                result = conn.execute(insert(target), params)
        except SQLAlchemyError as e:
            raise BulkWriteError(f"operation '{operation_id}' failed on {stmt.table}: {e}") from e
        affected = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else len(params)
        logger.debug("modern bulk_insert op=%s table=%s rows=%d", operation_id, stmt.table, affected)
        return affected


class DryRunWriter:
    """Writer that touches no database; reports every record as affected."""

    backend = "dry-run"

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    def bulk_insert(self, operation_id: str, batch: Sequence[Any]) -> int:
        self.calls.append((operation_id, len(batch)))
        return len(batch)


def select_writer(modern: BulkWriter | None = None, legacy: BulkWriter | None = None) -> BulkWriter:
    """Pick the active backend: modern when configured, else legacy.

    Raises:
        ConfigurationError: neither backend is configured
    """
    if modern is not None:
        if legacy is not None:
            logger.debug("both writer backends configured; using modern")
        return modern
    if legacy is not None:
        return legacy
    raise ConfigurationError("no bulk writer backend configured")
