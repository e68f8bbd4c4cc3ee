from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Union

from ..db.writers import BulkWriter
from ..errors import ConfigurationError, MappingError, UploadCancelledError
from ..excel.reader import WorkbookSource, load_workbook
from ..excel.worksheet import Worksheet
from ..mapping.mapper import RowMapper
from ..mapping.registry import MapperRegistry, MapperSpec, default_registry
from ..models.upload_result import BatchMetrics, BatchStatsAccumulator, UploadResult
from .progress import ProgressTracker

"""Chunked upload pipeline.

Rows [start_row, physical_row_count) are read in batches of ``commit_count`` rows
(0 = one batch with every remaining row). Each row goes through the row mapper;
each batch is handed to the bulk writer in a single call, and the writer results
are summed. Only one batch of mapped records is held in memory at a time.

Failure policy (fail fast, no automatic resubmission):
- mapper cannot be resolved -> ConfigurationError before any row is read
- a row cannot be mapped -> MappingError; the in-progress batch is never written
- the writer raises -> the exception propagates unchanged; later batches are not attempted
Batches written before a failure stay committed. Resume by passing the last
BatchMetrics.end_row (see on_batch) as start_row.
"""

__all__ = [
    "MapperInstantiation",
    "MapperSource",
    "BatchUploadPipeline",
]

logger = logging.getLogger(__name__)

MapperSource = Union[RowMapper, MapperSpec]
BatchCallback = Callable[[BatchMetrics], None]


class MapperInstantiation(Enum):
    """When the mapper is (re-)resolved.

    PER_BATCH: once per batch, so mappers built from a type identifier start each
        batch with fresh state
    PER_CALL: once per upload call
    """
    PER_BATCH = "per_batch"
    PER_CALL = "per_call"


class BatchUploadPipeline:
    """Upload worksheet rows to a bulk writer in fixed-size batches.

    Instances hold configuration only; concurrent upload calls on separate threads
    are safe as long as shared named mapper instances are stateless or synchronized.
    """

    def __init__(
        self,
        writer: BulkWriter,
        mapper: MapperSource,
        *,
        registry: MapperRegistry | None = None,
        instantiation: MapperInstantiation | str = MapperInstantiation.PER_BATCH,
        show_progress: bool = True,
    ) -> None:
        if writer is None:
            raise ConfigurationError("no bulk writer backend configured")
        if mapper is None:
            raise ConfigurationError("no row mapper configured")
        self.writer = writer
        self.mapper_source = mapper
        self.registry = registry if registry is not None else default_registry()
        try:
            self.instantiation = MapperInstantiation(instantiation)
        except ValueError as e:
            raise ConfigurationError(f"invalid mapper instantiation policy: {instantiation!r}") from e
        self.show_progress = show_progress

    def upload(
        self,
        operation_id: str,
        worksheet: Worksheet,
        start_row: int = 0,
        commit_count: int = 0,
        *,
        on_batch: BatchCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> int:
        """Upload a worksheet and return the total affected row count."""
        result = self.execute(
            operation_id, worksheet, start_row, commit_count, on_batch=on_batch, cancel=cancel
        )
        return result.total_affected_rows

    def upload_workbook(
        self,
        operation_id: str,
        source: WorkbookSource,
        sheet: int | str = 0,
        start_row: int = 0,
        commit_count: int = 0,
        *,
        keep_na_strings: list[str] | None = None,
        on_batch: BatchCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> int:
        """Open a workbook (path or binary stream), select a sheet by index or name and upload it."""
        result = self.execute_workbook(
            operation_id,
            source,
            sheet,
            start_row,
            commit_count,
            keep_na_strings=keep_na_strings,
            on_batch=on_batch,
            cancel=cancel,
        )
        return result.total_affected_rows

    def execute_workbook(
        self,
        operation_id: str,
        source: WorkbookSource,
        sheet: int | str = 0,
        start_row: int = 0,
        commit_count: int = 0,
        *,
        keep_na_strings: list[str] | None = None,
        on_batch: BatchCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> UploadResult:
        with load_workbook(source, keep_na_strings=keep_na_strings) as workbook:
            worksheet = workbook.sheet(sheet)
            return self.execute(
                operation_id, worksheet, start_row, commit_count, on_batch=on_batch, cancel=cancel
            )

    def execute(
        self,
        operation_id: str,
        worksheet: Worksheet,
        start_row: int = 0,
        commit_count: int = 0,
        *,
        on_batch: BatchCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> UploadResult:
        """Run the batch loop and return the detailed UploadResult.

        Args:
            operation_id: bulk-write operation understood by the writer
            worksheet: sheet to read
            start_row: first zero-based row to upload
            commit_count: rows per batch; 0 puts all remaining rows in one batch
            on_batch: called with BatchMetrics after each committed batch
            cancel: checked before each batch; when set, UploadCancelledError is raised

        Raises:
            ConfigurationError, MappingError, UploadCancelledError, or whatever the
            writer raised (BulkWriteError for the bundled backends)
        """
        if not operation_id:
            raise ConfigurationError("operation id is required")
        if start_row < 0:
            raise ConfigurationError(f"start_row must be >= 0 (got {start_row})")
        if commit_count < 0:
            raise ConfigurationError(f"commit_count must be >= 0 (got {commit_count})")

        mapper = self._resolve_mapper()
        row_count = worksheet.physical_row_count()
        batch_size = commit_count if commit_count > 0 else row_count
        sheet_name = getattr(worksheet, "name", "")
        logger.debug(
            "upload start op=%s sheet=%s physical_rows=%d start_row=%d batch_size=%d mapper=%s",
            operation_id,
            sheet_name,
            row_count,
            start_row,
            batch_size,
            self.instantiation.value,
        )

        total = 0
        skipped = 0
        batches = 0
        stats = BatchStatsAccumulator()
        started = time.perf_counter()
        idx = start_row

        with ProgressTracker(
            max(row_count - start_row, 0), description=f"Uploading {sheet_name}", enabled=self.show_progress
        ) as progress:
            while idx < row_count:
                if cancel is not None and cancel.is_set():
                    raise UploadCancelledError(committed_rows=total, next_row=idx)
                if batches > 0 and self.instantiation is MapperInstantiation.PER_BATCH:
                    mapper = self._resolve_mapper()

                end = min(idx + batch_size, row_count)
                batch: list[Any] = []
                for i in range(idx, end):
                    record = self._map_row(mapper, worksheet, i, total)
                    if record is None:
                        skipped += 1
                        continue
                    batch.append(record)

                batch_started = time.perf_counter()
                try:
                    affected = self.writer.bulk_insert(operation_id, batch)
                except Exception:
                    logger.error(
                        "bulk insert failed op=%s rows=%d-%d committed_rows=%d (resume at start_row=%d)",
                        operation_id,
                        idx,
                        end - 1,
                        total,
                        idx,
                    )
                    raise
                batch_elapsed = time.perf_counter() - batch_started
                total += affected
                stats.add_batch_time(batch_elapsed)

                metrics = BatchMetrics(
                    batch_index=batches,
                    start_row=idx,
                    end_row=end,
                    records=len(batch),
                    affected_rows=affected,
                    total_affected_rows=total,
                    elapsed_seconds=batch_elapsed,
                )
                batches += 1
                logger.debug(
                    "batch=%d rows=%d-%d records=%d affected=%d total=%d elapsed=%.3fs",
                    metrics.batch_index,
                    idx,
                    end - 1,
                    len(batch),
                    affected,
                    total,
                    batch_elapsed,
                )
                if on_batch is not None:
                    on_batch(metrics)
                progress.advance(end - idx)
                progress.set_postfix(rows=total, batches=batches)
                idx = end

        elapsed = time.perf_counter() - started
        _, avg_batch, p95_batch = stats.get_stats()
        logger.info(
            "upload done op=%s sheet=%s affected_rows=%d batches=%d skipped=%d elapsed=%.3fs",
            operation_id,
            sheet_name,
            total,
            batches,
            skipped,
            elapsed,
        )
        return UploadResult(
            operation_id=operation_id,
            sheet_name=sheet_name,
            total_affected_rows=total,
            rows_read=max(row_count - start_row, 0),
            skipped_records=skipped,
            batches=batches,
            elapsed_seconds=elapsed,
            avg_batch_seconds=avg_batch,
            p95_batch_seconds=p95_batch,
        )

    def _resolve_mapper(self) -> RowMapper:
        if isinstance(self.mapper_source, MapperSpec):
            return self.registry.resolve(self.mapper_source)
        return self.mapper_source

    @staticmethod
    def _map_row(mapper: RowMapper, worksheet: Worksheet, index: int, committed: int) -> Any:
        row = worksheet.row_at(index)
        try:
            return mapper.map_row(row)
        except Exception as e:
            raise MappingError(f"row {index}: {e}", row_index=index, committed_rows=committed) from e
