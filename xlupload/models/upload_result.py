from __future__ import annotations

import statistics
from dataclasses import dataclass

"""Upload result models.

BatchMetrics is emitted once per committed batch (on_batch callback) and doubles
as the resume checkpoint after a failure: ``end_row`` of the last metrics seen is
the next ``start_row`` to use.
"""

__all__ = [
    "BatchMetrics",
    "UploadResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics for a single committed batch."""
    batch_index: int  # 0-based batch number within the upload
    start_row: int  # first worksheet row of the batch (inclusive)
    end_row: int  # row where the batch stopped (exclusive)
    records: int  # records submitted (rows minus mapper skips)
    affected_rows: int  # writer result for this batch
    total_affected_rows: int  # running total including this batch
    elapsed_seconds: float  # time spent in the writer call


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload call."""
    operation_id: str
    sheet_name: str
    total_affected_rows: int  # sum of all writer results
    rows_read: int  # worksheet rows visited (end - start_row)
    skipped_records: int  # rows the mapper explicitly skipped (returned None)
    batches: int
    elapsed_seconds: float
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0

    @property
    def throughput_rows_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_affected_rows / self.elapsed_seconds


class BatchStatsAccumulator:
    """Collect per-batch writer timings and summarize them."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)
        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 19th of 20 cut points
            p95_batch_seconds = statistics.quantiles(self.batch_times, n=20, method="inclusive")[18]
        return (total_batches, avg_batch_seconds, p95_batch_seconds)
