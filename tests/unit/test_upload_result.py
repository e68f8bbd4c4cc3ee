from __future__ import annotations

import pytest

from xlupload.models.upload_result import BatchStatsAccumulator, UploadResult


def test_accumulator_empty():
    assert BatchStatsAccumulator().get_stats() == (0, 0.0, 0.0)


def test_accumulator_single_batch():
    acc = BatchStatsAccumulator()
    acc.add_batch_time(0.5)
    assert acc.get_stats() == (1, 0.5, 0.5)


def test_accumulator_p95():
    acc = BatchStatsAccumulator()
    for t in range(1, 21):
        acc.add_batch_time(float(t))
    total, avg, p95 = acc.get_stats()
    assert total == 20
    assert avg == pytest.approx(10.5)
    assert 19.0 <= p95 <= 20.0


def test_throughput():
    r = UploadResult("op", "S", total_affected_rows=300, rows_read=300, skipped_records=0, batches=3, elapsed_seconds=1.5)
    assert r.throughput_rows_per_sec == pytest.approx(200.0)
    zero = UploadResult("op", "S", 0, 0, 0, 0, 0.0)
    assert zero.throughput_rows_per_sec == 0.0
