from __future__ import annotations

import pytest

from xlupload.models.upload_result import UploadResult
from xlupload.services.summary import render_summary_line


def _result(**kw) -> UploadResult:
    base = dict(
        operation_id="insertEmployees",
        sheet_name="Employees",
        total_affected_rows=1000,
        rows_read=1000,
        skipped_records=0,
        batches=2,
        elapsed_seconds=2.0,
    )
    base.update(kw)
    return UploadResult(**base)


def test_render_summary_line():
    assert render_summary_line(_result()) == (
        "SUMMARY operation=insertEmployees sheet=Employees rows=1000 read=1000 skipped=0 "
        "batches=2 elapsed_sec=2 throughput_rps=500"
    )


@pytest.mark.parametrize(
    "elapsed,expected_elapsed,expected_rps",
    [
        (0.0, "0", "0"),
        (0.84, "0.84", "1190.476"),
        (0.001234, "0.001234", "810372.771"),
    ],
)
def test_render_number_formatting(elapsed, expected_elapsed, expected_rps):
    line = render_summary_line(_result(elapsed_seconds=elapsed))
    assert f"elapsed_sec={expected_elapsed} " in line
    assert line.endswith(f"throughput_rps={expected_rps}")
