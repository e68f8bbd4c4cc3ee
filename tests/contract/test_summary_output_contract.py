from __future__ import annotations

import re

from xlupload.models.upload_result import UploadResult
from xlupload.services.summary import render_summary_line

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+operation=(\S+)\s+sheet=(\S*)\s+rows=([0-9]+)\s+read=([0-9]+)\s+"
    r"skipped=([0-9]+)\s+batches=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+"
    r"throughput_rps=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY operation=insertEmployees sheet=Employees rows=11 read=11 skipped=0 "
        "batches=3 elapsed_sec=0.84 throughput_rps=13.095"
    )
    assert SUMMARY_PATTERN.match(line)


def test_rendered_line_matches_contract():
    result = UploadResult(
        operation_id="insertEmployees",
        sheet_name="Employees",
        total_affected_rows=10,
        rows_read=12,
        skipped_records=2,
        batches=3,
        elapsed_seconds=0.123456,
    )
    m = SUMMARY_PATTERN.match(render_summary_line(result))
    assert m
    assert m.group(1) == "insertEmployees"
    assert m.group(3) == "10"
    assert m.group(5) == "2"
