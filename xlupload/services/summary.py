from __future__ import annotations

from ..models.upload_result import UploadResult

"""SUMMARY line rendering.

Format:
SUMMARY operation={op} sheet={sheet} rows={affected} read={read} skipped={skipped}
batches={batches} elapsed_sec={elapsed} throughput_rps={throughput}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: UploadResult) -> str:
    """Render the SUMMARY line for an UploadResult.

    >>> r = UploadResult(operation_id="insertEmp", sheet_name="Sheet1", total_affected_rows=1000,
    ...     rows_read=1000, skipped_records=0, batches=2, elapsed_seconds=2.0)
    >>> render_summary_line(r)
    'SUMMARY operation=insertEmp sheet=Sheet1 rows=1000 read=1000 skipped=0 batches=2 elapsed_sec=2 throughput_rps=500'
    """
    return (
        f"SUMMARY operation={result.operation_id} "
        f"sheet={result.sheet_name} "
        f"rows={result.total_affected_rows} "
        f"read={result.rows_read} "
        f"skipped={result.skipped_records} "
        f"batches={result.batches} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
