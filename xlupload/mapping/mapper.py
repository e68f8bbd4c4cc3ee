from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from ..errors import MappingError
from ..excel.worksheet import MISSING_ROW, RowLike

"""Row mapper contract and the built-in column mapper.

A RowMapper converts one worksheet row to one record. Records are opaque to the
pipeline; a mapper returning None asks the pipeline to leave that row out of
the batch. Mappers may keep batch-scoped state: the pipeline can create a new
instance per batch (see MapperInstantiation).

Mappers registered as shared named instances are used concurrently when uploads
run on several threads, so they must be stateless or synchronize internally.
"""

__all__ = [
    "RowMapper",
    "ColumnRowMapper",
]


@runtime_checkable
class RowMapper(Protocol):
    def map_row(self, row: RowLike) -> Any:
        ...


class ColumnRowMapper:
    """Map cells positionally onto column names, producing a dict per row.

    - blank cell -> default_values[column] if given, else None
    - string cell whose stripped upper-case form is in null_sentinels -> None
    - blank (whitespace-only) string with a default -> default
    - MISSING_ROW -> MappingError, or None when skip_missing=True
    - cells beyond len(columns) are ignored
    """

    def __init__(
        self,
        columns: Sequence[str],
        default_values: dict[str, Any] | None = None,
        null_sentinels: set[str] | None = None,
        skip_missing: bool = False,
    ) -> None:
        if not columns:
            raise ValueError("ColumnRowMapper requires at least one column")
        self.columns = list(columns)
        self.default_values = dict(default_values or {})
        self.null_sentinels = {s.strip().upper() for s in (null_sentinels or set())}
        self.skip_missing = skip_missing

    def map_row(self, row: RowLike) -> dict[str, Any] | None:
        if row is MISSING_ROW:
            if self.skip_missing:
                return None
            raise MappingError("missing row")
        record: dict[str, Any] = {}
        for pos, col in enumerate(self.columns):
            record[col] = self._convert(col, row.value(pos))  # type: ignore[union-attr]
        return record

    def _convert(self, column: str, value: Any) -> Any:
        if value is None:
            return self.default_values.get(column)
        if isinstance(value, str):
            stripped = value.strip()
            if self.null_sentinels and stripped.upper() in self.null_sentinels:
                return None
            if stripped == "" and column in self.default_values:
                return self.default_values[column]
        return value

    def __repr__(self) -> str:
        return f"ColumnRowMapper(columns={self.columns!r})"
