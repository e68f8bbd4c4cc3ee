from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

import numpy as np
import pandas as pd

"""Worksheet abstraction consumed by the upload pipeline.

A worksheet exposes a physical row count and indexed row lookup. Rows are
addressed zero-based. A physical row whose cells are all blank is reported as
``MISSING_ROW`` instead of a Row so that sparse sheets can be detected by the
row mapper (the pipeline itself never skips indices).
"""

__all__ = [
    "MISSING_ROW",
    "Row",
    "RowLike",
    "Worksheet",
    "DataFrameWorksheet",
]


class _MissingRow:
    _instance: _MissingRow | None = None

    def __new__(cls) -> _MissingRow:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING_ROW"


MISSING_ROW = _MissingRow()


@dataclass(frozen=True)
class Row:
    """One physical worksheet row.

    ``cells`` holds the cell values in column order; blank cells are None.
    """
    index: int  # zero-based physical row index
    cells: tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, column: int) -> Any:
        return self.cells[column]

    def value(self, column: int, default: Any = None) -> Any:
        if 0 <= column < len(self.cells):
            value = self.cells[column]
            return default if value is None else value
        return default


RowLike = Union[Row, _MissingRow]


def _cell_value(value: Any) -> Any:
    # numpy scalars (int64, float64, bool_) are not adaptable by database drivers
    if pd.isna(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


@runtime_checkable
class Worksheet(Protocol):
    name: str

    def physical_row_count(self) -> int:
        ...

    def row_at(self, index: int) -> RowLike:
        ...


class DataFrameWorksheet:
    """Worksheet backed by a raw (header-less) pandas DataFrame."""

    def __init__(self, frame: pd.DataFrame, name: str = "Sheet1") -> None:
        self._frame = frame
        self.name = name

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any] | None], name: str = "Sheet1") -> DataFrameWorksheet:
        """Build a worksheet from plain lists; a None entry becomes a blank row."""
        width = max((len(r) for r in rows if r is not None), default=0)
        data = [list(r) if r is not None else [None] * width for r in rows]
        return cls(pd.DataFrame(data, dtype=object), name=name)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    def physical_row_count(self) -> int:
        return int(self._frame.shape[0])

    def row_at(self, index: int) -> RowLike:
        if index < 0 or index >= self.physical_row_count():
            raise IndexError(f"row {index} out of range for sheet '{self.name}'")
        raw = self._frame.iloc[index]
        if raw.isna().all():
            return MISSING_ROW
        cells = tuple(_cell_value(v) for v in raw.tolist())
        return Row(index=index, cells=cells)

    def __repr__(self) -> str:
        return f"DataFrameWorksheet(name={self.name!r}, rows={self.physical_row_count()})"
