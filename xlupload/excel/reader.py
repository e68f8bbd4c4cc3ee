from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Any, Union

import pandas as pd

from ..errors import ConfigurationError, WorkbookLoadError
from .worksheet import DataFrameWorksheet

"""Workbook loading (thin I/O boundary around pandas / openpyxl).

- load_workbook(path | stream) opens a workbook; sheets are parsed lazily, one at a time
- every low-level failure (missing file, corrupt zip, unknown format) surfaces as WorkbookLoadError
- sheets are read without a header row so physical row indices match the file
- cells keep the Python type openpyxl produced (int stays int even next to floats or blanks)
- write_workbook() creates a workbook file (parent directories are created as needed)
"""

__all__ = [
    "Workbook",
    "WorkbookSource",
    "load_workbook",
    "write_workbook",
]

WorkbookSource = Union[str, Path, IO[bytes]]


def _na_options(keep_na_strings: list[str] | None) -> tuple[list[str] | None, bool]:
    # pandas._libs.parsers.STR_NA_VALUES holds the default NA strings ("NA", "N/A", ...)
    if not keep_na_strings:
        return None, True
    import pandas._libs.parsers as parsers

    custom_na = parsers.STR_NA_VALUES.copy() - set(keep_na_strings)
    return list(custom_na), False


def _describe(source: WorkbookSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", None) or "<stream>"


class Workbook:
    """Opened workbook exposing its sheets as Worksheets.

    Parsed sheets are cached by name; use as a context manager (or call close())
    to release the underlying file handle.
    """

    def __init__(self, excel_file: pd.ExcelFile, source_name: str, keep_na_strings: list[str] | None = None) -> None:
        self._xls = excel_file
        self.source_name = source_name
        self._na_values, self._keep_default_na = _na_options(keep_na_strings)
        self._cache: dict[str, DataFrameWorksheet] = {}

    @property
    def sheet_names(self) -> list[str]:
        return [str(n) for n in self._xls.sheet_names]

    def sheet_at(self, index: int) -> DataFrameWorksheet:
        names = self.sheet_names
        if index < 0 or index >= len(names):
            raise ConfigurationError(
                f"sheet index {index} out of range for '{self.source_name}' ({len(names)} sheets)"
            )
        return self._parse(names[index])

    def sheet_by_name(self, name: str) -> DataFrameWorksheet:
        if name not in self.sheet_names:
            raise ConfigurationError(f"sheet '{name}' not found in '{self.source_name}'")
        return self._parse(name)

    def sheet(self, selector: int | str) -> DataFrameWorksheet:
        if isinstance(selector, str):
            return self.sheet_by_name(selector)
        return self.sheet_at(selector)

    def _parse(self, name: str) -> DataFrameWorksheet:
        if name in self._cache:
            return self._cache[name]
        try:
            df = self._xls.parse(
                name,
                header=None,
                dtype=object,
                keep_default_na=self._keep_default_na,
                na_values=self._na_values,
            )
        except Exception as e:
            raise WorkbookLoadError(f"failed reading sheet '{name}' from '{self.source_name}': {e}") from e
        ws = DataFrameWorksheet(df, name=name)
        self._cache[name] = ws
        return ws

    def close(self) -> None:
        self._xls.close()

    def __enter__(self) -> Workbook:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def load_workbook(source: WorkbookSource, keep_na_strings: list[str] | None = None) -> Workbook:
    """Open an Excel workbook from a file path or a binary stream.

    Parameters
    ----------
    source: path to a .xlsx/.xls file, or a readable binary stream
    keep_na_strings: strings excluded from pandas' default NaN conversion (e.g. ['NA'])

    Raises
    ------
    WorkbookLoadError: the source cannot be opened or is not a workbook
    """
    name = _describe(source)
    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise WorkbookLoadError(f"workbook not found: {name}")
    try:
        xls = pd.ExcelFile(source)
    except Exception as e:
        raise WorkbookLoadError(f"failed opening workbook '{name}': {e}") from e
    return Workbook(xls, name, keep_na_strings=keep_na_strings)


def write_workbook(sheets: Mapping[str, pd.DataFrame | Sequence[Sequence[Any]]], path: str | Path) -> Path:
    """Write sheets (DataFrames or row lists) to a new .xlsx file without header/index."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(target, engine="openpyxl") as writer:
            for sheet_name, data in sheets.items():
                df = data if isinstance(data, pd.DataFrame) else pd.DataFrame(list(data))
                df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    except OSError as e:
        raise WorkbookLoadError(f"failed writing workbook '{target}': {e}") from e
    return target
