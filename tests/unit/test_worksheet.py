from __future__ import annotations

import pandas as pd
import pytest

from xlupload.excel.worksheet import MISSING_ROW, DataFrameWorksheet, Row, Worksheet


def test_row_at_returns_cells_with_none_for_blanks():
    ws = DataFrameWorksheet(pd.DataFrame([["a", None, 3], ["b", "x", None]]), name="S")
    row = ws.row_at(0)
    assert isinstance(row, Row)
    assert row.index == 0
    assert row.cells == ("a", None, 3.0)
    assert row.value(1, default="dflt") == "dflt"
    assert row.value(9) is None
    assert len(row) == 3
    assert row[0] == "a"


def test_blank_row_is_missing_marker():
    ws = DataFrameWorksheet.from_rows([[1, "a"], None, [3, "c"]])
    assert ws.physical_row_count() == 3
    assert ws.row_at(1) is MISSING_ROW
    assert not MISSING_ROW
    assert repr(MISSING_ROW) == "MISSING_ROW"


def test_row_at_out_of_range():
    ws = DataFrameWorksheet.from_rows([[1]])
    with pytest.raises(IndexError):
        ws.row_at(1)
    with pytest.raises(IndexError):
        ws.row_at(-1)


def test_empty_worksheet():
    ws = DataFrameWorksheet.from_rows([])
    assert ws.physical_row_count() == 0


def test_dataframe_worksheet_satisfies_protocol():
    assert isinstance(DataFrameWorksheet.from_rows([[1]]), Worksheet)


def test_numpy_scalars_are_unwrapped():
    frame = pd.DataFrame({"n": [1, 2], "s": ["a", "b"], "f": [0.5, 1.5]})
    cells = DataFrameWorksheet(frame).row_at(1).cells
    assert cells == (2, "b", 1.5)
    assert [type(c) for c in cells] == [int, str, float]


def test_from_rows_keeps_ints_next_to_floats():
    ws = DataFrameWorksheet.from_rows([[1, 2.5], [None, 3.5]])
    cells = ws.row_at(0).cells
    assert type(cells[0]) is int
    assert ws.row_at(1).cells == (None, 3.5)
