from __future__ import annotations

import pytest
from psycopg2 import sql

from xlupload.db.batch_insert import BatchInsertError, InsertResult, batch_insert, build_insert_sql


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[sql.Composed] = []
        self.rows: list[list] = []
        self.page_sizes: list[int] = []


# execute_values is patched inside the module so no database is needed


@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import xlupload.db.batch_insert as bi

    def fake_execute_values(cursor, query, rows, page_size=100):
        cursor.queries.append(query)
        cursor.rows.append(list(rows))
        cursor.page_sizes.append(page_size)

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def _render(query) -> str:
    # connection-free rendering; identifiers shown as <part>
    if isinstance(query, sql.Composed):
        return "".join(_render(part) for part in query.seq)
    if isinstance(query, sql.Identifier):
        return ".".join(f"<{s}>" for s in query.strings)
    return query.string


def test_build_insert_sql_uses_identifiers():
    query = build_insert_sql("hr.employees", ["emp_no", "name"])
    assert isinstance(query, sql.Composed)
    assert _render(query) == "INSERT INTO <hr>.<employees> (<emp_no>,<name>) VALUES %s"


def test_build_insert_sql_leaves_quotes_to_the_driver():
    query = build_insert_sql("employees", ['full "name"', "dept"])
    assert _render(query) == 'INSERT INTO <employees> (<full "name">,<dept>) VALUES %s'


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="employees", columns=["id", "name"], rows=[[1, "Alice"], [2, "Bob"]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert [_render(q) for q in cur.queries] == ["INSERT INTO <employees> (<id>,<name>) VALUES %s"]
    assert cur.page_sizes == [1000]


def test_batch_insert_page_size_passed_through():
    cur = DummyCursor()
    batch_insert(cur, table="t", columns=["c"], rows=[[1], [2], [3]], page_size=2)
    assert cur.page_sizes == [2]


def test_batch_insert_empty_rows_skips_round_trip():
    cur = DummyCursor()
    res = batch_insert(cur, table="employees", columns=["id"], rows=[])
    assert res.inserted_rows == 0
    assert cur.queries == []


def test_batch_insert_wraps_driver_errors(monkeypatch):
    import xlupload.db.batch_insert as bi

    def boom(cursor, query, rows, page_size=100):
        raise RuntimeError("relation does not exist")

    monkeypatch.setattr(bi, "execute_values", boom)
    with pytest.raises(BatchInsertError, match="relation does not exist"):
        batch_insert(DummyCursor(), table="t", columns=["c"], rows=[[1]])
