from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2 import sql
from psycopg2.extras import execute_values

"""Batched INSERT through psycopg2.extras.execute_values.

One call sends the whole batch (split into pages of ``page_size`` rows by
execute_values). Table and column names are composed as psycopg2.sql.Identifier,
so quoting and escaping are left to the driver.
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def build_insert_sql(table: str, columns: Sequence[str]) -> sql.Composed:
    # "schema.table" -> two identifiers
    return sql.SQL("INSERT INTO {} ({}) VALUES %s").format(
        sql.Identifier(*table.split(".")),
        sql.SQL(",").join(sql.Identifier(c) for c in columns),
    )


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
) -> InsertResult:
    """Perform a batched INSERT.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table name
    columns: insert columns, in the order of each row's values
    rows: row value sequences
    page_size: execute_values page size (rows per generated statement)
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    query = build_insert_sql(table, columns)
    try:
        execute_values(cursor, query, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e

    # cursor.rowcount only reflects the last page, so count the rows sent
    return InsertResult(inserted_rows=len(rows_list))
