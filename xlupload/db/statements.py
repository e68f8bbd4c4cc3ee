from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..errors import BulkWriteError, ConfigurationError

"""Operation catalog: operation id -> INSERT target.

An operation id names a bulk-write statement (table + ordered columns). Both
writer backends look the statement up here, so the pipeline only ever deals
with operation ids.
"""

__all__ = [
    "InsertStatement",
    "StatementCatalog",
    "record_params",
    "record_values",
]


@dataclass(frozen=True)
class InsertStatement:
    table: str  # optionally schema-qualified ("schema.table")
    columns: tuple[str, ...]

    @property
    def schema_and_name(self) -> tuple[str | None, str]:
        if "." in self.table:
            schema, name = self.table.split(".", 1)
            return schema, name
        return None, self.table


class StatementCatalog:
    def __init__(self, statements: Mapping[str, InsertStatement] | None = None) -> None:
        self._statements: dict[str, InsertStatement] = dict(statements or {})

    @classmethod
    def from_config(cls, operations: Mapping[str, Mapping[str, Any]]) -> StatementCatalog:
        """Build from the ``operations`` config section ({id: {table, columns}})."""
        return cls(
            {
                op_id: InsertStatement(table=op["table"], columns=tuple(op["columns"]))
                for op_id, op in operations.items()
            }
        )

    def add(self, operation_id: str, statement: InsertStatement) -> None:
        self._statements[operation_id] = statement

    def get(self, operation_id: str) -> InsertStatement:
        try:
            return self._statements[operation_id]
        except KeyError:
            raise ConfigurationError(f"unknown operation id '{operation_id}'") from None

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._statements

    def __len__(self) -> int:
        return len(self._statements)


def record_params(record: Any, columns: Sequence[str]) -> dict[str, Any]:
    """Convert a record (mapping, dataclass or positional sequence) to column -> value."""
    if isinstance(record, Mapping):
        return {c: record.get(c) for c in columns}
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        data = dataclasses.asdict(record)
        return {c: data.get(c) for c in columns}
    if isinstance(record, Sequence) and not isinstance(record, (str, bytes)):
        if len(record) != len(columns):
            raise BulkWriteError(
                f"record has {len(record)} values but statement expects {len(columns)} columns"
            )
        return dict(zip(columns, record))
    raise BulkWriteError(f"unsupported record type: {type(record).__name__}")


def record_values(record: Any, columns: Sequence[str]) -> tuple[Any, ...]:
    params = record_params(record, columns)
    return tuple(params[c] for c in columns)
