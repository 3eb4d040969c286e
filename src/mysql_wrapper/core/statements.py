"""SQL statement synthesis for the MySQL dialect.

StatementBuilder methods are pure: they validate their inputs and return
statement text. Nothing here talks to a database.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from mysql_wrapper.core.encoder import Encoder
from mysql_wrapper.core.exceptions import UsageError
from mysql_wrapper.core.expressions import Expression
from mysql_wrapper.core.filters import where_clause
from mysql_wrapper.core.models import Column, DataType, ResultOrder

COUNT_COLUMN = "__count__"
SUM_COLUMN = "__sum__"

# MySQL has no OFFSET without LIMIT; this is the documented "all rows" value.
_MAX_LIMIT = 18446744073709551615

_AUTO_INCREMENT_TYPES = {DataType.TINYINT, DataType.INT, DataType.LONG}


def _require_table(table: str) -> None:
    if not table:
        raise UsageError("Table name must not be empty", "table")


def _require_row(row: Mapping[str, Any], parameter: str = "row") -> None:
    if not row:
        raise UsageError("Row must contain at least one column", parameter)
    for key in row:
        if not key:
            raise UsageError("Column names must not be empty", parameter)


class StatementBuilder:
    """Builds MySQL statement text from structured inputs."""

    def __init__(self, encoder: Encoder) -> None:
        self.encoder = encoder

    def _table(self, table: str) -> str:
        _require_table(table)
        return self.encoder.quote_identifier(table)

    def _where(self, filter: Expression | None, *, required: bool = False) -> str:
        return where_clause(filter, self.encoder, required=required)

    # -- catalog ----------------------------------------------------------

    def show_tables(self) -> str:
        return "SHOW TABLES"

    def describe_table(self, database: str, table: str) -> str:
        _require_table(table)
        if not database:
            raise UsageError("Database name must not be empty", "database")
        return (
            "SELECT * FROM INFORMATION_SCHEMA.COLUMNS"
            f" WHERE TABLE_SCHEMA={self.encoder.encode_text(database)}"
            f" AND TABLE_NAME={self.encoder.encode_text(table)}"
            " ORDER BY ORDINAL_POSITION"
        )

    def max_packet_probe(self) -> str:
        return "SHOW VARIABLES LIKE 'max_allowed_packet'"

    # -- queries ----------------------------------------------------------

    def select(
        self,
        table: str,
        index_start: int | None = None,
        max_results: int | None = None,
        fields: Sequence[str] | None = None,
        filter: Expression | None = None,
        order: Sequence[ResultOrder] | None = None,
    ) -> str:
        table_sql = self._table(table)
        if max_results is not None and max_results < 0:
            raise UsageError("max_results must not be negative", "max_results")

        if fields:
            field_sql = ",".join(self.encoder.quote_identifier(f) for f in fields)
        else:
            field_sql = "*"

        sql = f"SELECT {field_sql} FROM {table_sql}{self._where(filter)}"

        if order:
            terms = ",".join(
                f"{self.encoder.quote_identifier(o.column)} {o.direction.value}"
                for o in order
            )
            sql += f" ORDER BY {terms}"

        offset = index_start if index_start is not None and index_start > 0 else None
        if max_results is not None:
            sql += f" LIMIT {max_results}"
        elif offset is not None:
            sql += f" LIMIT {_MAX_LIMIT}"
        if offset is not None:
            sql += f" OFFSET {offset}"
        return sql

    def exists(self, table: str, filter: Expression | None = None) -> str:
        return f"SELECT * FROM {self._table(table)}{self._where(filter)} LIMIT 1"

    def count(self, table: str, filter: Expression | None = None) -> str:
        alias = self.encoder.quote_identifier(COUNT_COLUMN)
        return f"SELECT COUNT(*) AS {alias} FROM {self._table(table)}{self._where(filter)}"

    def sum(self, table: str, field: str, filter: Expression | None = None) -> str:
        table_sql = self._table(table)
        if not field:
            raise UsageError("Field name must not be empty", "field")
        alias = self.encoder.quote_identifier(SUM_COLUMN)
        column = self.encoder.quote_identifier(field)
        return f"SELECT SUM({column}) AS {alias} FROM {table_sql}{self._where(filter)}"

    # -- data modification ----------------------------------------------

    def insert(self, table: str, row: Mapping[str, Any]) -> str:
        table_sql = self._table(table)
        _require_row(row)
        keys = ",".join(self.encoder.quote_identifier(k) for k in row)
        values = ",".join(self.encoder.encode_literal(v) for v in row.values())
        return f"INSERT INTO {table_sql} ({keys}) VALUES ({values})"

    def insert_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> str:
        """Build one INSERT carrying every row.

        All rows must have the same set of keys as the first one; values are
        emitted in the first row's key order.
        """
        table_sql = self._table(table)
        if not rows:
            raise UsageError("At least one row is required", "rows")

        reference = rows[0]
        _require_row(reference, "rows")
        columns = list(reference)
        expected = set(columns)
        for idx, row in enumerate(rows):
            if len(row) != len(columns) or set(row) != expected:
                msg = (
                    f"All rows must contain exactly the same keys; "
                    f"rows[{idx}] has {sorted(row)}, expected {sorted(expected)}"
                )
                raise UsageError(msg, "rows")

        keys = ",".join(self.encoder.quote_identifier(c) for c in columns)
        tuples = ",".join(
            "(" + ",".join(self.encoder.encode_literal(row[c]) for c in columns) + ")"
            for row in rows
        )
        return f"INSERT INTO {table_sql} ({keys}) VALUES {tuples}"

    def update(
        self, table: str, row: Mapping[str, Any], filter: Expression | None = None
    ) -> str:
        table_sql = self._table(table)
        _require_row(row)
        assignments = ",".join(
            f"{self.encoder.quote_identifier(k)}={self.encoder.encode_literal(v)}"
            for k, v in row.items()
        )
        return f"UPDATE {table_sql} SET {assignments}{self._where(filter)}"

    def delete(self, table: str, filter: Expression | None) -> str:
        table_sql = self._table(table)
        return f"DELETE FROM {table_sql}{self._where(filter, required=True)}"

    # -- DDL -------------------------------------------------------------

    def truncate(self, table: str) -> str:
        return f"TRUNCATE TABLE {self._table(table)}"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE IF EXISTS {self._table(table)}"

    def create_table(self, table: str, columns: Sequence[Column]) -> str:
        table_sql = self._table(table)
        if not columns:
            raise UsageError("At least one column is required", "columns")

        primary = [c for c in columns if c.primary_key]
        if len(primary) > 1:
            names = ", ".join(c.name for c in primary)
            raise UsageError(
                f"Only one primary key column is supported, got: {names}", "columns"
            )

        definitions = [self._column_definition(c) for c in columns]
        if primary:
            pk = self.encoder.quote_identifier(primary[0].name)
            definitions.append(f"PRIMARY KEY ({pk})")

        return (
            f"CREATE TABLE {table_sql} ({', '.join(definitions)})"
            " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        )

    def _column_definition(self, column: Column) -> str:
        parts = [self.encoder.quote_identifier(column.name), native_type(column)]
        if column.primary_key or not column.nullable:
            parts.append("NOT NULL")
        else:
            parts.append("NULL")
        if column.primary_key and column.type in _AUTO_INCREMENT_TYPES:
            parts.append("AUTO_INCREMENT")
        return " ".join(parts)


def native_type(column: Column) -> str:
    """MySQL column type for a Column, including any length modifier."""
    t = column.type
    if t is DataType.VARCHAR:
        return f"varchar({column.max_length or 255})"
    if t is DataType.NVARCHAR:
        return f"nvarchar({column.max_length or 255})"
    if t is DataType.DECIMAL:
        if column.max_length is None:
            return "decimal"
        return f"decimal({column.max_length},{column.precision or 0})"
    if t is DataType.OTHER:
        raise UsageError(
            f"Column '{column.name}' has no native type mapping", "columns"
        )
    return _NATIVE_TYPES[t]


_NATIVE_TYPES: dict[DataType, str] = {
    DataType.TEXT: "longtext",
    DataType.TINYINT: "tinyint",
    DataType.INT: "int",
    DataType.LONG: "bigint",
    DataType.DOUBLE: "double",
    DataType.BOOLEAN: "tinyint(1)",
    DataType.DATETIME: "datetime(6)",
    DataType.TIMESTAMP: "timestamp(6)",
    DataType.DATE: "date",
    DataType.TIME: "time",
    DataType.BLOB: "longblob",
    DataType.GUID: "varchar(36)",
    DataType.JSON: "json",
}
