"""Schema introspection over a MysqlClient.

Catalog queries go through client.query(), so they share its statement
length guard, logging and error enrichment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mysql_wrapper.core.exceptions import UsageError
from mysql_wrapper.core.models import Column, DataType

if TYPE_CHECKING:
    from mysql_wrapper.core.client import MysqlClient


def _require_table(table: str) -> None:
    if not table:
        raise UsageError("Table name must not be empty", "table")


def _lookup(row: dict[str, Any], key: str) -> tuple[bool, Any]:
    """Case-insensitive column lookup; returns (present, value)."""
    if key in row:
        return True, row[key]
    lowered = key.lower()
    for name, value in row.items():
        if name.lower() == lowered:
            return True, value
    return False, None


def _text(value: Any) -> str | None:
    # MySQL 8 reports some information_schema columns as binary strings.
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)


def _parse_int(value: Any) -> int | None:
    text = _text(value)
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode()
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def column_from_catalog(row: dict[str, Any]) -> Column:
    """Build a Column from one information_schema.COLUMNS row.

    Nullability comes from IS_NULLABLE ("YES"/"NO") or, when that column is
    absent, from the inverted IS_NOT_NULLABLE flag.
    """
    _, name = _lookup(row, "COLUMN_NAME")
    _, data_type = _lookup(row, "DATA_TYPE")
    column_type = DataType.from_catalog(_text(data_type))

    _, max_length = _lookup(row, "CHARACTER_MAXIMUM_LENGTH")
    precision = None
    if column_type is DataType.DECIMAL:
        _, max_length = _lookup(row, "NUMERIC_PRECISION")
        _, scale = _lookup(row, "NUMERIC_SCALE")
        precision = _parse_int(scale)

    has_nullable, is_nullable = _lookup(row, "IS_NULLABLE")
    if has_nullable:
        nullable = (_text(is_nullable) or "").strip().upper() == "YES"
    else:
        has_not_nullable, is_not_nullable = _lookup(row, "IS_NOT_NULLABLE")
        nullable = not _parse_bool(is_not_nullable) if has_not_nullable else True

    _, key = _lookup(row, "COLUMN_KEY")
    primary_key = (_text(key) or "").strip().lower() == "pri"

    return Column(
        name=_text(name) or "",
        type=column_type,
        max_length=_parse_int(max_length),
        precision=precision,
        nullable=nullable,
        primary_key=primary_key,
    )


def list_tables(client: MysqlClient) -> list[str]:
    """List all tables in the configured database."""
    result = client.query(client.statements.show_tables())
    # Rows carry a single "Tables_in_<database>" column.
    return [_text(next(iter(row.values()))) or "" for row in result.rows if row]


def table_exists(client: MysqlClient, table: str) -> bool:
    _require_table(table)
    return table in list_tables(client)


def describe_table(client: MysqlClient, table: str) -> list[Column]:
    """Columns of ``table`` in ordinal order, de-duplicated by name."""
    _require_table(table)
    sql = client.statements.describe_table(client.settings.database, table)
    result = client.query(sql)

    columns: list[Column] = []
    seen: set[str] = set()
    for row in result.rows:
        column = column_from_catalog(row)
        if column.name in seen:
            continue
        seen.add(column.name)
        columns.append(column)
    return columns


def describe_database(client: MysqlClient) -> dict[str, list[Column]]:
    return {table: describe_table(client, table) for table in list_tables(client)}


def get_primary_key_column(client: MysqlClient, table: str) -> str | None:
    """Name of the first primary key column, or None if the table has none."""
    for column in describe_table(client, table):
        if column.primary_key:
            return column.name
    return None


def get_column_names(client: MysqlClient, table: str) -> list[str]:
    return [column.name for column in describe_table(client, table)]
