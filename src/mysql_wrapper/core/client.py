"""MySQL client for MySQL Wrapper.

Builds statements with StatementBuilder, runs them through a pymysql
connection opened for the duration of a single call, and materializes the
rows into QueryResult objects.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pymysql
import sentry_sdk
from pymysql.constants import FIELD_TYPE

from mysql_wrapper.core import schema
from mysql_wrapper.core.config import DEFAULT_MAX_STATEMENT_LENGTH, DatabaseSettings
from mysql_wrapper.core.encoder import Encoder
from mysql_wrapper.core.exceptions import StatementTooLongError, UsageError
from mysql_wrapper.core.expressions import Expression, Operator
from mysql_wrapper.core.logging import get_logger
from mysql_wrapper.core.models import Column, ColumnMeta, QueryResult, ResultOrder
from mysql_wrapper.core.statements import COUNT_COLUMN, SUM_COLUMN, StatementBuilder

# Mapping from pymysql field type codes to human-readable names.
# Unknown codes fall back to "unknown".
_TYPE_NAMES: dict[int, str] = {
    FIELD_TYPE.DECIMAL: "decimal",
    FIELD_TYPE.NEWDECIMAL: "decimal",
    FIELD_TYPE.TINY: "tinyint",
    FIELD_TYPE.SHORT: "smallint",
    FIELD_TYPE.LONG: "int",
    FIELD_TYPE.INT24: "mediumint",
    FIELD_TYPE.LONGLONG: "bigint",
    FIELD_TYPE.FLOAT: "float",
    FIELD_TYPE.DOUBLE: "double",
    FIELD_TYPE.NULL: "null",
    FIELD_TYPE.TIMESTAMP: "timestamp",
    FIELD_TYPE.DATE: "date",
    FIELD_TYPE.TIME: "time",
    FIELD_TYPE.DATETIME: "datetime",
    FIELD_TYPE.YEAR: "year",
    FIELD_TYPE.VARCHAR: "varchar",
    FIELD_TYPE.BIT: "bit",
    FIELD_TYPE.JSON: "json",
    FIELD_TYPE.ENUM: "enum",
    FIELD_TYPE.SET: "set",
    FIELD_TYPE.TINY_BLOB: "tinyblob",
    FIELD_TYPE.MEDIUM_BLOB: "mediumblob",
    FIELD_TYPE.LONG_BLOB: "longblob",
    FIELD_TYPE.BLOB: "blob",
    FIELD_TYPE.VAR_STRING: "varchar",
    FIELD_TYPE.STRING: "char",
    FIELD_TYPE.GEOMETRY: "geometry",
}

_HEADER = "[mysql_wrapper] "

ConnectionFactory = Callable[..., Any]


class MysqlClient:
    """Synchronous MySQL client; each statement runs on its own connection.

    Args:
        settings: Connection and encoding settings.
        logger: Optional sink receiving human-readable query/result messages
            when ``settings.log_queries`` / ``settings.log_results`` are set.
        connection_factory: Callable accepting pymysql.connect() keyword
            arguments and returning a DB-API connection. Defaults to
            pymysql.connect.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        *,
        logger: Callable[[str], None] | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.encoder = Encoder(settings.timestamp_format)
        self.statements = StatementBuilder(self.encoder)
        self._connection_factory = connection_factory or pymysql.connect
        self._max_statement_length = settings.max_statement_length

    # -- statement length -------------------------------------------------

    @property
    def max_statement_length(self) -> int:
        """Longest statement accepted by query().

        Probed from the server's max_allowed_packet on first use unless set
        explicitly in settings.
        """
        if self._max_statement_length is None:
            self._max_statement_length = self._probe_max_statement_length()
        return self._max_statement_length

    def _probe_max_statement_length(self) -> int:
        log = get_logger("mysql_wrapper.client")
        try:
            result = self._execute(self.statements.max_packet_probe())
        except pymysql.MySQLError as e:
            log.warning("max_allowed_packet probe failed", error=str(e))
            return DEFAULT_MAX_STATEMENT_LENGTH

        row = result.first()
        if result.row_count == 1 and row is not None and "Value" in row:
            try:
                value = int(row["Value"])
            except (TypeError, ValueError):
                value = 0
            if value > 0:
                log.debug("max statement length probed", max_statement_length=value)
                return value

        log.warning("max_allowed_packet probe returned no usable value")
        return DEFAULT_MAX_STATEMENT_LENGTH

    # -- execution ----------------------------------------------------------

    def _connect(self) -> Any:
        try:
            return self._connection_factory(**self.settings.connect_kwargs())
        except pymysql.OperationalError as e:
            get_logger("mysql_wrapper.client").error(
                "connection failed",
                host=self.settings.host,
                port=self.settings.port,
                database=self.settings.database,
            )
            e.add_note(
                f"Connection: {self.settings.host}:{self.settings.port} "
                f"database '{self.settings.database}'"
            )
            raise

    def _execute(self, sql: str) -> QueryResult:
        log = get_logger("mysql_wrapper.client")
        sql_normalized = " ".join(sql.split())
        log.debug("executing query", sql=sql_normalized)

        with sentry_sdk.start_span(op="db.query", name=sql_normalized[:100]) as span:
            start_time = time.monotonic()
            try:
                conn = self._connect()
                try:
                    with conn.cursor() as cur:
                        affected_rows = cur.execute(sql)

                        columns: list[ColumnMeta] = []
                        rows: list[dict[str, Any]] = []

                        if cur.description:
                            for desc in cur.description:
                                columns.append(
                                    ColumnMeta(
                                        name=desc[0],
                                        type_code=desc[1],
                                        type_name=_TYPE_NAMES.get(desc[1], "unknown"),
                                    )
                                )
                            names = [c.name for c in columns]
                            rows = [dict(zip(names, raw)) for raw in cur.fetchall()]

                        last_insert_id = cur.lastrowid or None
                    conn.commit()
                finally:
                    conn.close()
            except pymysql.MySQLError as e:
                span.set_status("internal_error")
                log.error("query failed", sql=sql_normalized, error=str(e))
                e.query = sql  # type: ignore[attr-defined]
                e.add_note(f"Query: {sql}")
                raise

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("row_count", len(rows))
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "query complete",
                duration_ms=f"{duration_ms:.1f}",
                row_count=len(rows),
            )

        return QueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            affected_rows=affected_rows or 0,
            last_insert_id=last_insert_id,
        )

    def query(self, sql: str) -> QueryResult:
        """Execute a statement and return its result."""
        if not sql:
            raise UsageError("Query must not be empty", "query")
        limit = self.max_statement_length
        if len(sql) > limit:
            raise StatementTooLongError(len(sql), limit)

        if self.settings.log_queries and self.logger is not None:
            self.logger(_HEADER + "query: " + sql)

        result = self._execute(sql)

        if self.settings.log_results and self.logger is not None:
            self.logger(_HEADER + f"result: {result.row_count} rows")
        return result

    # -- schema -------------------------------------------------------------

    def list_tables(self) -> list[str]:
        return schema.list_tables(self)

    def table_exists(self, table: str) -> bool:
        return schema.table_exists(self, table)

    def describe_table(self, table: str) -> list[Column]:
        return schema.describe_table(self, table)

    def describe_database(self) -> dict[str, list[Column]]:
        return schema.describe_database(self)

    def get_primary_key_column(self, table: str) -> str | None:
        return schema.get_primary_key_column(self, table)

    def get_column_names(self, table: str) -> list[str]:
        return schema.get_column_names(self, table)

    def create_table(self, table: str, columns: Sequence[Column]) -> None:
        self.query(self.statements.create_table(table, columns))

    def drop_table(self, table: str) -> None:
        self.query(self.statements.drop_table(table))

    def truncate(self, table: str) -> None:
        self.query(self.statements.truncate(table))

    # -- data -----------------------------------------------------------

    def select(
        self,
        table: str,
        index_start: int | None = None,
        max_results: int | None = None,
        fields: Sequence[str] | None = None,
        filter: Expression | None = None,
        order: Sequence[ResultOrder] | None = None,
    ) -> QueryResult:
        sql = self.statements.select(
            table, index_start, max_results, fields, filter, order
        )
        return self.query(sql)

    def get_unique_object_by_id(
        self, table: str, column: str, value: Any
    ) -> QueryResult:
        """Select at most one row where ``column`` equals ``value``.

        Intended for key or unique columns.
        """
        if not column:
            raise UsageError("Column name must not be empty", "column")
        if value is None:
            raise UsageError("Value must not be None", "value")
        expr = Expression(left=column, operator=Operator.EQUALS, right=value)
        return self.select(table, None, 1, None, expr)

    def insert(self, table: str, row: Mapping[str, Any]) -> QueryResult:
        """Insert one row and return it as stored.

        The row is re-selected by its generated key. When the server reports
        no generated key, or the table has no primary key, the insert still
        succeeded and an empty result is returned.
        """
        result = self.query(self.statements.insert(table, row))
        if not result.last_insert_id:
            return QueryResult.empty()

        primary_key = self.get_primary_key_column(table)
        if primary_key is None:
            return QueryResult.empty()

        expr = Expression(
            left=primary_key, operator=Operator.EQUALS, right=result.last_insert_id
        )
        return self.select(table, None, None, None, expr)

    def insert_multiple(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Insert all rows in a single statement; either every row commits or none."""
        self.query(self.statements.insert_multiple(table, rows))

    def update(
        self, table: str, row: Mapping[str, Any], filter: Expression | None = None
    ) -> int:
        """Update matching rows and return the affected row count."""
        return self.query(self.statements.update(table, row, filter)).affected_rows

    def delete(self, table: str, filter: Expression) -> int:
        """Delete matching rows and return the affected row count."""
        return self.query(self.statements.delete(table, filter)).affected_rows

    def exists(self, table: str, filter: Expression | None = None) -> bool:
        return self.query(self.statements.exists(table, filter)).row_count > 0

    def count(self, table: str, filter: Expression | None = None) -> int:
        row = self.query(self.statements.count(table, filter)).first()
        if row is None or row.get(COUNT_COLUMN) is None:
            return 0
        return int(row[COUNT_COLUMN])

    def sum(self, table: str, field: str, filter: Expression | None = None) -> Decimal:
        row = self.query(self.statements.sum(table, field, filter)).first()
        if row is None or row.get(SUM_COLUMN) is None:
            return Decimal(0)
        return Decimal(str(row[SUM_COLUMN]))

    # -- encoding -------------------------------------------------------

    def sanitize(self, text: str) -> str:
        return self.encoder.sanitize(text)

    def timestamp(self, value: datetime | date) -> str:
        return self.encoder.timestamp(value)
