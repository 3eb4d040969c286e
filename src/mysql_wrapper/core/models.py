"""Data models for MySQL Wrapper.

Pydantic models for column metadata, typed literal values and query
results returned by MysqlClient.query().
"""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class DataType(str, Enum):
    """Semantic column types understood by CREATE TABLE and DESCRIBE."""

    VARCHAR = "varchar"
    NVARCHAR = "nvarchar"
    TEXT = "text"
    TINYINT = "tinyint"
    INT = "int"
    LONG = "long"
    DECIMAL = "decimal"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    DATE = "date"
    TIME = "time"
    BLOB = "blob"
    GUID = "guid"
    JSON = "json"
    OTHER = "other"

    @classmethod
    def from_catalog(cls, name: str | None) -> DataType:
        """Map an information_schema DATA_TYPE value to a DataType."""
        if not name:
            return cls.OTHER
        return _CATALOG_TYPES.get(name.strip().lower(), cls.OTHER)


_CATALOG_TYPES: dict[str, DataType] = {
    "varchar": DataType.VARCHAR,
    "char": DataType.VARCHAR,
    "enum": DataType.VARCHAR,
    "set": DataType.VARCHAR,
    "nvarchar": DataType.NVARCHAR,
    "nchar": DataType.NVARCHAR,
    "text": DataType.TEXT,
    "tinytext": DataType.TEXT,
    "mediumtext": DataType.TEXT,
    "longtext": DataType.TEXT,
    "tinyint": DataType.TINYINT,
    "bool": DataType.BOOLEAN,
    "boolean": DataType.BOOLEAN,
    "smallint": DataType.INT,
    "mediumint": DataType.INT,
    "int": DataType.INT,
    "integer": DataType.INT,
    "year": DataType.INT,
    "bigint": DataType.LONG,
    "decimal": DataType.DECIMAL,
    "numeric": DataType.DECIMAL,
    "float": DataType.DOUBLE,
    "double": DataType.DOUBLE,
    "real": DataType.DOUBLE,
    "datetime": DataType.DATETIME,
    "timestamp": DataType.TIMESTAMP,
    "date": DataType.DATE,
    "time": DataType.TIME,
    "blob": DataType.BLOB,
    "tinyblob": DataType.BLOB,
    "mediumblob": DataType.BLOB,
    "longblob": DataType.BLOB,
    "binary": DataType.BLOB,
    "varbinary": DataType.BLOB,
    "json": DataType.JSON,
}


class Column(BaseModel):
    """A table column as described by, or supplied to, the database."""

    name: str
    type: DataType
    max_length: int | None = None
    precision: int | None = None
    nullable: bool = True
    primary_key: bool = False


class ValueKind(str, Enum):
    NULL = "null"
    INTEGER = "integer"
    DECIMAL = "decimal"
    TEXT = "text"
    TIMESTAMP = "timestamp"


class SqlValue(BaseModel):
    """A literal tagged with the kind the encoder dispatches on.

    Build one explicitly or let SqlValue.infer() classify a Python value.
    """

    model_config = ConfigDict(frozen=True)

    kind: ValueKind
    value: Any = None

    @classmethod
    def null(cls) -> SqlValue:
        return cls(kind=ValueKind.NULL)

    @classmethod
    def integer(cls, value: int) -> SqlValue:
        return cls(kind=ValueKind.INTEGER, value=int(value))

    @classmethod
    def decimal(cls, value: Decimal | float) -> SqlValue:
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"Cannot encode non-finite number: {value!r}")
            value = Decimal(repr(value))
        if not value.is_finite():
            raise ValueError(f"Cannot encode non-finite number: {value!r}")
        return cls(kind=ValueKind.DECIMAL, value=value)

    @classmethod
    def text(cls, value: str) -> SqlValue:
        return cls(kind=ValueKind.TEXT, value=str(value))

    @classmethod
    def timestamp(cls, value: datetime | date) -> SqlValue:
        if not isinstance(value, datetime):
            value = datetime.combine(value, time.min)
        return cls(kind=ValueKind.TIMESTAMP, value=value)

    @classmethod
    def infer(cls, value: Any) -> SqlValue:
        """Classify a Python value; unsupported types raise TypeError."""
        if isinstance(value, SqlValue):
            return value
        if value is None:
            return cls.null()
        if isinstance(value, bool):
            return cls.integer(1 if value else 0)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, (Decimal, float)):
            return cls.decimal(value)
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, uuid.UUID):
            return cls.text(str(value))
        if isinstance(value, (datetime, date)):
            return cls.timestamp(value)
        msg = f"Unsupported value type for SQL literal: {type(value).__name__}"
        raise TypeError(msg)


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ResultOrder(BaseModel):
    """One ORDER BY term."""

    column: str
    direction: OrderDirection = OrderDirection.ASC


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_code: int
    type_name: str


class QueryResult(BaseModel):
    """Result of a SQL statement execution."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta] = []
    rows: list[dict[str, Any]] = []
    row_count: int = 0
    affected_rows: int = 0
    last_insert_id: int | None = None

    @classmethod
    def empty(cls) -> QueryResult:
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None
