"""Identifier and literal encoding for the MySQL dialect.

Every piece of caller-supplied text that ends up in a statement passes
through an Encoder: identifiers are backtick-quoted, values are rendered
from their SqlValue kind.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pymysql.converters import escape_string

from mysql_wrapper.core.config import DEFAULT_TIMESTAMP_FORMAT
from mysql_wrapper.core.exceptions import UsageError
from mysql_wrapper.core.models import SqlValue, ValueKind

# Highest code point that is encoded as a plain string literal.
_MAX_SAFE_CODE_POINT = 127


def is_extended(text: str) -> bool:
    """Return True if ``text`` contains any non-ASCII code point."""
    return any(ord(c) > _MAX_SAFE_CODE_POINT for c in text)


def _escape(text: str) -> str:
    # escape_string backslash-escapes quotes; single quotes are doubled instead.
    return escape_string(text).replace("\\'", "''")


class Encoder:
    """Renders identifiers and typed values as MySQL text."""

    def __init__(self, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> None:
        if not timestamp_format:
            raise UsageError("timestamp_format must not be empty", "timestamp_format")
        self.timestamp_format = timestamp_format

    def quote_identifier(self, name: str) -> str:
        if not name:
            raise UsageError("Identifier must not be empty", "name")
        return "`" + name.replace("`", "``") + "`"

    def timestamp(self, value: datetime | date) -> str:
        return SqlValue.timestamp(value).value.strftime(self.timestamp_format)

    def sanitize(self, text: str) -> str:
        """Escape ``text`` for use inside a quoted literal, without the quotes."""
        if not text:
            return text
        return _escape(text)

    def encode_literal(self, value: Any) -> str:
        """Render a value as a SQL literal.

        Plain Python values are classified with SqlValue.infer(); an
        unsupported type raises TypeError.
        """
        sql_value = SqlValue.infer(value)
        kind = sql_value.kind
        if kind is ValueKind.NULL:
            return "null"
        if kind is ValueKind.INTEGER:
            return str(sql_value.value)
        if kind is ValueKind.DECIMAL:
            return format(sql_value.value, "f")
        if kind is ValueKind.TIMESTAMP:
            return "'" + self.timestamp(sql_value.value) + "'"
        if kind is ValueKind.TEXT:
            return self.encode_text(sql_value.value)
        raise TypeError(f"Unhandled value kind: {kind!r}")

    def encode_text(self, text: str) -> str:
        if is_extended(text):
            return "N'" + _escape(text) + "'"
        return "'" + _escape(text) + "'"

    def encode_like(self, text: str, prefix: str = "", suffix: str = "") -> str:
        """Render a LIKE pattern with ``text`` matched literally."""
        # LIKE unescapes once more after the string literal is parsed.
        literal = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = prefix + _escape(literal) + suffix
        if is_extended(text):
            return "N'" + pattern + "'"
        return "'" + pattern + "'"
