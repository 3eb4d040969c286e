"""Rendering of filter expression trees into WHERE clause text."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mysql_wrapper.core.encoder import Encoder
from mysql_wrapper.core.exceptions import UsageError
from mysql_wrapper.core.expressions import Expression, Operator
from mysql_wrapper.core.models import SqlValue, ValueKind

_COMPARISONS: dict[Operator, str] = {
    Operator.EQUALS: "=",
    Operator.NOT_EQUALS: "<>",
    Operator.GREATER_THAN: ">",
    Operator.GREATER_THAN_OR_EQUAL_TO: ">=",
    Operator.LESS_THAN: "<",
    Operator.LESS_THAN_OR_EQUAL_TO: "<=",
}

# operator -> (LIKE token, pattern prefix, pattern suffix)
_PATTERNS: dict[Operator, tuple[str, str, str]] = {
    Operator.CONTAINS: ("LIKE", "%", "%"),
    Operator.CONTAINS_NOT: ("NOT LIKE", "%", "%"),
    Operator.STARTS_WITH: ("LIKE", "", "%"),
    Operator.STARTS_WITH_NOT: ("NOT LIKE", "", "%"),
    Operator.ENDS_WITH: ("LIKE", "%", ""),
    Operator.ENDS_WITH_NOT: ("NOT LIKE", "%", ""),
}


def render_filter(expression: Expression, encoder: Encoder) -> str:
    """Render ``expression`` as the body of a WHERE clause."""
    op = expression.operator

    if op.is_logical:
        left, right = expression.left, expression.right
        if not isinstance(left, Expression) or not isinstance(right, Expression):
            raise UsageError(f"{op.value} requires an expression on both sides", "filter")
        token = " AND " if op is Operator.AND else " OR "
        return (
            "(" + render_filter(left, encoder) + ")"
            + token
            + "(" + render_filter(right, encoder) + ")"
        )

    if not isinstance(expression.left, str):
        raise UsageError(f"{op.value} requires a column name on the left", "filter")
    if isinstance(expression.right, Expression):
        raise UsageError(f"{op.value} cannot compare against an expression", "filter")

    column = encoder.quote_identifier(expression.left)
    right = expression.right

    if op is Operator.IS_NULL:
        return f"{column} IS NULL"
    if op is Operator.IS_NOT_NULL:
        return f"{column} IS NOT NULL"

    if op in _COMPARISONS:
        if _is_null(right):
            if op is Operator.EQUALS:
                return f"{column} IS NULL"
            if op is Operator.NOT_EQUALS:
                return f"{column} IS NOT NULL"
            raise UsageError(f"{op.value} cannot compare against null", "filter")
        return f"{column}{_COMPARISONS[op]}{encoder.encode_literal(right)}"

    if op in (Operator.IN, Operator.NOT_IN):
        values = _as_list(right, op)
        if not values:
            raise UsageError(f"{op.value} requires at least one value", "filter")
        token = "IN" if op is Operator.IN else "NOT IN"
        rendered = ",".join(encoder.encode_literal(v) for v in values)
        return f"{column} {token} ({rendered})"

    if op in _PATTERNS:
        token, prefix, suffix = _PATTERNS[op]
        return f"{column} {token} {encoder.encode_like(_pattern_text(right, encoder), prefix, suffix)}"

    if op is Operator.BETWEEN:
        values = _as_list(right, op)
        if len(values) != 2:
            raise UsageError("Between requires exactly two values", "filter")
        low, high = (encoder.encode_literal(v) for v in values)
        return f"{column} BETWEEN {low} AND {high}"

    raise UsageError(f"Unsupported operator: {op.value}", "filter")


def where_clause(
    expression: Expression | None, encoder: Encoder, *, required: bool = False
) -> str:
    """Return ``" WHERE ..."`` for an expression, or ``""`` when there is none."""
    if expression is None:
        if required:
            raise UsageError("A filter is required for this operation", "filter")
        return ""
    return " WHERE " + render_filter(expression, encoder)


def _is_null(value: Any) -> bool:
    return value is None or (
        isinstance(value, SqlValue) and value.kind is ValueKind.NULL
    )


def _as_list(value: Any, op: Operator) -> list[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise UsageError(f"{op.value} requires a list of values", "filter")
    return list(value)


def _pattern_text(value: Any, encoder: Encoder) -> str:
    sql_value = SqlValue.infer(value)
    if sql_value.kind is ValueKind.NULL:
        raise UsageError("Pattern operators require a non-null value", "filter")
    if sql_value.kind is ValueKind.TIMESTAMP:
        return encoder.timestamp(sql_value.value)
    if sql_value.kind is ValueKind.DECIMAL:
        return format(sql_value.value, "f")
    return str(sql_value.value)
