"""Filter expression tree used to build WHERE clauses."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Operator(str, Enum):
    AND = "And"
    OR = "Or"
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_OR_EQUAL_TO = "GreaterThanOrEqualTo"
    LESS_THAN = "LessThan"
    LESS_THAN_OR_EQUAL_TO = "LessThanOrEqualTo"
    IN = "In"
    NOT_IN = "NotIn"
    CONTAINS = "Contains"
    CONTAINS_NOT = "ContainsNot"
    STARTS_WITH = "StartsWith"
    STARTS_WITH_NOT = "StartsWithNot"
    ENDS_WITH = "EndsWith"
    ENDS_WITH_NOT = "EndsWithNot"
    IS_NULL = "IsNull"
    IS_NOT_NULL = "IsNotNull"
    BETWEEN = "Between"

    @property
    def is_logical(self) -> bool:
        return self in (Operator.AND, Operator.OR)


class Expression(BaseModel):
    """A node in a filter tree.

    Leaves compare a column (``left``) against a literal, a list of literals,
    or nothing (``IsNull``/``IsNotNull``). ``And``/``Or`` nodes hold an
    Expression on both sides.
    """

    model_config = ConfigDict(frozen=True)

    left: str | Expression
    operator: Operator
    right: Any = None

    def and_(self, other: Expression) -> Expression:
        """Combine with another expression using AND."""
        return Expression(left=self, operator=Operator.AND, right=other)

    def or_(self, other: Expression) -> Expression:
        """Combine with another expression using OR."""
        return Expression(left=self, operator=Operator.OR, right=other)
