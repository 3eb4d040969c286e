"""Exception hierarchy for MySQL Wrapper.

Driver errors raised while connecting or executing are not wrapped: they
propagate as the same pymysql exception with the statement attached
(see MysqlClient.query). Everything raised by the wrapper itself derives
from MysqlWrapperError.
"""

class MysqlWrapperError(Exception):
    """Base exception for all MySQL Wrapper errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

class UsageError(MysqlWrapperError):
    """Missing or invalid caller input, raised before any SQL is built."""

    def __init__(self, message: str, parameter: str | None = None) -> None:
        self.parameter = parameter
        super().__init__(message)

class StatementTooLongError(UsageError):
    """Composed statement exceeds the maximum statement length."""

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(
            f"Query exceeds maximum statement length of {limit} characters "
            f"(got {length}).",
            parameter="query",
        )


class ConfigError(MysqlWrapperError):
    """Malformed config, missing profile."""
