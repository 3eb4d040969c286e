"""MySQL Wrapper: dialect-correct SQL synthesis and execution for MySQL."""

from mysql_wrapper.__about__ import __version__
from mysql_wrapper.core.client import MysqlClient
from mysql_wrapper.core.config import DatabaseSettings, load_config, resolve_settings
from mysql_wrapper.core.exceptions import (
    ConfigError,
    MysqlWrapperError,
    StatementTooLongError,
    UsageError,
)
from mysql_wrapper.core.expressions import Expression, Operator
from mysql_wrapper.core.logging import get_logger, setup_logging
from mysql_wrapper.core.models import (
    Column,
    DataType,
    OrderDirection,
    QueryResult,
    ResultOrder,
    SqlValue,
)

__all__ = [
    "Column",
    "ConfigError",
    "DataType",
    "DatabaseSettings",
    "Expression",
    "MysqlClient",
    "MysqlWrapperError",
    "Operator",
    "OrderDirection",
    "QueryResult",
    "ResultOrder",
    "SqlValue",
    "StatementTooLongError",
    "UsageError",
    "__version__",
    "get_logger",
    "load_config",
    "resolve_settings",
    "setup_logging",
]
