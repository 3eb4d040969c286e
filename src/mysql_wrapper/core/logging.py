"""structlog configuration for MySQL Wrapper.

The client logs through get_logger() and never configures structlog itself;
a host application calls setup_logging() once, or installs its own structlog
configuration. Output goes to stderr.
"""

import logging
import sys
from typing import Any

import structlog

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _StderrLoggerFactory:
    """Looks up sys.stderr per logger so redirected streams are honored."""

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(
    verbose: bool = False, *, level: str | None = None, json_output: bool = False
) -> None:
    """Configure structlog for the wrapper's diagnostic events.

    Args:
        verbose: Shorthand for ``level="debug"``; shows every executed statement.
        level: One of debug, info, warning, error. Overrides ``verbose``.
        json_output: Render one JSON object per line instead of console text.
    """
    name = (level or ("debug" if verbose else "info")).lower()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level: {level!r}. Expected one of {', '.join(_LEVELS)}")

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS[name]),
        context_class=dict,
        logger_factory=_StderrLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, bound to ``name`` when given.

    Call at use time rather than at import so setup_logging() applies.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
