"""Structured logging configuration.

This module initializes a logger with a stable structured format.
Events render as JSON lines on stderr so command output stays clean.
An application that configures structlog itself keeps its own setup.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    structlog is configured on first use unless the host process has
    already configured it.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not structlog.is_configured():
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            logger_factory=_stderr_logger_factory,
            cache_logger_on_first_use=False,
        )
    return structlog.get_logger(name)


def _stderr_logger_factory(*_args: Any) -> structlog.PrintLogger:
    """Bind output to the current stderr stream at log time.

    Returns:
        Print logger writing to ``sys.stderr``.
    """
    return structlog.PrintLogger(file=sys.stderr)
