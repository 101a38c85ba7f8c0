"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events go to stderr so stdout stays reserved for stage handoff values.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    global _CONFIGURED
    if not _CONFIGURED:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            logger_factory=_StderrLoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _CONFIGURED = True
    return structlog.get_logger(name)


class _StderrLogger:
    """Print-style logger that resolves ``sys.stderr`` on every write.

    ``structlog.PrintLoggerFactory(file=sys.stderr)`` binds the stream once,
    so cached loggers would keep writing to a replaced or closed stream.
    """

    def msg(self, message: str) -> None:
        """Write one rendered event line to the current stderr.

        Args:
            message: Event line produced by the renderer.
        """
        print(message, file=sys.stderr, flush=True)

    log = debug = info = warn = warning = error = critical = exception = msg


class _StderrLoggerFactory:
    """structlog logger factory producing late-bound stderr loggers."""

    def __call__(self, *args: Any) -> _StderrLogger:
        """Create a wrapped logger.

        Args:
            args: Positional logger-name arguments passed by structlog.

        Returns:
            Logger writing to the current ``sys.stderr``.
        """
        return _StderrLogger()
