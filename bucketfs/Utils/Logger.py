from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Dict, Union

LogContext = Dict[str, Union[str, int, float, bool, None]]


class LaravelStyleLogger:
    """Logger that renders an optional context dict after the message.

    The adapter logs each provider request and every stat cache hit at
    debug level, and failures it turns into a False or None result (failed
    uploads, copies, reads, deletes) at warning level. Without a handler
    configured elsewhere, records go to stderr at the level named by the
    ``LOG_LEVEL`` environment variable, WARNING by default.
    """

    def __init__(self, name: str = __name__) -> None:
        self.name = name
        self.logger = logging.getLogger(name)

        if not self.logger.handlers and not logging.getLogger().handlers:
            self._setup_default_handler()

    def _setup_default_handler(self) -> None:
        """Set up default logging handler."""
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s in %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)
        self.logger.setLevel(os.getenv('LOG_LEVEL', 'WARNING').upper())

    def debug(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, context))

    def info(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log info message."""
        self.logger.info(self._format_message(message, context))

    def warning(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log warning message."""
        self.logger.warning(self._format_message(message, context))

    def error(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log error message."""
        self.logger.error(self._format_message(message, context))

    def _format_message(self, message: str, context: Optional[LogContext] = None) -> str:
        """Format message with context."""
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            return f"{message} | {context_str}"
        return message


def get_logger(name: Optional[str] = None) -> LaravelStyleLogger:
    """Get a logger for the given module name."""
    if name is None:
        name = 'bucketfs'
    return LaravelStyleLogger(name)
