"""
cli_logging - Structured logging for the cli container bootstrap.

Usage:
    from cli_logging import ContextScope, get_logger

    logger = get_logger("cli-startup")

    with ContextScope(step="permissions"):
        logger.debug("Resetting permissions on /home/docker")
        # Record carries step=permissions
"""

from .context import ContextScope, LogContext, get_current_context
from .formatters import ConsoleFormatter, JsonFormatter
from .logger import CliLogger, configure_logging, get_logger


__all__ = [
    "CliLogger",
    "ConsoleFormatter",
    "ContextScope",
    "JsonFormatter",
    "LogContext",
    "configure_logging",
    "get_current_context",
    "get_logger",
]

__version__ = "0.1.0"
