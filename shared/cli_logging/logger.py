"""
CliLogger - Structured logging for the cli container bootstrap.

Wraps the standard library logger with context propagation (run id, current
step) and console/JSON output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .context import get_current_context
from .formatters import ConsoleFormatter, JsonFormatter


class CliLogger:
    """Structured logger for bootstrap components.

    Provides a logging interface that:
    - Outputs human-readable records on stderr (container logs)
    - Optionally writes structured JSON to a rotating file
    - Attaches the current ContextScope (run_id, step, mode) to every record

    Usage:
        from cli_logging import get_logger

        logger = get_logger("cli-startup")
        logger.info("Rendering template", path="/home/docker/.ssh/id_rsa")
    """

    def __init__(
        self,
        name: str,
        level: int | str = logging.INFO,
    ):
        """Initialize the logger.

        Args:
            name: Logger name (typically the console script name)
            level: Log level (default INFO)
        """
        self.name = name
        self._logger = logging.getLogger(name)
        self._logger.propagate = False
        self.set_level(level)

    def set_level(self, level: int | str) -> None:
        """Change the threshold of this logger."""
        self._logger.setLevel(level if isinstance(level, int) else getattr(logging, level.upper()))

    @property
    def level(self) -> int:
        return self._logger.level

    def _has_console_handler(self) -> bool:
        return any(isinstance(h.formatter, ConsoleFormatter) for h in self._logger.handlers)

    def _ensure_handlers(self) -> None:
        """Ensure a console handler is configured (lazy initialization).

        Handlers attached by others (log capture, file handlers) do not count.
        """
        if self._has_console_handler():
            return

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(ConsoleFormatter(service=self.name))
        self._logger.addHandler(console_handler)

    def _get_extra(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        """Get extra fields including context."""
        result: dict[str, Any] = {}

        ctx = get_current_context()
        if ctx:
            result.update(ctx.to_dict())
            if ctx.extra:
                result.update(ctx.extra)

        if extra:
            result.update(extra)

        return result

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: Any = None,
        **kwargs: Any,
    ) -> None:
        self._ensure_handlers()
        self._logger.log(level, msg, *args, exc_info=exc_info, extra=self._get_extra(kwargs))

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, exc_info: Any = None, **kwargs: Any) -> None:
        """Log an error message."""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args: Any, exc_info: Any = None, **kwargs: Any) -> None:
        """Log a critical message."""
        self._log(logging.CRITICAL, msg, *args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an exception (includes stack trace)."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)

    def add_file_handler(
        self,
        log_file: str | Path,
        level: int = logging.DEBUG,
        max_bytes: int = 10 * 1024 * 1024,  # 10 MB
        backup_count: int = 5,
    ) -> None:
        """Add a file handler with JSON formatting.

        Args:
            log_file: Path to the log file
            level: Log level for file handler
            max_bytes: Max file size before rotation
            backup_count: Number of backup files to keep
        """
        self._ensure_handlers()

        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonFormatter(service=self.name))

        self._logger.addHandler(file_handler)


# Logger registry for singleton behavior
_loggers: dict[str, CliLogger] = {}


def get_logger(
    name: str,
    level: int | str = logging.INFO,
) -> CliLogger:
    """Get or create a logger by name.

    Loggers are cached by name, so calling get_logger with the same name
    returns the same logger instance (the level argument only applies on
    creation).

    Args:
        name: Logger name (e.g. "cli-startup")
        level: Log level (default INFO)

    Returns:
        CliLogger instance
    """
    if name not in _loggers:
        _loggers[name] = CliLogger(name, level)

    return _loggers[name]


def configure_logging(
    logger: CliLogger,
    *,
    debug: bool,
    log_file: str | Path | None = None,
) -> CliLogger:
    """Apply the bootstrap verbosity policy to a logger.

    Debug mode traces every step (DEBUG); otherwise only warnings and errors
    reach the container log.
    """
    logger.set_level(logging.DEBUG if debug else logging.WARNING)
    if log_file:
        logger.add_file_handler(log_file)
    return logger
