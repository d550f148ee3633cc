"""
Context management for cli_logging.

Provides a run identifier and the current bootstrap step so that every log
record emitted while a step executes can be correlated with it.
"""

import secrets
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


_current_context: ContextVar["LogContext | None"] = ContextVar("cli_log_context", default=None)


@dataclass
class LogContext:
    """Context for log correlation.

    Attributes:
        run_id: Identifier shared by all records of one container start
        step: Name of the bootstrap step currently executing
        mode: Hand-off mode ("service" or "command") if known
        extra: Additional context fields to include in logs
    """

    run_id: str | None = None
    step: str | None = None
    mode: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.run_id is None:
            self.run_id = secrets.token_hex(8)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.run_id:
            result["run_id"] = self.run_id
        if self.step:
            result["step"] = self.step
        if self.mode:
            result["mode"] = self.mode
        return result


def get_current_context() -> LogContext | None:
    """Get the current logging context."""
    return _current_context.get()


class ContextScope:
    """Context manager for scoped logging context.

    Fields not given explicitly are inherited from the enclosing scope, so a
    step scope opened inside a run scope keeps the run's ``run_id`` and mode.

    Usage:
        with ContextScope(mode="service"):
            with ContextScope(step="secrets"):
                logger.debug("Exporting secrets")
    """

    def __init__(
        self,
        run_id: str | None = None,
        step: str | None = None,
        mode: str | None = None,
        **extra: Any,
    ):
        self._run_id = run_id
        self._step = step
        self._mode = mode
        self._extra = extra
        self._token: Any = None

    def __enter__(self) -> LogContext:
        parent = get_current_context()

        run_id = self._run_id or (parent.run_id if parent else None)
        step = self._step or (parent.step if parent else None)
        mode = self._mode or (parent.mode if parent else None)
        extra = dict(parent.extra) if parent else {}
        extra.update(self._extra)

        ctx = LogContext(run_id=run_id, step=step, mode=mode, extra=extra)
        self._token = _current_context.set(ctx)
        return ctx

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _current_context.reset(self._token)
