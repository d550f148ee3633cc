"""
cli_lib - bootstrap for the cli development container.

Reconciles the managed user's identity, exports secrets, enables optional
features, logs in to hosting providers, marks the container ready and hands
off to supervisord or the user's command.
"""

from .config import BootstrapConfig, Paths
from .errors import BootstrapError, ConfigError, TemplateNotFound, TemplateRenderError, UsageError
from .orchestrator import BootstrapOrchestrator, BootstrapReport, HandOff, Mode, StepStatus


__all__ = [
    "BootstrapConfig",
    "BootstrapError",
    "BootstrapOrchestrator",
    "BootstrapReport",
    "ConfigError",
    "HandOff",
    "Mode",
    "Paths",
    "StepStatus",
    "TemplateNotFound",
    "TemplateRenderError",
    "UsageError",
]
