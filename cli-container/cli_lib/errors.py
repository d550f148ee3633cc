"""Exception types raised during container bootstrap."""


class BootstrapError(Exception):
    """Base class for bootstrap failures."""


class ConfigError(BootstrapError, ValueError):
    """Configuration from the environment or config file is malformed."""


class UsageError(BootstrapError):
    """The entrypoint was invoked with unusable arguments."""


class TemplateNotFound(BootstrapError, FileNotFoundError):
    """The ``.tmpl`` source for a rendered file does not exist."""

    def __init__(self, template: str):
        super().__init__(f"Template file not found: {template}")
        self.template = template


class TemplateRenderError(BootstrapError):
    """The template engine exited with a failure."""
