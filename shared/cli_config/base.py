"""
Base classes and types for the configuration framework.

This module provides:
- ConfigStatus: Enum for validation states (VALID, INVALID)
- ValidationResult: Result of config validation with errors/warnings
- HealthCheckResult: Result of a health check
- BaseConfig: Abstract base class for config classes
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConfigStatus(Enum):
    """Status of configuration validation."""

    VALID = "valid"
    INVALID = "invalid"


@dataclass
class ValidationResult:
    """Result of validating a configuration.

    Attributes:
        status: Overall validation status
        errors: List of validation errors (config is invalid if non-empty)
        warnings: List of validation warnings (config may work but has issues)
    """

    status: ConfigStatus
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Return True if config is valid (no errors)."""
        return self.status == ConfigStatus.VALID

    @classmethod
    def valid(cls, warnings: list[str] | None = None) -> "ValidationResult":
        """Create a valid result with optional warnings."""
        return cls(status=ConfigStatus.VALID, warnings=warnings or [])

    @classmethod
    def invalid(cls, errors: list[str], warnings: list[str] | None = None) -> "ValidationResult":
        """Create an invalid result with errors."""
        return cls(status=ConfigStatus.INVALID, errors=errors, warnings=warnings or [])


@dataclass
class HealthCheckResult:
    """Result of a health check.

    Attributes:
        healthy: Whether the checked subject is healthy
        service_name: Name of the subject checked
        message: Human-readable status message
        missing: Marker paths whose absence made the check fail
    """

    healthy: bool
    service_name: str
    message: str
    missing: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        """Exit status for container health probes (0 healthy, 1 unhealthy)."""
        return 0 if self.healthy else 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "healthy": self.healthy,
            "service": self.service_name,
            "message": self.message,
        }
        if self.missing:
            result["missing"] = list(self.missing)
        return result


class BaseConfig(ABC):
    """Abstract base class for configurations.

    Config classes inherit from this and implement:
    - validate(): Check if the configuration is valid
    - health_check(): Report whether what the config describes is healthy
    - to_dict(): Return config as dict with secrets masked
    - from_env(): Class method to load config from an environment mapping
    """

    @abstractmethod
    def validate(self) -> ValidationResult:
        """Validate the configuration."""
        ...

    @abstractmethod
    def health_check(self) -> HealthCheckResult:
        """Check whether the configured subject is healthy."""
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Return configuration as a dictionary with secrets masked.

        Sensitive values (tokens, keys, passwords) are replaced with masked
        values produced by validators.mask_secret.
        """
        ...

    @classmethod
    @abstractmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "BaseConfig":
        """Load configuration from an environment mapping and config files.

        Raises:
            ValueError: If configuration values are malformed
        """
        ...

    @property
    def service_name(self) -> str:
        """Return the name of the subject this config is for.

        Default implementation returns the class name without 'Config' suffix.
        """
        name = self.__class__.__name__
        if name.endswith("Config"):
            name = name[:-6]
        return name.lower()
