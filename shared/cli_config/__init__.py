"""
Configuration framework for the cli container bootstrap.

This module provides:
- BaseConfig: Abstract base class for configurations
- ValidationResult: Result of configuration validation
- HealthCheckResult: Result of health checks
- Validators and loading utilities

Usage:
    from cli_config import BaseConfig, ValidationResult
    from cli_config.validators import mask_secret
"""

from .base import BaseConfig, ConfigStatus, HealthCheckResult, ValidationResult


__all__ = [
    "BaseConfig",
    "ConfigStatus",
    "HealthCheckResult",
    "ValidationResult",
]
