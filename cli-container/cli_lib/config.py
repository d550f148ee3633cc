"""
Bootstrap configuration.

Settings come from two places:
- the container environment (HOST_UID, PROJECT_ROOT, feature flags, ...)
- an optional YAML file overriding the image's filesystem layout

The environment is held as a mutable mapping rather than read from
os.environ directly: secrets exported during bootstrap must be visible to
every later step, and tests inject plain dicts.
"""

import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from cli_config import BaseConfig, HealthCheckResult, ValidationResult
from cli_config.utils import is_flag_enabled, load_yaml_file, parse_int
from cli_config.validators import mask_secret, validate_email

from .errors import ConfigError
from .identity import IdentityTarget


DEFAULT_CONFIG_FILE = Path("/etc/cli-bootstrap/config.yaml")
DEFAULT_USER = "docker"
DEFAULT_OWNER_ID = 1000
DEFAULT_COMMAND_TIMEOUT = 300.0

SECRET_PREFIX = "SECRET_"

# Variables whose values are masked by to_dict()
SENSITIVE_VARS = ("ACAPI_KEY", "TERMINUS_TOKEN")


@dataclass
class Paths:
    """Filesystem layout of the cli image."""

    home_dir: Path = Path("/home/docker")
    project_root: Path = Path("/var/www")
    profile_file: Path = Path("/etc/profile.d/secrets.sh")
    readiness_marker: Path = Path("/var/run/cli")
    supervisor_pid: Path = Path("/run/supervisord.pid")
    service_pids: tuple[Path, ...] = (Path("/run/php-fpm.pid"), Path("/run/sshd.pid"))
    supervisor_conf: Path = Path("/etc/supervisor/supervisord.conf")
    supervisor_conf_dir: Path = Path("/etc/supervisor/conf.d")
    php_conf_dir: Path = Path("/usr/local/etc/php/conf.d")
    php_fpm_conf_dir: Path = Path("/usr/local/etc/php-fpm.d")
    xdebug_source: Path = Path("/opt/docker-php-ext-xdebug.ini")
    ide_source: Path = Path("/opt/code-server/supervisord-code-server.conf")

    @property
    def ssh_key(self) -> Path:
        return self.home_dir / ".ssh" / "id_rsa"

    @property
    def cli_service_dir(self) -> Path:
        return self.project_root / ".docksal" / "services" / "cli"

    @property
    def crontab_file(self) -> Path:
        return self.cli_service_dir / "crontab"

    @property
    def startup_hook(self) -> Path:
        return self.cli_service_dir / "startup.sh"

    @property
    def php_overrides_dir(self) -> Path:
        return self.project_root / ".docksal" / "etc" / "php"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Paths":
        """Build a layout from config-file values, keeping defaults for the rest.

        Raises:
            ConfigError: On unknown keys or values of the wrong shape
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown path settings: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name == "service_pids":
                if not isinstance(value, list):
                    raise ConfigError("service_pids must be a list of paths")
                kwargs[name] = tuple(Path(str(p)) for p in value)
            else:
                if not isinstance(value, str):
                    raise ConfigError(f"{name} must be a path string")
                kwargs[name] = Path(value)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                result[f.name] = [str(p) for p in value]
            else:
                result[f.name] = str(value)
        return result


def load_file_settings(env: Mapping[str, str]) -> tuple[str, Paths]:
    """Read the managed user name and path layout from the YAML config file.

    PROJECT_ROOT in the environment takes precedence over the file.
    """
    config_file = Path(env.get("BOOTSTRAP_CONFIG_FILE") or DEFAULT_CONFIG_FILE)
    try:
        data = dict(load_yaml_file(config_file))
    except (OSError, ValueError) as e:
        raise ConfigError(str(e)) from e

    user = data.pop("user", DEFAULT_USER)
    if not isinstance(user, str) or not user:
        raise ConfigError("user must be a non-empty string")
    if "home_dir" not in data:
        data["home_dir"] = f"/home/{user}"

    paths = Paths.from_mapping(data)
    if env.get("PROJECT_ROOT"):
        paths.project_root = Path(env["PROJECT_ROOT"])
    return user, paths


@dataclass
class BootstrapConfig(BaseConfig):
    """Container bootstrap configuration.

    Values that later steps may receive through exported secrets (credentials,
    git identity, host ids) are read from ``env`` on access, not at load time.
    """

    env: MutableMapping[str, str] = field(default_factory=lambda: os.environ)
    user: str = DEFAULT_USER
    paths: Paths = field(default_factory=Paths)
    debug: bool = False
    command_timeout: float | None = DEFAULT_COMMAND_TIMEOUT
    log_file: Path | None = None

    @classmethod
    def from_env(cls, env: MutableMapping[str, str] | None = None) -> "BootstrapConfig":
        """Load configuration from ``env`` (default: os.environ) and the config file.

        Raises:
            ConfigError: If a setting is malformed
        """
        env = os.environ if env is None else env
        user, paths = load_file_settings(env)

        try:
            timeout = parse_int(
                env.get("BOOTSTRAP_COMMAND_TIMEOUT"),
                "BOOTSTRAP_COMMAND_TIMEOUT",
                default=int(DEFAULT_COMMAND_TIMEOUT),
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e

        config = cls(
            env=env,
            user=user,
            paths=paths,
            debug=is_flag_enabled(env.get("DEBUG")),
            command_timeout=float(timeout) if timeout and timeout > 0 else None,
            log_file=Path(env["BOOTSTRAP_LOG_FILE"]) if env.get("BOOTSTRAP_LOG_FILE") else None,
        )
        # Fail fast on malformed ids instead of halfway through bootstrap
        config._int("HOST_UID")
        config._int("HOST_GID")
        return config

    def _get(self, name: str) -> str:
        return self.env.get(name, "") or ""

    def _int(self, name: str) -> int | None:
        try:
            return parse_int(self.env.get(name), name)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @property
    def identity_target(self) -> IdentityTarget | None:
        """Target ids for the managed account, or None unless both are set."""
        uid = self._int("HOST_UID")
        gid = self._int("HOST_GID")
        if uid is None or gid is None:
            return None
        return IdentityTarget(uid=uid, gid=gid)

    @property
    def owner(self) -> tuple[int, int]:
        """uid/gid applied to the home directory and project root."""
        uid = self._int("HOST_UID")
        gid = self._int("HOST_GID")
        return (
            DEFAULT_OWNER_ID if uid is None else uid,
            DEFAULT_OWNER_ID if gid is None else gid,
        )

    @property
    def xdebug_enabled(self) -> bool:
        return is_flag_enabled(self.env.get("XDEBUG_ENABLED"))

    @property
    def ide_enabled(self) -> bool:
        return is_flag_enabled(self.env.get("IDE_ENABLED"))

    @property
    def ssh_key_provided(self) -> bool:
        return bool(self._get("SECRET_SSH_PRIVATE_KEY"))

    @property
    def git_user_name(self) -> str:
        return self._get("GIT_USER_NAME")

    @property
    def git_user_email(self) -> str:
        return self._get("GIT_USER_EMAIL")

    def validate(self) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        for name in ("HOST_UID", "HOST_GID"):
            try:
                self._int(name)
            except ConfigError as e:
                errors.append(str(e))

        if bool(self._get("HOST_UID")) != bool(self._get("HOST_GID")):
            warnings.append("HOST_UID and HOST_GID must both be set for uid/gid mapping")

        if self.git_user_email:
            is_valid, error = validate_email(self.git_user_email)
            if not is_valid:
                warnings.append(f"GIT_USER_EMAIL: {error}")

        if bool(self._get("ACAPI_EMAIL")) != bool(self._get("ACAPI_KEY")):
            warnings.append("ACAPI_EMAIL and ACAPI_KEY must both be set for Acquia login")

        if errors:
            return ValidationResult.invalid(errors, warnings)
        return ValidationResult.valid(warnings)

    def health_check(self) -> HealthCheckResult:
        from .readiness import check_health

        return check_health(self.paths)

    def to_dict(self) -> dict[str, Any]:
        secrets = sorted(k for k in self.env if k.startswith(SECRET_PREFIX))
        return {
            "user": self.user,
            "debug": self.debug,
            "command_timeout": self.command_timeout,
            "log_file": str(self.log_file) if self.log_file else None,
            "owner": list(self.owner),
            "identity_target": (
                [self.identity_target.uid, self.identity_target.gid]
                if self.identity_target
                else None
            ),
            "features": {"xdebug": self.xdebug_enabled, "ide": self.ide_enabled},
            "credentials": {name: mask_secret(self._get(name) or None) for name in SENSITIVE_VARS},
            "secrets": {name: mask_secret(self._get(name) or None) for name in secrets},
            "git": {"name": self.git_user_name, "email": self.git_user_email},
            "paths": self.paths.to_dict(),
        }
