"""Republish SECRET_-prefixed variables under their plain names."""

import re
import shlex
from collections.abc import MutableMapping
from pathlib import Path

from cli_logging import CliLogger, get_logger

from .config import SECRET_PREFIX


# Names a POSIX shell accepts in `export NAME=...`
SHELL_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class SecretExporter:
    """Export ``SECRET_FOO`` as ``FOO`` for this process and future login shells.

    Each exported variable is appended to a profile script (sourced by every
    login session) and set in the bootstrap environment, which the final
    process inherits. The profile is append-only: a container restart adds
    the lines again.
    """

    def __init__(self, profile_file: Path, logger: CliLogger | None = None):
        self.profile_file = profile_file
        self.logger = logger or get_logger("cli-startup")

    def export_all(self, env: MutableMapping[str, str]) -> list[str]:
        """Export every secret found in ``env``.

        Returns:
            The unprefixed names that were exported, in order
        """
        secret_keys = sorted(k for k in env if k.startswith(SECRET_PREFIX))
        exported: list[str] = []
        lines: list[str] = []

        for secret_key in secret_keys:
            key = secret_key[len(SECRET_PREFIX) :]
            if not SHELL_NAME_RE.fullmatch(key):
                self.logger.debug(f"Skipping {secret_key}: {key!r} is not a valid variable name")
                continue
            value = env.get(secret_key) or ""
            lines.append(f"export {key}={shlex.quote(value)}\n")
            env[key] = value
            exported.append(key)

        if lines:
            self.profile_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.profile_file, "a") as f:
                f.writelines(lines)

        if exported:
            self.logger.debug(f"Exported secrets: {', '.join(exported)}")
        return exported
