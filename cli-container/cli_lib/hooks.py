"""Run the project's custom startup script."""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from cli_logging import CliLogger, get_logger

from .runtime import login_shell, run_cmd


@dataclass
class HookResult:
    script: Path
    returncode: int | None
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CustomHookRunner:
    """Execute an executable project script in a login session of the managed user.

    The script's output goes straight to the container log. Failures are
    logged and reported, never raised.
    """

    def __init__(
        self,
        script: Path,
        user: str,
        logger: CliLogger | None = None,
        timeout: float | None = None,
    ):
        self.script = script
        self.user = user
        self.logger = logger or get_logger("cli-startup")
        self.timeout = timeout

    def is_present(self) -> bool:
        return self.script.is_file() and os.access(self.script, os.X_OK)

    def run(self) -> HookResult | None:
        """Run the hook if present.

        Returns:
            HookResult, or None if there is no executable hook
        """
        if not self.is_present():
            return None

        self.logger.debug(f"Running custom startup script {self.script}...")
        try:
            result = run_cmd(
                login_shell(self.user, str(self.script)), check=False, timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            self.logger.error(
                f"ERROR: Custom startup script timed out after {self.timeout}s: {self.script}"
            )
            return HookResult(script=self.script, returncode=None, timed_out=True)

        hook_result = HookResult(script=self.script, returncode=result.returncode)
        if hook_result.success:
            self.logger.debug("Custom startup script executed successfully.")
        else:
            self.logger.error(
                f"ERROR: Custom startup script execution failed (exit {result.returncode})."
            )
        return hook_result
