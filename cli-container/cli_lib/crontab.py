"""Install the project's crontab for the managed user."""

from abc import ABC, abstractmethod
from pathlib import Path

from cli_logging import CliLogger, get_logger

from .runtime import run_cmd


class CrontabStore(ABC):
    @abstractmethod
    def install(self, user: str, content: str) -> None:
        """Replace ``user``'s whole crontab with ``content``."""
        ...

    @abstractmethod
    def read(self, user: str) -> str:
        """Return ``user``'s installed crontab."""
        ...


class SystemCrontabStore(CrontabStore):
    """CrontabStore backed by the crontab(1) command."""

    def __init__(self, timeout: float | None = 30):
        self.timeout = timeout

    def install(self, user: str, content: str) -> None:
        run_cmd(["crontab", "-u", user, "-"], input=content, timeout=self.timeout)

    def read(self, user: str) -> str:
        result = run_cmd(["crontab", "-u", user, "-l"], capture=True, timeout=self.timeout)
        return result.stdout


class CrontabLoader:
    """Replace the managed user's crontab with the project's, if the project has one.

    A missing project crontab leaves the installed one untouched.
    """

    def __init__(
        self,
        store: CrontabStore,
        crontab_file: Path,
        user: str,
        logger: CliLogger | None = None,
    ):
        self.store = store
        self.crontab_file = crontab_file
        self.user = user
        self.logger = logger or get_logger("cli-startup")

    def load(self) -> bool:
        """Install the project crontab.

        Returns:
            True if a crontab was installed, False if the project has none
        """
        if not self.crontab_file.is_file():
            return False
        self.logger.debug(f"Loading crontab from {self.crontab_file}...")
        self.store.install(self.user, self.crontab_file.read_text())
        return True
