"""Git identity for the managed user."""

from abc import ABC, abstractmethod

from .runtime import run_cmd


def resolve_identity(name: str, email: str) -> tuple[str, str] | None:
    """Return the (name, email) to configure, or None unless both are given."""
    if not name or not email:
        return None
    return name, email


class VersionControlClient(ABC):
    @abstractmethod
    def set_global(self, key: str, value: str) -> None:
        """Set a global configuration value for the managed user."""
        ...

    def configure_identity(self, name: str, email: str) -> None:
        self.set_global("user.email", email)
        self.set_global("user.name", name)


class GitClient(VersionControlClient):
    """Runs ``git config --global`` as the managed user via gosu."""

    def __init__(self, user: str, timeout: float | None = 30):
        self.user = user
        self.timeout = timeout

    def set_global(self, key: str, value: str) -> None:
        run_cmd(["git", "config", "--global", key, value], as_user=self.user, timeout=self.timeout)
