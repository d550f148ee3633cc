"""Align the managed account's uid/gid with the host user's."""

import grp
import pwd
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cli_logging import CliLogger, get_logger

from .runtime import run_cmd


@dataclass(frozen=True)
class IdentityTarget:
    """Numeric ids the managed account should carry."""

    uid: int
    gid: int


class IdentityStore(ABC):
    """Access to the account database."""

    @abstractmethod
    def get_ids(self, user: str) -> tuple[int, int]:
        """Return (uid, primary gid) of ``user``."""
        ...

    @abstractmethod
    def primary_group(self, user: str) -> str:
        """Return the name of ``user``'s primary group."""
        ...

    @abstractmethod
    def set_uid(self, user: str, uid: int) -> None:
        """Change ``user``'s uid, allowing a duplicate id."""
        ...

    @abstractmethod
    def set_group_gid(self, group: str, gid: int) -> None:
        """Change ``group``'s gid, allowing a duplicate id."""
        ...


class SystemIdentityStore(IdentityStore):
    """IdentityStore backed by /etc/passwd, /etc/group and shadow-utils."""

    def __init__(self, timeout: float | None = 30):
        self.timeout = timeout

    def get_ids(self, user: str) -> tuple[int, int]:
        entry = pwd.getpwnam(user)
        return entry.pw_uid, entry.pw_gid

    def primary_group(self, user: str) -> str:
        return grp.getgrgid(pwd.getpwnam(user).pw_gid).gr_name

    def set_uid(self, user: str, uid: int) -> None:
        run_cmd(["usermod", "-u", str(uid), "-o", user], timeout=self.timeout)

    def set_group_gid(self, group: str, gid: int) -> None:
        run_cmd(["groupmod", "-g", str(gid), "-o", group], timeout=self.timeout)


class IdentityReconciler:
    """Overwrite the managed account's ids when they differ from the target."""

    def __init__(self, store: IdentityStore, user: str, logger: CliLogger | None = None):
        self.store = store
        self.user = user
        self.logger = logger or get_logger("cli-startup")

    def reconcile(self, target: IdentityTarget | None) -> bool:
        """Apply ``target`` to the managed account.

        Returns:
            True if the account was modified, False if there was nothing to do
        """
        if target is None:
            return False

        current_uid, current_gid = self.store.get_ids(self.user)
        if (current_uid, current_gid) == (target.uid, target.gid):
            self.logger.debug(
                f"{self.user} uid/gid already match {target.uid}/{target.gid}"
            )
            return False

        self.logger.debug(
            f"Updating {self.user} user uid/gid to {target.uid}/{target.gid} "
            "to match the host user uid/gid..."
        )
        # Resolve the group before usermod, while the account still points at it
        group = self.store.primary_group(self.user)
        if current_uid != target.uid:
            self.store.set_uid(self.user, target.uid)
        if current_gid != target.gid:
            self.store.set_group_gid(group, target.gid)
        return True
