"""Reset ownership of the managed user's paths."""

import os
from pathlib import Path

from cli_logging import CliLogger, get_logger

from .runtime import run_cmd


class PermissionFixer:
    """Apply ownership after uid/gid changes and image-time COPY operations.

    Ownership of the home directory is reset at runtime rather than baked into
    the image, which keeps the image layers small. The project root only gets
    a non-recursive fix: Docker resets the mount point to 0:0 when the
    container is recreated, and a recursive chown of a project tree is slow.
    """

    def __init__(self, logger: CliLogger | None = None, timeout: float | None = None):
        self.logger = logger or get_logger("cli-startup")
        self.timeout = timeout

    def fix_ownership(self, path: Path, uid: int, gid: int, recursive: bool) -> None:
        """Change ownership of ``path``.

        Raises:
            subprocess.CalledProcessError: If the recursive chown fails
            OSError: If the non-recursive chown fails
        """
        self.logger.debug(
            f"Resetting ownership on {path} to {uid}:{gid}"
            + (" (recursive)" if recursive else "")
        )
        if recursive:
            run_cmd(["chown", "-R", f"{uid}:{gid}", str(path)], timeout=self.timeout)
        else:
            os.chown(path, uid, gid)
