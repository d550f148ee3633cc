#!/usr/bin/env python3
"""
cli container entrypoint.

Runs as root. Bootstraps the container, then replaces itself with
supervisord (service mode) or the given command running as the managed user.
"""

import sys
from pathlib import Path


_SCRIPT_DIR = Path(__file__).parent.resolve()
for _path in (_SCRIPT_DIR, _SCRIPT_DIR.parent / "shared"):
    if _path.exists() and str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from cli_lib.cli import startup_main  # noqa: E402


if __name__ == "__main__":
    sys.exit(startup_main())
