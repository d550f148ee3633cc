"""Subprocess helpers shared by bootstrap components."""

import subprocess
from collections.abc import Mapping


def run_cmd(
    cmd: list[str],
    check: bool = True,
    capture: bool = False,
    timeout: float | None = 30,
    as_user: str | tuple[int, int] | None = None,
    input: str | None = None,
    env: Mapping[str, str] | None = None,
    merge_stderr: bool = False,
) -> subprocess.CompletedProcess:
    """Run a command, optionally as a different user via gosu.

    With ``merge_stderr`` the command's stderr is folded into the captured
    stdout, so failures can be reported with their full output.
    """
    if as_user is not None:
        user = f"{as_user[0]}:{as_user[1]}" if isinstance(as_user, tuple) else as_user
        cmd = ["gosu", user] + cmd

    kwargs: dict = {}
    if merge_stderr:
        kwargs["stdout"] = subprocess.PIPE
        kwargs["stderr"] = subprocess.STDOUT
    else:
        kwargs["capture_output"] = capture

    return subprocess.run(
        cmd,
        check=check,
        text=True,
        timeout=timeout,
        input=input,
        env=dict(env) if env is not None else None,
        **kwargs,
    )


def login_shell(user: str, command: str) -> list[str]:
    """Build a command that runs ``command`` in a login session of ``user``.

    A login session sources the user's profile, including exported secrets.
    """
    return ["su", "-l", user, "-c", command]


def timeout_output(exc: subprocess.TimeoutExpired) -> str:
    """Return whatever output a timed-out command produced, as text."""
    output = exc.output or ""
    if isinstance(output, bytes):
        output = output.decode(errors="replace")
    return output
