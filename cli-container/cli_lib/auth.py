"""
Best-effort logins against hosting provider APIs.

Each provider CLI stores its session under the managed user's home, so logins
run in a login session of that user and must happen after the home
directory's ownership has been reset.
"""

import shlex
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from cli_logging import CliLogger, get_logger

from .runtime import login_shell, run_cmd, timeout_output


ACQUIA_ENDPOINT = "https://cloudapi.acquia.com/v1"


@dataclass(frozen=True)
class AuthProvider:
    """An external account whose CLI can be logged in from credentials."""

    name: str
    label: str
    required: tuple[str, ...]
    build_command: Callable[[Mapping[str, str]], str]

    def credentials(self, env: Mapping[str, str]) -> dict[str, str] | None:
        """Return the provider's credentials, or None unless all are set."""
        values = {name: env.get(name, "") for name in self.required}
        if not all(values.values()):
            return None
        return values


def _acquia_command(credentials: Mapping[str, str]) -> str:
    email = shlex.quote(credentials["ACAPI_EMAIL"])
    key = shlex.quote(credentials["ACAPI_KEY"])
    return (
        f"drush ac-api-login --email={email} --key={key} "
        f"--endpoint={shlex.quote(ACQUIA_ENDPOINT)} && drush ac-site-list"
    )


def _terminus_command(credentials: Mapping[str, str]) -> str:
    token = shlex.quote(credentials["TERMINUS_TOKEN"])
    return f"terminus auth:login --machine-token={token}"


ACQUIA = AuthProvider(
    name="acquia",
    label="Acquia",
    required=("ACAPI_EMAIL", "ACAPI_KEY"),
    build_command=_acquia_command,
)
PANTHEON = AuthProvider(
    name="pantheon",
    label="Pantheon",
    required=("TERMINUS_TOKEN",),
    build_command=_terminus_command,
)
PROVIDERS: tuple[AuthProvider, ...] = (ACQUIA, PANTHEON)


@dataclass
class AuthResult:
    provider: str
    success: bool
    output: str = ""
    returncode: int | None = None


class ExternalAuthClient:
    """Runs provider logins as the managed user; failures are logged, not raised."""

    def __init__(
        self,
        user: str,
        logger: CliLogger | None = None,
        timeout: float | None = None,
        providers: tuple[AuthProvider, ...] = PROVIDERS,
    ):
        self.user = user
        self.logger = logger or get_logger("cli-startup")
        self.timeout = timeout
        self.providers = providers

    def login(self, provider: AuthProvider, credentials: Mapping[str, str]) -> AuthResult:
        self.logger.debug(f"Authenticating with {provider.label}...")
        command = provider.build_command(credentials)

        try:
            result = run_cmd(
                login_shell(self.user, command),
                check=False,
                timeout=self.timeout,
                merge_stderr=True,
            )
        except subprocess.TimeoutExpired as e:
            output = timeout_output(e) + f"\nTimed out after {self.timeout}s"
            self.logger.error(f"ERROR: {provider.label} authentication failed.\n{output.strip()}")
            return AuthResult(provider=provider.name, success=False, output=output)

        output = result.stdout or ""
        if result.returncode != 0:
            self.logger.error(
                f"ERROR: {provider.label} authentication failed "
                f"(exit {result.returncode}).\n{output.strip()}"
            )
            return AuthResult(
                provider=provider.name, success=False, output=output, returncode=result.returncode
            )

        return AuthResult(provider=provider.name, success=True, output=output, returncode=0)

    def login_all(self, env: Mapping[str, str]) -> list[AuthResult]:
        """Log in to every provider whose credentials are present in ``env``."""
        results = []
        for provider in self.providers:
            credentials = provider.credentials(env)
            if credentials is None:
                continue
            results.append(self.login(provider, credentials))
        return results
