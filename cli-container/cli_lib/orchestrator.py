"""
Container bootstrap sequence.

Runs the bootstrap steps in a fixed order (later steps depend on the side
effects of earlier ones) and then replaces the current process with the
service supervisor or the user's command.

Step order:
     1. ssh-key      render ~/.ssh/id_rsa from its template      (best effort)
     2. secrets      export SECRET_* variables                   (mandatory)
     3. identity     align uid/gid with the host user            (mandatory)
     4. xdebug, ide  optional features                           (best effort)
     5. overrides    project-level PHP overrides                 (best effort)
     6. permissions  reset ownership of home and project root    (mandatory)
     7. auth         provider logins, need a writable home       (best effort)
     8. crontab      install the project crontab                 (best effort)
     9. git          git identity                                (best effort)
    10. readiness    write the readiness marker                  (mandatory)
    11. hook         project startup script                      (best effort)
    12. hand-off
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import NoReturn

from cli_logging import CliLogger, ContextScope, configure_logging, get_logger

from .auth import ExternalAuthClient
from .config import BootstrapConfig
from .crontab import CrontabLoader, CrontabStore, SystemCrontabStore
from .errors import BootstrapError, UsageError
from .features import FeatureToggler
from .git import GitClient, VersionControlClient, resolve_identity
from .hooks import CustomHookRunner
from .identity import IdentityReconciler, IdentityStore, SystemIdentityStore
from .permissions import PermissionFixer
from .readiness import ReadinessMarker
from .secret_env import SecretExporter
from .templates import GomplateEngine, TemplateEngine, TemplateRenderer
from .timing import StartupTimer


SERVICE_COMMAND = "supervisord"

# Failures a best-effort step may absorb; anything else is a bug and propagates
RECOVERABLE_ERRORS = (BootstrapError, OSError, subprocess.SubprocessError)


class Mode(Enum):
    SERVICE = "service"
    COMMAND = "command"


class StepStatus(Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StepOutcome:
    name: str
    status: StepStatus
    duration_ms: float = 0.0
    detail: str = ""


@dataclass
class BootstrapReport:
    """What happened during bootstrap, step by step."""

    outcomes: list[StepOutcome] = field(default_factory=list)
    ready: bool = False

    def record(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    def status_of(self, name: str) -> StepStatus | None:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome.status
        return None

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status == StepStatus.FAILED]


@dataclass(frozen=True)
class HandOff:
    """The process image that replaces the bootstrap."""

    mode: Mode
    argv: tuple[str, ...]
    env: dict[str, str]


def resolve_mode(command: Sequence[str]) -> Mode:
    """Decide the hand-off mode from the entrypoint arguments.

    Raises:
        UsageError: If no command was given
    """
    if not command:
        raise UsageError("No command given: pass 'supervisord' or a command to run")
    return Mode.SERVICE if command[0] == SERVICE_COMMAND else Mode.COMMAND


class ProcessLauncher(ABC):
    @abstractmethod
    def replace(self, handoff: HandOff) -> NoReturn:
        """Replace the current process. Never returns."""
        ...


class ExecLauncher(ProcessLauncher):
    def replace(self, handoff: HandOff) -> NoReturn:
        os.execvpe(handoff.argv[0], list(handoff.argv), handoff.env)


class BootstrapOrchestrator:
    """Sequences the bootstrap steps and hands off execution.

    Collaborators that touch the OS can be injected; the defaults are the real
    implementations.
    """

    def __init__(
        self,
        config: BootstrapConfig,
        *,
        logger: CliLogger | None = None,
        identity_store: IdentityStore | None = None,
        template_engine: TemplateEngine | None = None,
        crontab_store: CrontabStore | None = None,
        vcs: VersionControlClient | None = None,
        launcher: ProcessLauncher | None = None,
    ):
        self.config = config
        self.logger = logger or get_logger("cli-startup")
        timeout = config.command_timeout
        paths = config.paths

        self.secret_exporter = SecretExporter(paths.profile_file, self.logger)
        self.reconciler = IdentityReconciler(
            identity_store or SystemIdentityStore(timeout), config.user, self.logger
        )
        self.renderer = TemplateRenderer(
            template_engine or GomplateEngine(timeout=timeout), config.env, self.logger
        )
        self.features = FeatureToggler(paths, self.logger)
        self.permissions = PermissionFixer(self.logger, timeout)
        self.auth = ExternalAuthClient(config.user, self.logger, timeout)
        self.crontab = CrontabLoader(
            crontab_store or SystemCrontabStore(timeout), paths.crontab_file, config.user, self.logger
        )
        self.vcs = vcs or GitClient(config.user, timeout)
        self.hook = CustomHookRunner(paths.startup_hook, config.user, self.logger, timeout)
        self.marker = ReadinessMarker(paths.readiness_marker)
        self.launcher = launcher or ExecLauncher()
        self.timer = StartupTimer()

    # =========================================================================
    # Steps
    # =========================================================================

    def _add_ssh_key(self) -> StepStatus:
        if not self.config.ssh_key_provided:
            return StepStatus.SKIPPED
        self.logger.debug("Adding a private SSH key from SECRET_SSH_PRIVATE_KEY...")
        key = self.renderer.render(self.config.paths.ssh_key)
        key.chmod(0o600)
        return StepStatus.OK

    def _export_secrets(self) -> StepStatus:
        self.secret_exporter.export_all(self.config.env)
        return StepStatus.OK

    def _reconcile_identity(self) -> StepStatus:
        target = self.config.identity_target
        if target is None:
            return StepStatus.SKIPPED
        self.reconciler.reconcile(target)
        return StepStatus.OK

    def _enable_feature(self, feature: str, enabled: bool) -> Callable[[], StepStatus]:
        def action() -> StepStatus:
            if not enabled:
                return StepStatus.SKIPPED
            self.features.enable(feature)
            return StepStatus.OK

        return action

    def _link_overrides(self) -> StepStatus:
        return StepStatus.OK if self.features.link_overrides() else StepStatus.SKIPPED

    def _fix_permissions(self) -> StepStatus:
        uid, gid = self.config.owner
        paths = self.config.paths
        self.logger.debug(f"Resetting permissions on {paths.home_dir} and {paths.project_root}...")
        self.permissions.fix_ownership(paths.home_dir, uid, gid, recursive=True)
        self.permissions.fix_ownership(paths.project_root, uid, gid, recursive=False)
        return StepStatus.OK

    def _login(self) -> StepStatus:
        results = self.auth.login_all(self.config.env)
        if not results:
            return StepStatus.SKIPPED
        return StepStatus.OK if all(r.success for r in results) else StepStatus.FAILED

    def _load_crontab(self) -> StepStatus:
        return StepStatus.OK if self.crontab.load() else StepStatus.SKIPPED

    def _configure_git(self) -> StepStatus:
        identity = resolve_identity(self.config.git_user_name, self.config.git_user_email)
        if identity is None:
            return StepStatus.SKIPPED
        self.logger.debug("Configuring git...")
        self.vcs.configure_identity(*identity)
        return StepStatus.OK

    def _mark_ready(self) -> StepStatus:
        self.marker.mark_ready()
        self.logger.debug("Preliminary initialization completed.")
        return StepStatus.OK

    def _run_hook(self) -> StepStatus:
        result = self.hook.run()
        if result is None:
            return StepStatus.SKIPPED
        return StepStatus.OK if result.success else StepStatus.FAILED

    # =========================================================================
    # Sequencing
    # =========================================================================

    def _step(
        self,
        report: BootstrapReport,
        name: str,
        action: Callable[[], StepStatus],
        *,
        best_effort: bool = False,
    ) -> StepStatus:
        with ContextScope(step=name):
            self.timer.start_phase(name)
            try:
                status = action()
            except Exception as e:
                report.record(StepOutcome(name, StepStatus.FAILED, self.timer.end_phase(), str(e)))
                if best_effort and isinstance(e, RECOVERABLE_ERRORS):
                    self.logger.error(f"ERROR: {e}")
                    return StepStatus.FAILED
                raise
            report.record(StepOutcome(name, status, self.timer.end_phase()))
            return status

    def bootstrap(self) -> BootstrapReport:
        """Run steps 1-11.

        Raises:
            Exception: Whatever a mandatory step raised; the readiness marker
                is not written in that case
        """
        report = BootstrapReport()
        config = self.config

        self._step(report, "ssh-key", self._add_ssh_key, best_effort=True)
        self._step(report, "secrets", self._export_secrets)
        self._step(report, "identity", self._reconcile_identity)
        self._step(
            report, "xdebug", self._enable_feature("xdebug", config.xdebug_enabled), best_effort=True
        )
        self._step(report, "ide", self._enable_feature("ide", config.ide_enabled), best_effort=True)
        self._step(report, "overrides", self._link_overrides, best_effort=True)
        self._step(report, "permissions", self._fix_permissions)
        self._step(report, "auth", self._login, best_effort=True)
        self._step(report, "crontab", self._load_crontab, best_effort=True)
        self._step(report, "git", self._configure_git, best_effort=True)
        self._step(report, "readiness", self._mark_ready)
        report.ready = True
        self._step(report, "hook", self._run_hook, best_effort=True)

        return report

    def plan_handoff(self, mode: Mode, command: Sequence[str]) -> HandOff:
        """Build the final process image from the post-bootstrap environment."""
        env = dict(self.config.env)
        if mode is Mode.SERVICE:
            argv = ("gosu", "root", SERVICE_COMMAND, "-c", str(self.config.paths.supervisor_conf))
        else:
            argv = ("gosu", self.config.user, *command)
        return HandOff(mode=mode, argv=argv, env=env)

    def run(self, command: Sequence[str]) -> NoReturn:
        """Bootstrap the container and hand off to ``command``.

        Raises:
            UsageError: If ``command`` is empty (checked before any step runs)
        """
        mode = resolve_mode(command)
        if mode is Mode.SERVICE:
            # Service mode always traces
            self.config.debug = True
        configure_logging(self.logger, debug=self.config.debug)

        with ContextScope(mode=mode.value):
            report = self.bootstrap()
            handoff = self.plan_handoff(mode, command)

            if self.logger.level <= logging.DEBUG:
                for line in self.timer.summary_lines():
                    self.logger.debug(line)
                for outcome in report.failed:
                    self.logger.debug(f"Step failed: {outcome.name}")
            self.logger.debug(f"Passing execution to: {' '.join(command)}")

        self.launcher.replace(handoff)
