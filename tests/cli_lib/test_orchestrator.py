"""Tests for the bootstrap sequence and hand-off."""

import logging
import stat
import subprocess
from unittest.mock import MagicMock

import pytest

from cli_lib.errors import UsageError
from cli_lib.orchestrator import (
    BootstrapReport,
    ExecLauncher,
    HandOff,
    Mode,
    StepOutcome,
    StepStatus,
    resolve_mode,
)

from bootstrap_fakes import FakeCrontabStore, FakeTemplateEngine, FakeVcs, HandedOff


def write_hook(paths):
    hook = paths.startup_hook
    hook.parent.mkdir(parents=True, exist_ok=True)
    hook.write_text("#!/bin/sh\ntrue\n")
    hook.chmod(0o755)
    return hook


class TestResolveMode:
    def test_supervisord_is_service_mode(self):
        assert resolve_mode(["supervisord"]) is Mode.SERVICE

    def test_anything_else_is_command_mode(self):
        assert resolve_mode(["bash", "-c", "supervisord"]) is Mode.COMMAND

    def test_empty_command(self):
        with pytest.raises(UsageError):
            resolve_mode([])


class TestBootstrapReport:
    def test_failed_and_status_of(self):
        report = BootstrapReport()
        report.record(StepOutcome("secrets", StepStatus.OK))
        report.record(StepOutcome("auth", StepStatus.FAILED))

        assert report.status_of("secrets") is StepStatus.OK
        assert report.status_of("hook") is None
        assert [o.name for o in report.failed] == ["auth"]


class TestBootstrapSequence:
    """Tests for BootstrapOrchestrator.bootstrap."""

    def test_minimal_environment(self, make_orchestrator, paths, system_calls):
        """Test a start with no optional inputs: only mandatory work happens."""
        report = make_orchestrator().bootstrap()

        assert report.ready is True
        assert paths.readiness_marker.exists()
        assert [o.name for o in report.outcomes] == [
            "ssh-key",
            "secrets",
            "identity",
            "xdebug",
            "ide",
            "overrides",
            "permissions",
            "auth",
            "crontab",
            "git",
            "readiness",
            "hook",
        ]
        assert report.status_of("identity") is StepStatus.SKIPPED
        assert report.status_of("permissions") is StepStatus.OK
        assert report.failed == []

    def test_permissions_use_default_owner(self, make_orchestrator, paths, system_calls):
        make_orchestrator().bootstrap()

        system_calls.chown_r.assert_called_once_with(
            ["chown", "-R", "1000:1000", str(paths.home_dir)], timeout=5.0
        )
        system_calls.chown.assert_called_once_with(paths.project_root, 1000, 1000)

    def test_ssh_key_rendered_with_private_mode(self, make_orchestrator, env, paths, system_calls):
        """Test that the key is rendered from its template and made private."""
        env["SECRET_SSH_PRIVATE_KEY"] = "-----BEGIN KEY-----"
        paths.ssh_key.with_name("id_rsa.tmpl").write_text("{{ .Env.SECRET_SSH_PRIVATE_KEY }}\n")

        report = make_orchestrator().bootstrap()

        assert report.status_of("ssh-key") is StepStatus.OK
        assert paths.ssh_key.read_text() == "-----BEGIN KEY-----\n"
        assert stat.S_IMODE(paths.ssh_key.stat().st_mode) == 0o600

    def test_features_and_overrides(self, make_orchestrator, env, paths, system_calls):
        env["XDEBUG_ENABLED"] = "1"
        env["IDE_ENABLED"] = "0"
        paths.php_overrides_dir.mkdir(parents=True)
        (paths.php_overrides_dir / "php-fpm.conf").write_text("[www]\n")

        report = make_orchestrator().bootstrap()

        assert report.status_of("xdebug") is StepStatus.OK
        assert report.status_of("ide") is StepStatus.SKIPPED
        assert report.status_of("overrides") is StepStatus.OK
        assert (paths.php_conf_dir / paths.xdebug_source.name).is_symlink()
        assert not (paths.supervisor_conf_dir / "code-server.conf").exists()
        assert (paths.php_fpm_conf_dir / "zzz-php-fpm.conf").is_symlink()

    def test_blocked_override_keeps_step_going(self, make_orchestrator, paths, system_calls):
        paths.php_overrides_dir.mkdir(parents=True)
        (paths.php_overrides_dir / "php.ini").write_text("memory_limit=1G\n")
        (paths.php_overrides_dir / "php-fpm.conf").write_text("[www]\n")
        paths.php_conf_dir.mkdir(parents=True)
        (paths.php_conf_dir / "zzz-php.ini").write_text("local\n")

        report = make_orchestrator().bootstrap()

        assert report.status_of("overrides") is StepStatus.OK
        assert (paths.php_fpm_conf_dir / "zzz-php-fpm.conf").is_symlink()

    def test_identity_applied_before_permissions(
        self, make_orchestrator, env, identity_store, system_calls
    ):
        """Test that ownership is reset with the host ids after reconciliation."""
        env.update(HOST_UID="1500", HOST_GID="1600")
        order = []
        system_calls.chown_r.side_effect = lambda *a, **kw: order.append(
            ("chown", identity_store.get_ids("docker"))
        )

        make_orchestrator().bootstrap()

        assert order == [("chown", (1500, 1600))]
        assert system_calls.chown_r.call_args[0][0][2] == "1500:1600"

    def test_login_runs_after_permissions(self, make_orchestrator, env, system_calls):
        """Test that provider logins happen once the home directory is writable."""
        env["SECRET_TERMINUS_TOKEN"] = "tok"
        order = []
        system_calls.chown_r.side_effect = lambda *a, **kw: order.append("chown")

        def auth(*args, **kwargs):
            order.append("auth")
            return MagicMock(returncode=0, stdout="")

        system_calls.auth_run.side_effect = auth

        report = make_orchestrator().bootstrap()

        assert order == ["chown", "auth"]
        assert report.status_of("auth") is StepStatus.OK

    def test_exported_secret_feeds_later_steps(self, make_orchestrator, env, vcs, system_calls):
        """Test that SECRET_-derived values are seen by auth and git."""
        env["SECRET_TERMINUS_TOKEN"] = "tok"
        env["SECRET_GIT_USER_EMAIL"] = "jane@example.com"
        env["SECRET_GIT_USER_NAME"] = "Jane"

        make_orchestrator().bootstrap()

        command = system_calls.auth_run.call_args[0][0]
        assert command[-1] == "terminus auth:login --machine-token=tok"
        assert vcs.values == {"user.email": "jane@example.com", "user.name": "Jane"}

    def test_lone_git_email_leaves_git_untouched(self, make_orchestrator, env, vcs, system_calls):
        """Test that git is configured only when both name and email are set."""
        env["GIT_USER_EMAIL"] = "dev@example.com"

        report = make_orchestrator().bootstrap()

        assert report.status_of("git") is StepStatus.SKIPPED
        assert vcs.values == {}

    def test_crontab_installed(self, make_orchestrator, paths, crontab_store, system_calls):
        paths.crontab_file.parent.mkdir(parents=True)
        paths.crontab_file.write_text("* * * * * drush cron\n")

        report = make_orchestrator().bootstrap()

        assert report.status_of("crontab") is StepStatus.OK
        assert crontab_store.read("docker") == "* * * * * drush cron\n"

    def test_hook_runs_after_readiness(self, make_orchestrator, paths, system_calls):
        """Test that the marker exists by the time the hook runs."""
        write_hook(paths)
        seen = []
        system_calls.hook_run.side_effect = lambda *a, **kw: (
            seen.append(paths.readiness_marker.exists()) or MagicMock(returncode=0)
        )

        report = make_orchestrator().bootstrap()

        assert seen == [True]
        assert report.status_of("hook") is StepStatus.OK


class TestBootstrapFailures:
    """Tests for readiness under failures."""

    def test_mandatory_failure_leaves_no_marker(self, make_orchestrator, paths, system_calls):
        """Test that a failed ownership reset aborts before readiness."""
        system_calls.chown_r.side_effect = subprocess.CalledProcessError(1, ["chown"])
        orchestrator = make_orchestrator()

        with pytest.raises(subprocess.CalledProcessError):
            orchestrator.run(["bash"])

        assert not paths.readiness_marker.exists()
        assert orchestrator.launcher.handoff is None
        system_calls.auth_run.assert_not_called()

    def test_best_effort_failures_still_ready(self, make_orchestrator, env, paths, system_calls, capsys):
        """Test that failing optional steps are logged and bootstrap completes."""
        env.update(
            SECRET_SSH_PRIVATE_KEY="key",
            TERMINUS_TOKEN="bad",
            GIT_USER_NAME="Jane",
            GIT_USER_EMAIL="jane@example.com",
        )
        paths.ssh_key.with_name("id_rsa.tmpl").write_text("x")
        paths.crontab_file.parent.mkdir(parents=True)
        paths.crontab_file.write_text("* * * * * true\n")
        write_hook(paths)
        system_calls.auth_run.return_value = MagicMock(returncode=1, stdout="denied")
        system_calls.hook_run.return_value = MagicMock(returncode=2)
        orchestrator = make_orchestrator(
            template_engine=FakeTemplateEngine(fail=True),
            crontab_store=FakeCrontabStore(fail=True),
            vcs=FakeVcs(fail=True),
        )

        report = orchestrator.bootstrap()

        assert report.ready is True
        assert paths.readiness_marker.exists()
        assert sorted(o.name for o in report.failed) == ["auth", "crontab", "git", "hook", "ssh-key"]
        stderr = capsys.readouterr().err
        assert "ERROR: cannot render" in stderr
        assert "ERROR: Pantheon authentication failed" in stderr

    def test_missing_key_template_is_not_fatal(self, make_orchestrator, env, paths, system_calls):
        env["SECRET_SSH_PRIVATE_KEY"] = "key"

        report = make_orchestrator().bootstrap()

        assert report.status_of("ssh-key") is StepStatus.FAILED
        assert not paths.ssh_key.exists()
        assert report.ready is True

    def test_unexpected_error_in_optional_step_propagates(
        self, make_orchestrator, env, paths, system_calls
    ):
        """Test that programming errors are not absorbed by best-effort steps."""
        env["XDEBUG_ENABLED"] = "1"
        orchestrator = make_orchestrator()
        orchestrator.features.enable = MagicMock(side_effect=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            orchestrator.bootstrap()

        assert not paths.readiness_marker.exists()


class TestRun:
    """Tests for BootstrapOrchestrator.run."""

    def test_command_mode_end_to_end(
        self, make_orchestrator, env, paths, identity_store, crontab_store, system_calls
    ):
        """Test a full start that hands off to a user command."""
        env.update(HOST_UID="2000", HOST_GID="2000", SECRET_API_KEY="xyz")

        with pytest.raises(HandedOff) as exc_info:
            make_orchestrator().run(["bash"])

        handoff = exc_info.value.handoff
        assert handoff.mode is Mode.COMMAND
        assert handoff.argv == ("gosu", "docker", "bash")
        assert handoff.env["API_KEY"] == "xyz"
        assert identity_store.get_ids("docker") == (2000, 2000)
        system_calls.chown_r.assert_called_once_with(
            ["chown", "-R", "2000:2000", str(paths.home_dir)], timeout=5.0
        )
        system_calls.auth_run.assert_not_called()
        assert crontab_store.tables == {}
        assert paths.readiness_marker.exists()
        assert "export API_KEY=xyz" in paths.profile_file.read_text()

    def test_service_mode(self, make_orchestrator, config, paths, system_calls, capsys):
        """Test that supervisord hands off as root and forces debug tracing."""
        orchestrator = make_orchestrator()

        with pytest.raises(HandedOff) as exc_info:
            orchestrator.run(["supervisord"])

        handoff = exc_info.value.handoff
        assert handoff.mode is Mode.SERVICE
        assert handoff.argv == ("gosu", "root", "supervisord", "-c", str(paths.supervisor_conf))
        assert config.debug is True
        assert orchestrator.logger.level == logging.DEBUG
        stderr = capsys.readouterr().err
        assert "Passing execution to: supervisord" in stderr
        assert "(step=readiness)" in stderr

    def test_command_mode_is_quiet_without_debug(self, make_orchestrator, system_calls, capsys):
        orchestrator = make_orchestrator()

        with pytest.raises(HandedOff):
            orchestrator.run(["drush", "status"])

        assert orchestrator.logger.level == logging.WARNING
        assert capsys.readouterr().err == ""

    def test_empty_command_runs_no_step(self, make_orchestrator, env, paths, identity_store, system_calls):
        """Test that a missing command is rejected before anything changes."""
        env.update(HOST_UID="2000", HOST_GID="2000", SECRET_API_KEY="xyz")

        with pytest.raises(UsageError):
            make_orchestrator().run([])

        assert identity_store.calls == []
        assert not paths.profile_file.exists()
        assert not paths.readiness_marker.exists()
        system_calls.chown_r.assert_not_called()

    def test_handoff_env_is_a_snapshot(self, make_orchestrator, env, system_calls):
        orchestrator = make_orchestrator()
        handoff = orchestrator.plan_handoff(Mode.COMMAND, ["bash"])

        env["LATER"] = "1"

        assert "LATER" not in handoff.env


class TestExecLauncher:
    def test_replace_execs_argv(self, monkeypatch):
        calls = []
        monkeypatch.setattr("cli_lib.orchestrator.os.execvpe", lambda *args: calls.append(args))

        ExecLauncher().replace(HandOff(Mode.COMMAND, ("gosu", "docker", "bash"), {"A": "1"}))

        assert calls == [("gosu", ["gosu", "docker", "bash"], {"A": "1"})]
