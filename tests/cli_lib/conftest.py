"""Fixtures for cli_lib tests."""

from unittest.mock import MagicMock, patch

import pytest

from bootstrap_fakes import (
    FakeCrontabStore,
    FakeIdentityStore,
    FakeLauncher,
    FakeTemplateEngine,
    FakeVcs,
)
from cli_lib.config import BootstrapConfig, Paths
from cli_lib.orchestrator import BootstrapOrchestrator
from cli_logging import CliLogger


@pytest.fixture
def logger(request):
    """A fresh logger per test so console output lands in capsys."""
    return CliLogger(f"cli-test.{request.node.nodeid}")


@pytest.fixture
def paths(tmp_path):
    """Image layout rooted in a temporary directory."""
    layout = Paths(
        home_dir=tmp_path / "home" / "docker",
        project_root=tmp_path / "var" / "www",
        profile_file=tmp_path / "etc" / "profile.d" / "secrets.sh",
        readiness_marker=tmp_path / "var" / "run" / "cli",
        supervisor_pid=tmp_path / "run" / "supervisord.pid",
        service_pids=(tmp_path / "run" / "php-fpm.pid", tmp_path / "run" / "sshd.pid"),
        supervisor_conf=tmp_path / "etc" / "supervisor" / "supervisord.conf",
        supervisor_conf_dir=tmp_path / "etc" / "supervisor" / "conf.d",
        php_conf_dir=tmp_path / "usr" / "local" / "etc" / "php" / "conf.d",
        php_fpm_conf_dir=tmp_path / "usr" / "local" / "etc" / "php-fpm.d",
        xdebug_source=tmp_path / "opt" / "docker-php-ext-xdebug.ini",
        ide_source=tmp_path / "opt" / "code-server" / "supervisord-code-server.conf",
    )
    (layout.home_dir / ".ssh").mkdir(parents=True)
    layout.project_root.mkdir(parents=True)
    layout.xdebug_source.parent.mkdir(parents=True)
    layout.xdebug_source.write_text("zend_extension=xdebug.so\n")
    layout.ide_source.parent.mkdir(parents=True)
    layout.ide_source.write_text("[program:code-server]\n")
    return layout


@pytest.fixture
def env(tmp_path):
    """Minimal environment pointing the config file at a missing path."""
    return {"BOOTSTRAP_CONFIG_FILE": str(tmp_path / "missing.yaml")}


@pytest.fixture
def config(env, paths):
    return BootstrapConfig(env=env, paths=paths, command_timeout=5.0)


@pytest.fixture
def identity_store():
    return FakeIdentityStore({"docker": (1000, 1000)})


@pytest.fixture
def template_engine():
    return FakeTemplateEngine()


@pytest.fixture
def crontab_store():
    return FakeCrontabStore()


@pytest.fixture
def vcs():
    return FakeVcs()


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def system_calls():
    """Patch every subprocess and chown boundary reached by the orchestrator."""
    with (
        patch("cli_lib.permissions.run_cmd") as chown_r,
        patch("cli_lib.permissions.os.chown") as chown,
        patch("cli_lib.auth.run_cmd") as auth_run,
        patch("cli_lib.hooks.run_cmd") as hook_run,
    ):
        auth_run.return_value = MagicMock(returncode=0, stdout="")
        hook_run.return_value = MagicMock(returncode=0)
        yield MagicMock(chown_r=chown_r, chown=chown, auth_run=auth_run, hook_run=hook_run)


@pytest.fixture
def make_orchestrator(config, logger, identity_store, template_engine, crontab_store, vcs, launcher):
    def factory(**overrides):
        kwargs = {
            "logger": logger,
            "identity_store": identity_store,
            "template_engine": template_engine,
            "crontab_store": crontab_store,
            "vcs": vcs,
            "launcher": launcher,
        }
        kwargs.update(overrides)
        return BootstrapOrchestrator(config, **kwargs)

    return factory
