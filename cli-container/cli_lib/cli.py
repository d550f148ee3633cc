"""
Console entry points.

Usage:
    cli-startup supervisord               # Bootstrap, then run supervisord as root
    cli-startup [--debug] <command> ...   # Bootstrap, then run command as the managed user
    cli-healthcheck [--json]              # Exit 0 if healthy, 1 otherwise
    cli-bootstrap-config show             # Show configuration (secrets masked)
    cli-bootstrap-config validate         # Validate configuration
"""

import argparse
import json
import os
import subprocess
import sys

from cli_config import ConfigStatus
from cli_logging import get_logger

from .config import BootstrapConfig, load_file_settings
from .errors import BootstrapError, ConfigError, UsageError
from .orchestrator import BootstrapOrchestrator
from .readiness import check_health


def create_startup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cli-startup",
        description="Bootstrap the cli container and hand off to supervisord or a command.",
    )
    parser.add_argument("--debug", action="store_true", help="Trace every bootstrap step")
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="'supervisord' for service mode, or a command to run as the managed user",
    )
    return parser


def startup_main(argv: list[str] | None = None) -> int:
    """Entry point of the container.

    Only returns if bootstrap could not hand off.

    Returns:
        2 on usage errors, 1 on configuration or unrecoverable bootstrap errors
    """
    args = create_startup_parser().parse_args(argv)
    logger = get_logger("cli-startup")

    try:
        config = BootstrapConfig.from_env(os.environ)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.debug:
        config.debug = True
    if config.log_file:
        logger.add_file_handler(config.log_file)

    orchestrator = BootstrapOrchestrator(config, logger=logger)
    try:
        orchestrator.run(args.command)
    except UsageError as e:
        logger.error(str(e))
        return 2
    except (BootstrapError, OSError, subprocess.SubprocessError) as e:
        logger.exception(f"Bootstrap aborted: {e}")
        return 1
    return 1


def create_healthcheck_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cli-healthcheck",
        description="Report whether the cli container finished bootstrapping.",
    )
    parser.add_argument("--json", "-j", action="store_true", help="Output the result as JSON")
    return parser


def healthcheck_main(argv: list[str] | None = None) -> int:
    args = create_healthcheck_parser().parse_args(argv)

    try:
        _, paths = load_file_settings(os.environ)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    result = check_health(paths)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not result.healthy:
        print(result.message)
    return result.exit_code


def cmd_show(config: BootstrapConfig, args: argparse.Namespace) -> int:
    """Show current configuration (secrets masked)."""
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def cmd_validate(config: BootstrapConfig, args: argparse.Namespace) -> int:
    """Validate configuration and return exit code."""
    result = config.validate()
    status_icons = {
        ConfigStatus.VALID: "[OK]",
        ConfigStatus.INVALID: "[FAIL]",
    }
    print(f"{status_icons.get(result.status, '[?]')} {config.service_name}: {result.status.value}")
    for error in result.errors:
        print(f"      ERROR: {error}")
    for warning in result.warnings:
        print(f"      WARNING: {warning}")
    return 0 if result.is_valid else 1


def create_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cli-bootstrap-config",
        description="Inspect the cli container bootstrap configuration.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("show", help="Show current configuration")
    subparsers.add_parser("validate", help="Validate configuration")
    return parser


def config_main(argv: list[str] | None = None) -> int:
    parser = create_config_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = BootstrapConfig.from_env(os.environ)
    except ConfigError as e:
        print(f"[FAIL] bootstrap: {e}")
        return 1

    commands = {
        "show": cmd_show,
        "validate": cmd_validate,
    }
    return commands[args.command](config, args)


if __name__ == "__main__":
    sys.exit(startup_main())
