"""
Readiness marker and container health check.

The marker is written once bootstrap's mandatory steps have completed. The
health check is run by the container runtime, never by the bootstrap itself.
"""

from pathlib import Path

from cli_config import HealthCheckResult

from .config import Paths


class ReadinessMarker:
    """Sentinel file signalling that bootstrap preconditions are satisfied."""

    def __init__(self, path: Path):
        self.path = path

    def mark_ready(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()

    def is_ready(self) -> bool:
        return self.path.exists()


def check_health(paths: Paths) -> HealthCheckResult:
    """Report container health from marker files.

    Unhealthy if bootstrap has not completed, or if supervisord is running
    (service mode) and one of its required services has no pid file.
    """
    if not ReadinessMarker(paths.readiness_marker).is_ready():
        return HealthCheckResult(
            healthy=False,
            service_name="cli",
            message="Initialization has not completed",
            missing=[str(paths.readiness_marker)],
        )

    if paths.supervisor_pid.exists():
        missing = [str(p) for p in paths.service_pids if not p.exists()]
        if missing:
            return HealthCheckResult(
                healthy=False,
                service_name="cli",
                message=f"Supervised services not running: {', '.join(missing)}",
                missing=missing,
            )
        return HealthCheckResult(
            healthy=True, service_name="cli", message="Ready; supervised services running"
        )

    return HealthCheckResult(healthy=True, service_name="cli", message="Ready")
