"""Render files from templates with an external engine (gomplate)."""

import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from cli_logging import CliLogger, get_logger

from .errors import TemplateNotFound, TemplateRenderError
from .runtime import run_cmd


TEMPLATE_SUFFIX = ".tmpl"


@dataclass(frozen=True)
class TemplateJob:
    source: Path
    destination: Path

    @classmethod
    def for_path(cls, path: Path) -> "TemplateJob":
        return cls(source=Path(f"{path}{TEMPLATE_SUFFIX}"), destination=path)


class TemplateEngine(ABC):
    @abstractmethod
    def render(self, source: Path, destination: Path, env: Mapping[str, str]) -> None:
        """Render ``source`` into ``destination``.

        Raises:
            TemplateRenderError: If rendering fails
        """
        ...


class GomplateEngine(TemplateEngine):
    """Renders Go templates with the gomplate binary."""

    def __init__(self, binary: str = "gomplate", timeout: float | None = 30):
        self.binary = binary
        self.timeout = timeout

    def render(self, source: Path, destination: Path, env: Mapping[str, str]) -> None:
        try:
            run_cmd(
                [self.binary, "--file", str(source), "--out", str(destination)],
                env=env,
                timeout=self.timeout,
                merge_stderr=True,
            )
        except subprocess.CalledProcessError as e:
            raise TemplateRenderError(
                f"{self.binary} failed for {source} (exit {e.returncode}): {(e.output or '').strip()}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise TemplateRenderError(
                f"{self.binary} timed out after {self.timeout}s rendering {source}"
            ) from e


class TemplateRenderer:
    """Render ``path`` from ``path.tmpl``.

    The caller is responsible for permissions on the rendered file.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        env: Mapping[str, str],
        logger: CliLogger | None = None,
    ):
        self.engine = engine
        self.env = env
        self.logger = logger or get_logger("cli-startup")

    def render(self, path: Path) -> Path:
        """Render the template for ``path`` and return ``path``.

        Raises:
            TemplateNotFound: If ``path.tmpl`` does not exist (``path`` is not touched)
            TemplateRenderError: If the engine fails
        """
        job = TemplateJob.for_path(path)
        if not job.source.is_file():
            raise TemplateNotFound(str(job.source))

        self.logger.debug(f"Rendering template: {job.source}...")
        self.engine.render(job.source, job.destination, self.env)
        return job.destination
