"""Optional features and project overrides enabled by linking config fragments."""

from pathlib import Path

from cli_logging import CliLogger, get_logger

from .config import Paths


def ensure_symlink(source: Path, link: Path) -> bool:
    """Point ``link`` at ``source``.

    Returns:
        True if the link was created or repointed, False if it already pointed at source

    Raises:
        FileExistsError: If a non-symlink file occupies ``link``
    """
    if link.is_symlink():
        if Path(link.readlink()) == source:
            return False
        link.unlink()
    elif link.exists():
        raise FileExistsError(f"Refusing to replace {link}: not a symlink")

    link.parent.mkdir(parents=True, exist_ok=True)
    link.symlink_to(source)
    return True


class FeatureToggler:
    """Enable optional features (xdebug, web IDE) and project config overrides."""

    FEATURES = {
        "xdebug": "Enabling xdebug...",
        "ide": "Enabling web IDE...",
    }

    def __init__(self, paths: Paths, logger: CliLogger | None = None):
        self.paths = paths
        self.logger = logger or get_logger("cli-startup")

    def feature_link(self, feature: str) -> tuple[Path, Path]:
        """Return (source, link) for a feature."""
        if feature == "xdebug":
            source = self.paths.xdebug_source
            return source, self.paths.php_conf_dir / source.name
        if feature == "ide":
            return self.paths.ide_source, self.paths.supervisor_conf_dir / "code-server.conf"
        raise KeyError(f"Unknown feature: {feature}")

    def enable(self, feature: str) -> bool:
        """Enable ``feature``. Returns False if it was already enabled."""
        source, link = self.feature_link(feature)
        self.logger.debug(self.FEATURES[feature])
        created = ensure_symlink(source, link)
        if not created:
            self.logger.debug(f"{link} already enabled")
        return created

    def override_links(self) -> list[tuple[Path, Path]]:
        """Return (source, link) pairs for the project-level PHP overrides."""
        overrides = self.paths.php_overrides_dir
        return [
            (overrides / "php.ini", self.paths.php_conf_dir / "zzz-php.ini"),
            (overrides / "php-fpm.conf", self.paths.php_fpm_conf_dir / "zzz-php-fpm.conf"),
        ]

    def link_overrides(self) -> list[Path]:
        """Include project-level overrides that exist.

        Each override is linked independently: one that cannot be linked is
        logged and does not prevent the others.

        Returns:
            The override files that are linked in
        """
        included = []
        for source, link in self.override_links():
            if not source.is_file():
                continue
            self.logger.debug(f"Found project level override. Including: {source}")
            try:
                ensure_symlink(source, link)
            except OSError as e:
                self.logger.error(f"ERROR: Cannot include {source}: {e}")
                continue
            included.append(source)
        return included
