"""Abstract base class for package manager operators.

This module defines the Operator interface that every package manager
used for artifact installs must implement.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from lambdactl.models.package import MODULES_DIR
from lambdactl.models.install import InstallResult
from lambdactl.utils.shell import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)


class Operator(ABC):
    """Abstract base class for all package manager operators.

    Operators run a frozen, production-only install inside a single
    artifact directory, using the manifest and lockfile written there.

    Attributes:
        dry_run: If True, only simulate installs without executing them.

    Example:
        >>> operator = NpmOperator()
        >>> result = operator.install(Path("dist/handler"))
        >>> print(result.success)
    """

    # Timeout for a single install (10 minutes)
    _INSTALL_TIMEOUT: float = 600.0

    def __init__(self, dry_run: bool = False, runner: CommandRunner = run_command) -> None:
        """Initialize the operator.

        Args:
            dry_run: If True, only simulate installs without executing them.
            runner: Command runner used to spawn the package manager.
        """
        self._dry_run = dry_run
        self._runner = runner

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the package manager executable name."""

    @property
    @abstractmethod
    def lockfile_name(self) -> str:
        """Return the lockfile this package manager installs from."""

    @abstractmethod
    def install_args(self) -> list[str]:
        """Build the install command line.

        Returns:
            Command and arguments for a frozen, production-only install.
        """

    def install(self, artifact_dir: Path) -> InstallResult:
        """Install the dependencies declared in an artifact directory.

        Args:
            artifact_dir: Directory holding package.json and the lockfile.

        Returns:
            InstallResult describing the outcome.
        """
        args = self.install_args()
        logger.info("Installing %s in %s (dry_run=%s)", self.name, artifact_dir, self.dry_run)

        try:
            result = self._runner(args, timeout=self._INSTALL_TIMEOUT, cwd=str(artifact_dir))
        except (OSError, subprocess.TimeoutExpired) as e:
            return InstallResult(artifact_dir=artifact_dir, success=False, error=str(e))

        return self._parse_result(result, artifact_dir)

    def prune(self, artifact_dir: Path, paths: list[str]) -> None:
        """Remove installed packages the runtime already provides.

        Args:
            artifact_dir: Artifact directory.
            paths: Paths relative to the artifact's node_modules.
        """
        for relative in paths:
            target = artifact_dir / MODULES_DIR / relative
            if target.exists():
                logger.debug("Pruning %s", target)
                shutil.rmtree(target)

    def _parse_result(self, result: CommandResult, artifact_dir: Path) -> InstallResult:
        """Convert a command result into an InstallResult."""
        if result.success:
            message = "Dry-run completed" if self.dry_run else "Install completed"
            return InstallResult(artifact_dir=artifact_dir, success=True, message=message)

        error = result.stderr.strip() or f"{self.name} exited with code {result.returncode}"
        return InstallResult(artifact_dir=artifact_dir, success=False, error=error)
