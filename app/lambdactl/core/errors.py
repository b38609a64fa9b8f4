"""Exception hierarchy for lambdactl.

Resolution and finalize errors are fatal and surface synchronously to the
build engine. Install errors are aggregated at the end of the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class LambdactlError(Exception):
    """Base exception for all lambdactl errors."""


class VersionResolutionError(LambdactlError):
    """Raised when a package version cannot be determined from any search root."""

    def __init__(self, package_name: str, searched: list[Path]) -> None:
        self.package_name = package_name
        self.searched = searched
        locations = ", ".join(str(p) for p in searched) or "<no search roots>"
        super().__init__(f"Cannot resolve version of '{package_name}' (searched: {locations})")


class VersionDriftError(LambdactlError):
    """Raised when importers of one artifact pin different versions of a package."""


class FinalizeError(LambdactlError):
    """Raised when an artifact manifest or lockfile cannot be written."""


class ArchiveError(LambdactlError):
    """Raised when an artifact directory cannot be archived."""


@dataclass(frozen=True, slots=True)
class InstallFailure:
    """A single failed install.

    Attributes:
        artifact_dir: Directory the install ran in.
        error: Error output or exception message.
    """

    artifact_dir: Path
    error: str


class InstallError(LambdactlError):
    """Raised when one or more artifact installs fail."""

    def __init__(self, failures: list[InstallFailure]) -> None:
        self.failures = failures
        details = "; ".join(f"{f.artifact_dir}: {f.error}" for f in failures)
        super().__init__(f"{len(failures)} install(s) failed: {details}")


class ConfigError(LambdactlError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""
