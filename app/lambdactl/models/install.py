"""Install result models.

This module defines the outcome of installing one artifact's dependencies.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Result of running the package manager in one artifact directory.

    Attributes:
        artifact_dir: Directory the install ran in.
        success: Whether the install succeeded.
        skipped: True if the artifact had nothing to install.
        message: Optional success message.
        error: Error output if the install failed.
    """

    artifact_dir: Path
    success: bool
    skipped: bool = False
    message: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Validate result data after initialization."""
        if not self.success and not self.error:
            msg = "Failed install results must carry an error"
            raise ValueError(msg)

    @property
    def failed(self) -> bool:
        """Check if the install failed."""
        return not self.success
