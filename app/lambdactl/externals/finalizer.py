"""Artifact manifest synthesis.

Writes the narrowed package.json and a copy of the project lockfile into
every artifact directory. Nothing is installed here.
"""

import logging
import shutil
from pathlib import Path

from lambdactl.core.errors import FinalizeError
from lambdactl.externals.correlator import ArtifactDependencies
from lambdactl.models.manifest import ArtifactManifest, ProjectManifest
from lambdactl.models.package import MANIFEST_NAME

logger = logging.getLogger(__name__)


class ArtifactFinalizer:
    """Writes artifact manifests and lockfiles.

    Attributes:
        root: Project root holding the lockfile.
        project: Parsed project manifest.
        lockfile_name: Lockfile copied into each artifact.
    """

    def __init__(self, root: Path, project: ProjectManifest, lockfile_name: str) -> None:
        self.root = root
        self.project = project
        self.lockfile_name = lockfile_name

    @property
    def lockfile(self) -> Path:
        """Path to the project lockfile."""
        return self.root / self.lockfile_name

    def finalize(self, artifact: ArtifactDependencies) -> ArtifactManifest:
        """Write the manifest and lockfile for one artifact.

        Args:
            artifact: Dependencies attributed to the artifact.

        Returns:
            The manifest that was written.

        Raises:
            FinalizeError: If any file cannot be written or copied.
        """
        manifest = ArtifactManifest.from_project(
            self.project,
            dependencies=artifact.dependencies,
            dev_dependencies=artifact.dev_dependencies,
        )
        target = artifact.artifact_dir
        try:
            target.mkdir(parents=True, exist_ok=True)
            (target / MANIFEST_NAME).write_text(manifest.to_json(), encoding="utf-8")
            shutil.copyfile(self.lockfile, target / self.lockfile_name)
        except OSError as e:
            raise FinalizeError(f"Failed to finalize artifact {target}: {e}") from e

        logger.info(
            "Finalized %s (%d dependencies, %d bundled)",
            target,
            len(manifest.dependencies),
            len(manifest.dev_dependencies),
        )
        return manifest
