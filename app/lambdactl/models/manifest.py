"""Manifest models for projects and artifacts.

This module defines the Pydantic models representing the project's
package.json and the minimal package.json written into each artifact.
"""

import json
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lambdactl.core.errors import FinalizeError


class ProjectManifest(BaseModel):
    """Top-level project manifest (package.json).

    Only the fields an artifact inherits are modelled; everything else
    (scripts, test configuration, ...) is tolerated and ignored.

    Attributes:
        name: Project name.
        type: Module type indicator ("module" or "commonjs").
        side_effects: Side-effect metadata, a flag or a list of globs.
        dependencies: Declared runtime dependencies.
        dev_dependencies: Declared development dependencies.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Annotated[str | None, Field(description="Project name")] = None
    type: Annotated[str | None, Field(description="Module type indicator")] = None
    side_effects: Annotated[
        bool | list[str] | None,
        Field(alias="sideEffects", description="Side-effect metadata"),
    ] = None
    dependencies: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Runtime dependencies"),
    ]
    dev_dependencies: Annotated[
        dict[str, str],
        Field(default_factory=dict, alias="devDependencies", description="Dev dependencies"),
    ]

    @classmethod
    def load(cls, path: Path) -> "ProjectManifest":
        """Load and validate a project manifest.

        Args:
            path: Path to package.json.

        Returns:
            Validated ProjectManifest.

        Raises:
            FinalizeError: If the file is missing, unreadable or invalid.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise FinalizeError(f"Failed to read project manifest {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise FinalizeError(f"Invalid JSON in project manifest {path}: {e}") from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FinalizeError(f"Invalid project manifest {path}: {e}") from e


class ArtifactManifest(BaseModel):
    """Minimal manifest written into a single artifact directory.

    Created once per build at build end and never mutated afterwards.

    Attributes:
        name: Inherited project name.
        type: Inherited module type indicator.
        side_effects: Inherited side-effect metadata.
        dependencies: Externalized packages to install, sorted by name.
        dev_dependencies: Force-bundled packages, recorded for provenance only.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str | None = None
    type: str | None = None
    side_effects: Annotated[bool | list[str] | None, Field(alias="sideEffects")] = None
    dependencies: Annotated[dict[str, str], Field(default_factory=dict)]
    dev_dependencies: Annotated[
        dict[str, str],
        Field(default_factory=dict, alias="devDependencies"),
    ]

    @classmethod
    def from_project(
        cls,
        project: ProjectManifest,
        dependencies: dict[str, str],
        dev_dependencies: dict[str, str],
    ) -> "ArtifactManifest":
        """Build an artifact manifest inheriting the project's metadata.

        Args:
            project: Top-level project manifest.
            dependencies: External dependencies of the artifact.
            dev_dependencies: Force-bundled dependencies of the artifact.

        Returns:
            ArtifactManifest with sorted dependency maps.
        """
        return cls(
            name=project.name,
            type=project.type,
            side_effects=project.side_effects,
            dependencies=dict(sorted(dependencies.items())),
            dev_dependencies=dict(sorted(dev_dependencies.items())),
        )

    @property
    def needs_install(self) -> bool:
        """Check if the artifact declares anything to install."""
        return bool(self.dependencies)

    def to_json(self) -> str:
        """Serialize to package.json text.

        Inherited fields absent from the project manifest are omitted.
        """
        data: dict[str, Any] = self.model_dump(by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2) + "\n"
