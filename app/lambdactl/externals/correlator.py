"""Attribution of ledger entries to output artifacts.

The build engine reports, per output file, which input files were bundled
into it. Every output directory is one artifact; its dependencies are the
ledger entries of all its inputs.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lambdactl.core.config import DriftPolicy
from lambdactl.core.errors import VersionDriftError
from lambdactl.externals.ledger import BuildContext, normalize_importer
from lambdactl.models.package import LedgerKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ArtifactDependencies:
    """Dependencies attributed to one artifact directory.

    Attributes:
        artifact_dir: Directory holding the artifact's output files.
        dependencies: External packages, first-seen version per name.
        dev_dependencies: Force-bundled packages, first-seen version per name.
    """

    artifact_dir: Path
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)


def artifact_inputs(metafile: Mapping[str, Any], root: Path) -> dict[Path, set[str]]:
    """Group the engine's inputs by artifact directory.

    Args:
        metafile: ``{"outputs": {output: {"inputs": {input: {}}}}}``, paths
            relative to ``root`` or absolute.
        root: Project root the paths are relative to.

    Returns:
        Mapping of artifact directory to normalised input paths, in output order.
    """
    grouped: dict[Path, set[str]] = {}
    for output_path, output in (metafile.get("outputs") or {}).items():
        artifact_dir = Path(normalize_importer(root / output_path)).parent
        inputs = grouped.setdefault(artifact_dir, set())
        for input_path in (output or {}).get("inputs") or {}:
            inputs.add(normalize_importer(os.path.join(root, input_path)))
    return grouped


def correlate(
    context: BuildContext,
    metafile: Mapping[str, Any],
    root: Path,
    drift_policy: DriftPolicy = DriftPolicy.FIRST_WINS,
) -> list[ArtifactDependencies]:
    """Compute the dependency set of every artifact.

    When one package is recorded with different versions by importers of the
    same artifact, the entry inserted first into the ledger wins.

    Args:
        context: Ledger of the finished build.
        metafile: The engine's output graph.
        root: Project root.
        drift_policy: What to do on version drift.

    Returns:
        One ArtifactDependencies per artifact directory, sorted by directory.

    Raises:
        VersionDriftError: On drift when ``drift_policy`` is FAIL.
    """
    artifacts: list[ArtifactDependencies] = []
    for artifact_dir, inputs in sorted(artifact_inputs(metafile, root).items()):
        artifact = ArtifactDependencies(artifact_dir=artifact_dir)
        for entry in context.entries_for(inputs):
            target = (
                artifact.dependencies
                if entry.kind == LedgerKind.EXTERNAL
                else artifact.dev_dependencies
            )
            seen = target.get(entry.package)
            if seen is None:
                target[entry.package] = entry.version
            elif seen != entry.version:
                msg = (
                    f"{artifact_dir}: {entry.package} pinned at {seen} and "
                    f"{entry.version} (by {entry.importer})"
                )
                if drift_policy == DriftPolicy.FAIL:
                    raise VersionDriftError(msg)
                logger.warning("Version drift, keeping first: %s", msg)
        artifact.dependencies = dict(sorted(artifact.dependencies.items()))
        artifact.dev_dependencies = dict(sorted(artifact.dev_dependencies.items()))
        artifacts.append(artifact)
    return artifacts
