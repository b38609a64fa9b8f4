"""Per-artifact finalize and install orchestration.

Each artifact is finalized (manifest + lockfile) and then, if it declares
any dependencies, installed. Artifacts are processed in a bounded thread
pool; finalize always completes before the same artifact's install starts.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from lambdactl.core.config import FailurePolicy, default_parallelism
from lambdactl.core.errors import InstallError, InstallFailure
from lambdactl.models.install import InstallResult

if TYPE_CHECKING:
    from lambdactl.externals.correlator import ArtifactDependencies
    from lambdactl.externals.finalizer import ArtifactFinalizer
    from lambdactl.operators.base import Operator

logger = logging.getLogger(__name__)


class Installer:
    """Finalizes and installs artifacts with bounded parallelism.

    Attributes:
        operator: Package manager operator used for installs.
        finalizer: Writes manifests and lockfiles.
        concurrency: Maximum number of artifacts processed at once.
        failure_policy: Handling of pending installs after a failure.
        prune: Paths under node_modules removed after a successful install.
    """

    def __init__(
        self,
        operator: Operator,
        finalizer: ArtifactFinalizer,
        *,
        concurrency: int | None = None,
        failure_policy: FailurePolicy = FailurePolicy.LET_ALL_FINISH,
        prune: list[str] | None = None,
    ) -> None:
        self.operator = operator
        self.finalizer = finalizer
        self.concurrency = concurrency or default_parallelism()
        self.failure_policy = failure_policy
        self.prune = prune or []

    def run(self, artifacts: list[ArtifactDependencies]) -> list[InstallResult]:
        """Finalize and install every artifact.

        Running installs are never terminated. Under CANCEL_PENDING, the
        first failure cancels installs that have not started yet.

        Args:
            artifacts: Artifacts computed by the correlator.

        Returns:
            One InstallResult per artifact, sorted by directory. Artifacts
            without dependencies are reported as skipped.

        Raises:
            FinalizeError: If an artifact cannot be finalized.
            InstallError: If any install failed.
        """
        results: list[InstallResult] = []
        failures: list[InstallFailure] = []

        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            futures: list[Future[InstallResult]] = [
                pool.submit(self._process, artifact) for artifact in artifacts
            ]
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                exc = future.exception()
                if exc is not None:
                    self._cancel(futures)
                    raise exc

                result = future.result()
                results.append(result)
                if result.failed:
                    logger.error("Install failed in %s: %s", result.artifact_dir, result.error)
                    failures.append(
                        InstallFailure(artifact_dir=result.artifact_dir, error=result.error or "")
                    )
                    if self.failure_policy == FailurePolicy.CANCEL_PENDING:
                        self._cancel(futures)

        if failures:
            raise InstallError(sorted(failures, key=lambda f: f.artifact_dir))
        return sorted(results, key=lambda r: r.artifact_dir)

    def _process(self, artifact: ArtifactDependencies) -> InstallResult:
        """Finalize one artifact, then install it if needed."""
        manifest = self.finalizer.finalize(artifact)
        if not manifest.needs_install:
            logger.debug("No dependencies in %s, skipping install", artifact.artifact_dir)
            return InstallResult(
                artifact_dir=artifact.artifact_dir,
                success=True,
                skipped=True,
                message="No dependencies",
            )

        result = self.operator.install(artifact.artifact_dir)
        if result.success and self.prune and not self.operator.dry_run:
            try:
                self.operator.prune(artifact.artifact_dir, self.prune)
            except OSError as e:
                return InstallResult(
                    artifact_dir=artifact.artifact_dir,
                    success=False,
                    error=f"Failed to prune installed tree: {e}",
                )
        return result

    @staticmethod
    def _cancel(futures: list[Future[InstallResult]]) -> None:
        cancelled = sum(1 for future in futures if future.cancel())
        if cancelled:
            logger.warning("Cancelled %d pending install(s)", cancelled)
