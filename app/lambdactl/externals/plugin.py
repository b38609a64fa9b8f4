"""Build engine hooks for externals resolution.

The plugin registers two hooks on a build engine: a resolve hook that
classifies every import and fills the build's ledger, and an end hook that
attributes the ledger to output artifacts, writes their manifests and
installs their dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from lambdactl.core.config import DriftPolicy, FailurePolicy, PackagingConfig
from lambdactl.core.installer import Installer
from lambdactl.externals.classifier import (
    DependencyClassifier,
    ImportPredicate,
    any_of,
    package_set_predicate,
)
from lambdactl.externals.correlator import ArtifactDependencies, correlate
from lambdactl.externals.finalizer import ArtifactFinalizer
from lambdactl.externals.ledger import BuildContext
from lambdactl.externals.resolver import VersionResolver
from lambdactl.models.install import InstallResult
from lambdactl.models.manifest import ProjectManifest
from lambdactl.models.package import (
    MANIFEST_NAME,
    Category,
    ResolveResult,
    is_path_import,
    package_name_of,
)
from lambdactl.operators import Operator, get_operator

logger = logging.getLogger(__name__)

ResolveHook = Callable[[str, str, str], ResolveResult | None]
EndHook = Callable[[Mapping[str, Any]], "BuildReport"]


class BuildHooks(Protocol):
    """Registration surface a build engine exposes to plugins."""

    def on_resolve(self, callback: ResolveHook) -> None: ...

    def on_end(self, callback: EndHook) -> None: ...


@dataclass(slots=True)
class BuildReport:
    """Outcome of the end hook.

    Attributes:
        artifacts: Dependencies attributed to each artifact.
        installs: Install result per artifact.
    """

    artifacts: list[ArtifactDependencies] = field(default_factory=list)
    installs: list[InstallResult] = field(default_factory=list)


class ExternalsPlugin:
    """Classifies imports and produces installable artifacts.

    A fresh :class:`BuildContext` is created by every :meth:`setup` call,
    so repeated or concurrent builds never share ledger state. The version
    resolver is shared across builds.

    Example:
        >>> plugin = ExternalsPlugin(root=Path("."))
        >>> context = plugin.setup(engine)
        >>> # engine runs, calling the registered hooks
    """

    name = "lambda-externals"

    def __init__(
        self,
        root: Path,
        *,
        modules_root: Path | None = None,
        project: ProjectManifest | None = None,
        classifier: DependencyClassifier | None = None,
        resolver: VersionResolver | None = None,
        operator: Operator | None = None,
        install_concurrency: int | None = None,
        failure_policy: FailurePolicy = FailurePolicy.LET_ALL_FINISH,
        drift_policy: DriftPolicy = DriftPolicy.FIRST_WINS,
        prune: Iterable[str] = ("aws-sdk",),
    ) -> None:
        self.root = Path(root)
        self.modules_root = Path(modules_root) if modules_root is not None else self.root
        self._project = project
        self.classifier = classifier or DependencyClassifier.create()
        self.resolver = resolver or VersionResolver()
        self.operator = operator or get_operator("npm")
        self.install_concurrency = install_concurrency
        self.failure_policy = failure_policy
        self.drift_policy = drift_policy
        self.prune = list(prune)

    @classmethod
    def from_config(
        cls,
        config: PackagingConfig,
        *,
        force_bundle: ImportPredicate | None = None,
        **kwargs: Any,
    ) -> ExternalsPlugin:
        """Create a plugin from a PackagingConfig.

        Args:
            config: Loaded configuration.
            force_bundle: Optional predicate, combined with the configured
                package list and blanket flag.
            **kwargs: Overrides passed to the constructor.

        Returns:
            Configured ExternalsPlugin.
        """
        rule: bool | ImportPredicate | None = None
        if config.force_bundle:
            rule = True
        elif force_bundle is not None or config.force_bundle_packages:
            predicates = [package_set_predicate(config.force_bundle_packages)]
            if force_bundle is not None:
                predicates.append(force_bundle)
            rule = any_of(predicates)

        options: dict[str, Any] = {
            "modules_root": config.modules_root,
            "classifier": DependencyClassifier.create(
                force_bundle=rule,
                runtime_provided=config.runtime_provided,
            ),
            "operator": get_operator(config.packager, dry_run=config.dry_run),
            "install_concurrency": config.install_concurrency,
            "failure_policy": config.failure_policy,
            "drift_policy": config.drift_policy,
            "prune": config.prune,
        }
        options.update(kwargs)
        return cls(config.root, **options)

    @property
    def search_roots(self) -> list[Path]:
        """Ordered roots searched for installed packages."""
        if self.modules_root == self.root:
            return [self.root]
        return [self.modules_root, self.root]

    @property
    def project(self) -> ProjectManifest:
        """The top-level project manifest, loaded on first use."""
        if self._project is None:
            self._project = ProjectManifest.load(self.root / MANIFEST_NAME)
        return self._project

    def setup(self, build: BuildHooks) -> BuildContext:
        """Register the hooks for one build.

        Args:
            build: The engine's hook registration surface.

        Returns:
            The ledger the hooks of this build write to.
        """
        context = BuildContext()
        build.on_resolve(
            lambda path, importer, kind: self.on_resolve(context, path, importer, kind)
        )
        build.on_end(lambda metafile: self.on_end(context, metafile))
        return context

    def on_resolve(
        self,
        context: BuildContext,
        import_path: str,
        importer: str,
        kind: str = "import-statement",
    ) -> ResolveResult | None:
        """Classify one import and record it in the ledger.

        Args:
            context: Ledger of the current build.
            import_path: Import specifier as written in source.
            importer: Path of the importing file.
            kind: The engine's resolve kind, informational only.

        Returns:
            ``ResolveResult(external=True)`` for externalized imports,
            ``ResolveResult(external=False)`` for force-bundled ones and
            None when the engine should resolve normally.

        Raises:
            VersionResolutionError: If an externalized or force-bundled
                package has no resolvable version.
        """
        if is_path_import(import_path):
            return None

        package_name = package_name_of(import_path)
        category = self.classifier.classify(package_name, import_path)
        logger.debug("%s (%s) from %s: %s", import_path, kind, importer, category.value)

        if category == Category.BUILTIN:
            return None

        if category == Category.RUNTIME_PROVIDED:
            return ResolveResult(external=True)

        version = self.resolver.resolve(package_name, self.search_roots)
        if category == Category.FORCE_BUNDLED:
            context.record_bundled(importer, package_name, version)
            return ResolveResult(external=False)

        context.record_external(importer, package_name, version)
        return ResolveResult(external=True)

    def on_end(self, context: BuildContext, metafile: Mapping[str, Any]) -> BuildReport:
        """Attribute the ledger to artifacts, finalize and install them.

        Args:
            context: Ledger of the finished build.
            metafile: The engine's output graph.

        Returns:
            BuildReport with per-artifact dependencies and install results.

        Raises:
            VersionDriftError: On drift under DriftPolicy.FAIL.
            FinalizeError: If an artifact cannot be written.
            InstallError: If any install failed.
        """
        artifacts = correlate(context, metafile, self.root, self.drift_policy)
        finalizer = ArtifactFinalizer(self.root, self.project, self.operator.lockfile_name)
        installer = Installer(
            self.operator,
            finalizer,
            concurrency=self.install_concurrency,
            failure_policy=self.failure_policy,
            prune=self.prune,
        )
        installs = installer.run(artifacts)
        logger.info(
            "Prepared %d artifact(s), %d installed",
            len(artifacts),
            sum(1 for r in installs if not r.skipped),
        )
        return BuildReport(artifacts=artifacts, installs=installs)
