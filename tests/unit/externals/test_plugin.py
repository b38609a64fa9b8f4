"""Unit tests for the externals build plugin.

Drives the plugin through a minimal in-process engine that records the
registered hooks, then replays imports and a metafile against them.
"""

import json
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import pytest
from lambdactl.core.config import PackagingConfig
from lambdactl.core.errors import InstallError, VersionResolutionError
from lambdactl.externals.plugin import BuildReport, ExternalsPlugin
from lambdactl.models.package import ResolveResult
from lambdactl.operators import BunOperator, NpmOperator
from lambdactl.utils.shell import CommandResult


class FakeEngine:
    """Records hooks registered by a plugin."""

    def __init__(self) -> None:
        self.resolve_hooks: list[Any] = []
        self.end_hooks: list[Any] = []

    def on_resolve(self, callback: Any) -> None:
        self.resolve_hooks.append(callback)

    def on_end(self, callback: Any) -> None:
        self.end_hooks.append(callback)

    def resolve(self, path: str, importer: Path) -> ResolveResult | None:
        return self.resolve_hooks[0](path, str(importer), "import-statement")

    def end(self, metafile: Mapping[str, Any]) -> BuildReport:
        return self.end_hooks[0](metafile)


@pytest.fixture
def plugin(project_root: Path, runner: Any) -> ExternalsPlugin:
    """Plugin for the sample project with a recording npm operator."""
    return ExternalsPlugin(
        project_root,
        operator=NpmOperator(runner=runner),
        install_concurrency=2,
    )


@pytest.fixture
def engine(plugin: ExternalsPlugin) -> FakeEngine:
    """Engine with the plugin's hooks registered."""
    build = FakeEngine()
    plugin.setup(build)
    return build


class TestResolveHook:
    """Tests for the resolve hook."""

    def test_registers_both_hooks(self, engine: FakeEngine) -> None:
        """setup() registers one resolve and one end hook."""
        assert len(engine.resolve_hooks) == 1
        assert len(engine.end_hooks) == 1

    def test_path_imports_resolve_normally(
        self, plugin: ExternalsPlugin, project_root: Path
    ) -> None:
        """Relative and absolute imports are left to the engine and never recorded."""
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        assert plugin.on_resolve(context, "./util", importer) is None
        assert plugin.on_resolve(context, "../lib/db", importer) is None
        assert plugin.on_resolve(context, "/opt/shared/log.js", importer) is None
        assert len(context) == 0

    def test_builtins_resolve_normally(self, plugin: ExternalsPlugin, project_root: Path) -> None:
        """Built-in modules are ignored."""
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        assert plugin.on_resolve(context, "node:fs", importer) is None
        assert plugin.on_resolve(context, "path", importer) is None
        assert len(context) == 0

    def test_runtime_provided_is_external_and_unrecorded(
        self, plugin: ExternalsPlugin, project_root: Path
    ) -> None:
        """SDK packages stay external without a version lookup."""
        context = plugin.setup(FakeEngine())

        result = plugin.on_resolve(
            context, "@aws-sdk/client-s3", str(project_root / "src" / "a.ts")
        )

        assert result == ResolveResult(external=True)
        assert len(context) == 0

    def test_external_is_recorded(self, plugin: ExternalsPlugin, project_root: Path) -> None:
        """Ordinary packages are external and pinned to the installed version."""
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        result = plugin.on_resolve(context, "lodash/fp", importer)

        assert result == ResolveResult(external=True)
        assert context.external_deps == {importer: {"lodash": "4.17.21"}}

    def test_force_bundled_is_recorded_as_dev(
        self, project_root: Path, runner: Any
    ) -> None:
        """Force-bundled packages are inlined and recorded for provenance."""
        plugin = ExternalsPlugin.from_config(
            PackagingConfig(root=project_root, force_bundle_packages=["tslib"]),
            operator=NpmOperator(runner=runner),
        )
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        result = plugin.on_resolve(context, "tslib", importer)

        assert result == ResolveResult(external=False)
        assert context.bundled_dev_deps == {importer: {"tslib": "2.6.2"}}
        assert context.external_deps == {}

    def test_unresolvable_package_fails(
        self, plugin: ExternalsPlugin, project_root: Path
    ) -> None:
        """A missing package surfaces as a resolution error."""
        context = plugin.setup(FakeEngine())

        with pytest.raises(VersionResolutionError, match="left-pad"):
            plugin.on_resolve(context, "left-pad", str(project_root / "src" / "a.ts"))

    def test_each_build_gets_its_own_ledger(
        self, plugin: ExternalsPlugin, project_root: Path
    ) -> None:
        """Two setups never share entries."""
        first = plugin.setup(FakeEngine())
        second = plugin.setup(FakeEngine())

        plugin.on_resolve(first, "lodash", str(project_root / "src" / "a.ts"))

        assert len(first) == 1
        assert len(second) == 0

    def test_concurrent_resolves(self, plugin: ExternalsPlugin, project_root: Path) -> None:
        """Concurrent hooks record every importer exactly once with one version."""
        context = plugin.setup(FakeEngine())
        importers = [str(project_root / "src" / f"h{i}.ts") for i in range(20)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda imp: plugin.on_resolve(context, "uuid", imp), importers * 3))

        assert len(context) == 20
        assert {e.version for e in context.entries()} == {"9.0.1"}


class TestModulesRoot:
    """Tests for the search root order."""

    def test_modules_root_searched_first(
        self, tmp_path: Path, project_root: Path, runner: Any, install_package: Any
    ) -> None:
        """A separate modules root shadows the project's node_modules."""
        modules_root = tmp_path / "layer"
        install_package(modules_root, "lodash", "4.0.0")
        plugin = ExternalsPlugin(
            project_root, modules_root=modules_root, operator=NpmOperator(runner=runner)
        )
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        plugin.on_resolve(context, "lodash", importer)
        plugin.on_resolve(context, "uuid", importer)

        assert plugin.search_roots == [modules_root, project_root]
        assert context.external_deps[importer] == {"lodash": "4.0.0", "uuid": "9.0.1"}

    def test_default_search_root(self, plugin: ExternalsPlugin, project_root: Path) -> None:
        """Without a modules root only the project root is searched."""
        assert plugin.search_roots == [project_root]


class TestEndHook:
    """Tests for the end hook."""

    def test_end_to_end(self, engine: FakeEngine, project_root: Path, runner: Any) -> None:
        """Artifacts get narrowed manifests, lockfiles and one install each."""
        src = project_root / "src"
        engine.resolve("lodash", src / "orders.ts")
        engine.resolve("./shared", src / "orders.ts")
        engine.resolve("@middy/core", src / "shared.ts")
        engine.resolve("@aws-sdk/client-dynamodb", src / "shared.ts")
        engine.resolve("node:crypto", src / "health.ts")

        report = engine.end(
            {
                "outputs": {
                    "dist/orders/index.mjs": {
                        "inputs": {"src/orders.ts": {}, "src/shared.ts": {}}
                    },
                    "dist/health/index.mjs": {"inputs": {"src/health.ts": {}}},
                }
            }
        )

        orders = project_root / "dist" / "orders"
        health = project_root / "dist" / "health"
        manifest = json.loads((orders / "package.json").read_text(encoding="utf-8"))
        assert manifest["dependencies"] == {"@middy/core": "5.2.1", "lodash": "4.17.21"}
        assert manifest["name"] == "orders-service"
        assert (orders / "package-lock.json").is_file()
        assert (health / "package-lock.json").is_file()

        assert runner.commands("npm") == [
            (
                ["npm", "ci", "--omit=dev", "--prefer-offline", "--no-audit", "--no-fund"],
                str(orders),
            )
        ]
        results = {r.artifact_dir: r for r in report.installs}
        assert results[health].skipped is True
        assert results[orders].success is True
        assert [a.artifact_dir for a in report.artifacts] == [health, orders]

    def test_install_failure_is_reported(
        self, project_root: Path, recording_runner: Any
    ) -> None:
        """A failing install surfaces as InstallError after the build."""

        def fail(args: list[str], cwd: str | None) -> CommandResult:
            return CommandResult(stdout="", stderr="npm ERR! missing lockfile entry", returncode=1)

        plugin = ExternalsPlugin(
            project_root, operator=NpmOperator(runner=recording_runner(fail))
        )
        engine = FakeEngine()
        plugin.setup(engine)
        engine.resolve("lodash", project_root / "src" / "a.ts")

        with pytest.raises(InstallError, match="missing lockfile entry") as exc_info:
            engine.end({"outputs": {"dist/a/index.mjs": {"inputs": {"src/a.ts": {}}}}})

        assert exc_info.value.failures[0].artifact_dir == project_root / "dist" / "a"


class TestFromConfig:
    """Tests for ExternalsPlugin.from_config."""

    def test_uses_configured_packager(self, project_root: Path) -> None:
        """The packager option selects the operator."""
        plugin = ExternalsPlugin.from_config(PackagingConfig(root=project_root, packager="bun"))

        assert isinstance(plugin.operator, BunOperator)
        assert plugin.operator.lockfile_name == "bun.lock"
        assert plugin.operator.dry_run is False

    def test_dry_run_reaches_operator(self, project_root: Path) -> None:
        """The dry_run option builds a simulating operator."""
        plugin = ExternalsPlugin.from_config(PackagingConfig(root=project_root, dry_run=True))

        assert isinstance(plugin.operator, NpmOperator)
        assert plugin.operator.dry_run is True
        assert plugin.operator.install_args()[-1] == "--dry-run"

    def test_blanket_force_bundle(self, project_root: Path, runner: Any) -> None:
        """The blanket flag bundles every non-builtin package."""
        plugin = ExternalsPlugin.from_config(
            PackagingConfig(root=project_root, force_bundle=True),
            operator=NpmOperator(runner=runner),
        )
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        assert plugin.on_resolve(context, "lodash", importer) == ResolveResult(external=False)
        assert plugin.on_resolve(context, "fs", importer) is None

    def test_predicate_combines_with_package_list(
        self, project_root: Path, runner: Any
    ) -> None:
        """A predicate and the configured list both force-bundle."""
        plugin = ExternalsPlugin.from_config(
            PackagingConfig(root=project_root, force_bundle_packages=["tslib"]),
            force_bundle=lambda name, path: name == "uuid",
            operator=NpmOperator(runner=runner),
        )
        context = plugin.setup(FakeEngine())
        importer = str(project_root / "src" / "a.ts")

        assert plugin.on_resolve(context, "uuid", importer) == ResolveResult(external=False)
        assert plugin.on_resolve(context, "tslib", importer) == ResolveResult(external=False)
        assert plugin.on_resolve(context, "lodash", importer) == ResolveResult(external=True)

    def test_runtime_provided_override(self, project_root: Path, runner: Any) -> None:
        """An empty runtime-provided list pins SDK packages like any other."""
        plugin = ExternalsPlugin.from_config(
            PackagingConfig(root=project_root, runtime_provided=[]),
            operator=NpmOperator(runner=runner),
        )
        context = plugin.setup(FakeEngine())

        with pytest.raises(VersionResolutionError):
            plugin.on_resolve(context, "@aws-sdk/client-s3", str(project_root / "src" / "a.ts"))
