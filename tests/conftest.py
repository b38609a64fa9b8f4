"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import json
import threading
from collections.abc import Callable
from pathlib import Path

import pytest
from lambdactl.utils.shell import CommandResult

OK = CommandResult(stdout="", stderr="", returncode=0)


class RecordingRunner:
    """Command runner that records invocations instead of spawning processes."""

    def __init__(
        self,
        handler: Callable[[list[str], str | None], CommandResult] | None = None,
    ) -> None:
        self.handler = handler
        self.calls: list[tuple[list[str], str | None]] = []
        self._lock = threading.Lock()

    def __call__(
        self,
        args: list[str],
        *,
        check: bool = False,
        timeout: float | None = 60.0,
        cwd: str | None = None,
    ) -> CommandResult:
        with self._lock:
            self.calls.append((list(args), cwd))
        if self.handler is not None:
            return self.handler(list(args), cwd)
        return OK

    def commands(self, executable: str) -> list[tuple[list[str], str | None]]:
        """Recorded calls of one executable."""
        return [call for call in self.calls if call[0][0] == executable]


@pytest.fixture
def recording_runner() -> type[RecordingRunner]:
    """The RecordingRunner class, for tests that need a custom handler."""
    return RecordingRunner


@pytest.fixture
def runner() -> RecordingRunner:
    """A runner where every command succeeds."""
    return RecordingRunner()


def write_package(base: Path, name: str, version: str) -> Path:
    """Write node_modules/<name>/package.json under base."""
    manifest = base / "node_modules" / name / "package.json"
    manifest.parent.mkdir(parents=True, exist_ok=True)
    manifest.write_text(json.dumps({"name": name, "version": version}), encoding="utf-8")
    return manifest


@pytest.fixture
def install_package() -> Callable[[Path, str, str], Path]:
    """Helper writing an installed package manifest."""
    return write_package


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A project with a manifest, a lockfile and a few installed packages."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "orders-service",
                "type": "module",
                "sideEffects": False,
                "scripts": {"build": "node build.mjs", "test": "vitest"},
                "files": ["dist"],
                "dependencies": {"lodash": "^4.17.21", "@middy/core": "^5.0.0"},
                "devDependencies": {"vitest": "^1.0.0", "tslib": "^2.6.0"},
            }
        ),
        encoding="utf-8",
    )
    (root / "package-lock.json").write_text('{"lockfileVersion": 3}\n', encoding="utf-8")
    write_package(root, "lodash", "4.17.21")
    write_package(root, "@middy/core", "5.2.1")
    write_package(root, "tslib", "2.6.2")
    write_package(root, "uuid", "9.0.1")
    (root / "src").mkdir()
    return root
