"""Installed package version resolution.

Locates a package's manifest in the node_modules trees reachable from an
ordered list of search roots and reads its version. Both the lookup and
the manifest read are memoised as futures, so concurrent resolve hooks
asking for the same package share one filesystem pass and always agree
on the recorded version.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from pathlib import Path

from lambdactl.core.errors import VersionResolutionError
from lambdactl.models.package import MANIFEST_NAME, MODULES_DIR

logger = logging.getLogger(__name__)

# Reads a manifest file and returns its version, raising on any problem
ManifestReader = Callable[[Path], str]


class ManifestVersionError(Exception):
    """Raised when a manifest file has no usable version."""


def read_manifest_version(path: Path) -> str:
    """Read the version field of a package manifest.

    Args:
        path: Path to the package's package.json.

    Returns:
        The version string.

    Raises:
        OSError: If the file cannot be read.
        ManifestVersionError: If the JSON is invalid or has no string version.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestVersionError(f"Invalid JSON in {path}: {e}") from e

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        msg = f"No version field in {path}"
        raise ManifestVersionError(msg)
    return version


class VersionCache:
    """Process-lifetime cache from manifest path to version.

    The pending future is stored before the read starts, so a second
    request for the same path waits on the first read instead of issuing
    its own. Failures are cached as well, except interruptions such as
    KeyboardInterrupt, which are raised to every waiter and then dropped.
    """

    def __init__(self, reader: ManifestReader = read_manifest_version) -> None:
        self._reader = reader
        self._lock = threading.Lock()
        self._entries: dict[Path, Future[str]] = {}

    def get(self, path: Path) -> str:
        """Return the version stored in a manifest, reading it at most once.

        Args:
            path: Manifest path.

        Returns:
            The version string.

        Raises:
            OSError: If the manifest cannot be read.
            ManifestVersionError: If the manifest has no usable version.
        """
        with self._lock:
            future = self._entries.get(path)
            owner = future is None
            if future is None:
                future = Future()
                self._entries[path] = future

        if owner:
            try:
                future.set_result(self._reader(path))
            except Exception as e:  # noqa: BLE001 - stored and re-raised by result()
                future.set_exception(e)
            except BaseException as e:
                # Interrupted reads wake the waiters but are not cached
                future.set_exception(e)
                with self._lock:
                    if self._entries.get(path) is future:
                        del self._entries[path]
                raise

        return future.result()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def candidate_manifests(package_name: str, search_root: Path) -> list[Path]:
    """List manifest locations for a package, nearest first.

    Follows the node resolution walk: ``node_modules`` of the root, then of
    every parent directory.

    Args:
        package_name: Package name, possibly scoped.
        search_root: Directory to start from.

    Returns:
        Ordered candidate paths.
    """
    start = Path(search_root).absolute()
    return [
        directory / MODULES_DIR / package_name / MANIFEST_NAME
        for directory in (start, *start.parents)
        if directory.name != MODULES_DIR
    ]


class VersionResolver:
    """Resolves installed package versions across ordered search roots.

    Example:
        >>> resolver = VersionResolver()
        >>> resolver.resolve("lodash", [Path("/srv/app")])
        '4.17.21'
    """

    def __init__(self, cache: VersionCache | None = None) -> None:
        self._cache = cache if cache is not None else VersionCache()
        self._lock = threading.Lock()
        self._lookups: dict[tuple[str, tuple[Path, ...]], Future[str]] = {}

    @property
    def cache(self) -> VersionCache:
        """The manifest-path cache backing this resolver."""
        return self._cache

    def resolve(self, package_name: str, search_roots: Sequence[Path]) -> str:
        """Resolve the installed version of a package.

        Args:
            package_name: Package name, possibly scoped.
            search_roots: Ordered roots; the first one yielding a parsable
                manifest wins.

        Returns:
            The installed version.

        Raises:
            VersionResolutionError: If no root yields a manifest.
        """
        key = (package_name, tuple(Path(root) for root in search_roots))
        with self._lock:
            future = self._lookups.get(key)
            owner = future is None
            if future is None:
                future = Future()
                self._lookups[key] = future

        if owner:
            try:
                future.set_result(self._locate(package_name, key[1]))
            except Exception as e:  # noqa: BLE001 - stored and re-raised by result()
                future.set_exception(e)
            except BaseException as e:
                future.set_exception(e)
                with self._lock:
                    if self._lookups.get(key) is future:
                        del self._lookups[key]
                raise

        return future.result()

    def _locate(self, package_name: str, search_roots: tuple[Path, ...]) -> str:
        """Walk the search roots and read the first usable manifest."""
        searched: list[Path] = []
        for root in search_roots:
            for candidate in candidate_manifests(package_name, root):
                searched.append(candidate)
                if not candidate.is_file():
                    continue
                try:
                    version = self._cache.get(candidate)
                except (OSError, ManifestVersionError) as e:
                    logger.debug("Skipping unusable manifest %s: %s", candidate, e)
                    continue
                logger.debug("Resolved %s@%s from %s", package_name, version, candidate)
                return version

        raise VersionResolutionError(package_name, searched)
