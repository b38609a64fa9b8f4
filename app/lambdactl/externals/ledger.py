"""Per-build ledger of externalized and force-bundled packages.

A :class:`BuildContext` is created for every build invocation and threaded
through the resolve and end hooks, so separate builds in one process never
share entries.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator

from lambdactl.models.package import LedgerEntry, LedgerKind

logger = logging.getLogger(__name__)


def normalize_importer(importer: str | os.PathLike[str]) -> str:
    """Normalise an importer path for use as a ledger key."""
    return os.path.normpath(os.path.abspath(importer))


class BuildContext:
    """Ledger state of a single build.

    Entries are kept in insertion order. An (importer, package) pair is
    recorded at most once across both ledgers; later records for the same
    pair are no-ops.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[LedgerEntry] = []
        self._index: dict[tuple[str, str], LedgerEntry] = {}

    def record(self, importer: str, package: str, version: str, kind: LedgerKind) -> bool:
        """Record a package against its importer.

        Args:
            importer: Path of the importing file.
            package: Package name.
            version: Resolved version.
            kind: Target ledger.

        Returns:
            True if a new entry was added, False if the pair was already known.
        """
        entry = LedgerEntry(
            importer=normalize_importer(importer),
            package=package,
            version=version,
            kind=kind,
        )
        key = (entry.importer, package)
        with self._lock:
            existing = self._index.get(key)
            if existing is not None:
                if existing.kind != kind:
                    logger.debug(
                        "%s already recorded as %s for %s, ignoring %s",
                        package,
                        existing.kind.value,
                        entry.importer,
                        kind.value,
                    )
                return False
            self._index[key] = entry
            self._entries.append(entry)
        return True

    def record_external(self, importer: str, package: str, version: str) -> bool:
        """Record a package that must be declared as a runtime dependency."""
        return self.record(importer, package, version, LedgerKind.EXTERNAL)

    def record_bundled(self, importer: str, package: str, version: str) -> bool:
        """Record a package that was force-bundled."""
        return self.record(importer, package, version, LedgerKind.BUNDLED_DEV)

    def entries(self) -> list[LedgerEntry]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            return list(self._entries)

    def entries_for(self, importers: set[str]) -> Iterator[LedgerEntry]:
        """Yield entries whose importer is in the given set, in insertion order."""
        for entry in self.entries():
            if entry.importer in importers:
                yield entry

    def ledger(self, kind: LedgerKind) -> dict[str, dict[str, str]]:
        """View one ledger as importer -> package -> version."""
        view: dict[str, dict[str, str]] = {}
        for entry in self.entries():
            if entry.kind == kind:
                view.setdefault(entry.importer, {})[entry.package] = entry.version
        return view

    @property
    def external_deps(self) -> dict[str, dict[str, str]]:
        """Packages that must be declared, keyed by importer."""
        return self.ledger(LedgerKind.EXTERNAL)

    @property
    def bundled_dev_deps(self) -> dict[str, dict[str, str]]:
        """Packages bundled into the output, keyed by importer."""
        return self.ledger(LedgerKind.BUNDLED_DEV)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
