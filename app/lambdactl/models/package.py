"""Package models for import classification.

This module defines the core data structures used while classifying
imports during a build: package names, categories and ledger entries.
"""

from dataclasses import dataclass
from enum import Enum

MANIFEST_NAME = "package.json"
MODULES_DIR = "node_modules"


class Category(Enum):
    """Outcome of classifying a single import.

    Attributes:
        BUILTIN: Provided by the runtime itself, ignored entirely.
        FORCE_BUNDLED: Inlined into the bundle, recorded for provenance.
        RUNTIME_PROVIDED: Supplied by the execution platform, external but unpinned.
        EXTERNAL: Excluded from the bundle and declared as a runtime dependency.
    """

    BUILTIN = "builtin"
    FORCE_BUNDLED = "force-bundled"
    RUNTIME_PROVIDED = "runtime-provided"
    EXTERNAL = "external"


class LedgerKind(Enum):
    """Which ledger an entry belongs to."""

    EXTERNAL = "dependencies"
    BUNDLED_DEV = "devDependencies"


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A package version recorded against the importer that required it.

    Attributes:
        importer: Normalised absolute path of the importing source file.
        package: Package name (e.g., 'lodash', '@scope/name').
        version: Version string read from the package manifest.
        kind: Ledger the entry was recorded in.
    """

    importer: str
    package: str
    version: str
    kind: LedgerKind

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.package:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.version:
            msg = f"Version of '{self.package}' cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ResolveResult:
    """Answer returned to the build engine for one import.

    Attributes:
        external: True if the import must be left out of the bundle.
    """

    external: bool


def is_path_import(import_path: str) -> bool:
    """Check if an import refers to a file path rather than a package.

    Args:
        import_path: Import specifier as written in source.

    Returns:
        True for relative ('./x', '../x') and absolute ('/x') specifiers.
    """
    return import_path.startswith((".", "/"))


def package_name_of(import_path: str) -> str:
    """Derive the package name from an import specifier.

    Scoped packages keep the scope and the first path segment
    ('@scope/name/sub' -> '@scope/name'), everything else keeps only
    the first segment ('lodash/fp' -> 'lodash').

    Args:
        import_path: Bare import specifier.

    Returns:
        The package name the specifier belongs to.

    Raises:
        ValueError: If the specifier is empty or a path import.
    """
    if not import_path or is_path_import(import_path):
        msg = f"Not a package import: {import_path!r}"
        raise ValueError(msg)

    parts = import_path.split("/")
    if import_path.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]
