"""Data models for lambdactl.

This module exports the core data structures used throughout the application.
"""

from lambdactl.models.manifest import ArtifactManifest, ProjectManifest
from lambdactl.models.package import (
    Category,
    LedgerEntry,
    LedgerKind,
    ResolveResult,
    is_path_import,
    package_name_of,
)

__all__ = [
    "ArtifactManifest",
    "Category",
    "LedgerEntry",
    "LedgerKind",
    "ProjectManifest",
    "ResolveResult",
    "is_path_import",
    "package_name_of",
]
