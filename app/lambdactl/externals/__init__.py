"""Externals resolution: import classification, ledger and artifact synthesis.

This module exports the build engine plugin and its building blocks.
"""

from lambdactl.externals.classifier import (
    AlwaysRule,
    BuiltinRule,
    ClassificationRule,
    DependencyClassifier,
    NamespacePrefixRule,
    PredicateRule,
)
from lambdactl.externals.correlator import ArtifactDependencies, correlate
from lambdactl.externals.finalizer import ArtifactFinalizer
from lambdactl.externals.ledger import BuildContext
from lambdactl.externals.plugin import BuildReport, ExternalsPlugin
from lambdactl.externals.resolver import VersionCache, VersionResolver

__all__ = [
    "AlwaysRule",
    "ArtifactDependencies",
    "ArtifactFinalizer",
    "BuildContext",
    "BuildReport",
    "BuiltinRule",
    "ClassificationRule",
    "DependencyClassifier",
    "ExternalsPlugin",
    "NamespacePrefixRule",
    "PredicateRule",
    "VersionCache",
    "VersionResolver",
    "correlate",
]
