"""Import classification rules.

Every bare import seen by the build engine is classified into one of the
:class:`~lambdactl.models.package.Category` values. Rules are small
strategy objects; :class:`DependencyClassifier` asks them in a fixed
precedence order (built-in, force-bundled, runtime-provided) and falls
back to ``EXTERNAL``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from lambdactl.models.package import Category

# Predicate over (package_name, import_path)
ImportPredicate = Callable[[str, str], bool]

NODE_BUILTINS: frozenset[str] = frozenset(
    {
        "assert",
        "assert/strict",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "dns/promises",
        "domain",
        "events",
        "fs",
        "fs/promises",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "path/posix",
        "path/win32",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "readline/promises",
        "repl",
        "stream",
        "stream/consumers",
        "stream/promises",
        "stream/web",
        "string_decoder",
        "sys",
        "timers",
        "timers/promises",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "util/types",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


class ClassificationRule(ABC):
    """A single classification strategy.

    A rule either claims an import by returning a category or passes by
    returning None.
    """

    @abstractmethod
    def classify(self, package_name: str, import_path: str) -> Category | None:
        """Classify an import.

        Args:
            package_name: Package the import belongs to.
            import_path: Full import specifier.

        Returns:
            The category, or None if this rule does not apply.
        """


class AlwaysRule(ClassificationRule):
    """Claims every import."""

    def __init__(self, category: Category) -> None:
        self.category = category

    def classify(self, package_name: str, import_path: str) -> Category | None:
        return self.category


class PredicateRule(ClassificationRule):
    """Claims imports accepted by a predicate."""

    def __init__(self, predicate: ImportPredicate, category: Category) -> None:
        self.predicate = predicate
        self.category = category

    def classify(self, package_name: str, import_path: str) -> Category | None:
        return self.category if self.predicate(package_name, import_path) else None


class NamespacePrefixRule(ClassificationRule):
    """Claims packages whose name starts with one of the given prefixes."""

    def __init__(self, prefixes: Iterable[str], category: Category) -> None:
        self.prefixes = tuple(prefixes)
        self.category = category

    def classify(self, package_name: str, import_path: str) -> Category | None:
        if self.prefixes and package_name.startswith(self.prefixes):
            return self.category
        return None


class BuiltinRule(ClassificationRule):
    """Claims modules the runtime provides without a package on disk."""

    def __init__(self, builtins: Iterable[str] = NODE_BUILTINS, prefix: str = "node:") -> None:
        self.builtins = frozenset(builtins)
        self.prefix = prefix

    def classify(self, package_name: str, import_path: str) -> Category | None:
        if import_path.startswith(self.prefix):
            return Category.BUILTIN
        if import_path in self.builtins or package_name in self.builtins:
            return Category.BUILTIN
        return None


def force_bundle_rule(force_bundle: bool | ImportPredicate | None) -> ClassificationRule | None:
    """Build the force-bundle rule from a blanket flag or a predicate.

    Args:
        force_bundle: True to bundle everything, a predicate, or None/False.

    Returns:
        The rule, or None when nothing is force-bundled.
    """
    if force_bundle is True:
        return AlwaysRule(Category.FORCE_BUNDLED)
    if callable(force_bundle):
        return PredicateRule(force_bundle, Category.FORCE_BUNDLED)
    return None


def package_set_predicate(packages: Iterable[str]) -> ImportPredicate:
    """Predicate matching a fixed set of package names."""
    names = frozenset(packages)

    def _matches(package_name: str, import_path: str) -> bool:
        return package_name in names

    return _matches


def any_of(predicates: Iterable[ImportPredicate]) -> ImportPredicate:
    """Predicate matching when any of the given predicates matches."""
    combined = tuple(predicates)

    def _matches(package_name: str, import_path: str) -> bool:
        return any(predicate(package_name, import_path) for predicate in combined)

    return _matches


class DependencyClassifier:
    """Composes classification rules in fixed precedence order.

    Attributes:
        rules: Rules asked in order; the first answer wins.
    """

    def __init__(
        self,
        *,
        builtin: ClassificationRule | None = None,
        force_bundle: ClassificationRule | None = None,
        runtime_provided: ClassificationRule | None = None,
    ) -> None:
        self.rules: list[ClassificationRule] = [
            rule
            for rule in (builtin or BuiltinRule(), force_bundle, runtime_provided)
            if rule is not None
        ]

    @classmethod
    def create(
        cls,
        *,
        force_bundle: bool | ImportPredicate | None = None,
        runtime_provided: Iterable[str] = ("@aws-sdk/",),
    ) -> DependencyClassifier:
        """Build a classifier from plain options.

        Args:
            force_bundle: True, a predicate, or None.
            runtime_provided: Namespace prefixes supplied by the platform.

        Returns:
            Configured DependencyClassifier.
        """
        prefixes = tuple(runtime_provided)
        return cls(
            force_bundle=force_bundle_rule(force_bundle),
            runtime_provided=(
                NamespacePrefixRule(prefixes, Category.RUNTIME_PROVIDED) if prefixes else None
            ),
        )

    def classify(self, package_name: str, import_path: str) -> Category:
        """Classify an import, defaulting to EXTERNAL.

        Args:
            package_name: Package the import belongs to.
            import_path: Full import specifier.

        Returns:
            The first category claimed by a rule, else Category.EXTERNAL.
        """
        for rule in self.rules:
            category = rule.classify(package_name, import_path)
            if category is not None:
                return category
        return Category.EXTERNAL
