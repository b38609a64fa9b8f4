"""Packaging configuration and settings.

This module provides the configuration model and loader for a packaging
run. Configuration is read from ``lambdactl.toml`` or from the
``[tool.lambdactl]`` table of ``pyproject.toml``.
"""

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lambdactl.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError

# Package manager type alias
Packager = Literal["npm", "bun"]

CONFIG_FILENAME = "lambdactl.toml"


def default_parallelism() -> int:
    """Default worker count for installs and archives."""
    return max((os.cpu_count() or 1) * 2, 4)


class FailurePolicy(str, Enum):
    """What happens to sibling installs once one install fails.

    Attributes:
        LET_ALL_FINISH: Wait for every install, then report all failures.
        CANCEL_PENDING: Cancel installs that have not started yet.
    """

    LET_ALL_FINISH = "let-all-finish"
    CANCEL_PENDING = "cancel-pending"


class DriftPolicy(str, Enum):
    """How to treat one package pinned at different versions within an artifact.

    Attributes:
        FIRST_WINS: Keep the first recorded version and log a warning.
        FAIL: Abort with VersionDriftError.
    """

    FIRST_WINS = "first-wins"
    FAIL = "fail"


class PackagingConfig(BaseModel):
    """Configuration for a packaging run.

    Attributes:
        root: Project root holding package.json and the lockfile.
        modules_root: Directory whose node_modules is searched first.
        force_bundle: Bundle every package instead of externalizing it.
        force_bundle_packages: Package names that are always bundled.
        runtime_provided: Namespace prefixes supplied by the platform.
        runtime: Target runtime identifier (e.g., "nodejs20.x", "python3.12").
        packager: Package manager used for installs.
        install_concurrency: Maximum number of concurrent installs.
        failure_policy: Handling of sibling installs after a failure.
        drift_policy: Handling of version drift inside one artifact.
        prune: Paths under node_modules removed after install.
        dry_run: Run installs with --dry-run and skip pruning.
    """

    model_config = ConfigDict(extra="forbid")

    root: Annotated[Path, Field(description="Project root directory")] = Path(".")
    modules_root: Annotated[
        Path | None,
        Field(description="Directory searched first for node_modules"),
    ] = None
    force_bundle: Annotated[bool, Field(description="Bundle every package")] = False
    force_bundle_packages: Annotated[
        list[str],
        Field(default_factory=list, description="Packages that are always bundled"),
    ]
    runtime_provided: Annotated[
        list[str],
        Field(description="Namespace prefixes supplied by the platform"),
    ] = ["@aws-sdk/"]
    runtime: Annotated[str | None, Field(description="Target runtime identifier")] = None
    packager: Annotated[Packager, Field(description="Package manager")] = "npm"
    install_concurrency: Annotated[
        int,
        Field(default_factory=default_parallelism, ge=1, description="Concurrent installs"),
    ]
    failure_policy: Annotated[
        FailurePolicy,
        Field(description="Sibling install handling after a failure"),
    ] = FailurePolicy.LET_ALL_FINISH
    drift_policy: Annotated[
        DriftPolicy,
        Field(description="Version drift handling"),
    ] = DriftPolicy.FIRST_WINS
    prune: Annotated[
        list[str],
        Field(description="Paths under node_modules removed after install"),
    ] = ["aws-sdk"]
    dry_run: Annotated[bool, Field(description="Simulate installs")] = False


def load_config(path: Path) -> PackagingConfig:
    """Load packaging configuration from a TOML file.

    A ``pyproject.toml`` is read from its ``[tool.lambdactl]`` table, any
    other file is read as a whole. Relative ``root`` and ``modules_root``
    are resolved against the file's directory.

    Args:
        path: Path to ``lambdactl.toml`` or ``pyproject.toml``.

    Returns:
        Validated PackagingConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Config not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    if path.name == "pyproject.toml":
        data = data.get("tool", {}).get("lambdactl", {})

    try:
        config = PackagingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e

    base = path.parent
    updates: dict[str, Path] = {}
    if not config.root.is_absolute():
        updates["root"] = base / config.root
    if config.modules_root is not None and not config.modules_root.is_absolute():
        updates["modules_root"] = base / config.modules_root
    return config.model_copy(update=updates) if updates else config
