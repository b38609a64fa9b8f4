"""Core configuration, errors and install orchestration for lambdactl."""

from lambdactl.core.config import (
    DriftPolicy,
    FailurePolicy,
    PackagingConfig,
    default_parallelism,
    load_config,
)
from lambdactl.core.errors import (
    ArchiveError,
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    FinalizeError,
    InstallError,
    InstallFailure,
    LambdactlError,
    VersionDriftError,
    VersionResolutionError,
)

__all__ = [
    "ArchiveError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "DriftPolicy",
    "FailurePolicy",
    "FinalizeError",
    "InstallError",
    "InstallFailure",
    "LambdactlError",
    "PackagingConfig",
    "VersionDriftError",
    "VersionResolutionError",
    "default_parallelism",
    "load_config",
]
