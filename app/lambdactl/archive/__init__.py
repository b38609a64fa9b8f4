"""Archive assembly for built artifacts.

This module exports the assembler and its exclusion rules.
"""

from lambdactl.archive.assembler import (
    ArchiveAssembler,
    ArchiveJob,
    ArchiveState,
    init_zip,
    zip_handlers,
)
from lambdactl.archive.rules import ExclusionRuleset

__all__ = [
    "ArchiveAssembler",
    "ArchiveJob",
    "ArchiveState",
    "ExclusionRuleset",
    "init_zip",
    "zip_handlers",
]
