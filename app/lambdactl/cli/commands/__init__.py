"""CLI commands for lambdactl.

This package contains all subcommand implementations.
"""

from lambdactl.cli.commands import archive

__all__ = ["archive"]
