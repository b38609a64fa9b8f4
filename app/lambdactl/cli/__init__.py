"""CLI package for lambdactl.

This package contains the Typer application and all subcommands.
"""

from lambdactl.cli.main import app

__all__ = ["app"]
