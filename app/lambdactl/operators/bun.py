"""Bun package operator implementation.

Installs artifact dependencies with ``bun install``.
"""

from lambdactl.operators.base import Operator


class BunOperator(Operator):
    """Operator for Bun.

    Uses a frozen lockfile so the install fails rather than resolving
    anything the project lockfile does not already pin.
    """

    @property
    def name(self) -> str:
        """Return bun as the package manager."""
        return "bun"

    @property
    def lockfile_name(self) -> str:
        """Return the bun lockfile name."""
        return "bun.lock"

    def install_args(self) -> list[str]:
        """Build the bun install command line."""
        args = ["bun", "install", "--production", "--frozen-lockfile"]
        if self.dry_run:
            args.append("--dry-run")
        return args
