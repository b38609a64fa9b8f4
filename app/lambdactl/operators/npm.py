"""npm package operator implementation.

Installs artifact dependencies with ``npm ci``.
"""

from lambdactl.operators.base import Operator


class NpmOperator(Operator):
    """Operator for npm.

    ``npm ci`` installs exactly what the copied package-lock.json pins for
    the narrowed dependency set and refuses to rewrite the lockfile.
    Development dependencies are recorded for provenance only and are
    omitted.
    """

    @property
    def name(self) -> str:
        """Return npm as the package manager."""
        return "npm"

    @property
    def lockfile_name(self) -> str:
        """Return the npm lockfile name."""
        return "package-lock.json"

    def install_args(self) -> list[str]:
        """Build the npm ci command line."""
        args = ["npm", "ci", "--omit=dev", "--prefer-offline", "--no-audit", "--no-fund"]
        if self.dry_run:
            args.append("--dry-run")
        return args
