"""Package manager operators for installing artifact dependencies.

This module provides abstract and concrete implementations of package
operators for different package managers (npm, Bun).
"""

from lambdactl.operators.base import Operator
from lambdactl.operators.bun import BunOperator
from lambdactl.operators.npm import NpmOperator

__all__ = ["Operator", "BunOperator", "NpmOperator", "get_operator"]


def get_operator(packager: str, dry_run: bool = False, **kwargs) -> Operator:
    """Get the operator for a package manager name.

    Args:
        packager: Package manager name ("npm" or "bun").
        dry_run: Whether to run in dry-run mode.
        **kwargs: Passed to the operator (e.g., ``runner``).

    Returns:
        Operator instance.

    Raises:
        ValueError: If the package manager is not supported.
    """
    operators: dict[str, type[Operator]] = {"npm": NpmOperator, "bun": BunOperator}
    if packager not in operators:
        msg = f"Unsupported package manager: {packager}"
        raise ValueError(msg)
    return operators[packager](dry_run=dry_run, **kwargs)
