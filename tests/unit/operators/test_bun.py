"""Unit tests for BunOperator."""

from lambdactl.operators import BunOperator


class TestBunOperator:
    """Tests for BunOperator class."""

    def test_name_and_lockfile(self) -> None:
        """bun installs from bun.lock."""
        operator = BunOperator()
        assert operator.name == "bun"
        assert operator.lockfile_name == "bun.lock"

    def test_install_args(self) -> None:
        """Installs use the frozen lockfile and skip dev dependencies."""
        assert BunOperator().install_args() == [
            "bun",
            "install",
            "--production",
            "--frozen-lockfile",
        ]

    def test_install_args_dry_run(self) -> None:
        """Dry runs pass --dry-run."""
        assert "--dry-run" in BunOperator(dry_run=True).install_args()
