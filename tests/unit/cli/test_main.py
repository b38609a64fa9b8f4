"""Unit tests for the CLI entry point and the zip command."""

import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest
from lambdactl import __version__
from lambdactl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


def build_handler(build: Path, name: str) -> None:
    """Write a small built handler under the build root."""
    handler = build / name
    (handler / "node_modules" / "uuid").mkdir(parents=True)
    (handler / "index.mjs").write_text("export const handler = () => {}\n", encoding="utf-8")
    (handler / "node_modules" / "uuid" / "index.js").write_text("", encoding="utf-8")
    (handler / "node_modules" / "uuid" / "README.md").write_text("", encoding="utf-8")


class TestMain:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help(self) -> None:
        """Help lists the zip command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "zip" in result.stdout


class TestZipCommand:
    """Tests for lambdactl zip command."""

    def test_zip_help(self) -> None:
        """Zip command shows help."""
        result = runner.invoke(app, ["zip", "--help"])
        assert result.exit_code == 0
        assert "Archive built handlers" in result.stdout

    def test_zip_handlers(self, tmp_path: Path) -> None:
        """Handlers are archived without excluded files."""
        build = tmp_path / ".build"
        build_handler(build, "orders")
        build_handler(build, "users")
        functions = tmp_path / "functions"

        with patch("lambdactl.archive.assembler.init_zip", return_value=False):
            result = runner.invoke(
                app,
                [
                    "zip",
                    str(functions / "orders"),
                    str(functions / "users"),
                    "--outbase",
                    str(functions),
                    "--build-dir",
                    str(build),
                    "--artifact-dir",
                    str(tmp_path / "dist"),
                    "-j",
                    "2",
                ],
            )

        assert result.exit_code == 0
        assert "Archived 2 handler(s)." in result.stdout
        with zipfile.ZipFile(tmp_path / "dist" / "orders.zip") as zf:
            assert sorted(zf.namelist()) == ["index.mjs", "node_modules/uuid/index.js"]

    def test_zip_uses_config_runtime(self, tmp_path: Path) -> None:
        """The runtime comes from the config file when not given."""
        build = tmp_path / ".build"
        handler = build / "api"
        handler.mkdir(parents=True)
        (handler / "app.py").write_text("", encoding="utf-8")
        (handler / "_ext.cpython-311-x86_64-linux-gnu.so").write_text("", encoding="utf-8")
        config = tmp_path / "lambdactl.toml"
        config.write_text('runtime = "python3.12"\n', encoding="utf-8")

        with patch("lambdactl.archive.assembler.init_zip", return_value=False):
            result = runner.invoke(
                app,
                [
                    "zip",
                    str(tmp_path / "functions" / "api"),
                    "--outbase",
                    str(tmp_path / "functions"),
                    "--build-dir",
                    str(build),
                    "--artifact-dir",
                    str(tmp_path / "dist"),
                    "--config",
                    str(config),
                ],
            )

        assert result.exit_code == 0
        with zipfile.ZipFile(tmp_path / "dist" / "api.zip") as zf:
            assert zf.namelist() == ["app.py"]

    def test_zip_missing_config(self, tmp_path: Path) -> None:
        """A missing config file exits with an error."""
        result = runner.invoke(
            app, ["zip", str(tmp_path / "a"), "--config", str(tmp_path / "nope.toml")]
        )
        assert result.exit_code == 1

    def test_zip_failure(self, tmp_path: Path) -> None:
        """A failed archive exits with an error."""
        # The build output is missing, so the external tool cannot run there
        with patch("lambdactl.archive.assembler.init_zip", return_value=True):
            result = runner.invoke(
                app,
                [
                    "zip",
                    str(tmp_path / "functions" / "a"),
                    "--outbase",
                    str(tmp_path / "functions"),
                    "--build-dir",
                    str(tmp_path / ".build"),
                    "--artifact-dir",
                    str(tmp_path / "dist"),
                ],
            )

        assert result.exit_code == 1

    def test_zip_discovers_config_in_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A lambdactl.toml in the working directory is used by default."""
        handler = tmp_path / ".build" / "api"
        handler.mkdir(parents=True)
        (handler / "app.py").write_text("", encoding="utf-8")
        (handler / "_ext.cpython-39-x86_64-linux-gnu.so").write_text("", encoding="utf-8")
        (tmp_path / "lambdactl.toml").write_text('runtime = "python3.12"\n', encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        with patch("lambdactl.archive.assembler.init_zip", return_value=False):
            result = runner.invoke(
                app, ["zip", "functions/api", "--outbase", "functions", "-b", ".build"]
            )

        assert result.exit_code == 0
        assert "Using config lambdactl.toml" in result.stdout
        with zipfile.ZipFile(tmp_path / ".artifacts" / "api.zip") as zf:
            assert zf.namelist() == ["app.py"]
