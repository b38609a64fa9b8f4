"""Zip command implementation.

Archives built handler directories into deployable zip files.
"""

from pathlib import Path
from typing import Annotated

import typer

from lambdactl.archive.assembler import ArchiveAssembler, zip_handlers
from lambdactl.archive.rules import ExclusionRuleset
from lambdactl.core.config import CONFIG_FILENAME, load_config
from lambdactl.core.errors import ArchiveError, ConfigError
from lambdactl.utils.formatting import (
    console,
    create_archive_table,
    format_archive_row,
    print_error,
    print_info,
    print_success,
)


def zip_command(
    handlers: Annotated[
        list[Path],
        typer.Argument(help="Handler directories to archive."),
    ],
    outbase: Annotated[
        Path,
        typer.Option(
            "--outbase",
            help="Common base directory of the handlers.",
        ),
    ] = Path("."),
    build_dir: Annotated[
        Path,
        typer.Option(
            "--build-dir",
            "-b",
            help="Root of the build outputs, mirroring the handler layout.",
        ),
    ] = Path(".build/artifacts"),
    artifact_dir: Annotated[
        Path,
        typer.Option(
            "--artifact-dir",
            "-o",
            help="Root directory the zip files are written to.",
        ),
    ] = Path(".artifacts"),
    runtime: Annotated[
        str | None,
        typer.Option(
            "--runtime",
            "-r",
            help="Target runtime identifier, e.g. python3.12 or nodejs20.x.",
        ),
    ] = None,
    parallelism: Annotated[
        int | None,
        typer.Option(
            "--parallelism",
            "-j",
            min=1,
            help="Maximum number of archives built at once.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to lambdactl.toml or pyproject.toml. Defaults to ./lambdactl.toml.",
        ),
    ] = None,
) -> None:
    """Archive built handlers into deployable zip files.

    Examples:
        lambdactl zip functions/a functions/b --outbase functions
        lambdactl zip functions/* --outbase functions --runtime python3.12
    """
    if config_path is None and Path(CONFIG_FILENAME).is_file():
        config_path = Path(CONFIG_FILENAME)

    if config_path is not None:
        try:
            config = load_config(config_path)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_info(f"Using config {config_path}")
        runtime = runtime or config.runtime
        parallelism = parallelism or config.install_concurrency

    assembler = ArchiveAssembler(ExclusionRuleset(runtime=runtime))
    try:
        jobs = zip_handlers(
            handlers,
            outbase=outbase,
            artifact_dir=artifact_dir,
            build_dir=build_dir,
            parallelism=parallelism,
            assembler=assembler,
        )
    except ArchiveError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    table = create_archive_table()
    for job in jobs:
        table.add_row(*format_archive_row(job))
    console.print(table)
    print_success(f"Archived {len(jobs)} handler(s).")
