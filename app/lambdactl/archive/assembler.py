"""Deterministic archive assembly for built artifacts.

Each artifact directory is filtered through an
:class:`~lambdactl.archive.rules.ExclusionRuleset` and compressed into a
zip file. The external ``deterministic-zip`` tool is preferred because its
output depends only on file paths and contents. When it cannot be found
or installed, archives are written in-process with :mod:`zipfile`, which
honours the same exclusions but embeds file timestamps; that degraded mode
is announced with a warning.
"""

from __future__ import annotations

import logging
import os
import subprocess
import zipfile
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from lambdactl.archive.rules import ExclusionRuleset
from lambdactl.core.config import default_parallelism
from lambdactl.core.errors import ArchiveError
from lambdactl.utils.formatting import print_warning
from lambdactl.utils.shell import CommandRunner, run_command

logger = logging.getLogger(__name__)

ZIP_TOOL = "deterministic-zip"
ZIP_TOOL_PACKAGE = "deterministic-zip-go"
ZIP_EXTENSION = ".zip"

# Maps (zip target, build dir) to the pair that is actually used
DirTransform = Callable[[tuple[Path, Path]], tuple[Path, Path]]


class ArchiveState(Enum):
    """Lifecycle of a single archive job."""

    PENDING = "pending"
    EXCLUDING = "excluding"
    COMPRESSING = "compressing"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class ArchiveJob:
    """Archive of one artifact directory.

    Attributes:
        build_dir: Directory being archived.
        zip_path: Archive file written.
        state: Current lifecycle state.
        included: Relative paths written to the archive, sorted.
        excluded: Relative paths left out, sorted.
        deterministic: Whether the external deterministic tool was used.
        error: Failure message if the job failed.
    """

    build_dir: Path
    zip_path: Path
    state: ArchiveState = ArchiveState.PENDING
    included: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)
    deterministic: bool = False
    error: str | None = None


def _tool_responds(runner: CommandRunner) -> bool:
    try:
        return runner([ZIP_TOOL, "--version"], timeout=30.0).success
    except (OSError, subprocess.SubprocessError):
        return False


def init_zip(runner: CommandRunner = run_command) -> bool:
    """Make sure the deterministic archiving tool is available.

    Tries the tool, then an on-demand ``pipx`` install followed by a second
    version check.

    Args:
        runner: Command runner.

    Returns:
        True if the external tool can be used, False for degraded mode.
    """
    if _tool_responds(runner):
        return True

    logger.info("%s not found, trying to install %s with pipx", ZIP_TOOL, ZIP_TOOL_PACKAGE)
    try:
        installed = runner(["pipx", "install", ZIP_TOOL_PACKAGE, "--quiet"], timeout=300.0)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("pipx install failed: %s", e)
        return False
    return installed.success and _tool_responds(runner)


class ArchiveAssembler:
    """Builds zip archives from artifact directories.

    Attributes:
        ruleset: Exclusion rules applied to every file.
        use_external: Whether the deterministic external tool is used.

    Example:
        >>> assembler = ArchiveAssembler(ExclusionRuleset(runtime="python3.12"))
        >>> job = assembler.assemble(Path(".build/handler"), Path("artifacts/handler"))
        >>> job.state
        <ArchiveState.DONE: 'done'>
    """

    _ZIP_TIMEOUT: float = 600.0

    def __init__(
        self,
        ruleset: ExclusionRuleset | None = None,
        *,
        runner: CommandRunner = run_command,
        use_external: bool | None = None,
    ) -> None:
        self.ruleset = ruleset or ExclusionRuleset()
        self._runner = runner
        self.use_external = init_zip(runner) if use_external is None else use_external
        if not self.use_external:
            logger.warning("%s unavailable, archives will not be byte-reproducible", ZIP_TOOL)
            print_warning(
                f"{ZIP_TOOL} is not available; falling back to the built-in zip writer. "
                "Archives will not be byte-reproducible."
            )

    def collect(self, build_dir: Path) -> tuple[list[str], list[str]]:
        """Split the files of a directory into included and excluded paths.

        Args:
            build_dir: Directory to scan.

        Returns:
            Tuple of (included, excluded) POSIX relative paths, both sorted.
        """
        included: list[str] = []
        excluded: list[str] = []
        for dirpath, _dirnames, filenames in os.walk(build_dir):
            for filename in filenames:
                relative = Path(dirpath, filename).relative_to(build_dir).as_posix()
                if self.ruleset.excludes(relative):
                    excluded.append(relative)
                else:
                    included.append(relative)
        return sorted(included), sorted(excluded)

    def assemble(self, build_dir: Path, zip_base: Path) -> ArchiveJob:
        """Archive one artifact directory.

        Args:
            build_dir: Built artifact directory.
            zip_base: Archive path without extension.

        Returns:
            The finished job in state DONE or FAILED.
        """
        zip_path = Path(f"{zip_base}{ZIP_EXTENSION}").absolute()
        job = ArchiveJob(build_dir=Path(build_dir), zip_path=zip_path)
        try:
            job.state = ArchiveState.EXCLUDING
            job.included, job.excluded = self.collect(job.build_dir)

            job.state = ArchiveState.COMPRESSING
            zip_path.parent.mkdir(parents=True, exist_ok=True)
            zip_path.unlink(missing_ok=True)
            if self.use_external:
                self._compress_external(job)
            else:
                self._compress_fallback(job)
        except (OSError, zipfile.BadZipFile, subprocess.SubprocessError, ArchiveError) as e:
            job.state = ArchiveState.FAILED
            job.error = str(e)
            logger.error("Archiving %s failed: %s", job.build_dir, e)
            return job

        job.state = ArchiveState.DONE
        logger.info(
            "Archived %s (%d files, %d excluded)", zip_path, len(job.included), len(job.excluded)
        )
        return job

    def _compress_external(self, job: ArchiveJob) -> None:
        args = [ZIP_TOOL, str(job.zip_path), ".", "--recurse-paths"]
        # Exact paths from collect(), so both writers archive the same set
        for relative in job.excluded:
            args.extend(["-x", relative])

        result = self._runner(args, timeout=self._ZIP_TIMEOUT, cwd=str(job.build_dir))
        if not result.success:
            msg = result.stderr.strip() or f"{ZIP_TOOL} exited with code {result.returncode}"
            raise ArchiveError(msg)
        job.deterministic = True

    def _compress_fallback(self, job: ArchiveJob) -> None:
        with zipfile.ZipFile(job.zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for relative in job.included:
                zf.write(job.build_dir / relative, arcname=relative)
        job.deterministic = False


def zip_handlers(
    handlers: Iterable[Path],
    *,
    outbase: Path,
    artifact_dir: Path,
    build_dir: Path,
    parallelism: int | None = None,
    transform: DirTransform | None = None,
    assembler: ArchiveAssembler | None = None,
) -> list[ArchiveJob]:
    """Archive the build output of many handlers in parallel.

    Every handler directory is taken relative to ``outbase``; its build
    output is read from the same relative path under ``build_dir`` and the
    archive is written to that path under ``artifact_dir`` plus ``.zip``.

    Args:
        handlers: Handler source directories.
        outbase: Common base of the handler directories.
        artifact_dir: Root for the written archives.
        build_dir: Root of the build outputs.
        parallelism: Maximum concurrent archives.
        transform: Optional rewrite of each (zip target, build dir) pair.
        assembler: Assembler to use; a default one is created otherwise.

    Returns:
        Finished jobs in handler order.

    Raises:
        ArchiveError: If any archive failed.
    """
    assembler = assembler or ArchiveAssembler()
    directories: list[tuple[Path, Path]] = []
    for handler in handlers:
        relative = Path(os.path.relpath(handler, outbase))
        pair = (Path(artifact_dir) / relative, Path(build_dir) / relative)
        directories.append(transform(pair) if transform else pair)

    with ThreadPoolExecutor(max_workers=parallelism or default_parallelism()) as pool:
        jobs = list(pool.map(lambda pair: assembler.assemble(pair[1], pair[0]), directories))

    failed = [job for job in jobs if job.state == ArchiveState.FAILED]
    if failed:
        details = "; ".join(f"{job.build_dir}: {job.error}" for job in failed)
        raise ArchiveError(f"{len(failed)} archive(s) failed: {details}")
    return jobs
