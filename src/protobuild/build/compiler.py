"""Invocation of the external schema compiler."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence

from protobuild.errors import CompilerInvocationFailure

LOGGER = logging.getLogger(__name__)


class CompilerInvoker:
    """Runs ``protoc`` (or a compatible binary) over a set of schema files."""

    def __init__(
        self,
        protoc: str = "protoc",
        *,
        language: str = "java",
        timeout: float | None = None,
    ) -> None:
        self.protoc = protoc
        self.language = language
        self.timeout = timeout

    def build_command(
        self,
        source_dir: Path,
        output_dir: Path,
        include_paths: Sequence[Path],
        source_files: Sequence[Path],
    ) -> List[str]:
        includes = [f"-I{Path(path).absolute()}" for path in (source_dir, *include_paths)]
        return [
            self.protoc,
            *includes,
            f"--{self.language}_out={Path(output_dir).absolute()}",
            *(str(Path(path).absolute()) for path in source_files),
        ]

    def compile(
        self,
        source_dir: Path,
        output_dir: Path,
        include_paths: Sequence[Path],
        source_files: Sequence[Path],
    ) -> int:
        """Run the compiler and return its exit code."""
        Path(output_dir).mkdir(parents=True, exist_ok=True)
        LOGGER.info("Compiling %d schema files to %s", len(source_files), output_dir)
        for path in source_files:
            LOGGER.info("Compiling schema %s", path)

        command = self.build_command(source_dir, output_dir, include_paths, source_files)
        LOGGER.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CompilerInvocationFailure(
                f"{self.protoc} did not finish within {self.timeout} seconds", command
            ) from exc
        except OSError as exc:
            raise CompilerInvocationFailure(str(exc), command) from exc

        for line in completed.stdout.splitlines():
            LOGGER.info(line)
        for line in completed.stderr.splitlines():
            LOGGER.warning(line)

        if completed.returncode != 0:
            LOGGER.error("%s returned exit code: %d", self.protoc, completed.returncode)
        return completed.returncode
