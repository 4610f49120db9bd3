"""Execution of generated programs for the inception handler."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .errors import InceptionError
from .logging import get_logger

logger = get_logger("runner")


@dataclass
class ProgramOutput:
    """Captured result of a generated program."""

    stdout: str
    stderr: str
    returncode: int = 0


class ProgramRunner:
    """Runs a source file as a program and captures its output in memory.

    There is no timeout: a program that never exits blocks the pipeline.
    """

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or sys.executable

    def run(
        self,
        path: str | Path,
        arguments: Sequence[str] = (),
        *,
        cwd: Optional[str | Path] = None,
    ) -> ProgramOutput:
        args = [self.executable, str(path), *arguments]
        logger.debug("Running %s", " ".join(args))
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
                cwd=str(cwd) if cwd is not None else None,
            )
        except FileNotFoundError as exc:
            raise InceptionError(f"Unable to locate '{self.executable}' to run {path}") from exc
        except subprocess.CalledProcessError as exc:
            raise InceptionError(
                f"{path} failed with exit code {exc.returncode}, stderr:\n{exc.stderr}\nstdout:\n{exc.stdout}",
                stderr=exc.stderr or "",
                returncode=exc.returncode,
            ) from exc
        return ProgramOutput(stdout=completed.stdout, stderr=completed.stderr, returncode=completed.returncode)


__all__ = ["ProgramOutput", "ProgramRunner"]
