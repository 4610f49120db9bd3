"""Handler that generates a program and runs it within the same pass.

The generated file can import the very modules being processed and use
runtime reflection on their classes, something a template alone cannot do.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from ..logging import get_logger
from ..runner import ProgramOutput, ProgramRunner
from ..writer import TemplateLike, WriteResult
from .collection_templater import CollectionTemplater

logger = get_logger("handlers.inception")


class InceptionTemplater(CollectionTemplater):
    """Renders the collected entries, then executes the rendered file."""

    def __init__(
        self,
        output_path: str | Path,
        template: TemplateLike,
        arguments: Sequence[str] = (),
        *,
        defer: bool = False,
        runner: Optional[ProgramRunner] = None,
        cwd: Optional[str | Path] = None,
    ) -> None:
        super().__init__(output_path, template, defer=defer)
        self.arguments = list(arguments)
        self.runner = runner or ProgramRunner()
        self.cwd = cwd
        self.last_output: Optional[ProgramOutput] = None

    def write_templates(self) -> WriteResult:
        result = super().write_templates()
        output = self.runner.run(self.output_path, self.arguments, cwd=self.cwd)
        self.last_output = output
        if output.stdout:
            logger.info("%s:\n%s", self.output_path.name, output.stdout.rstrip())
        return result


__all__ = ["InceptionTemplater"]
