"""Handler that renders one template over all tagged declarations."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..logging import get_logger
from ..models import Declaration, TagContext
from ..processor import TagHandler
from ..writer import TemplateLike, WriteResult, load_template, write_template
from .collection import TemplateCollection

logger = get_logger("handlers.collection")


class CollectionTemplater(TemplateCollection, TagHandler):
    """Collects every tagged class and renders ``entries`` into a single file.

    With ``defer=True`` nothing is written at finalize time; the caller
    invokes :meth:`write_templates` when it is ready. Every call writes the
    file again.
    """

    def __init__(self, output_path: str | Path, template: TemplateLike, *, defer: bool = False) -> None:
        super().__init__()
        self.output_path = Path(output_path)
        self.template = load_template(template)
        self.defer = defer
        self.results: List[WriteResult] = []

    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        self.add_entry(context, declaration, literal_tag)

    def finalize(self) -> None:
        if self.defer:
            logger.debug("Deferring write of %s", self.output_path)
            return
        self.write_templates()

    def write_templates(self) -> WriteResult:
        """Render the collected entries to ``output_path`` now."""
        result = write_template(self.output_path, self.template, entries=self.entries)
        self.results.append(result)
        logger.info("Rendered %d entries into %s", len(self.entries), self.output_path)
        return result


__all__ = ["CollectionTemplater"]
