"""Handler that renders one template per tagged declaration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

from ..models import Declaration, TagContext
from ..processor import TagHandler
from ..writer import TemplateLike, WriteResult, load_template, write_template
from .collection import make_template_entry, snake_case


def default_file_name(name: str) -> str:
    return f"{snake_case(name)}.py"


class Templater(TagHandler):
    """Instantiates a template for each tagged class as soon as it is found.

    The template sees ``entry`` (a :class:`TemplateEntry`) and ``name``; the
    output goes to ``output_path / make_name(name)``.
    """

    def __init__(
        self,
        output_path: str | Path,
        template: TemplateLike,
        make_name: Callable[[str], str] = default_file_name,
    ) -> None:
        self.output_path = Path(output_path)
        self.template = load_template(template)
        self.make_name = make_name
        self.results: List[WriteResult] = []

    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        entry = make_template_entry(context, declaration, literal_tag)
        target = self.output_path / self.make_name(entry.name)
        self.results.append(write_template(target, self.template, entry=entry, name=entry.name))


__all__ = ["Templater", "default_file_name"]
