"""Template entries and the accumulation shared by batched templaters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..annotations import parse_annotation, unique
from ..errors import AnnotationFormatError
from ..models import Declaration, TagContext

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass
class TemplateEntry:
    """What templates see of one tagged declaration.

    ``tags`` holds the literal annotation reduced to one value per key and
    ``data`` is free for template mappers to fill, e.g. ``{{ entry.data.table }}``.
    """

    name: str
    module: str
    tags: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    path: str = ""

    @property
    def snake_name(self) -> str:
        return snake_case(self.name)


TemplateMapper = Callable[[TemplateEntry], None]


def snake_case(name: str) -> str:
    """Convert ``CamelCase`` to ``camel_case``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def make_template_entry(context: TagContext, declaration: Declaration, literal_tag: str) -> TemplateEntry:
    """Build the template view of a tagged declaration."""
    try:
        tags = parse_annotation(literal_tag)
    except AnnotationFormatError as exc:
        raise AnnotationFormatError(f"Invalid annotation on {declaration.name}: {exc}") from exc
    return TemplateEntry(
        name=declaration.name,
        module=context.file.module_name,
        tags=unique(tags),
        data={},
        path=context.file.relative_path,
    )


class TemplateCollection:
    """Ordered accumulation of template entries across all files."""

    def __init__(self) -> None:
        self.entries: List[TemplateEntry] = []
        self.template_mapper: Optional[TemplateMapper] = None

    def set_template_mapper(self, mapper: Optional[TemplateMapper]) -> None:
        """Set a function applied to each entry as it is added.

        Use it to provide custom data to templates through ``entry.data``.
        """
        self.template_mapper = mapper

    def add_entry(self, context: TagContext, declaration: Declaration, literal_tag: str) -> TemplateEntry:
        entry = make_template_entry(context, declaration, literal_tag)
        if self.template_mapper is not None:
            self.template_mapper(entry)
        self.entries.append(entry)
        return entry


__all__ = ["TemplateCollection", "TemplateEntry", "TemplateMapper", "make_template_entry", "snake_case"]
