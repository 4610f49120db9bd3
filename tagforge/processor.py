"""Dispatch of discovered markers to registered tag handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from .discovery import RESERVED_NAMESPACE, find_tagged_declarations, import_map
from .logging import get_logger
from .models import Declaration, SourceFile, TagContext, TaggedDeclaration
from .transforms import FileTransformation


class TagHandler(ABC):
    """Contract for handlers that react to tagged declarations.

    A handler gets a chance to react to every file and to every marker found
    in that file. ``handle_tag`` receives a live handle on the declaration, so
    handlers may keep mutating the class, and the marker's literal annotation
    (the empty string when the marker has none). The marker itself is already
    gone from the tree by then.
    """

    def begin_file(self, context: TagContext) -> None:
        """Called before the markers of a file are dispatched."""

    @abstractmethod
    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        """Called once per marker of a registered tag type."""

    def finish_file(self, context: TagContext) -> None:
        """Called after all markers of a file have been dispatched."""

    def finalize(self) -> None:
        """Called once after every file has been processed."""


HandlerMap = Dict[str, List[TagHandler]]


class TagProcessor(FileTransformation):
    """File transformation that strips markers and dispatches them to handlers.

    Handlers are registered against the full dotted path of the marker::

        processor.add_handler("example.tags.Exported", handler)

    is called for every class with a ``tags.Exported`` base, where ``tags``
    resolves to ``example.tags``.
    """

    def __init__(self, namespace: str = RESERVED_NAMESPACE) -> None:
        self.namespace = namespace
        self.handler_map: HandlerMap = {}
        self.found: Dict[str, int] = {}
        self.logger = get_logger("processor")

    def add_handler(self, tag_type: str, handler: TagHandler) -> None:
        """Append ``handler`` to the handlers of ``tag_type``."""
        self.handler_map.setdefault(tag_type, []).append(handler)

    def handlers(self) -> Iterator[Tuple[str, TagHandler]]:
        """Yield ``(tag_type, handler)`` in registration order."""
        for tag_type, handlers in self.handler_map.items():
            for handler in handlers:
                yield tag_type, handler

    def apply(self, source: SourceFile) -> None:
        """Process one file: begin, dispatch every marker, finish."""
        context = TagContext(file=source, imports=import_map(source))
        for tag_type, handler in self.handlers():
            _call(handler.begin_file, "begin_file", tag_type, handler, source, context)
        tagged = find_tagged_declarations(source, context.imports, self.namespace)
        self.logger.debug("Found %d tagged declaration(s) in %s", len(tagged), source.relative_path)
        for match in tagged:
            self.found[match.tag_type] = self.found.get(match.tag_type, 0) + 1
            self._dispatch(context, match)
        for tag_type, handler in self.handlers():
            _call(handler.finish_file, "finish_file", tag_type, handler, source, context)

    def _dispatch(self, context: TagContext, match: TaggedDeclaration) -> None:
        for handler in self.handler_map.get(match.tag_type, ()):
            try:
                handler.handle_tag(context, match.declaration, match.literal_tag)
            except Exception as exc:
                exc.add_note(
                    f"TagProcessor handle_tag: {type(handler).__name__} for {match.tag_type} "
                    f"on {match.declaration.name} in {context.file.relative_path}"
                )
                raise

    def finalize(self) -> None:
        """Finalize every registered handler once, in registration order."""
        for tag_type, handler in self.handlers():
            try:
                handler.finalize()
            except Exception as exc:
                exc.add_note(f"TagProcessor finalize: {type(handler).__name__} for {tag_type}")
                raise

    def run(self, files: Iterable[SourceFile]) -> None:
        """Process every file in order, then finalize all handlers."""
        for source in files:
            self.apply(source)
        self.finalize()


def _call(
    method: Callable[[TagContext], None],
    phase: str,
    tag_type: str,
    handler: TagHandler,
    source: SourceFile,
    context: TagContext,
) -> None:
    try:
        method(context)
    except Exception as exc:
        exc.add_note(
            f"TagProcessor {phase}: {type(handler).__name__} for {tag_type} in {source.relative_path}"
        )
        raise


__all__ = ["HandlerMap", "TagHandler", "TagProcessor"]
