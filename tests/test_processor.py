"""Tests for tag dispatch through the processor."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from tagforge.models import Declaration, TagContext
from tagforge.processor import TagHandler, TagProcessor
from tests._fixtures.source_tree import SourceTreeBuilder


class RecordingHandler(TagHandler):
    def __init__(self, label: str, events: List[Tuple[str, ...]]) -> None:
        self.label = label
        self.events = events

    def begin_file(self, context: TagContext) -> None:
        self.events.append((self.label, "begin", context.file.relative_path))

    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        self.events.append((self.label, "tag", declaration.name, literal_tag))

    def finish_file(self, context: TagContext) -> None:
        self.events.append((self.label, "finish", context.file.relative_path))

    def finalize(self) -> None:
        self.events.append((self.label, "finalize"))


class FailingHandler(TagHandler):
    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        raise RuntimeError("handler exploded")

    def finalize(self) -> None:  # pragma: no cover - never reached
        raise AssertionError("finalize must not run after a failure")


def _write_models(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "example/a.py": """
            from example import tags


            class User(tags.Exported['table:"users"']):
                name: str
            """,
            "example/b.py": """
            from example import tags


            class Order(tags.Exported, tags.Audited):
                total: int
            """,
        }
    )


def test_handlers_run_in_registration_order(source_tree: SourceTreeBuilder) -> None:
    _write_models(source_tree)
    events: List[Tuple[str, ...]] = []
    processor = TagProcessor()
    processor.add_handler("example.tags.Exported", RecordingHandler("h1", events))
    processor.add_handler("example.tags.Exported", RecordingHandler("h2", events))

    processor.run(source_tree.collect())

    assert events == [
        ("h1", "begin", "example/a.py"),
        ("h2", "begin", "example/a.py"),
        ("h1", "tag", "User", 'table:"users"'),
        ("h2", "tag", "User", 'table:"users"'),
        ("h1", "finish", "example/a.py"),
        ("h2", "finish", "example/a.py"),
        ("h1", "begin", "example/b.py"),
        ("h2", "begin", "example/b.py"),
        ("h1", "tag", "Order", ""),
        ("h2", "tag", "Order", ""),
        ("h1", "finish", "example/b.py"),
        ("h2", "finish", "example/b.py"),
        ("h1", "finalize"),
        ("h2", "finalize"),
    ]


def test_unregistered_markers_are_still_stripped(source_tree: SourceTreeBuilder) -> None:
    _write_models(source_tree)
    files = source_tree.collect()
    processor = TagProcessor()

    processor.run(files)

    assert "class User:" in files[0].code
    assert "class Order:" in files[1].code
    assert processor.found == {"example.tags.Exported": 2, "example.tags.Audited": 1}


def test_handler_failure_aborts_before_finalize(source_tree: SourceTreeBuilder) -> None:
    _write_models(source_tree)
    events: List[Tuple[str, ...]] = []
    processor = TagProcessor()
    processor.add_handler("example.tags.Exported", FailingHandler())
    processor.add_handler("example.tags.Audited", RecordingHandler("late", events))

    with pytest.raises(RuntimeError, match="handler exploded") as excinfo:
        processor.run(source_tree.collect())

    notes = getattr(excinfo.value, "__notes__", [])
    assert any("FailingHandler" in note and "example/a.py" in note for note in notes)
    assert ("late", "finalize") not in events
    assert not any(event[1] == "tag" for event in events)


def test_handlers_lists_tag_types_in_first_registration_order() -> None:
    events: List[Tuple[str, ...]] = []
    first = RecordingHandler("first", events)
    second = RecordingHandler("second", events)
    third = RecordingHandler("third", events)
    processor = TagProcessor()
    processor.add_handler("b.tags.B", first)
    processor.add_handler("a.tags.A", second)
    processor.add_handler("b.tags.B", third)

    assert list(processor.handlers()) == [
        ("b.tags.B", first),
        ("b.tags.B", third),
        ("a.tags.A", second),
    ]
