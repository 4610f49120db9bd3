"""Tests for the batched collection templater."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagforge.errors import AnnotationFormatError
from tagforge.handlers import CollectionTemplater, TemplateEntry
from tagforge.processor import TagProcessor
from tests._fixtures.source_tree import SourceTreeBuilder

REGISTRY_TEMPLATE = (
    "REGISTRY = {\n"
    "{% for entry in entries %}"
    '    "{{ entry.name }}": "{{ entry.data.label }}",\n'
    "{% endfor %}"
    "}\n"
)


def _write_models(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "example/a.py": """
            from example import tags


            class User(tags.Registered):
                pass


            class Order(tags.Registered):
                pass
            """,
            "example/b.py": """
            from example import tags


            class Invoice(tags.Registered):
                pass
            """,
        }
    )


def _label(entry: TemplateEntry) -> None:
    entry.data["label"] = entry.snake_name.upper()


def test_entries_are_rendered_once_in_discovery_order(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    _write_models(source_tree)
    target = tmp_path / "registry.py"
    templater = CollectionTemplater(target, REGISTRY_TEMPLATE)
    templater.set_template_mapper(_label)
    processor = TagProcessor()
    processor.add_handler("example.tags.Registered", templater)

    processor.run(source_tree.collect())

    assert [entry.name for entry in templater.entries] == ["User", "Order", "Invoice"]
    assert target.read_text(encoding="utf-8") == (
        'REGISTRY = {\n    "User": "USER",\n    "Order": "ORDER",\n    "Invoice": "INVOICE",\n}\n'
    )
    assert len(templater.results) == 1


def test_deferred_templater_waits_for_explicit_write(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    _write_models(source_tree)
    target = tmp_path / "registry.py"
    templater = CollectionTemplater(target, REGISTRY_TEMPLATE, defer=True)
    templater.set_template_mapper(_label)
    processor = TagProcessor()
    processor.add_handler("example.tags.Registered", templater)

    processor.run(source_tree.collect())

    assert not target.exists()
    templater.write_templates()
    assert target.exists()
    templater.write_templates()
    assert len(templater.results) == 2


def test_invalid_annotation_names_the_declaration(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    source_tree.write(
        {
            "example/a.py": """
            from example import tags


            class User(tags.Registered['table users']):
                pass
            """
        }
    )
    processor = TagProcessor()
    processor.add_handler("example.tags.Registered", CollectionTemplater(tmp_path / "r.py", "x = 1\n"))

    with pytest.raises(AnnotationFormatError, match="Invalid annotation on User"):
        processor.run(source_tree.collect())
