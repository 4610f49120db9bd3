"""Tests for the per-declaration templater."""

from __future__ import annotations

from pathlib import Path

from tagforge.handlers import Templater, make_namer
from tagforge.processor import TagProcessor
from tests._fixtures.source_tree import SourceTreeBuilder


def test_templater_renders_one_file_per_tagged_class(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    source_tree.write(
        {
            "example/models.py": """
            from example import tags


            class User(tags.Exported):
                name: str
            """
        }
    )
    files = source_tree.collect()
    out = tmp_path / "out"
    templater = Templater(out, "class {{ name }}:\n    pass\n")
    processor = TagProcessor()
    processor.add_handler("example.tags.Exported", templater)

    processor.run(files)

    assert "class User:\n    name: str\n" in files[0].code
    assert (out / "user.py").read_text(encoding="utf-8") == "class User:\n    pass\n"
    assert [result.path for result in templater.results] == [out / "user.py"]


def test_templater_exposes_entry_and_custom_names(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    source_tree.write(
        {
            "example/models.py": """
            from example import tags


            class OrderLine(tags.Exported['table:"order_lines" table:"ignored"']):
                pass
            """
        }
    )
    out = tmp_path / "out"
    template = 'TABLE = "{{ entry.tags.table }}"\nSOURCE = "{{ entry.module }}"\n'
    processor = TagProcessor()
    processor.add_handler("example.tags.Exported", Templater(out, template, make_namer("{snake}_table.py")))

    processor.run(source_tree.collect())

    assert (out / "order_line_table.py").read_text(encoding="utf-8") == (
        'TABLE = "order_lines"\nSOURCE = "example.models"\n'
    )
