"""Tests for source tree collection."""

from __future__ import annotations

import pytest

from tagforge.collector import collect_files, module_name_for
from tagforge.errors import ParseError
from tests._fixtures.source_tree import SourceTreeBuilder


def test_collect_files_walks_depth_first_in_sorted_order(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "b.py": "B = 1\n",
            "a/z.py": "Z = 1\n",
            "a/b/c.py": "C = 1\n",
            "a.py": "A = 1\n",
            "c/__init__.py": "",
        }
    )

    files = source_tree.collect()

    assert [source.relative_path for source in files] == [
        "a/b/c.py",
        "a/z.py",
        "a.py",
        "b.py",
        "c/__init__.py",
    ]


def test_collect_files_ignores_other_files_and_tool_dirs(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "pkg/models.py": "class User:\n    pass\n",
            "pkg/README.md": "# readme\n",
            "pkg/template.py.j2": "{{ name }}\n",
            "__pycache__/stale.py": "x = 1\n",
            ".venv/lib/site.py": "x = 1\n",
        }
    )

    files = source_tree.collect()

    assert [source.relative_path for source in files] == ["pkg/models.py"]


def test_collect_files_applies_exclude_patterns(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "pkg/models.py": "",
            "pkg/generated/user.py": "",
            "templates/render.py": "",
            "scratch_test.py": "",
        }
    )

    files = source_tree.collect(exclude=["generated", "templates/", "*_test.py"])

    assert [source.relative_path for source in files] == ["pkg/models.py"]


def test_collect_files_computes_module_names(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"pkg/__init__.py": "", "pkg/models.py": "", "main.py": ""})

    files = {source.relative_path: source for source in source_tree.collect(package="app")}

    assert files["pkg/__init__.py"].module_name == "app.pkg"
    assert files["pkg/__init__.py"].is_package is True
    assert files["pkg/__init__.py"].package_name == "app.pkg"
    assert files["pkg/models.py"].module_name == "app.pkg.models"
    assert files["pkg/models.py"].package_name == "app.pkg"
    assert files["main.py"].module_name == "app.main"


def test_module_name_for_top_level_files() -> None:
    assert module_name_for("main.py") == ("main", False)
    assert module_name_for("pkg/sub/__init__.py") == ("pkg.sub", True)


def test_collect_files_reports_parse_failures(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"ok.py": "x = 1\n", "broken.py": "class :\n"})

    with pytest.raises(ParseError) as excinfo:
        source_tree.collect()

    assert "broken.py" in str(excinfo.value)


def test_collect_files_requires_a_directory(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"single.py": ""})

    with pytest.raises(FileNotFoundError):
        collect_files(source_tree.path() / "missing")
    with pytest.raises(NotADirectoryError):
        collect_files(source_tree.path() / "single.py")


def test_collected_source_renders_original_code(source_tree: SourceTreeBuilder) -> None:
    code = "# header\nclass User:  # keep\n    name: str\n"
    source_tree.write({"models.py": code})

    (source,) = source_tree.collect()

    assert source.code == code
    assert list(source.declarations()) == ["User"]
