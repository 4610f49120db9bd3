"""Tests for .tagforge.yml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagforge.config import load_config
from tagforge.errors import ConfigError


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.namespace == "tags"
    assert config.handlers == []
    assert config.write_out is None


def test_config_resolves_paths_against_its_directory(tmp_path: Path) -> None:
    (tmp_path / ".tagforge.yml").write_text(
        """
input: src
namespace: markers
package: app
exclude_paths:
  - generated
write_out:
  path: build
  suffix: _gen
handlers:
  - tag: app.markers.Exported
    kind: Templater
    template: templates/model.py.j2
    output: out
    name_format: "{snake}_model.py"
  - tag: app.markers.Registered
    kind: inception
    template: templates/main.py.j2
    output: out/main.py
    defer: "yes"
    arguments: [--check]
    extra: 1
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)
    root = tmp_path.resolve()

    assert config.input == root / "src"
    assert config.namespace == "markers"
    assert config.package == "app"
    assert config.exclude_paths == ["generated"]
    assert config.write_out is not None
    assert config.write_out.path == root / "build"
    assert config.write_out.suffix == "_gen"
    templater, inception = config.handlers
    assert templater.kind == "templater"
    assert templater.template == root / "templates" / "model.py.j2"
    assert templater.name_format == "{snake}_model.py"
    assert inception.defer is True
    assert inception.arguments == ["--check"]
    assert inception.output == root / "out" / "main.py"
    assert inception.options == {"extra": 1}


def test_config_file_path_can_be_given_directly(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("namespace: markers\n", encoding="utf-8")

    assert load_config(config_file).namespace == "markers"


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "handlers: {tag: x}\n",
        "handlers:\n  - kind: field\n",
        "write_out:\n  suffix: _gen\n",
        "handlers: [unclosed\n",
    ],
)
def test_malformed_config_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".tagforge.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
