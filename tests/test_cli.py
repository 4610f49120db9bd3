"""CLI parser behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagforge.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "run"])
    assert args.verbose is True
    assert args.command == "run"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["tags", "src", "--verbose"])
    assert args.verbose is True
    assert args.command == "tags"
    assert args.path == "src"


def test_cli_accepts_output_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["run", "src", "--output", "build", "--suffix", "_gen", "--config", "x.yml"])
    assert args.output == "build"
    assert args.suffix == "_gen"
    assert args.config == "x.yml"


def test_cli_lists_tags(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    models = tmp_path / "example" / "models.py"
    models.parent.mkdir()
    models.write_text(
        "from example import tags\n\n\nclass User(tags.Exported['table:\"users\"']):\n    pass\n",
        encoding="utf-8",
    )

    main(["tags", str(tmp_path)])

    out = capsys.readouterr().out
    assert 'example/models.py: example.models.User <- example.tags.Exported [table:"users"]' in out


def test_cli_exits_with_error_chain(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "broken.py").write_text("class :\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["run", str(tmp_path)])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "ParseError" in err
    assert "broken.py" in err


def test_cli_accepts_log_file_on_either_side() -> None:
    parser = _build_parser()
    assert parser.parse_args(["--log-file", "a.log", "run"]).log_file == "a.log"
    assert parser.parse_args(["run", "--log-file", "b.log"]).log_file == "b.log"
    assert parser.parse_args(["run"]).log_file is None
