"""Formatting, template rendering and persistence of generated sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Collection, List, Optional, Set

import libcst as cst
from jinja2 import BaseLoader, Environment, FileSystemLoader, StrictUndefined, Template, TemplateError
from libcst.codemod import CodemodContext
from libcst.codemod.commands.remove_unused_imports import RemoveUnusedImportsCommand

from .collector import SOURCE_SUFFIX
from .errors import FormattingError, OutputError, TemplateRenderError
from .logging import get_logger
from .models import SourceFile
from .transforms import FileTransformation

logger = get_logger("writer")

TemplateLike = Template | str | Path


@dataclass
class WriteResult:
    """Outcome of persisting one generated file."""

    path: Path
    format_error: Optional[FormattingError] = None

    @property
    def formatted(self) -> bool:
        return self.format_error is None


def format_source(code: str, *, package: str | None = None, prune_imports: bool = True) -> str:
    """Check that ``code`` parses and, unless told otherwise, drop its unused imports."""
    try:
        module = cst.parse_module(code)
        if prune_imports:
            context = CodemodContext(full_package_name=package or None)
            module = RemoveUnusedImportsCommand(context).transform_module(module)
    except Exception as exc:
        raise FormattingError(f"Formatting failed: {exc}") from exc
    return module.code


def write_source(
    path: str | Path, code: str, *, package: str | None = None, prune_imports: bool = True
) -> WriteResult:
    """Format ``code`` and write it to ``path``.

    A formatting failure does not abort the write: the unformatted buffer is
    written and the error is returned in :attr:`WriteResult.format_error`.
    """
    target = Path(path)
    format_error: Optional[FormattingError] = None
    try:
        content = format_source(code, package=package, prune_imports=prune_imports)
    except FormattingError as exc:
        exc.add_note(f"writing unformatted output to {target}")
        logger.warning("Formatting failed for %s: %s", target, exc)
        format_error = exc
        content = code

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Write failed for {target}: {exc}") from exc
    logger.debug("Wrote %s", target)
    return WriteResult(path=target, format_error=format_error)


class _ReferencedNames(cst.CSTVisitor):
    """Names a module refers to outside its import statements.

    String literals count as well, so ``__all__`` entries and string
    annotations keep their imports alive.
    """

    def __init__(self) -> None:
        self.names: Set[str] = set()

    def visit_Import(self, node: cst.Import) -> bool:
        return False

    def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
        return False

    def visit_Name(self, node: cst.Name) -> None:
        self.names.add(node.value)

    def visit_SimpleString(self, node: cst.SimpleString) -> None:
        value = node.evaluated_value
        if isinstance(value, str):
            self.names.add(value.split(".", 1)[0])


def _bound_name(alias: cst.ImportAlias, *, from_import: bool) -> str:
    if alias.evaluated_alias is not None:
        return alias.evaluated_alias
    if from_import:
        return alias.evaluated_name
    return alias.evaluated_name.split(".", 1)[0]


def _prune_import(
    statement: cst.BaseSmallStatement, removable: Set[str]
) -> Optional[cst.BaseSmallStatement]:
    if isinstance(statement, cst.Import):
        names = statement.names
        from_import = False
    elif isinstance(statement, cst.ImportFrom) and not isinstance(statement.names, cst.ImportStar):
        names = statement.names
        from_import = True
    else:
        return statement
    kept = [alias for alias in names if _bound_name(alias, from_import=from_import) not in removable]
    if not kept:
        return None
    if len(kept) == len(names):
        return statement
    kept[-1] = kept[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
    return statement.with_changes(names=kept)


def remove_marker_imports(module: cst.Module, aliases: Collection[str]) -> cst.Module:
    """Drop module-level imports of ``aliases`` that nothing else references.

    Every other import is kept as written, since an unreferenced import may
    still re-export a name or run code when imported. Imports nested in
    ``if``/``try`` blocks are left alone.
    """
    if not aliases:
        return module
    collector = _ReferencedNames()
    module.visit(collector)
    removable = set(aliases) - collector.names
    if not removable:
        return module

    body: List[cst.BaseStatement] = []
    dropped_leading = False
    for statement in module.body:
        if isinstance(statement, cst.SimpleStatementLine):
            pruned = [
                kept for kept in (_prune_import(small, removable) for small in statement.body) if kept is not None
            ]
            if not pruned:
                if not body:
                    dropped_leading = True
                continue
            if len(pruned) != len(statement.body):
                pruned[-1] = pruned[-1].with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
                statement = statement.with_changes(body=pruned)
        if dropped_leading and not body:
            statement = _strip_blank_lines(statement)
        body.append(statement)
    return module.with_changes(body=body)


def _strip_blank_lines(statement: cst.BaseStatement) -> cst.BaseStatement:
    lines = list(statement.leading_lines)
    while lines and lines[0].comment is None:
        lines.pop(0)
    return statement.with_changes(leading_lines=lines)


def write_module(path: str | Path, source: SourceFile) -> WriteResult:
    """Write the current tree of ``source`` to ``path``.

    Only the imports that bound marker bases are removed; see
    :func:`remove_marker_imports`.
    """
    module = remove_marker_imports(source.module, source.marker_aliases)
    return write_source(path, module.code, package=source.package_name, prune_imports=False)


def load_template(template: TemplateLike, *, search_path: str | Path | None = None) -> Template:
    """Compile ``template`` from source text, or load it when given a ``Path``."""
    if isinstance(template, Template):
        return template
    try:
        if isinstance(template, Path):
            environment = _environment(template.parent)
            return environment.get_template(template.name)
        environment = _environment(search_path)
        return environment.from_string(template)
    except TemplateError as exc:
        raise TemplateRenderError(f"Failed to load template {template}: {exc}") from exc


def _environment(search_path: str | Path | None) -> Environment:
    loader = FileSystemLoader(str(search_path)) if search_path is not None else BaseLoader()
    return Environment(
        loader=loader,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def render_template(template: TemplateLike, **data: object) -> str:
    """Render ``template`` with ``data`` as its context."""
    compiled = load_template(template)
    try:
        return compiled.render(**data)
    except TemplateError as exc:
        raise TemplateRenderError(f"Failed to render template: {exc}") from exc


def write_template(path: str | Path, template: TemplateLike, **data: object) -> WriteResult:
    """Render ``template`` and write the formatted result to ``path``."""
    try:
        code = render_template(template, **data)
    except TemplateRenderError as exc:
        exc.add_note(f"while writing {path}")
        raise
    return write_source(path, code)


def add_suffix(filename: str, suffix: str) -> str:
    """Insert ``suffix`` right before the extension of ``filename``."""
    stem, dot, extension = filename.rpartition(".")
    if not dot or "/" in extension:
        return filename + suffix
    return f"{stem}{suffix}.{extension}"


def delete_files(path: str | Path, predicate: Callable[[Path], bool]) -> None:
    """Recursively delete every file below ``path`` that matches ``predicate``."""
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            candidate = Path(dirpath) / filename
            if predicate(candidate):
                candidate.unlink()


def prepare_dir(path: str | Path, suffix: str) -> None:
    """Ensure ``path`` exists and holds no file ending in ``suffix`` + ``.py``."""
    target = Path(path)
    ending = suffix + SOURCE_SUFFIX
    try:
        if not target.exists():
            target.mkdir(parents=True, exist_ok=True)
        else:
            delete_files(target, lambda candidate: candidate.name.endswith(ending))
    except OSError as exc:
        raise OutputError(f"Failed to prepare directory {target}: {exc}") from exc


class WriteOut(FileTransformation):
    """Writes every file under ``output_path`` at its relative path plus ``suffix``.

    ``pkg/models.py`` with suffix ``_gen`` ends up in
    ``output_path/pkg/models_gen.py``.
    """

    def __init__(self, output_path: str | Path, suffix: str = "") -> None:
        self.output_path = Path(output_path)
        self.suffix = suffix
        self.results: list[WriteResult] = []

    def prepare(self) -> None:
        prepare_dir(self.output_path, self.suffix)

    def apply(self, source: SourceFile) -> None:
        target = self.output_path / add_suffix(source.relative_path, self.suffix)
        self.results.append(write_module(target, source))


__all__ = [
    "WriteOut",
    "WriteResult",
    "add_suffix",
    "delete_files",
    "format_source",
    "load_template",
    "prepare_dir",
    "remove_marker_imports",
    "render_template",
    "write_module",
    "write_source",
    "write_template",
]
