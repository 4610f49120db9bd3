"""General file-wise transformations and the pipeline that applies them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Sequence

from libcst.codemod import CodemodContext
from libcst.codemod.visitors import AddImportsVisitor

from .collector import collect_files
from .logging import get_logger
from .models import SourceFile

logger = get_logger("transforms")

IGNORE_COMMENT = "# tagforge: ignore"


class FileTransformation(ABC):
    """An in-place transformation applied file by file.

    A transformation does not have to change the files; it may just as well
    collect information and write out a summary from ``finalize``.
    """

    def prepare(self) -> None:
        """Called once before any file is processed."""

    @abstractmethod
    def apply(self, source: SourceFile) -> None:
        """Called once for every collected file."""

    def finalize(self) -> None:
        """Called once after every file has been visited."""


class GenericTransformation(FileTransformation):
    """Transformation assembled from optional callables."""

    def __init__(
        self,
        *,
        prepare: Optional[Callable[[], None]] = None,
        apply: Optional[Callable[[SourceFile], None]] = None,
        finalize: Optional[Callable[[], None]] = None,
    ) -> None:
        self._prepare = prepare
        self._apply = apply
        self._finalize = finalize

    def prepare(self) -> None:
        if self._prepare is not None:
            self._prepare()

    def apply(self, source: SourceFile) -> None:
        if self._apply is not None:
            self._apply(source)

    def finalize(self) -> None:
        if self._finalize is not None:
            self._finalize()


def apply_transformations(
    files: Sequence[SourceFile], transformations: Sequence[FileTransformation]
) -> None:
    """Run ``transformations`` over ``files``.

    Each transformation visits every file before the next one starts, so a
    later transformation sees the effect of an earlier one on all files.
    """
    for transformation in transformations:
        try:
            transformation.prepare()
        except Exception as exc:
            exc.add_note(f"prepare: {type(transformation).__name__}")
            raise

    for transformation in transformations:
        for source in files:
            try:
                transformation.apply(source)
            except Exception as exc:
                exc.add_note(
                    f"apply: {type(transformation).__name__} failed to transform {source.relative_path}"
                )
                raise

    for transformation in transformations:
        try:
            transformation.finalize()
        except Exception as exc:
            exc.add_note(f"finalize: {type(transformation).__name__}")
            raise


def transform_tree(
    input_path: str | Path,
    transformations: Sequence[FileTransformation],
    *,
    exclude: Sequence[str] = (),
    package: str | None = None,
) -> list[SourceFile]:
    """Collect every source file under ``input_path`` and transform it."""
    files = collect_files(input_path, exclude=exclude, package=package)
    logger.info("Applying %d transformation(s) to %d file(s)", len(transformations), len(files))
    apply_transformations(files, transformations)
    return files


def ensure_import(source: SourceFile, module: str, *, obj: str | None = None, asname: str | None = None) -> None:
    """Add an import to ``source`` unless an equivalent one is already present."""
    context = CodemodContext(
        full_module_name=source.module_name or None,
        full_package_name=source.package_name or None,
    )
    AddImportsVisitor.add_needed_import(context, module, obj=obj, asname=asname)
    source.module = AddImportsVisitor(context).transform_module(source.module)


def add_import(path: str) -> FileTransformation:
    """Add ``import path`` to every file."""
    return GenericTransformation(apply=lambda source: ensure_import(source, path))


def add_named_import(name: str, path: str) -> FileTransformation:
    """Add ``import path as name`` to every file."""
    return GenericTransformation(apply=lambda source: ensure_import(source, path, asname=name))


def drop_leading_comment(text: str = IGNORE_COMMENT) -> FileTransformation:
    """Remove the first header comment of every file when it equals ``text``.

    Template sources are typically excluded from tooling with such a comment;
    generated copies should not carry it.
    """

    def _apply(source: SourceFile) -> None:
        header = list(source.module.header)
        for index, line in enumerate(header):
            if line.comment is None:
                continue
            if line.comment.value.strip() == text.strip():
                del header[index]
                source.module = source.module.with_changes(header=header)
            return

    return GenericTransformation(apply=_apply)


__all__ = [
    "FileTransformation",
    "GenericTransformation",
    "IGNORE_COMMENT",
    "add_import",
    "add_named_import",
    "apply_transformations",
    "drop_leading_comment",
    "ensure_import",
    "transform_tree",
]
