"""Source tree walking and parsing."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

import libcst as cst

from .errors import ParseError
from .logging import get_logger
from .models import SourceFile

SOURCE_SUFFIX = ".py"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    ".tox",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
}

logger = get_logger("collector")


def _is_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue
        if fnmatchcase(rel_path, pattern):
            return True
        if "/" not in pattern and any(fnmatchcase(part, pattern) for part in rel_path.split("/")):
            return True
    return False


def iter_source_paths(root: Path, exclude: Sequence[str] = ()) -> Iterator[Path]:
    """Yield source files below ``root`` in lexicographic depth-first order."""

    def _walk(directory: Path) -> Iterator[Path]:
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            rel_path = entry.relative_to(root).as_posix()
            if entry.is_dir():
                if entry.name in _EXCLUDED_DIRS or _is_excluded(rel_path, exclude):
                    continue
                yield from _walk(entry)
            elif entry.suffix == SOURCE_SUFFIX and not _is_excluded(rel_path, exclude):
                yield entry

    yield from _walk(root)


def module_name_for(relative_path: str, package: str | None = None) -> tuple[str, bool]:
    """Return the dotted module name of a file and whether it is a package."""
    parts = relative_path[: -len(SOURCE_SUFFIX)].split("/")
    is_package = parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    if package:
        parts = [*package.split("."), *parts]
    return ".".join(parts), is_package


def read_source(root: Path, path: Path, package: str | None = None) -> SourceFile:
    """Parse one file into a :class:`SourceFile`."""
    try:
        text = path.read_text(encoding="utf-8")
        module = cst.parse_module(text)
    except (cst.ParserSyntaxError, UnicodeDecodeError) as exc:
        raise ParseError(f"Failed to parse file {path}: {exc}") from exc
    # root and path both come from the same walk; a failure here is a bug.
    relative_path = path.relative_to(root).as_posix()
    module_name, is_package = module_name_for(relative_path, package)
    return SourceFile(
        module=module,
        path=path,
        relative_path=relative_path,
        module_name=module_name,
        is_package=is_package,
    )


def collect_files(
    root: str | Path,
    *,
    exclude: Sequence[str] = (),
    package: str | None = None,
) -> List[SourceFile]:
    """Parse every source file under ``root``, preserving traversal order."""
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Input path not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Input path is not a directory: {root}")

    files: List[SourceFile] = []
    for path in iter_source_paths(root_path, exclude):
        files.append(read_source(root_path, path, package))
    logger.debug("Collected %d source files under %s", len(files), root_path)
    return files


__all__ = ["collect_files", "iter_source_paths", "module_name_for", "read_source"]
