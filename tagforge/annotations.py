"""Parser for the literal annotations attached to marker bases.

An annotation is a sequence of ``key:"value"`` pairs separated by whitespace,
for example ``table:"users" index:"id" index:"email"``. Values are taken
verbatim between one pair of double quotes; there is no escaping.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from .errors import AnnotationFormatError


def parse_annotation(text: str) -> Dict[str, List[str]]:
    """Return a mapping from each key to the ordered list of its values."""
    remaining = text.strip()
    result: Dict[str, List[str]] = {}
    while remaining:
        delim = remaining.find(":")
        if delim < 0:
            raise AnnotationFormatError(f"Invalid format in annotation: {remaining}")
        key = remaining[:delim]
        remaining = remaining[delim + 1 :].strip()
        if not remaining.startswith('"'):
            raise AnnotationFormatError(f"Invalid format in annotation: {remaining}")
        remaining = remaining[1:]
        end = remaining.find('"')
        if end < 0:
            raise AnnotationFormatError(f"Unterminated value in annotation: {remaining}")
        result.setdefault(key, []).append(remaining[:end])
        remaining = remaining[end + 1 :].strip()
    return result


def unique(values: Mapping[str, Sequence[str]]) -> Dict[str, str]:
    """Collapse each key to its first value, dropping keys without values."""
    return {key: items[0] for key, items in values.items() if len(items) > 0}


def format_annotation(values: Mapping[str, Sequence[str]]) -> str:
    """Serialise a mapping back into ``key:"value"`` pairs."""
    return " ".join(f'{key}:"{item}"' for key, items in values.items() for item in items)


__all__ = ["format_annotation", "parse_annotation", "unique"]
