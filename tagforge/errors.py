"""Error taxonomy shared across tagforge components."""

from __future__ import annotations


class TagforgeError(RuntimeError):
    """Base class for failures raised by the generation pipeline."""


class ConfigError(TagforgeError):
    """Raised when the configuration file cannot be parsed."""


class ParseError(TagforgeError):
    """Raised when an input file is not valid Python source."""


class AnnotationFormatError(TagforgeError, ValueError):
    """Raised for a malformed literal annotation on a marker base."""


class ShapeError(TagforgeError):
    """Raised when a handler receives a declaration of the wrong kind."""


class OutputError(TagforgeError, OSError):
    """Raised when creating, writing or removing an output file fails."""


class TemplateRenderError(TagforgeError):
    """Raised when a template cannot be compiled or rendered."""


class InceptionError(TagforgeError):
    """Raised when a generated program fails to run or exits non-zero."""

    def __init__(self, message: str, *, stderr: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode


class FormattingError(TagforgeError):
    """Formatting or import normalisation failed; reported, never fatal."""


def describe(exc: BaseException) -> str:
    """Render an exception, its notes and its cause chain for CLI output."""
    lines: list[str] = []
    current: BaseException | None = exc
    while current is not None:
        lines.append(f"{type(current).__name__}: {current}")
        for note in getattr(current, "__notes__", ()):
            lines.append(f"  {note}")
        current = current.__cause__
        if current is not None:
            lines.append("caused by")
    return "\n".join(lines)


__all__ = [
    "AnnotationFormatError",
    "ConfigError",
    "FormattingError",
    "InceptionError",
    "OutputError",
    "ParseError",
    "ShapeError",
    "TagforgeError",
    "TemplateRenderError",
    "describe",
]
