"""Tag-driven source generation for Python code bases."""

from .annotations import parse_annotation, unique
from .collector import collect_files
from .errors import (
    AnnotationFormatError,
    FormattingError,
    InceptionError,
    OutputError,
    ParseError,
    ShapeError,
    TagforgeError,
)
from .models import Declaration, SourceFile, TagContext, TaggedDeclaration
from .processor import TagHandler, TagProcessor
from .transforms import FileTransformation, GenericTransformation, apply_transformations, transform_tree

__version__ = "0.1.0"

__all__ = [
    "AnnotationFormatError",
    "Declaration",
    "FileTransformation",
    "FormattingError",
    "GenericTransformation",
    "InceptionError",
    "OutputError",
    "ParseError",
    "ShapeError",
    "SourceFile",
    "TagContext",
    "TagHandler",
    "TagProcessor",
    "TaggedDeclaration",
    "TagforgeError",
    "apply_transformations",
    "collect_files",
    "parse_annotation",
    "transform_tree",
    "unique",
]
