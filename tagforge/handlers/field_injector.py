"""Handler that adds a field to every tagged class."""

from __future__ import annotations

from typing import Sequence

import libcst as cst

from ..errors import ShapeError
from ..models import Declaration, TagContext
from ..processor import TagHandler
from ..transforms import ensure_import


def _is_placeholder(statements: Sequence[cst.BaseSmallStatement]) -> bool:
    if len(statements) != 1:
        return False
    small = statements[0]
    if isinstance(small, cst.Pass):
        return True
    return isinstance(small, cst.Expr) and isinstance(small.value, cst.Ellipsis)


def make_field(name: str, type_: str, tag: str = "") -> cst.SimpleStatementLine:
    """Build ``name: type_``, or ``name: Annotated[type_, tag]`` when tagged."""
    source = f"Annotated[{type_}, {tag!r}]" if tag else type_
    annotation = cst.Annotation(annotation=cst.parse_expression(source))
    return cst.SimpleStatementLine(body=[cst.AnnAssign(target=cst.Name(name), annotation=annotation)])


def add_field(node: cst.ClassDef, name: str, type_: str, tag: str = "") -> cst.ClassDef:
    """Append a field to the body of ``node``, replacing a lone ``pass``/``...``."""
    statement = make_field(name, type_, tag)
    body = node.body
    if isinstance(body, cst.SimpleStatementSuite):
        kept = [] if _is_placeholder(body.body) else [cst.SimpleStatementLine(body=body.body)]
        return node.with_changes(body=cst.IndentedBlock(body=[*kept, statement]))
    statements = list(body.body)
    if len(statements) == 1 and isinstance(statements[0], cst.SimpleStatementLine):
        if _is_placeholder(statements[0].body):
            statements = []
    return node.with_changes(body=body.with_changes(body=[*statements, statement]))


class FieldInjector(TagHandler):
    """Adds a named field to every struct-like class carrying the tag.

    ``type_`` may be qualified with a module (``datetime.datetime``); set
    ``import_path`` to have that module imported into the file, or leave it
    empty to touch no imports. ``tag`` becomes ``Annotated`` metadata.
    """

    def __init__(self, name: str, type_: str, import_path: str = "", tag: str = "") -> None:
        self.field_name = name
        self.field_type = type_
        self.import_path = import_path
        self.field_tag = tag

    def handle_tag(self, context: TagContext, declaration: Declaration, literal_tag: str) -> None:
        if not declaration.is_struct:
            raise ShapeError(f"The tagged declaration is not a struct-like class: {declaration.name}")
        if self.import_path:
            ensure_import(context.file, self.import_path)
        if self.field_tag:
            ensure_import(context.file, "typing", obj="Annotated")
        declaration.replace(add_field(declaration.node, self.field_name, self.field_type, self.field_tag))


__all__ = ["FieldInjector", "add_field", "make_field"]
