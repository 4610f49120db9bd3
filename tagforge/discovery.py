"""Discovery and removal of marker bases on class declarations.

A class opts into tag processing by listing, among its bases, a reference to
any name defined in a module whose last path segment is the reserved
namespace (``tags`` by default)::

    from example import tags

    class User(tags.Exported['table:"users"'], Base):
        name: str

The marker is never imported or evaluated; it is matched purely by the dotted
path its expression resolves to through the file's imports. Discovery strips
every marker from the class and reports one :class:`TaggedDeclaration` each.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence

import libcst as cst
from libcst.helpers import get_absolute_module_from_package_for_import, get_full_name_for_node

from .logging import get_logger
from .models import Declaration, DeclarationKind, ImportAliasMap, SourceFile, TaggedDeclaration

RESERVED_NAMESPACE = "tags"

_INTERFACE_BASES = {
    "typing.Protocol",
    "typing_extensions.Protocol",
    "abc.ABC",
}
_INTERFACE_METACLASSES = {"abc.ABCMeta"}

logger = get_logger("discovery")


def import_map(source: SourceFile) -> ImportAliasMap:
    """Map every name bound by a module-level import to its canonical dotted path.

    Imports nested in module-level ``if``/``try`` blocks count too, which covers
    ``if TYPE_CHECKING:`` guards and optional-import fallbacks.

    For the imports::

        import example.models
        import example.tags as markers
        from example import tags
        from .shapes import Circle as C

    of a file in package ``example``, the map contains ``example -> example``,
    ``markers -> example.tags``, ``tags -> example.tags`` and
    ``C -> example.shapes.Circle``. The empty alias maps to the module itself.
    """
    imports: ImportAliasMap = {}
    for small in _import_nodes(source.module.body):
        if isinstance(small, cst.Import):
            for alias in small.names:
                path = alias.evaluated_name
                if alias.evaluated_alias is not None:
                    imports[alias.evaluated_alias] = path
                else:
                    # `import a.b.c` binds `a`
                    head = path.split(".", 1)[0]
                    imports[head] = head
        elif isinstance(small, cst.ImportFrom):
            if isinstance(small.names, cst.ImportStar):
                continue
            module = get_absolute_module_from_package_for_import(
                source.package_name or None, small
            )
            if module is None:
                module = get_full_name_for_node(small.module) if small.module else ""
            for alias in small.names:
                name = alias.evaluated_name
                bound = alias.evaluated_alias or name
                imports[bound] = f"{module}.{name}" if module else name
    imports[""] = source.module_name
    return imports


def _nested_suites(statement: cst.BaseStatement) -> Iterator[cst.BaseSuite]:
    if isinstance(statement, cst.If):
        yield statement.body
        if isinstance(statement.orelse, cst.If):
            yield from _nested_suites(statement.orelse)
        elif statement.orelse is not None:
            yield statement.orelse.body
    elif isinstance(statement, cst.Try):
        yield statement.body
        for handler in statement.handlers:
            yield handler.body
        if statement.orelse is not None:
            yield statement.orelse.body
        if statement.finalbody is not None:
            yield statement.finalbody.body


def _import_nodes(body: Sequence[cst.BaseStatement]) -> Iterator[cst.BaseSmallStatement]:
    """Yield the small statements of ``body`` and of its if/try blocks."""
    for statement in body:
        if isinstance(statement, cst.SimpleStatementLine):
            yield from statement.body
        for suite in _nested_suites(statement):
            if isinstance(suite, cst.SimpleStatementSuite):
                yield from suite.body
            elif isinstance(suite, cst.IndentedBlock):
                yield from _import_nodes(suite.body)


def parse_selector(expr: cst.BaseExpression) -> List[str]:
    """Convert a name or attribute chain into its list of segments."""
    if isinstance(expr, cst.Subscript):
        expr = expr.value
    path: List[str] = []
    current: cst.BaseExpression = expr
    while True:
        if isinstance(current, cst.Attribute):
            path.append(current.attr.value)
            current = current.value
        elif isinstance(current, cst.Name):
            path.append(current.value)
            break
        else:
            return []
    path.reverse()
    return path


def resolve_type_path(path: Sequence[str], imports: ImportAliasMap) -> str:
    """Resolve selector segments to a dotted path through the alias map."""
    if not path:
        return ""
    head, rest = path[0], list(path[1:])
    if not rest:
        if head in imports and head != "":
            return imports[head]
        own = imports.get("", "")
        return f"{own}.{head}" if own else head
    prefix = imports.get(head, head)
    return ".".join([prefix, *rest])


def is_marker_path(type_path: str, namespace: str = RESERVED_NAMESPACE) -> bool:
    """Return True when the module part of ``type_path`` ends in the namespace segment."""
    module = type_path.rpartition(".")[0]
    return module.rpartition(".")[2] == namespace


def find_tag(
    expr: cst.BaseExpression, imports: ImportAliasMap, namespace: str = RESERVED_NAMESPACE
) -> tuple[bool, str]:
    """Return whether ``expr`` is a marker and the tag type it resolves to."""
    type_path = resolve_type_path(parse_selector(expr), imports)
    if not type_path:
        return False, ""
    return is_marker_path(type_path, namespace), type_path


def classify(node: cst.ClassDef, imports: ImportAliasMap) -> DeclarationKind:
    """Classify a class as interface-like (protocols, ABCs) or struct-like."""
    for base in node.bases:
        if resolve_type_path(parse_selector(base.value), imports) in _INTERFACE_BASES:
            return "interface"
    for keyword in node.keywords:
        if keyword.keyword is None or keyword.keyword.value != "metaclass":
            continue
        if resolve_type_path(parse_selector(keyword.value), imports) in _INTERFACE_METACLASSES:
            return "interface"
    return "struct"


def literal_annotation(expr: cst.BaseExpression) -> str:
    """Return the string subscript of a marker base, without its quotes."""
    if not isinstance(expr, cst.Subscript) or len(expr.slice) != 1:
        return ""
    element = expr.slice[0].slice
    if not isinstance(element, cst.Index):
        return ""
    value = element.value
    if isinstance(value, (cst.SimpleString, cst.ConcatenatedString)):
        evaluated = value.evaluated_value
        if isinstance(evaluated, str):
            return evaluated
    return ""


def remove_bases(node: cst.ClassDef, indices: Sequence[int]) -> cst.ClassDef:
    """Remove the bases at ``indices`` (ascending) from a class."""
    bases = list(node.bases)
    last = len(bases) - 1
    # delete from the back so pending indices stay valid
    for index in reversed(indices):
        del bases[index]
    changes: dict[str, object] = {"bases": bases}
    if bases and last in indices and not node.keywords:
        bases[-1] = bases[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
    if not bases and not node.keywords:
        changes["lpar"] = cst.MaybeSentinel.DEFAULT
        changes["rpar"] = cst.MaybeSentinel.DEFAULT
    return node.with_changes(**changes)


def _marker_alias(expr: cst.BaseExpression, imports: ImportAliasMap, namespace: str) -> str:
    """Return the import alias through which a marker reached the namespace.

    ``tags`` in ``tags.Exported`` or ``Exported`` itself when imported from the
    tags module qualify; the ``example`` head of ``example.tags.Exported`` does
    not, as it binds the whole package.
    """
    segments = parse_selector(expr)
    head = segments[0] if segments else ""
    target = imports.get(head) if head else None
    if target is None:
        return ""
    if target.rpartition(".")[2] == namespace or is_marker_path(target, namespace):
        return head
    return ""


def find_tagged_declarations(
    source: SourceFile,
    imports: ImportAliasMap,
    namespace: str = RESERVED_NAMESPACE,
) -> List[TaggedDeclaration]:
    """Strip every marker base in ``source`` and report one match per marker.

    Import aliases that resolved a marker are added to ``source.marker_aliases``.
    """
    output: List[TaggedDeclaration] = []
    for name, node in source.declarations().items():
        kind = classify(node, imports)
        declaration = Declaration(source=source, name=name, kind=kind)
        to_remove: List[int] = []
        for index, base in enumerate(node.bases):
            if base.star:
                continue
            is_tag, tag_type = find_tag(base.value, imports, namespace)
            if not is_tag:
                continue
            # interfaces never carry annotations
            literal = literal_annotation(base.value) if kind == "struct" else ""
            to_remove.append(index)
            alias = _marker_alias(base.value, imports, namespace)
            if alias:
                source.marker_aliases.add(alias)
            output.append(TaggedDeclaration(tag_type, literal, declaration))
        if to_remove:
            declaration.replace(remove_bases(node, to_remove))
            logger.debug(
                "Removed %d marker(s) from %s in %s", len(to_remove), name, source.relative_path
            )
    return output


__all__ = [
    "RESERVED_NAMESPACE",
    "classify",
    "find_tag",
    "find_tagged_declarations",
    "import_map",
    "is_marker_path",
    "literal_annotation",
    "parse_selector",
    "remove_bases",
    "resolve_type_path",
]
