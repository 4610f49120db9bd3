"""Core data models shared across tagforge components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Literal, Set

import libcst as cst

DeclarationKind = Literal["struct", "interface"]

# alias -> canonical dotted path; "" maps to the file's own module.
ImportAliasMap = Dict[str, str]


@dataclass
class SourceFile:
    """A parsed input file, mutated in place as transformations run."""

    module: cst.Module
    path: Path
    relative_path: str
    module_name: str
    is_package: bool = False
    # import aliases that resolved a marker base; see writer.remove_marker_imports
    marker_aliases: Set[str] = field(default_factory=set)

    @property
    def package_name(self) -> str:
        """Package that relative imports in this file resolve against."""
        if self.is_package:
            return self.module_name
        return self.module_name.rpartition(".")[0]

    @property
    def code(self) -> str:
        return self.module.code

    def declarations(self) -> Dict[str, cst.ClassDef]:
        """Return the file's symbol table: top-level classes in module order."""
        table: Dict[str, cst.ClassDef] = {}
        for statement in self.module.body:
            if isinstance(statement, cst.ClassDef):
                table[statement.name.value] = statement
        return table

    def find_declaration(self, name: str) -> cst.ClassDef:
        node = self.declarations().get(name)
        if node is None:
            raise KeyError(f"No class named {name!r} in {self.relative_path}")
        return node

    def replace_declaration(self, name: str, node: cst.ClassDef) -> None:
        """Swap the class bound to ``name`` (the last definition wins) for ``node``."""
        body = list(self.module.body)
        for index in range(len(body) - 1, -1, -1):
            statement = body[index]
            if isinstance(statement, cst.ClassDef) and statement.name.value == name:
                body[index] = node
                self.module = self.module.with_changes(body=body)
                return
        raise KeyError(f"No class named {name!r} in {self.relative_path}")


@dataclass
class Declaration:
    """Live handle on one class declaration of a source file."""

    source: SourceFile
    name: str
    kind: DeclarationKind = "struct"

    @property
    def node(self) -> cst.ClassDef:
        return self.source.find_declaration(self.name)

    def replace(self, node: cst.ClassDef) -> None:
        self.source.replace_declaration(self.name, node)

    @property
    def is_struct(self) -> bool:
        return self.kind == "struct"


@dataclass
class TaggedDeclaration:
    """One discovered marker: its tag type, literal annotation and owning class."""

    tag_type: str
    literal_tag: str
    declaration: Declaration


@dataclass
class TagContext:
    """Data available to a tag handler while a file is being processed."""

    file: SourceFile
    imports: ImportAliasMap = field(default_factory=dict)
