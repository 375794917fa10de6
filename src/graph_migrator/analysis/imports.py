"""Structured capture of Python import statements.

Import syntax is recorded losslessly (aliases, relative levels, star imports)
so a later resolution pass can correlate it with node provenance without
re-parsing. Nothing here adds edges to the symbol graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from graph_migrator.io.syntax import Language, SyntaxTreeProvider, read_source

LOGGER = logging.getLogger(__name__)

STAR = "*"


@dataclass(slots=True)
class SourceRange:
    """Statement-level location; bytes are 0-based, lines 1-based."""

    start_byte: int
    end_byte: int
    start_line: int
    end_line: int

    def as_dict(self) -> dict:
        return {
            "start_byte": self.start_byte,
            "end_byte": self.end_byte,
            "start_line": self.start_line,
            "end_line": self.end_line,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SourceRange":
        return cls(**{key: int(data[key]) for key in ("start_byte", "end_byte", "start_line", "end_line")})


@dataclass(slots=True)
class ImportedModule:
    """One item of ``import a, b as c``."""

    name: str
    alias: Optional[str] = None


@dataclass(slots=True)
class ImportedName:
    """One item of ``from x import a, b as c``; ``*`` for star imports."""

    name: str
    alias: Optional[str] = None
    is_star: bool = False


@dataclass(slots=True)
class Import:
    items: List[ImportedModule]
    range: SourceRange

    def as_dict(self) -> dict:
        return {
            "type": "import",
            "items": [{"name": item.name, "alias": item.alias} for item in self.items],
            "range": self.range.as_dict(),
        }


@dataclass(slots=True)
class ImportFrom:
    """``from module import names``.

    ``module`` is ``None`` for ``from . import x``; ``level`` is the number of
    leading dots (0 for absolute imports).
    """

    module: Optional[str]
    level: int
    names: List[ImportedName]
    range: SourceRange

    @property
    def is_star(self) -> bool:
        return any(name.is_star for name in self.names)

    def as_dict(self) -> dict:
        return {
            "type": "import_from",
            "module": self.module,
            "level": self.level,
            "names": [{"name": n.name, "alias": n.alias, "is_star": n.is_star} for n in self.names],
            "range": self.range.as_dict(),
        }


ImportStatement = Union[Import, ImportFrom]
ImportMap = Dict[Path, List[ImportStatement]]


def import_statement_from_dict(data: dict) -> ImportStatement:
    kind = data.get("type")
    source_range = SourceRange.from_dict(data["range"])
    if kind == "import":
        items = [ImportedModule(name=item["name"], alias=item.get("alias")) for item in data["items"]]
        return Import(items=items, range=source_range)
    if kind == "import_from":
        names = [
            ImportedName(name=item["name"], alias=item.get("alias"), is_star=bool(item.get("is_star", False)))
            for item in data["names"]
        ]
        return ImportFrom(module=data.get("module"), level=int(data.get("level", 0)), names=names, range=source_range)
    raise ValueError(f"Unknown import statement type: {kind!r}")


def _text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def _range(node: Any) -> SourceRange:
    return SourceRange(
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        start_line=node.start_point[0] + 1,
        end_line=node.end_point[0] + 1,
    )


def _name_and_alias(node: Any, source: bytes) -> tuple[str, Optional[str]]:
    if node.type == "aliased_import":
        name_node = node.child_by_field_name("name")
        alias_node = node.child_by_field_name("alias")
        name = _text(name_node, source) if name_node is not None else ""
        return name, (_text(alias_node, source) if alias_node is not None else None)
    return _text(node, source), None


def _module_and_level(module_node: Any, source: bytes) -> tuple[Optional[str], int]:
    if module_node is None:
        return None, 0
    if module_node.type != "relative_import":
        return _text(module_node, source), 0
    level = 0
    module: Optional[str] = None
    for child in module_node.children:
        if child.type == "import_prefix":
            level = _text(child, source).count(".")
        elif child.type == "dotted_name":
            module = _text(child, source)
    return module, level


def _import_statement(node: Any, source: bytes) -> Import:
    items = []
    for child in node.children_by_field_name("name"):
        name, alias = _name_and_alias(child, source)
        items.append(ImportedModule(name=name, alias=alias))
    return Import(items=items, range=_range(node))


def _import_from_statement(node: Any, source: bytes) -> ImportFrom:
    if node.type == "future_import_statement":
        module, level = "__future__", 0
    else:
        module, level = _module_and_level(node.child_by_field_name("module_name"), source)
    names: List[ImportedName] = []
    if any(child.type == "wildcard_import" for child in node.children):
        names.append(ImportedName(name=STAR, alias=None, is_star=True))
    for child in node.children_by_field_name("name"):
        name, alias = _name_and_alias(child, source)
        names.append(ImportedName(name=name, alias=alias))
    return ImportFrom(module=module, level=level, names=names, range=_range(node))


def collect_imports(tree: Any, source: bytes) -> List[ImportStatement]:
    """Every import statement in the tree, in source order, nested ones included."""

    root = getattr(tree, "root_node", tree)
    statements: List[ImportStatement] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "import_statement":
            statements.append(_import_statement(node, source))
            continue
        if node.type in ("import_from_statement", "future_import_statement"):
            statements.append(_import_from_statement(node, source))
            continue
        stack.extend(reversed(node.children))
    return statements


def extract_imports(path: Path | str, *, provider: SyntaxTreeProvider | None = None) -> List[ImportStatement]:
    """Parse ``path`` and return its import statements.

    Raises the same read and parse errors as symbol extraction.
    """

    canonical, source = read_source(path)
    provider = provider or SyntaxTreeProvider()
    tree = provider.parse(source, Language.PYTHON, path=canonical)
    statements = collect_imports(tree, source)
    LOGGER.debug("Captured %s import statements from %s", len(statements), canonical)
    return statements


__all__ = [
    "Import",
    "ImportFrom",
    "ImportMap",
    "ImportStatement",
    "ImportedModule",
    "ImportedName",
    "SourceRange",
    "collect_imports",
    "extract_imports",
    "import_statement_from_dict",
]
