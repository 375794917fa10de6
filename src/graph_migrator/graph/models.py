"""Node and edge records stored in the symbol graph."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

ID_SEPARATOR = "::"


class NodeKind(str, Enum):
    """Kinds of code elements represented as nodes."""

    FILE = "file"
    MODULE = "module"
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"
    FUNCTION = "function"
    METHOD = "method"
    GLOBAL_VARIABLE = "global_variable"
    # Logical grouping of code migrated together
    MIGRATION_UNIT = "migration_unit"


class EdgeKind(str, Enum):
    """Kinds of relationships between nodes."""

    CONTAINS = "contains"
    CALLS = "calls"
    IMPORTS = "imports"
    INHERITS = "inherits"
    MIGRATED_TO = "migrated_to"
    PART_OF_MIGRATION = "part_of_migration"


def symbol_id(file_path: Path | str, name: str) -> str:
    """Return the global identifier ``<absolute-file-path>::<name>``.

    ``file_path`` is expected to be canonical already; the identifier embeds it
    verbatim so symbols of the same name in different files never collide.
    """

    return f"{file_path}{ID_SEPARATOR}{name}"


@dataclass(slots=True)
class Node:
    id: str
    name: str
    kind: NodeKind
    language: str
    file_path: Path
    line_range: Optional[Tuple[int, int]] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "language": self.language,
            "file_path": str(self.file_path),
            "line_range": list(self.line_range) if self.line_range is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        line_range = data.get("line_range")
        return cls(
            id=data["id"],
            name=data["name"],
            kind=NodeKind(data["kind"]),
            language=data["language"],
            file_path=Path(data["file_path"]),
            line_range=(int(line_range[0]), int(line_range[1])) if line_range else None,
        )


@dataclass(slots=True)
class Edge:
    kind: EdgeKind

    def as_dict(self) -> dict:
        return {"kind": self.kind.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        return cls(kind=EdgeKind(data["kind"]))


__all__ = ["ID_SEPARATOR", "NodeKind", "EdgeKind", "Node", "Edge", "symbol_id"]
