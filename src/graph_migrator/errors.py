"""Exception types raised while building symbol graphs."""

from __future__ import annotations

from pathlib import Path


class GraphMigratorError(Exception):
    """Base class for failures that abort a parsing session."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class FileReadError(GraphMigratorError, OSError):
    """A source file could not be opened, read or decoded."""


class SourceParseError(GraphMigratorError, ValueError):
    """The syntax tree for a source file could not be constructed."""


class UnsupportedLanguageError(GraphMigratorError, ValueError):
    """No parser is registered for the requested file or language."""


class MergeConsistencyError(GraphMigratorError, RuntimeError):
    """A subgraph edge references a node that is not part of the subgraph."""


__all__ = [
    "GraphMigratorError",
    "FileReadError",
    "SourceParseError",
    "UnsupportedLanguageError",
    "MergeConsistencyError",
]
