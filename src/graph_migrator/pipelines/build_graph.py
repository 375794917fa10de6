"""High-level orchestration for building the multi-file symbol graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

from graph_migrator.analysis import python_extractor
from graph_migrator.analysis.imports import ImportMap, extract_imports
from graph_migrator.analysis.unified_graph import MultiFileGraph
from graph_migrator.config import DEFAULT_PATTERNS, DiscoveryConfig
from graph_migrator.errors import FileReadError, GraphMigratorError, UnsupportedLanguageError
from graph_migrator.graph.container import SymbolGraph
from graph_migrator.io.discovery import discover_files
from graph_migrator.io.syntax import Language, SyntaxTreeProvider, detect_language

LOGGER = logging.getLogger(__name__)


class FileExtractor(Protocol):
    """Protocol expected from per-language single-file extractors."""

    def __call__(self, path: Path | str, *, provider: SyntaxTreeProvider | None = None) -> SymbolGraph:
        ...


EXTRACTORS: dict[Language, FileExtractor] = {
    Language.PYTHON: python_extractor.parse_file,
}


@dataclass
class FirstPassOutput:
    """Symbol graph plus the raw import statements of every merged file.

    A later resolution pass correlates ``imports`` with ``graph.node_locations``.
    """

    graph: MultiFileGraph = field(default_factory=MultiFileGraph)
    imports: ImportMap = field(default_factory=dict)


def parse_source_file(
    path: Path | str,
    language: Optional[Language] = None,
    *,
    provider: SyntaxTreeProvider | None = None,
) -> SymbolGraph:
    """Extract one file with the extractor registered for its language."""

    language = language or detect_language(path)
    extractor = EXTRACTORS.get(language)
    if extractor is None:
        raise UnsupportedLanguageError(f"No extractor registered for {language.value}.", path=Path(path))
    return extractor(path, provider=provider)


def canonical_paths(paths: Iterable[Path | str]) -> List[Path]:
    """Resolve, deduplicate and lexicographically sort input paths."""

    resolved: set[Path] = set()
    for item in paths:
        try:
            resolved.add(Path(item).expanduser().resolve(strict=True))
        except OSError as exc:
            raise FileReadError(f"Input not found: {item}", path=Path(item)) from exc
    return sorted(resolved, key=str)


def parse_files(paths: Iterable[Path | str], *, language: Optional[Language] = None) -> MultiFileGraph:
    """Parse and merge ``paths`` into one graph.

    Files are processed in lexicographic order of their canonical path. Any read
    or parse failure aborts the whole operation; no partial graph is returned.
    """

    ordered = canonical_paths(paths)
    provider = SyntaxTreeProvider()
    merged = MultiFileGraph()
    for path in ordered:
        try:
            subgraph = parse_source_file(path, language, provider=provider)
            merged.merge(subgraph, path)
        except GraphMigratorError as exc:
            LOGGER.error("Aborting multi-file parse at %s: %s", path, exc)
            raise
    LOGGER.info(
        "Parsed %s files -> %s nodes / %s edges",
        len(merged.files),
        merged.graph.node_count(),
        merged.graph.edge_count(),
    )
    return merged


def parse_directory(
    root: Path | str,
    patterns: Sequence[str] = DEFAULT_PATTERNS,
    *,
    extra_ignore: Sequence[str] = (),
    respect_gitignore: bool = True,
) -> MultiFileGraph:
    """Discover files under ``root`` and parse them. A missing root yields an empty graph."""

    files = discover_files(root, patterns, extra_ignore=extra_ignore, respect_gitignore=respect_gitignore)
    return parse_files(files)


def build_from_config(config: DiscoveryConfig) -> MultiFileGraph:
    return parse_directory(
        config.root,
        config.patterns,
        extra_ignore=config.extra_ignore,
        respect_gitignore=config.respect_gitignore,
    )


def parse_directory_with_imports(
    root: Path | str,
    patterns: Sequence[str] = DEFAULT_PATTERNS,
) -> FirstPassOutput:
    """Parse ``root`` and capture the import statements of every merged file."""

    graph = parse_directory(root, patterns)
    provider = SyntaxTreeProvider()
    imports: ImportMap = {}
    for path in sorted(graph.files, key=str):
        imports[path] = extract_imports(path, provider=provider)
    return FirstPassOutput(graph=graph, imports=imports)


__all__ = [
    "EXTRACTORS",
    "FileExtractor",
    "FirstPassOutput",
    "build_from_config",
    "canonical_paths",
    "parse_directory",
    "parse_directory_with_imports",
    "parse_files",
    "parse_source_file",
]
