"""Tree-sitter backed syntax tree provider.

Reads source files as bytes and turns them into tree-sitter trees. Parsers are
created lazily per language and reused for the lifetime of the provider.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Tuple

import tree_sitter
import tree_sitter_python

from graph_migrator.errors import FileReadError, SourceParseError, UnsupportedLanguageError

LOGGER = logging.getLogger(__name__)


class Language(str, Enum):
    """Source languages with a registered grammar."""

    PYTHON = "python"


EXTENSION_TO_LANGUAGE: dict[str, Language] = {
    ".py": Language.PYTHON,
    ".pyi": Language.PYTHON,
}

_GRAMMARS = {
    Language.PYTHON: tree_sitter_python.language,
}


def detect_language(path: Path | str) -> Language:
    """Map a file extension to its language, raising when none is registered."""

    suffix = Path(path).suffix.lower()
    language = EXTENSION_TO_LANGUAGE.get(suffix)
    if language is None:
        raise UnsupportedLanguageError(f"No parser registered for '{suffix or path}'.", path=Path(path))
    return language


def read_source(path: Path | str) -> Tuple[Path, bytes]:
    """Canonicalise ``path`` and return it with the file's bytes.

    The bytes must decode as UTF-8; anything else is treated as unreadable.
    """

    try:
        canonical = Path(path).resolve(strict=True)
        data = canonical.read_bytes()
    except OSError as exc:
        raise FileReadError(f"Unable to read source file {path}: {exc}", path=Path(path)) from exc
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FileReadError(f"Source file {canonical} is not valid UTF-8: {exc}", path=canonical) from exc
    return canonical, data


class SyntaxTreeProvider:
    """Pure parse function over byte buffers, one cached parser per language."""

    def __init__(self) -> None:
        self._parsers: dict[Language, tree_sitter.Parser] = {}

    def get_parser(self, language: Language) -> tree_sitter.Parser:
        parser = self._parsers.get(language)
        if parser is None:
            grammar = _GRAMMARS.get(language)
            if grammar is None:
                raise UnsupportedLanguageError(f"No grammar available for {language.value}.")
            parser = tree_sitter.Parser(tree_sitter.Language(grammar()))
            self._parsers[language] = parser
        return parser

    def parse(self, source: bytes, language: Language, *, path: Path | None = None) -> Any:
        """Return the ``tree_sitter.Tree`` for ``source``.

        Tree-sitter recovers from malformed input by inserting error nodes; any
        such node is reported as a failed construction.
        """

        tree = self.get_parser(language).parse(source)
        if tree is None:
            raise SourceParseError(f"Failed to parse {language.value} source: {path}", path=path)
        if tree.root_node.has_error:
            row = _first_error_row(tree.root_node)
            location = f"{path}:{row + 1}" if row is not None else str(path)
            raise SourceParseError(f"Syntax error in {language.value} source at {location}", path=path)
        return tree


def _first_error_row(node: Any) -> int | None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0]
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


__all__ = [
    "EXTENSION_TO_LANGUAGE",
    "Language",
    "SyntaxTreeProvider",
    "detect_language",
    "read_source",
]
