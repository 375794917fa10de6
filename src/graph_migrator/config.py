"""Configuration primitives for the project."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from graph_migrator.io.discovery import PYTHON_PATTERNS

DEFAULT_PATTERNS: Tuple[str, ...] = PYTHON_PATTERNS


@dataclass(slots=True)
class DiscoveryConfig:
    """Settings for locating source files under a project root."""

    root: Path
    patterns: Tuple[str, ...] = DEFAULT_PATTERNS
    extra_ignore: Tuple[str, ...] = ()
    respect_gitignore: bool = True

    @classmethod
    def for_python(
        cls,
        root: Path,
        *,
        patterns: Optional[Iterable[str]] = None,
        extra_ignore: Iterable[str] = (),
        respect_gitignore: bool = True,
    ) -> "DiscoveryConfig":
        """Factory helper that falls back to ``**/*.py`` when no patterns are given."""

        chosen = tuple(patterns) if patterns else DEFAULT_PATTERNS
        return cls(
            root=Path(root).expanduser(),
            patterns=chosen,
            extra_ignore=tuple(extra_ignore),
            respect_gitignore=respect_gitignore,
        )

