"""Gitignore-aware discovery of source files under a project root."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

import pathspec

LOGGER = logging.getLogger(__name__)

GITIGNORE = ".gitignore"
GIT_DIR = ".git"
PYTHON_PATTERNS: tuple[str, ...] = ("**/*.py",)


@dataclass(frozen=True)
class IgnoreRules:
    """Gitignore patterns anchored at the directory that declared them."""

    base: Path
    spec: pathspec.PathSpec

    def is_ignored(self, path: Path, *, is_dir: bool = False) -> bool:
        try:
            relative = path.relative_to(self.base).as_posix()
        except ValueError:
            return False
        if is_dir:
            relative += "/"
        return self.spec.match_file(relative)


def _read_patterns(path: Path) -> List[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        LOGGER.warning("Unable to read ignore file %s: %s", path, exc)
        return []


def _rules_from_file(base: Path, path: Path) -> IgnoreRules | None:
    patterns = _read_patterns(path)
    if not patterns:
        return None
    return IgnoreRules(base=base, spec=pathspec.PathSpec.from_lines("gitwildmatch", patterns))


def _repository_top(root: Path) -> Path | None:
    for candidate in (root, *root.parents):
        if (candidate / GIT_DIR).exists():
            return candidate
    return None


def _ancestor_rules(root: Path) -> List[IgnoreRules]:
    """Rules declared above ``root`` inside the enclosing repository."""

    top = _repository_top(root)
    if top is None:
        return []
    rules: List[IgnoreRules] = []
    exclude = top / GIT_DIR / "info" / "exclude"
    if exclude.is_file():
        parsed = _rules_from_file(top, exclude)
        if parsed:
            rules.append(parsed)
    ancestors = [parent for parent in root.parents if parent == top or top in parent.parents]
    for directory in reversed(ancestors):
        gitignore = directory / GITIGNORE
        if gitignore.is_file():
            parsed = _rules_from_file(directory, gitignore)
            if parsed:
                rules.append(parsed)
    return rules


def _is_ignored(path: Path, rules: Iterable[IgnoreRules], *, is_dir: bool = False) -> bool:
    return any(rule.is_ignored(path, is_dir=is_dir) for rule in rules)


def discover_files(
    root: Path | str,
    patterns: Sequence[str],
    *,
    extra_ignore: Sequence[str] = (),
    respect_gitignore: bool = True,
) -> List[Path]:
    """Return absolute paths of files under ``root`` matching any of ``patterns``.

    Patterns use gitignore (gitwildmatch) syntax relative to ``root``, e.g.
    ``**/*.py`` or ``src/**/*.py``. Files excluded by ``.gitignore`` files at
    or above the root, ``.git/info/exclude`` or ``extra_ignore`` are skipped.
    The result is sorted and free of duplicates. A root that does not exist or
    cannot be resolved yields an empty list.
    """

    try:
        canonical_root = Path(root).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        LOGGER.warning("Discovery root %s is unavailable: %s", root, exc)
        return []
    if not canonical_root.is_dir():
        LOGGER.warning("Discovery root %s is not a directory.", canonical_root)
        return []

    try:
        matcher = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
    except (ValueError, TypeError) as exc:
        LOGGER.warning("Invalid discovery patterns %s: %s", list(patterns), exc)
        return []

    rules: List[IgnoreRules] = []
    if respect_gitignore:
        rules.extend(_ancestor_rules(canonical_root))
    if extra_ignore:
        rules.append(IgnoreRules(base=canonical_root, spec=pathspec.PathSpec.from_lines("gitwildmatch", extra_ignore)))
    scoped: dict[Path, List[IgnoreRules]] = {}

    found: set[Path] = set()

    def _on_error(exc: OSError) -> None:
        LOGGER.warning("Error walking %s: %s", getattr(exc, "filename", canonical_root), exc)

    for dirpath, dirnames, filenames in os.walk(canonical_root, onerror=_on_error):
        directory = Path(dirpath)
        active = list(rules)
        for parent in (directory, *directory.parents):
            if parent in scoped:
                active.extend(scoped[parent])
            if parent == canonical_root:
                break
        if respect_gitignore and GITIGNORE in filenames:
            local = _rules_from_file(directory, directory / GITIGNORE)
            if local:
                scoped[directory] = [local]
                active.append(local)

        dirnames[:] = sorted(
            name
            for name in dirnames
            if name != GIT_DIR and not _is_ignored(directory / name, active, is_dir=True)
        )
        for name in sorted(filenames):
            candidate = directory / name
            if _is_ignored(candidate, active):
                continue
            relative = candidate.relative_to(canonical_root).as_posix()
            if not matcher.match_file(relative):
                continue
            try:
                resolved = candidate.resolve(strict=True)
            except OSError as exc:
                LOGGER.warning("Skipping unreadable path %s: %s", candidate, exc)
                continue
            if resolved.is_file():
                found.add(resolved)

    files = sorted(found, key=str)
    LOGGER.debug("Discovered %s files under %s", len(files), canonical_root)
    return files


def discover_python_files(root: Path | str) -> List[Path]:
    """Convenience wrapper for ``**/*.py``."""

    return discover_files(root, PYTHON_PATTERNS)


__all__ = ["IgnoreRules", "PYTHON_PATTERNS", "discover_files", "discover_python_files"]
