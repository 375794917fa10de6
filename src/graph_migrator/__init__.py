"""Core package for the GraphMigrator symbol-graph builder."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("graph-migrator")
except PackageNotFoundError:  # pragma: no cover - package metadata absent in dev mode
    __version__ = "0.0.0"

__all__ = ["__version__"]
