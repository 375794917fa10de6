"""Command line entry points for the project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from graph_migrator import __version__
from graph_migrator.analysis.graph_export import export_graph
from graph_migrator.analysis.graph_queries import graph_summary
from graph_migrator.analysis.imports import Import, extract_imports
from graph_migrator.config import DiscoveryConfig
from graph_migrator.errors import GraphMigratorError
from graph_migrator.io.discovery import discover_files
from graph_migrator.pipelines.build_graph import build_from_config

app = typer.Typer(help="Transform codebases into queryable dependency graphs.")


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _resolve_root(root: Path) -> Path:
    candidate = root.expanduser().resolve()
    if not candidate.is_dir():
        raise typer.BadParameter(f"Root directory not found: {candidate}")
    return candidate


@app.callback(invoke_without_command=True)
def main(
    display_version: bool = typer.Option(False, "--version", "-V", help="Show version and exit."),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug)."),
) -> None:
    """Print the package version when requested."""

    _configure_logging(verbose)
    if display_version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command("discover")
def discover(
    root: Path = typer.Argument(..., help="Project root to scan."),
    pattern: List[str] = typer.Option([], "--pattern", "-p", help="Glob pattern(s) relative to the root (default **/*.py)."),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Extra gitignore-style patterns to skip."),
) -> None:
    """List the source files that would be parsed."""

    config = DiscoveryConfig.for_python(_resolve_root(root), patterns=pattern, extra_ignore=exclude)
    files = discover_files(config.root, config.patterns, extra_ignore=config.extra_ignore)
    for path in files:
        typer.echo(str(path))
    typer.echo(f"Files found: {len(files)}")


@app.command("parse")
def parse(
    root: Path = typer.Argument(..., help="Project root to parse."),
    pattern: List[str] = typer.Option([], "--pattern", "-p", help="Glob pattern(s) relative to the root (default **/*.py)."),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Extra gitignore-style patterns to skip."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the graph as JSON to this path."),
) -> None:
    """Build the multi-file symbol graph and print a summary."""

    config = DiscoveryConfig.for_python(_resolve_root(root), patterns=pattern, extra_ignore=exclude)
    typer.echo(f"Parsing files under {config.root}...")
    try:
        multi = build_from_config(config)
    except GraphMigratorError as exc:
        typer.secho(f"Parse failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    summary = graph_summary(multi)
    typer.echo(f"Files: {summary.files}  Nodes: {summary.nodes}  Edges: {summary.edges}")
    if summary.largest_file:
        typer.echo(f"Largest file: {summary.largest_file}")
    for kind, total in summary.node_kinds.items():
        typer.echo(f"  {kind}: {total}")
    for kind, total in summary.edge_kinds.items():
        typer.echo(f"  {kind} edges: {total}")

    if output:
        destination = export_graph(multi, output)
        typer.secho(f"Graph written to {destination}", fg=typer.colors.GREEN)


@app.command("imports")
def imports(
    file: Path = typer.Argument(..., help="Python file to inspect."),
) -> None:
    """Print the import statements captured from a single file."""

    try:
        statements = extract_imports(file)
    except GraphMigratorError as exc:
        typer.secho(f"Import extraction failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    for statement in statements:
        line = statement.range.start_line
        if isinstance(statement, Import):
            items = ", ".join(f"{item.name} as {item.alias}" if item.alias else item.name for item in statement.items)
            typer.echo(f"{line:4d}: import {items}")
        else:
            names = ", ".join(f"{name.name} as {name.alias}" if name.alias else name.name for name in statement.names)
            module = "." * statement.level + (statement.module or "")
            typer.echo(f"{line:4d}: from {module} import {names}")


def run() -> None:
    """Entry point used by ``python -m graph_migrator.cli``."""

    app()


if __name__ == "__main__":
    run()
