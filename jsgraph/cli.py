"""Typer-based CLI for jsgraph code relationship graphs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .graph_export import export_dot, export_html
from .models import NODE_KINDS
from .orchestrator import GraphOrchestrator
from .storage import ProjectState

console = Console()

app = typer.Typer(
    help="🕸️  jsgraph: code relationship graphs for JavaScript & TypeScript projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

PROJECT_OPTION = typer.Option(
    None, "--project", "-p", help="Project path (defaults to the last analyzed/loaded project).",
)
JSON_OPTION = typer.Option(False, "--json", help="Print raw JSON instead of a table.")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"jsgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """jsgraph: build, cache and query code relationship graphs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _open_current(project: Optional[Path]) -> GraphOrchestrator:
    state = ProjectState()
    project_path = str(project) if project is not None else state.get_current_project()
    if not project_path:
        raise typer.BadParameter("No project loaded. Use 'jsg analyze <path>' or 'jsg load <path>'.")
    orchestrator = GraphOrchestrator()
    result = orchestrator.load_cached(project_path)
    if not result["success"]:
        raise typer.BadParameter(f"{result['message']}: {project_path}. Run 'jsg analyze {project_path}'.")
    return orchestrator


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _connections_table(title: str, connections: List[Dict[str, Any]]) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("From")
    table.add_column("Type", style="cyan")
    table.add_column("To")
    for conn in connections:
        table.add_row(conn["from"], conn["type"], conn["to"])
    return table


# ===================================================================
# Lifecycle commands
# ===================================================================

@app.command("analyze")
def analyze(
    project_path: Path = typer.Argument(..., exists=True, file_okay=False, help="Root of the project to analyze."),
    force: bool = typer.Option(False, "--force", "-f", help="Rebuild even if a cached graph exists."),
    as_json: bool = JSON_OPTION,
):
    """Build (or load from cache) the code graph of a project."""
    orchestrator = GraphOrchestrator()
    result = orchestrator.analyze(project_path, force=force)
    ProjectState().set_current_project(orchestrator.project_path)

    if as_json:
        _echo_json(result)
        return

    stats = result["stats"]
    typer.echo(f"{result['message']}: {orchestrator.project_path}")
    typer.echo(f"Nodes: {stats['node_count']} | Edges: {stats['edge_count']}")
    if not result["cached"]:
        typer.echo(f"Files: {stats['file_count']}")
        for skipped in stats["skipped"]:
            typer.echo(f"  skipped (too large): {skipped}")
        for file, error in stats["errors"].items():
            typer.echo(f"  failed: {file}: {error}")


@app.command("load")
def load(project_path: Path = typer.Argument(..., help="Project path whose cached graph to load.")):
    """Make a previously analyzed project the current one."""
    orchestrator = GraphOrchestrator()
    result = orchestrator.load_cached(project_path)
    if not result["success"]:
        typer.echo(f"❌ {result['message']}", err=True)
        raise typer.Exit(code=1)
    ProjectState().set_current_project(orchestrator.project_path)
    stats = result["stats"]
    typer.echo(f"Loaded graph for '{orchestrator.project_path}'.")
    typer.echo(f"Nodes: {stats['node_count']} | Edges: {stats['edge_count']}")


@app.command("clear-cache")
def clear_cache(
    project_path: Optional[Path] = typer.Argument(None, help="Project to clear; clears every cache when omitted."),
):
    """Delete cached graphs."""
    orchestrator = GraphOrchestrator()
    result = orchestrator.clear_cache(project_path)
    state = ProjectState()
    current = state.get_current_project()
    if current and (project_path is None or str(project_path.resolve()) == current):
        state.unload_project()
    typer.echo(result["message"])


@app.command("list-cached")
def list_cached(as_json: bool = JSON_OPTION):
    """List every cached project graph."""
    result = GraphOrchestrator().list_cached()
    if as_json:
        _echo_json(result)
        return
    if not result["count"]:
        typer.echo("No cached graphs.")
        raise typer.Exit(code=0)

    current = ProjectState().get_current_project()
    table = Table(title="Cached graphs")
    table.add_column("")
    table.add_column("Project")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Updated")
    for item in result["cached_graphs"]:
        marker = "*" if item["project_path"] == current else ""
        table.add_row(
            marker,
            str(item["project_path"]),
            str(item["node_count"]),
            str(item["edge_count"]),
            str(item["updated_at"]),
        )
    console.print(table)


@app.command("current-project")
def current_project():
    """Print the current project path."""
    typer.echo(ProjectState().get_current_project() or "No project loaded")


# ===================================================================
# Query commands
# ===================================================================

@app.command("find")
def find(
    query: str = typer.Argument(..., help="Symbol name or part of it (also matches file paths)."),
    kind: Optional[str] = typer.Option(None, "--type", "-t", help="Filter: function, class or variable."),
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Find functions, classes and variables by name."""
    if kind is not None and kind not in NODE_KINDS:
        raise typer.BadParameter(f"Type must be one of: {', '.join(NODE_KINDS)}")
    symbols = _open_current(project).find_symbol(query, kind)

    if as_json:
        _echo_json({"query": query, "type": kind or "all", "count": len(symbols), "symbols": symbols})
        return
    if not symbols:
        typer.echo("No matching symbols.")
        raise typer.Exit(code=0)

    table = Table(title=f"Symbols matching '{query}'")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Location")
    table.add_column("Score", justify="right")
    for sym in symbols:
        table.add_row(sym["kind"], sym["name"], f"{sym['file']}:{sym['line']}", str(sym["score"]))
    console.print(table)


@app.command("deps")
def deps(
    symbol_id: str = typer.Argument(..., help="Symbol id as printed by 'jsg find --json'."),
    depth: int = typer.Option(1, min=0, max=10, help="Traversal depth in hops."),
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Show what a symbol depends on."""
    connections = _open_current(project).get_dependencies(symbol_id, depth)
    if as_json:
        _echo_json({"symbol_id": symbol_id, "depth": depth, "dependencies": connections})
        return
    if not connections:
        typer.echo("No dependencies found.")
        return
    console.print(_connections_table(f"Dependencies of {symbol_id}", connections))


@app.command("dependents")
def dependents(
    symbol_id: str = typer.Argument(..., help="Symbol id as printed by 'jsg find --json'."),
    depth: int = typer.Option(1, min=0, max=10, help="Traversal depth in hops."),
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Show what uses a symbol."""
    connections = _open_current(project).get_dependents(symbol_id, depth)
    if as_json:
        _echo_json({"symbol_id": symbol_id, "depth": depth, "dependents": connections})
        return
    if not connections:
        typer.echo("No dependents found.")
        return
    console.print(_connections_table(f"Dependents of {symbol_id}", connections))


@app.command("call-graph")
def call_graph(
    function_name: str = typer.Argument(..., help="Function name to analyze."),
    depth: int = typer.Option(2, min=0, max=10, help="Call graph depth."),
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Show call edges around the functions matching a name."""
    graph = _open_current(project).get_call_graph(function_name, depth)
    if not graph:
        typer.echo(f"❌ Function '{function_name}' not found.", err=True)
        raise typer.Exit(code=1)
    if as_json:
        _echo_json({"function_name": function_name, "depth": depth, "call_graph": graph})
        return
    for func_id, entry in graph.items():
        if entry["connections"]:
            console.print(_connections_table(func_id, entry["connections"]))
        else:
            typer.echo(f"{func_id}: no calls found")


@app.command("file-symbols")
def file_symbols(
    file: str = typer.Argument(..., help="File path relative to the project root."),
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """List the symbols declared in a file, by line."""
    symbols = _open_current(project).get_file_symbols(file)
    if as_json:
        _echo_json({"filepath": file, "symbol_count": len(symbols), "symbols": symbols})
        return
    if not symbols:
        typer.echo(f"No symbols recorded for '{file}'.")
        return
    table = Table(title=file)
    table.add_column("Line", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="bold")
    for sym in symbols:
        table.add_row(str(sym["line"]), sym["kind"], sym["name"])
    console.print(table)


@app.command("stats")
def stats(
    project: Optional[Path] = PROJECT_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Print node/edge counts by kind and type."""
    result = _open_current(project).get_graph_stats()
    if as_json:
        _echo_json(result)
        return
    typer.echo(f"Nodes: {result['total_nodes']} | Edges: {result['total_edges']} | Files: {result['file_count']}")
    for kind, count in sorted(result["node_types"].items()):
        typer.echo(f"  {kind}: {count}")
    for edge_type, count in sorted(result["edge_types"].items()):
        typer.echo(f"  {edge_type} edges: {count}")


@app.command("export-graph")
def export_graph(
    symbol: str = typer.Argument("", help="Optional focus symbol to export a local subgraph."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: html or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    project: Optional[Path] = PROJECT_OPTION,
):
    """Export the graph to standalone HTML or Graphviz DOT."""
    fmt = fmt.lower()
    if fmt not in {"html", "dot"}:
        raise typer.BadParameter("Format must be one of: html, dot")

    orchestrator = _open_current(project)
    store = orchestrator.query.store

    if output is None:
        name = Path(orchestrator.project_path or "project").name or "project"
        output = Path.cwd() / f"{name}_graph.{fmt}"

    if fmt == "html":
        export_html(store, output, focus=symbol)
    else:
        export_dot(store, output, focus=symbol)

    typer.echo(f"Exported graph to {output}")


if __name__ == "__main__":
    app()
