import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from procgraph._builder import GraphBuilder
from procgraph._catalog import OperationCatalog, load_catalog
from procgraph._formula import NumericLabelMode, try_compile_formula
from procgraph._io import dump_graph, read_graph, serialize_graph

from .config import ConfigError, get_config
from .render import render_graph_tree, render_operator_table

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Procgraph CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _resolve_catalog(catalog_path: Path | None) -> OperationCatalog:
    """Load the catalog given on the command line or configured in pyproject.toml."""
    if catalog_path is None:
        try:
            catalog_path = get_config().catalog
        except ConfigError as e:
            err_console.print(f"[red]✗ {escape(str(e))}[/red]")
            raise typer.Exit(code=1) from e
    if catalog_path is None:
        err_console.print(
            f"[red]✗ No operation catalog given. Use --catalog or set {escape('[tool.procgraph]')}.catalog[/red]",
        )
        raise typer.Exit(code=1)
    err_console.print(f"[cyan]Loading operation catalog from:[/cyan] {catalog_path}")
    return load_catalog(catalog_path)


@app.command(name="compile")
def compile_(
    tree: Annotated[
        Path,
        typer.Argument(help="Path to a JSON file with the parsed expression tree"),
    ],
    *,
    catalog: Annotated[
        Path | None,
        typer.Option("-c", "--catalog", help="Path to a JSON operation listing"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output JSON file (defaults to stdout)"),
    ] = None,
    no_result: Annotated[
        bool,
        typer.Option("--no-result", help="Do not flag the final node as result"),
    ] = False,
    callback_parameters: Annotated[
        list[str] | None,
        typer.Option("-p", "--callback-parameter", help="Callback parameter visible to the formula (repeatable)"),
    ] = None,
    numeric_labels: Annotated[
        NumericLabelMode | None,
        typer.Option("--numeric-labels", help="How $-references made of digits are interpreted"),
    ] = None,
    indent: Annotated[
        int,
        typer.Option("--indent", help="JSON indentation spaces"),
    ] = 2,
) -> None:
    """Compile an expression tree into a process graph."""
    try:
        options = get_config().compiler_options(numeric_labels)
    except ConfigError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    operation_catalog = _resolve_catalog(catalog)

    err_console.print(f"[cyan]Reading expression tree from:[/cyan] {tree}")
    with tree.open(encoding="utf-8") as f:
        tree_data = json.load(f)

    builder = GraphBuilder(operation_catalog)
    result = try_compile_formula(
        tree_data,
        builder,
        mark_as_result=not no_result,
        parameters=callback_parameters or None,
        options=options,
    )
    if not result.success:
        err_console.print(f"[red]✗ {escape(str(result.error))}[/red]")
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(json.dumps(serialize_graph(builder), indent=indent))
    else:
        err_console.print(f"[cyan]Writing graph to:[/cyan] {output}")
        output.parent.mkdir(parents=True, exist_ok=True)
        dump_graph(builder, output, indent=indent)

    err_console.print(f"[green]✓ Compiled {len(builder)} nodes[/green]")


@app.command()
def show(
    graph_path: Annotated[
        Path,
        typer.Argument(help="Path to a JSON file with a serialized process graph"),
    ],
) -> None:
    """Show a serialized process graph as a tree."""
    try:
        graph = read_graph(graph_path)
    except ValueError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    render_graph_tree(graph, out_console)

    errors = graph.validate()
    for error in errors:
        err_console.print(f"[yellow]⚠ {escape(error)}[/yellow]")
    if errors:
        raise typer.Exit(code=1)


@app.command()
def operators(
    *,
    catalog: Annotated[
        Path | None,
        typer.Option("-c", "--catalog", help="Path to a JSON operation listing"),
    ] = None,
) -> None:
    """List the formula operators and the operations they map to."""
    operation_catalog = load_catalog(catalog) if catalog is not None else None
    render_operator_table(operation_catalog, out_console)


def main() -> None:
    app()
