"""Rich rendering utilities for the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from procgraph._arguments import CallbackArgument, NodeReference
from procgraph._io import serialize_argument
from procgraph._operators import OPERATOR_TABLE

if TYPE_CHECKING:
    from rich.console import Console

    from procgraph._catalog import OperationCatalog
    from procgraph._graph import ProcessGraph


def _format_argument(value: object) -> str:
    match value:
        case NodeReference(node_id):
            return f"[bold]#{escape(node_id)}[/bold]"
        case CallbackArgument(graph):
            return f"[magenta]<callback: {len(graph)} nodes>[/magenta]"
        case _:
            return escape(repr(serialize_argument(value)))  # type: ignore[arg-type]


def _add_node(tree: Tree, graph: ProcessGraph, node_id: str, seen: set[str]) -> None:
    node = graph.get_node(node_id)
    label = f"[cyan]{escape(node.id)}[/cyan] [dim]({escape(node.operation)})[/dim]"
    if node.id in seen:
        tree.add(f"{label} [dim]...[/dim]")
        return
    seen.add(node.id)
    branch = tree.add(label)
    for name, value in node.arguments.items():
        if isinstance(value, NodeReference) and value.node_id in graph:
            sub = branch.add(f"[yellow]{escape(name)}[/yellow]")
            _add_node(sub, graph, value.node_id, seen)
        else:
            branch.add(f"[yellow]{escape(name)}[/yellow] = {_format_argument(value)}")


def render_graph_tree(graph: ProcessGraph, console: Console) -> None:
    """Render a graph as a tree starting at its result node.

    Args:
        graph: The graph to render.
        console: Rich Console to output to.

    """
    if graph.result_id is None:
        console.print("[dim]Graph has no result node[/dim]")
        return

    tree = Tree("[bold]Process graph[/bold]")
    _add_node(tree, graph, graph.result_id, set())
    console.print(tree)

    unused = set(graph.nodes) - graph.reachable_from_result()
    if unused:
        console.print(f"[yellow]Nodes not contributing to the result:[/yellow] {', '.join(sorted(unused))}")
    console.print(f"\n[dim]Total: {len(graph)} nodes[/dim]")


def render_operator_table(catalog: OperationCatalog | None, console: Console) -> None:
    """Render the operator table, with catalog availability when a catalog is given.

    Args:
        catalog: Catalog to check operations against, or None.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Operator", style="bold")
    table.add_column("Operation")
    if catalog is not None:
        table.add_column("Parameters")

    for operator, operation in OPERATOR_TABLE.items():
        if catalog is None:
            table.add_row(escape(operator), operation)
            continue
        definition = catalog.get(operation)
        if definition is None:
            table.add_row(escape(operator), operation, "[red]missing[/red]")
        elif definition.arity < 2:
            table.add_row(escape(operator), operation, f"[red]{', '.join(definition.parameter_names)} (needs 2)[/red]")
        else:
            table.add_row(escape(operator), operation, f"[green]{', '.join(definition.parameter_names)}[/green]")

    console.print(table)
