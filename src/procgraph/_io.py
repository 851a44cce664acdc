"""Serialization of process graphs to and from JSON-compatible mappings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ._arguments import CallbackArgument, ElementReference, NodeReference, ParameterReference, is_literal
from ._builder import GraphBuilder
from ._graph import ProcessGraph
from ._node import GraphNode

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._arguments import Argument

logger = logging.getLogger(__name__)


def serialize_argument(argument: Argument) -> Any:
    """Serialize an argument value.

    Handles:
    - Literals and strings: returned as-is
    - NodeReference: ``{"from_node": id}``
    - ParameterReference: ``{"from_parameter": name}``
    - ElementReference: ``{"from_parameter": name, "index": n}`` or ``{"from_parameter": name, "label": l}``
    - CallbackArgument: ``{"process_graph": {...}}``
    - tuple: a list of serialized items
    """
    match argument:
        case NodeReference(node_id):
            return {"from_node": node_id}
        case ParameterReference(name):
            return {"from_parameter": name}
        case ElementReference(parameter, selector):
            key = "index" if isinstance(selector, int) else "label"
            return {"from_parameter": parameter, key: selector}
        case CallbackArgument(graph):
            return {"process_graph": serialize_graph(graph)}
        case tuple():
            return [serialize_argument(item) for item in argument]
        case str():
            return argument
        case _ if is_literal(argument):
            return argument
        case _:
            msg = f"Cannot serialize argument of type '{type(argument).__name__}': {argument!r}"
            raise TypeError(msg)


def serialize_graph(graph: ProcessGraph | GraphBuilder) -> dict[str, Any]:
    """Serialize a graph into a mapping from node id to node object.

    Example:
        >>> serialize_graph(builder)
        {'sqrt1': {'process_id': 'sqrt', 'arguments': {'x': {'from_parameter': 'x'}}, 'result': True}}

    """
    if isinstance(graph, GraphBuilder):
        graph = graph.to_graph()

    result: dict[str, Any] = {}
    for node_id, node in graph.nodes.items():
        entry: dict[str, Any] = {
            "process_id": node.operation,
            "arguments": {name: serialize_argument(value) for name, value in node.arguments.items()},
        }
        if node.description:
            entry["description"] = node.description
        if node.is_result:
            entry["result"] = True
        result[node_id] = entry
    return result


def deserialize_argument(value: Any) -> Argument:
    """Read a serialized argument value back.

    Raises:
        ValueError: If an object argument has an unknown shape.

    """
    if isinstance(value, list):
        return tuple(deserialize_argument(item) for item in value)
    if isinstance(value, dict):
        if set(value) == {"from_node"}:
            return NodeReference(str(value["from_node"]))
        if set(value) == {"from_parameter"}:
            return ParameterReference(str(value["from_parameter"]))
        if set(value) == {"from_parameter", "index"}:
            return ElementReference(str(value["from_parameter"]), int(value["index"]))
        if set(value) == {"from_parameter", "label"}:
            return ElementReference(str(value["from_parameter"]), str(value["label"]))
        if set(value) == {"process_graph"}:
            return CallbackArgument(load_graph(value["process_graph"]))
        msg = f"Unsupported object argument: {value!r}"
        raise ValueError(msg)
    if isinstance(value, str) or is_literal(value):
        return value
    msg = f"Unsupported argument value: {value!r}"
    raise ValueError(msg)


def load_graph(data: Mapping[str, Any]) -> ProcessGraph:
    """Read a serialized node map back into a ProcessGraph.

    Raises:
        ValueError: If a node is malformed or more than one node is flagged as result.

    """
    nodes: dict[str, GraphNode] = {}
    result_ids: list[str] = []

    for node_id, entry in data.items():
        if not isinstance(entry, dict) or "process_id" not in entry:
            msg = f"Node '{node_id}' must be an object with a 'process_id'."
            raise ValueError(msg)
        is_result = entry.get("result") is True
        nodes[node_id] = GraphNode(
            id=node_id,
            operation=entry["process_id"],
            arguments={name: deserialize_argument(v) for name, v in entry.get("arguments", {}).items()},
            description=entry.get("description"),
            is_result=is_result,
        )
        if is_result:
            result_ids.append(node_id)

    if len(result_ids) > 1:
        msg = f"Graph has multiple result nodes: {result_ids}"
        raise ValueError(msg)

    return ProcessGraph(nodes=nodes, result_id=result_ids[0] if result_ids else None)


def dump_graph(graph: ProcessGraph | GraphBuilder, output_path: Path, *, indent: int = 2) -> None:
    """Write a serialized graph to a JSON file."""
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(serialize_graph(graph), f, indent=indent)
        f.write("\n")
    logger.debug(f"Exported graph to {output_path}")


def read_graph(input_path: Path) -> ProcessGraph:
    """Read a graph from a JSON file holding a serialized node map.

    A ``{"process_graph": {...}}`` wrapper, as used when submitting graphs,
    is accepted too.
    """
    with input_path.open(encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and set(data) == {"process_graph"}:
        data = data["process_graph"]
    graph = load_graph(data)
    logger.debug(f"Loaded graph with {len(graph)} nodes from {input_path}")
    return graph
