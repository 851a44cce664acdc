"""Tests for ProcessGraph queries."""

import pytest

from procgraph import GraphBuilder, GraphNode, NodeReference, ProcessGraph, compile_formula
from procgraph._expr import Binary, Group, Identifier, Number


def _graph(*nodes: GraphNode, result_id: str | None = None) -> ProcessGraph:
    return ProcessGraph(nodes={node.id: node for node in nodes}, result_id=result_id)


@pytest.fixture
def compiled(builder: GraphBuilder) -> ProcessGraph:
    # (a + 1) * (a - 2)
    tree = Binary(
        "*",
        Group(Binary("+", Identifier("a"), Number(1))),
        Group(Binary("-", Identifier("a"), Number(2))),
    )
    compile_formula(tree, builder)
    # An extra node that does not contribute to the result
    builder.create_node("sqrt", {"x": 9})
    return builder.to_graph()


def test_empty_graph() -> None:
    graph = ProcessGraph()
    assert len(graph) == 0
    assert graph.result is None
    assert graph.reachable_from_result() == frozenset()
    assert graph.topological_order() == []


def test_result(compiled: ProcessGraph) -> None:
    assert compiled.result_id == "multiply1"
    assert compiled.result is compiled.get_node("multiply1")


def test_dependencies_and_dependents(compiled: ProcessGraph) -> None:
    assert compiled.dependencies("multiply1") == frozenset({"add1", "subtract1"})
    assert compiled.dependencies("add1") == frozenset()
    assert compiled.dependents("add1") == frozenset({"multiply1"})
    assert compiled.dependents("sqrt1") == frozenset()


def test_reachable_from_result(compiled: ProcessGraph) -> None:
    assert compiled.reachable_from_result() == frozenset({"multiply1", "add1", "subtract1"})


def test_topological_order(compiled: ProcessGraph) -> None:
    order = compiled.topological_order()
    assert set(order) == set(compiled.nodes)
    assert order.index("add1") < order.index("multiply1")
    assert order.index("subtract1") < order.index("multiply1")


def test_contains(compiled: ProcessGraph) -> None:
    assert "add1" in compiled
    assert "missing" not in compiled


def test_valid_graph(compiled: ProcessGraph) -> None:
    assert compiled.validate() == []


def test_validate_missing_result() -> None:
    graph = _graph(GraphNode(id="a", operation="sqrt", arguments={"x": 1}))
    assert graph.validate() == ["Graph has no result node"]


def test_validate_multiple_results() -> None:
    graph = _graph(
        GraphNode(id="a", operation="sqrt", arguments={"x": 1}, is_result=True),
        GraphNode(id="b", operation="sqrt", arguments={"x": 2}, is_result=True),
        result_id="a",
    )
    errors = graph.validate()
    assert len(errors) == 1
    assert "multiple result nodes" in errors[0]


def test_validate_dangling_reference() -> None:
    graph = _graph(
        GraphNode(id="a", operation="sqrt", arguments={"x": NodeReference("gone")}, is_result=True),
        result_id="a",
    )
    assert graph.validate() == ["Node 'a' references missing nodes: ['gone']"]


def test_cycle_detection() -> None:
    graph = _graph(
        GraphNode(id="a", operation="sqrt", arguments={"x": NodeReference("b")}, is_result=True),
        GraphNode(id="b", operation="sqrt", arguments={"x": NodeReference("a")}),
        result_id="a",
    )
    with pytest.raises(ValueError, match="Cycle"):
        graph.topological_order()
    assert "Graph contains a cycle" in graph.validate()
    # Traversal terminates on cycles
    assert graph.reachable_from_result() == frozenset({"a", "b"})


def test_references_inside_arrays_are_dependencies() -> None:
    node = GraphNode(id="b", operation="sum", arguments={"data": (NodeReference("a"), 1)})
    assert node.dependencies() == frozenset({"a"})
