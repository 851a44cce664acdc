"""Compiled process graph and graph queries."""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._arguments import Parameter
    from ._node import GraphNode


@dataclass(frozen=True, slots=True)
class ProcessGraph:
    """An immutable snapshot of a built process graph.

    This is what a builder hands to the serializer or to an execution
    backend. It is also what ``load_graph`` produces when reading a
    serialized node map back.

    Attributes:
        nodes: Mapping from node id to node, in creation order.
        result_id: Id of the node flagged as result, if any.
        parameters: Free parameters declared while building the graph.

    """

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    result_id: str | None = None
    parameters: tuple[Parameter, ...] = ()

    @property
    def result(self) -> GraphNode | None:
        if self.result_id is None:
            return None
        return self.nodes[self.result_id]

    def get_node(self, node_id: str) -> GraphNode:
        """Get a node by id.

        Raises:
            KeyError: If no node has the given id.

        """
        return self.nodes[node_id]

    def dependencies(self, node_id: str) -> frozenset[str]:
        """Ids of the nodes the given node directly consumes."""
        return self.nodes[node_id].dependencies()

    def dependents(self, node_id: str) -> frozenset[str]:
        """Ids of the nodes that directly consume the given node."""
        return frozenset(n.id for n in self.nodes.values() if node_id in n.dependencies())

    def reachable_from(self, node_id: str) -> frozenset[str]:
        """The node itself and every node it transitively depends on."""
        visited: set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in visited or current not in self.nodes:
                continue
            visited.add(current)
            stack.extend(self.nodes[current].dependencies())
        return frozenset(visited)

    def reachable_from_result(self) -> frozenset[str]:
        """Ids of all nodes that contribute to the result node."""
        if self.result_id is None:
            return frozenset()
        return self.reachable_from(self.result_id)

    def topological_order(self) -> list[str]:
        """Return node ids with every node after the nodes it depends on.

        Raises:
            ValueError: If the graph contains a cycle.

        """
        indegree: dict[str, int] = {}
        successors: defaultdict[str, list[str]] = defaultdict(list)
        for node_id, node in self.nodes.items():
            deps = node.dependencies() & self.nodes.keys()
            indegree[node_id] = len(deps)
            for dep in deps:
                successors[dep].append(node_id)

        queue = deque(node_id for node_id, deg in indegree.items() if deg == 0)
        order: list[str] = []
        while queue:
            node_id = queue.popleft()
            order.append(node_id)
            for successor in successors[node_id]:
                indegree[successor] -= 1
                if indegree[successor] == 0:
                    queue.append(successor)

        if len(order) != len(indegree):
            msg = "Cycle detected in graph"
            raise ValueError(msg)
        return order

    def validate(self) -> list[str]:
        """Validate the graph and return a list of error messages.

        Checks for:
        - A missing result node or more than one node flagged as result
        - References to nodes that are not part of the graph
        - Cycles

        Returns:
            List of error messages. Empty list if the graph is valid.

        """
        errors: list[str] = []

        flagged = [node.id for node in self.nodes.values() if node.is_result]
        if not flagged:
            errors.append("Graph has no result node")
        elif len(flagged) > 1:
            errors.append(f"Graph has multiple result nodes: {flagged}")
        if self.result_id is not None and self.result_id not in self.nodes:
            errors.append(f"Result node '{self.result_id}' is not part of the graph")

        for node in self.nodes.values():
            missing = node.dependencies() - self.nodes.keys()
            if missing:
                errors.append(f"Node '{node.id}' references missing nodes: {sorted(missing)}")

        try:
            self.topological_order()
        except ValueError:
            errors.append("Graph contains a cycle")

        return errors

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        """Check if a node with the given id exists."""
        return node_id in self.nodes
