"""Graph node: one operation invocation with named arguments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._arguments import NodeReference, collect_node_references

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._arguments import Argument


@dataclass(slots=True)
class GraphNode:
    """A node of a process graph.

    Attributes:
        id: Unique identifier of the node within its graph.
        operation: Name of the operation the node invokes.
        arguments: Mapping from formal parameter name to argument value.
        description: Optional free-text description.
        is_result: Whether this node is the graph's result node. This is
            the only attribute that changes after creation.

    """

    id: str
    operation: str
    arguments: Mapping[str, Argument] = field(default_factory=dict)
    description: str | None = None
    is_result: bool = False

    def ref(self) -> NodeReference:
        return NodeReference(self.id)

    def dependencies(self) -> frozenset[str]:
        """Ids of the nodes whose output this node consumes."""
        return frozenset(
            ref.node_id for argument in self.arguments.values() for ref in collect_node_references(argument)
        )

    def __hash__(self) -> int:
        """Hash based on the node ID."""
        return hash(self.id)
