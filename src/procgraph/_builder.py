"""Graph builder: owns the nodes, parameters and callback scopes of a graph in progress."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from ._arguments import (
    CallbackArgument,
    ElementReference,
    NodeReference,
    Parameter,
    ParameterReference,
    collect_node_references,
    is_literal,
)
from ._errors import (
    ArityViolationError,
    DuplicateNodeError,
    InvalidOperationError,
    UnknownNodeReferenceError,
)
from ._graph import ProcessGraph
from ._node import GraphNode

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from ._arguments import Argument
    from ._catalog import OperationCatalog, OperationDef

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Symbol table and node store for one process graph.

    A builder is bound to an operation catalog and, for callback graphs, to
    the parent builder whose node receives the callback. Builders are not
    thread-safe; use one builder per compilation.

    Example:
        >>> builder = GraphBuilder(catalog)
        >>> x = builder.declare_parameter("x")
        >>> node = builder.create_node("absolute", {"x": x})
        >>> builder.mark_result(node)
        >>> builder.result_node_id()
        'absolute1'

    """

    def __init__(self, catalog: OperationCatalog, parent: GraphBuilder | None = None) -> None:
        self.catalog = catalog
        self.parent = parent
        self._nodes: dict[str, GraphNode] = {}
        self._parameters: dict[str, Parameter] = {}
        self._scopes: list[tuple[Parameter, ...]] = []
        self._id_counters: dict[str, int] = {}
        self._result_id: str | None = None

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> Mapping[str, GraphNode]:
        """Read-only view of the nodes created so far."""
        return MappingProxyType(self._nodes)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> GraphNode:
        """Get a node by id.

        Raises:
            UnknownNodeReferenceError: If the node does not exist.

        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeReferenceError(node_id) from None

    def lookup_operation(self, name: str) -> OperationDef | None:
        """Look up an operation in the bound catalog."""
        return self.catalog.get(name)

    def create_node(
        self,
        operation: str,
        arguments: Mapping[str, object] | Sequence[object] = (),
        *,
        node_id: str | None = None,
        description: str | None = None,
    ) -> GraphNode:
        """Create a node invoking ``operation`` and store it in the graph.

        Args:
            operation: Name of an operation in the catalog.
            arguments: Arguments by formal parameter name, or a positional
                sequence bound to the catalog's formal parameters in order.
            node_id: Id to use instead of a generated one.
            description: Optional description of the node.

        Returns:
            The created node.

        Raises:
            InvalidOperationError: If the operation is not in the catalog.
            ArityViolationError: If more positional arguments are given than
                the operation declares.
            UnknownNodeReferenceError: If an argument references a node that
                is not part of this graph.
            DuplicateNodeError: If ``node_id`` is already taken.

        """
        definition = self.lookup_operation(operation)
        if definition is None:
            raise InvalidOperationError(operation)

        if isinstance(arguments, Mapping):
            named = {str(name): value for name, value in arguments.items()}
        else:
            values = list(arguments)
            if len(values) > definition.arity:
                raise ArityViolationError(operation, len(values), definition.arity)
            named = dict(zip(definition.parameter_names, values, strict=False))

        bound = {name: self._coerce(value) for name, value in named.items()}
        for argument in bound.values():
            for ref in collect_node_references(argument):
                if ref.node_id not in self._nodes:
                    raise UnknownNodeReferenceError(ref.node_id)

        if node_id is None:
            node_id = self._generate_id(operation)
        elif node_id in self._nodes:
            raise DuplicateNodeError(node_id)

        node = GraphNode(id=node_id, operation=operation, arguments=bound, description=description)
        self._nodes[node_id] = node
        logger.debug(f"Created node '{node_id}' ({operation}) with arguments {bound}")
        return node

    def _generate_id(self, operation: str) -> str:
        counter = self._id_counters.get(operation, 0)
        while True:
            counter += 1
            candidate = f"{operation}{counter}"
            if candidate not in self._nodes:
                self._id_counters[operation] = counter
                return candidate

    def _coerce(self, value: object) -> Argument:
        match value:
            case GraphNode():
                return value.ref()
            case Parameter():
                return value.ref()
            case NodeReference() | ParameterReference() | ElementReference() | CallbackArgument():
                return value
            case ProcessGraph():
                return CallbackArgument(value)
            case str():
                return value
            case list() | tuple():
                return tuple(self._coerce(item) for item in value)
            case _ if is_literal(value):
                return value  # type: ignore[return-value]
            case _:
                msg = f"Unsupported argument value of type '{type(value).__name__}': {value!r}"
                raise TypeError(msg)

    def mark_result(self, node: GraphNode | NodeReference | str) -> None:
        """Flag a node as the graph's result, clearing any previous flag."""
        match node:
            case GraphNode():
                node_id = node.id
            case NodeReference():
                node_id = node.node_id
            case _:
                node_id = node
        target = self.get_node(node_id)
        if self._result_id is not None and self._result_id != node_id:
            self._nodes[self._result_id].is_result = False
        target.is_result = True
        self._result_id = node_id
        logger.debug(f"Marked node '{node_id}' as result")

    def result_node_id(self) -> str | None:
        """Id of the node flagged as result, or None if no node is flagged."""
        return self._result_id

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    @property
    def parameters(self) -> tuple[Parameter, ...]:
        """Free parameters in declaration order."""
        return tuple(self._parameters.values())

    def declare_parameter(self, parameter: str | Parameter, description: str = "") -> Parameter:
        """Declare a free parameter, reusing an existing one with the same name."""
        name = parameter.name if isinstance(parameter, Parameter) else parameter
        existing = self._parameters.get(name)
        if existing is not None:
            return existing
        declared = parameter if isinstance(parameter, Parameter) else Parameter(name, description)
        self._parameters[name] = declared
        logger.debug(f"Declared parameter '{name}'")
        return declared

    # -------------------------------------------------------------------------
    # Callback scopes
    # -------------------------------------------------------------------------

    def push_scope(self, parameters: Sequence[Parameter | str]) -> None:
        """Activate a callback scope. Must be balanced by ``pop_scope``."""
        scope = tuple(p if isinstance(p, Parameter) else Parameter(p) for p in parameters)
        self._scopes.append(scope)
        logger.debug(f"Pushed callback scope {[p.name for p in scope]} (depth {len(self._scopes)})")

    def pop_scope(self) -> tuple[Parameter, ...]:
        """Deactivate the innermost callback scope and return its parameters."""
        if not self._scopes:
            msg = "No callback scope is active."
            raise RuntimeError(msg)
        scope = self._scopes.pop()
        logger.debug(f"Popped callback scope {[p.name for p in scope]} (depth {len(self._scopes)})")
        return scope

    @contextmanager
    def scope(self, parameters: Sequence[Parameter | str]) -> Iterator[tuple[Parameter, ...]]:
        """Context manager activating a callback scope for its body.

        The scope is popped on every exit path, so a failed compilation
        leaves the scope stack as it found it.
        """
        self.push_scope(parameters)
        try:
            yield self._scopes[-1]
        finally:
            self.pop_scope()

    @property
    def scope_depth(self) -> int:
        return len(self._scopes)

    def current_scope_parameters(self) -> tuple[Parameter, ...]:
        """Parameters of the innermost active scope (empty when none is active).

        A child builder without scopes of its own sees the innermost scope
        of its parent.
        """
        if self._scopes:
            return self._scopes[-1]
        if self.parent is not None:
            return self.parent.current_scope_parameters()
        return ()

    def find_scope_parameter(self, name: str) -> Parameter | None:
        """Find a callback parameter by name, searching innermost scopes first."""
        for scope in reversed(self._scopes):
            for parameter in scope:
                if parameter.name == name:
                    return parameter
        if self.parent is not None:
            return self.parent.find_scope_parameter(name)
        return None

    def callback(self, parameters: Sequence[Parameter | str]) -> GraphBuilder:
        """Create a child builder for a callback graph receiving ``parameters``."""
        child = GraphBuilder(self.catalog, parent=self)
        child.push_scope(parameters)
        return child

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_graph(self) -> ProcessGraph:
        """Freeze the current state into a ProcessGraph."""
        return ProcessGraph(
            nodes={node_id: replace(node) for node_id, node in self._nodes.items()},
            result_id=self._result_id,
            parameters=self.parameters,
        )

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
