"""Argument values bound to the formal parameters of a graph node."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from ._graph import ProcessGraph

LiteralValue: TypeAlias = int | float | bool | None


@dataclass(slots=True, frozen=True)
class Parameter:
    """A named parameter of a process graph.

    Free parameters are declared by the builder when a formula uses an
    unknown identifier; callback parameters are supplied by the operation
    that runs the callback (e.g. the array of band values for a reducer).
    """

    name: str
    description: str = field(default="", compare=False)

    def ref(self) -> ParameterReference:
        return ParameterReference(self.name)

    def element(self, index_or_label: int | str) -> ElementReference:
        """Reference one element of this parameter by position or label."""
        return ElementReference(parameter=self.name, selector=index_or_label)


@dataclass(slots=True, frozen=True)
class NodeReference:
    """Reference to the output of another node (``from_node``)."""

    node_id: str

    def __str__(self) -> str:
        return f"#{self.node_id}"


@dataclass(slots=True, frozen=True)
class ParameterReference:
    """Reference to a parameter by name (``from_parameter``)."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True, frozen=True)
class ElementReference:
    """Reference to an element of a parameter, selected by index or label.

    An ``int`` selector is a position in the array, a ``str`` selector is a
    label of a labelled array.
    """

    parameter: str
    selector: int | str

    @property
    def is_positional(self) -> bool:
        return isinstance(self.selector, int)

    def __str__(self) -> str:
        return f"{self.parameter}[{self.selector!r}]"


@dataclass(slots=True, frozen=True)
class CallbackArgument:
    """A nested process graph passed as an argument, e.g. a reducer body."""

    graph: ProcessGraph


Reference: TypeAlias = NodeReference | ParameterReference | ElementReference
Argument: TypeAlias = LiteralValue | str | Reference | CallbackArgument | tuple["Argument", ...]


def is_literal(value: object) -> bool:
    """Check whether a value is a literal number, boolean or null."""
    return value is None or isinstance(value, bool | int | float)


def is_number(value: object) -> bool:
    """Check whether a value is a literal number (booleans excluded)."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def collect_node_references(argument: Argument) -> list[NodeReference]:
    """Collect node references in an argument, descending into arrays.

    Callback graphs are separate graphs and are not descended into.
    """
    match argument:
        case NodeReference():
            return [argument]
        case tuple():
            refs: list[NodeReference] = []
            for item in argument:
                refs.extend(collect_node_references(item))
            return refs
        case _:
            return []
