"""Formula compiler: lowers an arithmetic expression tree into process graph nodes.

Operators: ``-`` (subtract), ``+`` (add), ``/`` (divide), ``*`` (multiply),
``^`` (power). Function calls such as ``sqrt(x)`` invoke the catalog
operation of the same name with positional arguments.

Identifiers are resolved in this order:

1. ``true``, ``false`` and ``null`` are literals.
2. ``#name`` refers to the output of the existing node ``name``.
3. ``$label`` or ``$0`` selects an element of the first parameter of the
   innermost callback scope (only while a callback scope is active).
4. A parameter of an active callback scope with the same name.
5. Anything else is a free parameter of the graph.

An example that computes an EVI inside a callback whose first parameter
is labelled with the bands ``NIR``, ``RED`` and ``BLUE``::

    2.5 * ($NIR - $RED) / (1 + $NIR + 6 * $RED + (-7.5 * $BLUE))
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any

from ._arguments import NodeReference, is_number
from ._errors import (
    ArityViolationError,
    FormulaError,
    NonNodeResultError,
    UnknownFunctionError,
    UnknownNodeReferenceError,
    UnsupportedConstructError,
    UnsupportedLabelError,
    UnsupportedOperatorError,
)
from ._expr import Binary, FunctionCall, Group, Identifier, Number, Unary, parse_tree
from ._node import GraphNode
from ._operators import FALLBACK_OPERAND_NAMES, operation_for

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._arguments import Argument, Parameter
    from ._builder import GraphBuilder
    from ._expr import Expr

logger = logging.getLogger(__name__)

KEYWORD_LITERALS: dict[str, bool | None] = {"true": True, "false": False, "null": None}
NODE_PREFIX = "#"
ELEMENT_PREFIX = "$"

_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class NumericLabelMode(StrEnum):
    """How a ``$`` reference made of digits only (e.g. ``$0``) is interpreted."""

    INDEX = auto()  # position in the array
    LABEL = auto()  # textual label "0"
    REJECT = auto()  # not allowed


@dataclass(frozen=True, slots=True)
class CompilerOptions:
    numeric_labels: NumericLabelMode = NumericLabelMode.INDEX


class FormulaCompiler:
    """Compiles expression trees into nodes of a ``GraphBuilder``."""

    def __init__(self, builder: GraphBuilder, options: CompilerOptions | None = None) -> None:
        self.builder = builder
        self.options = options if options is not None else CompilerOptions()

    def compile(self, expr: Expr, *, mark_as_result: bool = True) -> GraphNode | Argument:
        """Compile ``expr`` and return the node computing it.

        Args:
            expr: The expression tree.
            mark_as_result: Flag the final node as the graph's result. The
                formula must then compile to a node.

        Returns:
            The final node, or the bare literal/reference when
            ``mark_as_result`` is False and no node was needed.

        Raises:
            NonNodeResultError: If ``mark_as_result`` is True and the formula
                does not invoke any operation.

        """
        value = self.lower(expr)
        if isinstance(value, NodeReference):
            node = self.builder.get_node(value.node_id)
            if mark_as_result:
                self.builder.mark_result(node)
            return node
        if mark_as_result:
            raise NonNodeResultError(value)
        return value

    def lower(self, expr: Expr) -> Argument:  # noqa: PLR0911
        """Lower one expression tree node into a literal or a reference."""
        match expr:
            case Number(value):
                return value
            case Group(inner):
                return self.lower(inner)
            case Identifier(name):
                return self.resolve_identifier(name)
            case FunctionCall(name, args):
                values = [self.lower(arg) for arg in args]
                return self._function_node(name, values)
            case Binary(operator, left, right):
                return self._operator_node(operator, self.lower(left), self.lower(right))
            case Unary(operator, operand):
                value = self.lower(operand)
                if operator != "-":
                    return value
                if is_number(value):
                    return -value  # type: ignore[operator]
                return self._operator_node("*", -1, value)
            case _:
                raise UnsupportedConstructError(type(expr).__name__)

    def resolve_identifier(self, name: str) -> Argument:
        """Resolve an identifier to a literal or a reference."""
        if name in KEYWORD_LITERALS:
            return KEYWORD_LITERALS[name]

        if name.startswith(NODE_PREFIX):
            node_id = name[len(NODE_PREFIX) :]
            if not self.builder.has_node(node_id):
                raise UnknownNodeReferenceError(node_id)
            return NodeReference(node_id)

        scope_parameters = self.builder.current_scope_parameters()
        if name.startswith(ELEMENT_PREFIX) and scope_parameters:
            # Array access always refers to the first parameter of the scope
            selector = self._element_selector(name[len(ELEMENT_PREFIX) :])
            return scope_parameters[0].element(selector)

        scope_parameter = self.builder.find_scope_parameter(name)
        if scope_parameter is not None:
            return scope_parameter.ref()

        return self.builder.declare_parameter(name).ref()

    def _element_selector(self, label: str) -> int | str:
        if not label:
            raise UnsupportedLabelError(label, "empty label")
        if label.isascii() and label.isdigit():
            match self.options.numeric_labels:
                case NumericLabelMode.INDEX:
                    return int(label)
                case NumericLabelMode.LABEL:
                    return label
                case NumericLabelMode.REJECT:
                    raise UnsupportedLabelError(label, "numeric labels are not supported")
        if _NUMERIC_RE.match(label):
            raise UnsupportedLabelError(label, "only non-negative integers can be used as an index")
        return label

    def _function_node(self, name: str, values: list[Argument]) -> NodeReference:
        definition = self.builder.lookup_operation(name)
        if definition is None:
            raise UnknownFunctionError(name)
        if len(values) > definition.arity:
            raise ArityViolationError(name, len(values), definition.arity)
        return self.builder.create_node(name, values).ref()

    def _operator_node(self, operator: str, left: Argument, right: Argument) -> NodeReference:
        operation = operation_for(operator)
        if operation is None:
            raise UnsupportedOperatorError(operator)
        definition = self.builder.lookup_operation(operation)
        if definition is None:
            raise UnsupportedOperatorError(operator, f"operation '{operation}' is not in the catalog")
        if definition.arity < 2:
            raise ArityViolationError(operation, 2, definition.arity)
        pairs = zip(definition.parameters, FALLBACK_OPERAND_NAMES, strict=False)
        first, second = (param.name or fallback for param, fallback in pairs)
        return self.builder.create_node(operation, {first: left, second: right}).ref()


def _as_expr(tree: Expr | dict[str, Any]) -> Expr:
    return parse_tree(tree) if isinstance(tree, dict) else tree


def compile_formula(
    tree: Expr | dict[str, Any],
    builder: GraphBuilder,
    *,
    mark_as_result: bool = True,
    parameters: Sequence[Parameter | str] | None = None,
    options: CompilerOptions | None = None,
) -> GraphNode | Argument:
    """Compile an expression tree into ``builder``.

    Args:
        tree: An ``Expr`` or the parser's tagged mapping.
        builder: The builder receiving the nodes.
        mark_as_result: Flag the final node as the graph's result.
        parameters: Callback parameters to make visible while compiling.
        options: Compiler options.

    Returns:
        The node computing the formula (see ``FormulaCompiler.compile``).

    """
    expr = _as_expr(tree)
    compiler = FormulaCompiler(builder, options)
    logger.debug(f"Compiling formula {expr}")
    if parameters is None:
        return compiler.compile(expr, mark_as_result=mark_as_result)
    with builder.scope(parameters):
        return compiler.compile(expr, mark_as_result=mark_as_result)


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of ``try_compile_formula``: either a value or an error."""

    value: GraphNode | Argument = None
    error: FormulaError | None = field(default=None)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def node(self) -> GraphNode | None:
        return self.value if isinstance(self.value, GraphNode) else None

    def unwrap(self) -> GraphNode | Argument:
        """Return the value, raising the stored error if compilation failed."""
        if self.error is not None:
            raise self.error
        return self.value


def try_compile_formula(
    tree: Expr | dict[str, Any],
    builder: GraphBuilder,
    *,
    mark_as_result: bool = True,
    parameters: Sequence[Parameter | str] | None = None,
    options: CompilerOptions | None = None,
) -> CompileResult:
    """Like ``compile_formula``, but report failures in the result instead of raising."""
    try:
        value = compile_formula(
            tree,
            builder,
            mark_as_result=mark_as_result,
            parameters=parameters,
            options=options,
        )
    except FormulaError as e:
        logger.debug(f"Formula compilation failed: {e}")
        return CompileResult(error=e)
    return CompileResult(value=value)


class Formula:
    """A parsed formula that can be added to a builder.

    Example:
        >>> formula = Formula({"FunctionCall": {"name": "sqrt", "args": [{"Identifier": "x"}]}})
        >>> node = formula.generate(builder)
        >>> node.operation
        'sqrt'

    """

    def __init__(self, tree: Expr | dict[str, Any], options: CompilerOptions | None = None) -> None:
        self.tree = _as_expr(tree)
        self.options = options

    def generate(
        self,
        builder: GraphBuilder,
        *,
        mark_as_result: bool = True,
        parameters: Sequence[Parameter | str] | None = None,
    ) -> GraphNode | Argument:
        """Generate the nodes for the formula and return the final node."""
        return compile_formula(
            self.tree,
            builder,
            mark_as_result=mark_as_result,
            parameters=parameters,
            options=self.options,
        )
