"""Process graph builder and formula-to-graph compiler."""

__all__ = [
    "OPERATOR_TABLE",
    "ArityViolationError",
    "CallbackArgument",
    "CompileResult",
    "CompilerOptions",
    "DuplicateNodeError",
    "ElementReference",
    "Formula",
    "FormulaCompiler",
    "FormulaError",
    "GraphBuilder",
    "GraphNode",
    "InvalidOperationError",
    "MalformedTreeError",
    "NodeReference",
    "NonNodeResultError",
    "NumericLabelMode",
    "OperationCatalog",
    "OperationDef",
    "OperationParameter",
    "Parameter",
    "ParameterReference",
    "ProcessGraph",
    "UnknownFunctionError",
    "UnknownNodeReferenceError",
    "UnsupportedConstructError",
    "UnsupportedLabelError",
    "UnsupportedOperatorError",
    "compile_formula",
    "dump_graph",
    "load_catalog",
    "load_graph",
    "parse_tree",
    "read_graph",
    "serialize_graph",
    "try_compile_formula",
]

from ._arguments import CallbackArgument, ElementReference, NodeReference, Parameter, ParameterReference
from ._builder import GraphBuilder
from ._catalog import OperationCatalog, OperationDef, OperationParameter, load_catalog
from ._errors import (
    ArityViolationError,
    DuplicateNodeError,
    FormulaError,
    InvalidOperationError,
    MalformedTreeError,
    NonNodeResultError,
    UnknownFunctionError,
    UnknownNodeReferenceError,
    UnsupportedConstructError,
    UnsupportedLabelError,
    UnsupportedOperatorError,
)
from ._expr import parse_tree
from ._formula import (
    CompileResult,
    CompilerOptions,
    Formula,
    FormulaCompiler,
    NumericLabelMode,
    compile_formula,
    try_compile_formula,
)
from ._graph import ProcessGraph
from ._io import dump_graph, load_graph, read_graph, serialize_graph
from ._node import GraphNode
from ._operators import OPERATOR_TABLE
