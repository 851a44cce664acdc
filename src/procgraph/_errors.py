"""Errors raised while building or compiling process graphs."""


class FormulaError(Exception):
    """Base class for all graph building and formula compilation errors."""


class UnsupportedConstructError(FormulaError):
    """Raised when an expression tree contains a construct the compiler does not handle."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Operation '{tag}' not supported.")


class UnsupportedOperatorError(FormulaError):
    """Raised when an operator symbol has no usable operation."""

    def __init__(self, operator: str, reason: str | None = None) -> None:
        self.operator = operator
        msg = f"Operator '{operator}' not supported"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnsupportedLabelError(FormulaError):
    """Raised when a `$` reference cannot be interpreted as an index or a label."""

    def __init__(self, label: str, reason: str) -> None:
        self.label = label
        super().__init__(f"Unsupported array label '{label}': {reason}")


class UnknownFunctionError(FormulaError):
    """Raised when a function call names an operation missing from the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Function '{name}' is not available in the operation catalog.")


class ArityViolationError(FormulaError):
    """Raised when an operation declares fewer formal parameters than required."""

    def __init__(self, operation: str, required: int, declared: int) -> None:
        self.operation = operation
        self.required = required
        self.declared = declared
        super().__init__(
            f"Operation '{operation}' must have at least {required} parameters, but declares {declared}.",
        )


class UnknownNodeReferenceError(FormulaError):
    """Raised when a node reference names a node that does not exist."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' does not exist in the graph.")


class InvalidOperationError(FormulaError):
    """Raised when a node is created for an operation absent from the catalog."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot create a node for unknown operation '{operation}'.")


class NonNodeResultError(FormulaError):
    """Raised when a formula does not compile to an operation node."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid formula specified: result {value!r} is not a process node.")


class DuplicateNodeError(FormulaError):
    """Raised when a caller-supplied node id is already taken."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node with id '{node_id}' already exists in the graph.")


class MalformedTreeError(FormulaError):
    """Raised when an expression tree node does not have the expected shape."""

    def __init__(self, data: object, reason: str) -> None:
        self.data = data
        super().__init__(f"Malformed expression tree node {data!r}: {reason}")
