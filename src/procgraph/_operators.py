"""Mapping from formula operators to catalog operations."""

from types import MappingProxyType

# Every mapped operation takes its two operands as its first two formal parameters.
OPERATOR_TABLE: MappingProxyType[str, str] = MappingProxyType(
    {
        "-": "subtract",
        "+": "add",
        "/": "divide",
        "*": "multiply",
        "^": "power",
    },
)

# Names used when a catalog entry leaves its operand parameters unnamed.
FALLBACK_OPERAND_NAMES = ("x", "y")


def operation_for(operator: str) -> str | None:
    """Get the catalog operation name for an operator symbol, or None if unmapped."""
    return OPERATOR_TABLE.get(operator)
