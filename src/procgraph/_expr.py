"""Expression tree produced by an external formula parser.

Each expression kind is its own frozen dataclass and ``Expr`` is the closed
union over them. ``parse_tree`` converts the parser's tagged output, where
each tree node is a mapping with a single key naming its kind, e.g.::

    {"Binary": {"operator": "+", "left": {"Number": "1"}, "right": {"Identifier": "x"}}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

from ._errors import MalformedTreeError, UnsupportedConstructError


@dataclass(slots=True, frozen=True)
class Number:
    value: int | float


@dataclass(slots=True, frozen=True)
class Identifier:
    name: str


@dataclass(slots=True, frozen=True)
class Group:
    """A parenthesized expression."""

    expression: Expr


@dataclass(slots=True, frozen=True)
class FunctionCall:
    name: str
    args: tuple[Expr, ...] = ()


@dataclass(slots=True, frozen=True)
class Binary:
    operator: str
    left: Expr
    right: Expr


@dataclass(slots=True, frozen=True)
class Unary:
    operator: str
    operand: Expr


Expr: TypeAlias = Number | Identifier | Group | FunctionCall | Binary | Unary


def parse_number(text: str | int | float) -> int | float:
    """Convert a number token, keeping integral tokens as ``int``."""
    if isinstance(text, int | float) and not isinstance(text, bool):
        return text
    s = str(text).strip()
    try:
        return int(s)
    except ValueError:
        return float(s)


def parse_tree(data: Any) -> Expr:
    """Convert a tagged expression tree into ``Expr`` values.

    Raises:
        UnsupportedConstructError: If a tree node has an unknown tag.
        MalformedTreeError: If a tree node is not a single-key mapping or
            its body lacks a required field.

    """
    if not isinstance(data, dict) or len(data) != 1:
        raise MalformedTreeError(data, "expected a mapping with exactly one key")

    ((tag, body),) = data.items()
    try:
        return _parse_body(str(tag), body)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise MalformedTreeError(data, f"invalid '{tag}' body ({type(e).__name__}: {e})") from e


def _parse_body(tag: str, body: Any) -> Expr:
    match tag:
        case "Number":
            return Number(parse_number(body))
        case "Identifier":
            return Identifier(str(body))
        case "Expression":
            return Group(parse_tree(body))
        case "FunctionCall":
            return FunctionCall(
                name=body["name"],
                args=tuple(parse_tree(arg) for arg in body.get("args", ())),
            )
        case "Binary":
            return Binary(
                operator=body["operator"],
                left=parse_tree(body["left"]),
                right=parse_tree(body["right"]),
            )
        case "Unary":
            return Unary(operator=body["operator"], operand=parse_tree(body["expression"]))
        case _:
            raise UnsupportedConstructError(tag)
