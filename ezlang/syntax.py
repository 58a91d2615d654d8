"""Syntax tree of an EZ program, as produced by the parser."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


def _freeze(obj: object, name: str) -> None:
    object.__setattr__(obj, name, tuple(getattr(obj, name)))


class LiteralKind(Enum):
    """The lexical kind of a literal token."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


@dataclass(frozen=True)
class Literal:
    """A literal token; ``text`` is exactly as written, quotes included."""

    kind: LiteralKind
    text: str
    line: int = 0

    def _children(self) -> tuple:
        return ()


@dataclass(frozen=True)
class Identifier:
    """A reference to a variable by name."""

    name: str
    line: int = 0

    def _children(self) -> tuple:
        return ()


@dataclass(frozen=True)
class FunctionCall:
    """A call of a function declared in the program or built in."""

    name: str
    arguments: tuple[Expression, ...] = ()
    line: int = 0

    def __post_init__(self) -> None:
        _freeze(self, "arguments")

    def _children(self) -> tuple:
        return self.arguments


@dataclass(frozen=True)
class FriendFunctionCall:
    """A call ``alias.function(...)`` into a friend module."""

    alias: str
    function: str
    arguments: tuple[Expression, ...] = ()
    line: int = 0

    def __post_init__(self) -> None:
        _freeze(self, "arguments")

    def _children(self) -> tuple:
        return self.arguments


@dataclass(frozen=True)
class Expression:
    """Operands joined left to right by binary operators, without precedence."""

    operands: tuple[Primary, ...]
    operators: tuple[str, ...] = ()
    line: int = 0

    def __post_init__(self) -> None:
        _freeze(self, "operands")
        _freeze(self, "operators")
        expected = max(len(self.operands) - 1, 0)
        if len(self.operators) != expected:
            raise ValueError(
                "an expression needs exactly one operator between each pair of operands"
            )

    def _children(self) -> tuple:
        return self.operands


@dataclass(frozen=True)
class Parameter:
    """A function parameter; ``type_name`` is None when no type was written."""

    name: str
    type_name: str | None
    line: int = 0

    def _children(self) -> tuple:
        return ()


@dataclass(frozen=True)
class VariableDeclaration:
    """``[modifier] type name [= expression];``"""

    type_name: str | None
    name: str
    initializer: Expression | None = None
    access_modifier: str | None = None
    line: int = 0

    def _children(self) -> tuple:
        return (self.initializer,) if self.initializer is not None else ()


@dataclass(frozen=True)
class ExpressionStatement:
    """An expression evaluated for its effect or value."""

    expression: Expression | None
    line: int = 0

    def _children(self) -> tuple:
        return (self.expression,) if self.expression is not None else ()


@dataclass(frozen=True)
class ReturnStatement:
    """``return [expression];``"""

    expression: Expression | None = None
    line: int = 0

    def _children(self) -> tuple:
        return (self.expression,) if self.expression is not None else ()


@dataclass(frozen=True)
class FunctionDeclaration:
    """A function with its parameters and body statements."""

    name: str
    return_type: str | None
    parameters: tuple[Parameter, ...] = ()
    body: tuple[Statement, ...] = ()
    access_modifier: str | None = None
    line: int = 0

    def __post_init__(self) -> None:
        _freeze(self, "parameters")
        _freeze(self, "body")

    def _children(self) -> tuple:
        return self.parameters + self.body


@dataclass(frozen=True)
class EnvDeclaration:
    """``doing <identifier>;``: the environment the program targets."""

    identifier: str | None
    line: int = 0

    def _children(self) -> tuple:
        return ()


@dataclass(frozen=True)
class FriendStatement:
    """Declares a friend module: its source, its language and an alias."""

    source_token: str | None
    language: str | None
    alias: str | None
    line: int = 0

    def _children(self) -> tuple:
        return ()


@dataclass(frozen=True)
class Program:
    """A whole source file as a sequence of top-level statements."""

    statements: tuple[Statement, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "statements")

    def _children(self) -> tuple:
        return self.statements

    def walk(self) -> Iterator[Node]:
        """Yield every node of the tree in source order, parents first."""
        stack: list = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children()))


Primary = Identifier | Literal | FunctionCall | FriendFunctionCall | Expression
Statement = (
    VariableDeclaration
    | ExpressionStatement
    | ReturnStatement
    | FunctionDeclaration
    | FriendFunctionCall
    | EnvDeclaration
    | FriendStatement
)
Node = Primary | Parameter | Statement | Program