"""Tree-walking interpreter for the int/boolean subset of the language."""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from ezlang.diagnostics import Diagnostic, DiagnosticError
from ezlang.semantic import SemanticModel
from ezlang.syntax import (
    Expression,
    ExpressionStatement,
    FriendFunctionCall,
    FunctionCall,
    FunctionDeclaration,
    Identifier,
    Literal,
    LiteralKind,
    Primary,
    Program,
    ReturnStatement,
    VariableDeclaration,
)
from ezlang.typesys import SimpleType
from ezlang.util import StrPath

FriendCaller = Callable[[Path, str, Sequence[int]], int]

_MAX_FRIEND_ARGS = 4
_BUILTIN_PRINT = frozenset({"print", "printf"})
_ARITHMETIC = frozenset({"+", "-", "*", "/"})
_EQUALITY = frozenset({"==", "!="})
_RELATIONAL = frozenset({">", "<", ">=", "<="})
_LOGICAL = frozenset({"&&", "||"})
_DECLARABLE = {"int": SimpleType.INT, "boolean": SimpleType.BOOL}


@dataclass(frozen=True)
class Value:
    """A runtime value; booleans are held as 0 or 1 in ``int_value``."""

    type: SimpleType = SimpleType.UNKNOWN
    int_value: int = 0
    string_value: str = ""

    @classmethod
    def of_int(cls, value: int) -> Value:
        return cls(SimpleType.INT, value)

    @classmethod
    def of_bool(cls, value: bool) -> Value:
        return cls(SimpleType.BOOL, 1 if value else 0)

    @classmethod
    def of_string(cls, value: str) -> Value:
        return cls(SimpleType.STRING, 0, value)

    @classmethod
    def void(cls) -> Value:
        return cls(SimpleType.VOID, 0)

    def __str__(self) -> str:
        if self.type is SimpleType.BOOL:
            return "true" if self.int_value else "false"
        if self.type is SimpleType.STRING:
            return self.string_value
        return str(self.int_value)


class _EvaluationFailed(Exception):
    """Internal signal: a diagnostic was recorded and evaluation stops."""


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _no_friend_caller(lib_path: Path, symbol: str, args: Sequence[int]) -> int:
    """Default caller used when no way of calling friend libraries is supplied."""
    raise OSError(f"dlopen failed: no friend caller configured for '{lib_path}'")


class SimpleInterpreter:
    """Runs top-level declarations, expressions and friend calls of a program."""

    def __init__(
        self,
        output: TextIO | None = None,
        libraries: Mapping[str, StrPath] | None = None,
        verbose: bool = False,
        model: SemanticModel | None = None,
        friend_caller: FriendCaller | None = None,
    ) -> None:
        self._output = output if output is not None else sys.stdout
        self._libraries = {alias: Path(path) for alias, path in (libraries or {}).items()}
        self._verbose = verbose
        self._model = model if model is not None else SemanticModel()
        self._friend_caller = friend_caller or _no_friend_caller
        self._functions: dict[str, FunctionDeclaration] = {}
        self._frames: list[dict[str, Value]] = [{}]
        self._diagnostics: list[Diagnostic] = []

    @property
    def globals(self) -> dict[str, Value]:
        """The global variables, in declaration order."""
        return dict(self._frames[0])

    def execute(self, program: Program) -> None:
        """Run a program; raises DiagnosticError if any problem was found."""
        self._diagnostics = []
        for stmt in program.statements:
            if isinstance(stmt, FunctionDeclaration):
                self._functions[stmt.name] = stmt

        for stmt in program.statements:
            match stmt:
                case VariableDeclaration():
                    self._handle_variable_declaration(stmt)
                case ExpressionStatement():
                    self._handle_expression_statement(stmt)
                case FriendFunctionCall():
                    self._handle_friend_call(stmt)
                case ReturnStatement():
                    self._report(stmt.line, "return only valid inside functions")

        if self._diagnostics:
            raise DiagnosticError(self._diagnostics)

    def print_variables(self) -> None:
        """Write the global variables and their values to the output."""
        globals_ = self._frames[0]
        if not globals_:
            self._output.write("No variables declared.\n")
            return
        self._output.write("Variable state:\n")
        for name, value in globals_.items():
            self._output.write(f"  {name} = {value}\n")

    # -- reporting -----------------------------------------------------

    def _report(self, line: int, message: str) -> None:
        self._diagnostics.append(Diagnostic(line, message))

    def _fail(self, line: int, message: str) -> _EvaluationFailed:
        self._report(line, message)
        return _EvaluationFailed()

    # -- statements ----------------------------------------------------

    def _handle_variable_declaration(self, decl: VariableDeclaration) -> None:
        if decl.type_name is None:
            self._report(decl.line, "missing type in variable declaration")
            return
        declared = _DECLARABLE.get(decl.type_name)
        if declared is None:
            self._report(
                decl.line,
                "only 'int' and 'boolean' variables are supported in interpreter",
            )
            return

        frame = self._frames[-1]
        if decl.name in frame:
            self._report(decl.line, f"variable '{decl.name}' already declared")
            return

        value = Value.of_bool(False) if declared is SimpleType.BOOL else Value.of_int(0)
        if decl.initializer is not None:
            try:
                evaluated = self._evaluate_expression(decl.initializer)
            except _EvaluationFailed:
                return
            if evaluated.type is not declared:
                self._report(
                    decl.line,
                    f"cannot assign expression of type '{evaluated.type}' "
                    f"to variable of type '{decl.type_name}'",
                )
                return
            value = evaluated
        frame.setdefault(decl.name, value)

    def _handle_expression_statement(self, stmt: ExpressionStatement) -> None:
        if stmt.expression is None:
            self._report(stmt.line, "missing expression")
            return
        try:
            result = self._evaluate_expression(stmt.expression)
        except _EvaluationFailed:
            return
        if self._verbose:
            self._output.write(f"=> {result}\n")

    def _handle_friend_call(self, call: FriendFunctionCall) -> None:
        try:
            result = self._call_friend(call)
        except _EvaluationFailed:
            return
        if self._verbose:
            self._output.write(f"=> {result}\n")

    # -- expressions ---------------------------------------------------

    def _evaluate_expression(self, expr: Expression) -> Value:
        if not expr.operands:
            raise self._fail(expr.line, "empty expression")
        current = self._evaluate_primary(expr.operands[0])
        for op, operand in zip(expr.operators, expr.operands[1:]):
            rhs = self._evaluate_primary(operand)
            current = self._apply(op, current, rhs, expr.line)
        return current

    def _apply(self, op: str, lhs: Value, rhs: Value, line: int) -> Value:
        if op in _ARITHMETIC:
            if lhs.type is not SimpleType.INT or rhs.type is not SimpleType.INT:
                raise self._fail(line, f"arithmetic operator '{op}' expects int operands")
            a, b = lhs.int_value, rhs.int_value
            if op == "/":
                if b == 0:
                    raise self._fail(line, "division by zero")
                return Value.of_int(_truncating_div(a, b))
            if op == "+":
                return Value.of_int(a + b)
            if op == "-":
                return Value.of_int(a - b)
            return Value.of_int(a * b)
        if op in _EQUALITY:
            if lhs.type is not rhs.type:
                self._report(line, "comparison between mismatched types")
            equal = lhs.int_value == rhs.int_value
            return Value.of_bool(equal if op == "==" else not equal)
        if op in _RELATIONAL:
            if lhs.type is not SimpleType.INT or rhs.type is not SimpleType.INT:
                raise self._fail(line, f"relational operator '{op}' expects int operands")
            a, b = lhs.int_value, rhs.int_value
            result = {">": a > b, "<": a < b, ">=": a >= b, "<=": a <= b}[op]
            return Value.of_bool(result)
        if op in _LOGICAL:
            if lhs.type is not SimpleType.BOOL or rhs.type is not SimpleType.BOOL:
                raise self._fail(line, f"logical operator '{op}' expects boolean operands")
            if op == "&&":
                return Value.of_bool(bool(lhs.int_value) and bool(rhs.int_value))
            return Value.of_bool(bool(lhs.int_value) or bool(rhs.int_value))
        raise self._fail(line, f"operator '{op}' not supported in interpreter")

    def _evaluate_primary(self, primary: Primary) -> Value:
        match primary:
            case Identifier(name=name, line=line):
                for frame in reversed(self._frames):
                    if name in frame:
                        return frame[name]
                raise self._fail(line, f"unknown identifier '{name}'")
            case Literal():
                return self._evaluate_literal(primary)
            case FunctionCall():
                return self._evaluate_call(primary)
            case FriendFunctionCall():
                return Value.of_int(self._call_friend(primary))
            case Expression():
                return self._evaluate_expression(primary)
        raise self._fail(getattr(primary, "line", 0), "unsupported primary expression")

    def _evaluate_literal(self, literal: Literal) -> Value:
        if literal.kind is LiteralKind.NUMBER:
            if "." in literal.text:
                raise self._fail(literal.line, "floating point literals not supported yet")
            return Value.of_int(int(literal.text))
        if literal.kind is LiteralKind.BOOLEAN:
            return Value.of_bool(literal.text == "true")
        if literal.kind is LiteralKind.STRING:
            text = literal.text
            if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
                text = text[1:-1]
            return Value.of_string(text)
        raise self._fail(
            literal.line, "only numeric, boolean, and string literals are supported"
        )

    def _evaluate_call(self, call: FunctionCall) -> Value:
        if call.name in _BUILTIN_PRINT:
            rendered = []
            for argument in call.arguments:
                try:
                    rendered.append(str(self._evaluate_expression(argument)))
                except _EvaluationFailed:
                    rendered.append("<error>")
            self._output.write(" ".join(rendered) + "\n")
            return Value.of_int(0)

        decl = self._functions.get(call.name)
        if decl is None:
            raise self._fail(call.line, f"unknown function '{call.name}'")
        args = [self._evaluate_expression(argument) for argument in call.arguments]
        return self._execute_function(call.name, decl, args)

    def _call_friend(self, call: FriendFunctionCall) -> int:
        lib_path = self._libraries.get(call.alias)
        if lib_path is None:
            raise self._fail(call.line, f"no library found for alias '{call.alias}'")

        args = []
        for argument in call.arguments:
            value = self._evaluate_expression(argument)
            if value.type is not SimpleType.INT:
                raise self._fail(
                    argument.line, "friend calls currently only support int arguments"
                )
            args.append(_to_int32(value.int_value))

        if len(args) > _MAX_FRIEND_ARGS:
            raise self._fail(call.line, "only up to 4 int arguments supported")
        try:
            return self._friend_caller(lib_path, call.function, args)
        except OSError as exc:
            raise self._fail(call.line, str(exc)) from exc

    # -- user functions ------------------------------------------------

    def _execute_function(
        self, name: str, decl: FunctionDeclaration, args: Sequence[Value]
    ) -> Value:
        sig = self._model.functions.get(name)
        if sig is None:
            raise self._fail(decl.line, f"no signature information for function '{name}'")
        if len(args) != len(sig.params):
            raise self._fail(
                decl.line, f"function '{name}' expects {len(sig.params)} argument(s)"
            )
        for position, (param, arg) in enumerate(zip(sig.params, args), start=1):
            if param.type is not SimpleType.UNKNOWN and arg.type is not param.type:
                raise self._fail(
                    decl.line,
                    f"argument {position} type mismatch: expected '{param.type}' "
                    f"got '{arg.type}'",
                )

        frame: dict[str, Value] = {}
        for param, arg in zip(sig.params, args):
            frame.setdefault(param.name, arg)

        return_value: Value | None = None
        self._frames.append(frame)
        try:
            for stmt in decl.body:
                match stmt:
                    case ReturnStatement(expression=None):
                        return_value = Value.void()
                        break
                    case ReturnStatement(expression=expression):
                        try:
                            return_value = self._evaluate_expression(expression)
                        except _EvaluationFailed:
                            return_value = None
                        break
                    case VariableDeclaration():
                        self._handle_variable_declaration(stmt)
                    case ExpressionStatement():
                        self._handle_expression_statement(stmt)
                    case FriendFunctionCall():
                        self._handle_friend_call(stmt)
                    case _:
                        continue
                if self._diagnostics:
                    break
        finally:
            self._frames.pop()

        if sig.return_type is SimpleType.VOID:
            return Value.void()
        if return_value is None:
            raise self._fail(decl.line, f"function '{name}' did not return a value")
        if return_value.type is not sig.return_type:
            raise self._fail(
                decl.line,
                f"function '{name}' returned '{return_value.type}' "
                f"but expected '{sig.return_type}'",
            )
        return return_value