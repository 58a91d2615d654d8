"""Semantic checks: typing, access control and returns."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ezlang.diagnostics import Diagnostic
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
from ezlang.typesys import SimpleType, is_boolean, is_numeric


@dataclass(frozen=True)
class VariableInfo:
    type: SimpleType = SimpleType.UNKNOWN
    line: int = 0


@dataclass(frozen=True)
class FunctionParam:
    name: str
    type: SimpleType = SimpleType.UNKNOWN
    line: int = 0


@dataclass
class FunctionInfo:
    return_type: SimpleType = SimpleType.UNKNOWN
    params: list[FunctionParam] = field(default_factory=list)
    line: int = 0


@dataclass
class SemanticModel:
    """Types of the global variables and signatures of the functions."""

    globals: dict[str, VariableInfo] = field(default_factory=dict)
    functions: dict[str, FunctionInfo] = field(default_factory=dict)


_TYPE_NAMES = {
    "int": SimpleType.INT,
    "boolean": SimpleType.BOOL,
    "void": SimpleType.VOID,
    "string": SimpleType.STRING,
}

_LITERAL_TYPES = {
    LiteralKind.NUMBER: SimpleType.INT,
    LiteralKind.BOOLEAN: SimpleType.BOOL,
    LiteralKind.STRING: SimpleType.STRING,
}

_ARITHMETIC = frozenset({"+", "-", "*", "/"})
_EQUALITY = frozenset({"==", "!="})
_RELATIONAL = frozenset({">", "<", ">=", "<="})
_LOGICAL = frozenset({"&&", "||"})

_VARIADIC = frozenset({"printf"})

Variables = Mapping[str, VariableInfo]
Functions = Mapping[str, FunctionInfo]


class _Checker:
    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def report(self, line: int, message: str) -> None:
        self.diagnostics.append(Diagnostic(line, message))

    def parse_type(self, type_name: str | None, line: int) -> SimpleType:
        if type_name is None:
            return SimpleType.UNKNOWN
        found = _TYPE_NAMES.get(type_name)
        if found is None:
            self.report(line, f"type '{type_name}' is not supported yet")
            return SimpleType.UNKNOWN
        return found

    def infer_expression(self, expr: Expression, variables: Variables, functions: Functions) -> SimpleType:
        if not expr.operands:
            self.report(expr.line, "empty expression")
            return SimpleType.UNKNOWN

        current = self.infer_primary(expr.operands[0], variables, functions)
        for op, operand in zip(expr.operators, expr.operands[1:]):
            rhs = self.infer_primary(operand, variables, functions)
            if op in _ARITHMETIC:
                if not is_numeric(current) or not is_numeric(rhs):
                    self.report(expr.line, f"arithmetic operator '{op}' expects int operands")
                current = SimpleType.INT
            elif op in _EQUALITY:
                if (
                    current is not SimpleType.UNKNOWN
                    and rhs is not SimpleType.UNKNOWN
                    and current is not rhs
                ):
                    self.report(expr.line, "comparison between mismatched types")
                current = SimpleType.BOOL
            elif op in _RELATIONAL:
                if not is_numeric(current) or not is_numeric(rhs):
                    self.report(expr.line, f"relational operator '{op}' expects int operands")
                current = SimpleType.BOOL
            elif op in _LOGICAL:
                if not is_boolean(current) or not is_boolean(rhs):
                    self.report(expr.line, f"logical operator '{op}' expects boolean operands")
                current = SimpleType.BOOL
            else:
                self.report(expr.line, f"operator '{op}' not supported yet")
                return SimpleType.UNKNOWN
        return current

    def infer_primary(self, primary: Primary, variables: Variables, functions: Functions) -> SimpleType:
        match primary:
            case Identifier(name=name, line=line):
                info = variables.get(name)
                if info is None:
                    self.report(line, f"unknown identifier '{name}'")
                    return SimpleType.UNKNOWN
                return info.type
            case Literal(kind=kind, line=line):
                found = _LITERAL_TYPES.get(kind)
                if found is None:
                    self.report(line, "literal type not supported here")
                    return SimpleType.UNKNOWN
                return found
            case FunctionCall():
                return self.infer_call(primary, variables, functions)
            case FriendFunctionCall():
                self.check_friend_arguments(primary, variables, functions)
                return SimpleType.INT
            case Expression():
                return self.infer_expression(primary, variables, functions)
        self.report(getattr(primary, "line", 0), "unsupported primary expression")
        return SimpleType.UNKNOWN

    def infer_call(self, call: FunctionCall, variables: Variables, functions: Functions) -> SimpleType:
        sig = functions.get(call.name)
        if sig is None:
            self.report(call.line, f"unknown function '{call.name}'")
            return SimpleType.UNKNOWN
        variadic = call.name in _VARIADIC
        if not variadic and len(call.arguments) != len(sig.params):
            self.report(
                call.line,
                f"function '{call.name}' expects {len(sig.params)} argument(s)",
            )
        for position, argument in enumerate(call.arguments):
            arg_type = self.infer_expression(argument, variables, functions)
            if variadic or position >= len(sig.params):
                continue
            expected = sig.params[position].type
            if (
                arg_type is not SimpleType.UNKNOWN
                and expected is not SimpleType.UNKNOWN
                and arg_type is not expected
            ):
                self.report(
                    argument.line,
                    f"argument {position + 1} type mismatch: expected '{expected}' got '{arg_type}'",
                )
        return sig.return_type

    def check_friend_arguments(
        self, call: FriendFunctionCall, variables: Variables, functions: Functions
    ) -> None:
        for argument in call.arguments:
            arg_type = self.infer_expression(argument, variables, functions)
            if arg_type not in (SimpleType.UNKNOWN, SimpleType.INT):
                self.report(argument.line, "friend calls currently only support int arguments")

    def check_function(
        self,
        info: FunctionInfo,
        decl: FunctionDeclaration,
        global_vars: Variables,
        functions: Functions,
    ) -> None:
        local_vars: dict[str, VariableInfo] = {}
        for param in info.params:
            local_vars.setdefault(param.name, VariableInfo(param.type, param.line))

        # Globals take precedence over same-named locals in lookups.
        scope = dict(global_vars)
        for name, var in local_vars.items():
            scope.setdefault(name, var)

        saw_return = False
        for stmt in decl.body:
            match stmt:
                case VariableDeclaration():
                    declared = self.parse_type(stmt.type_name, stmt.line)
                    if stmt.name in local_vars:
                        self.report(stmt.line, f"duplicate local variable '{stmt.name}'")
                    local_vars.setdefault(stmt.name, VariableInfo(declared, stmt.line))
                    scope.setdefault(stmt.name, VariableInfo(declared, stmt.line))
                    if stmt.initializer is not None:
                        actual = self.infer_expression(stmt.initializer, scope, functions)
                        self.check_assignment(declared, actual, stmt.line)
                case ReturnStatement():
                    saw_return = True
                    self.check_return(info.return_type, stmt, scope, functions)
                case ExpressionStatement():
                    if stmt.expression is not None:
                        self.infer_expression(stmt.expression, scope, functions)
                case FriendFunctionCall():
                    self.check_friend_arguments(stmt, scope, functions)

        if info.return_type is not SimpleType.VOID and not saw_return:
            self.report(decl.line, f"function '{decl.name}' is missing a return")

    def check_return(
        self,
        expected: SimpleType,
        stmt: ReturnStatement,
        scope: Variables,
        functions: Functions,
    ) -> None:
        if stmt.expression is None:
            if expected is not SimpleType.VOID:
                self.report(
                    stmt.line,
                    f"missing return value for function returning '{expected}'",
                )
            return
        actual = self.infer_expression(stmt.expression, scope, functions)
        if expected is SimpleType.VOID:
            self.report(stmt.line, "void function should not return a value")
        elif (
            actual is not SimpleType.UNKNOWN
            and expected is not SimpleType.UNKNOWN
            and actual is not expected
        ):
            self.report(
                stmt.line,
                f"return type mismatch: expected '{expected}' got '{actual}'",
            )

    def check_assignment(self, declared: SimpleType, actual: SimpleType, line: int) -> None:
        if (
            declared is not SimpleType.UNKNOWN
            and actual is not SimpleType.UNKNOWN
            and declared is not actual
        ):
            self.report(
                line,
                f"cannot assign expression of type '{actual}' to variable of type '{declared}'",
            )

    def collect_signatures(self, program: Program, model: SemanticModel) -> None:
        for stmt in program.statements:
            match stmt:
                case VariableDeclaration():
                    if stmt.access_modifier:
                        self.report(
                            stmt.line,
                            "access modifiers not allowed on top-level variable declarations",
                        )
                    var_type = self.parse_type(stmt.type_name, stmt.line)
                    if stmt.name in model.globals:
                        self.report(stmt.line, f"duplicate global variable '{stmt.name}'")
                    model.globals.setdefault(stmt.name, VariableInfo(var_type, stmt.line))
                case FunctionDeclaration():
                    if stmt.access_modifier == "protected":
                        self.report(stmt.line, "'protected' not supported yet")
                    if stmt.name in model.functions:
                        self.report(stmt.line, f"duplicate function '{stmt.name}'")
                        continue
                    info = FunctionInfo(
                        return_type=self.parse_type(stmt.return_type, stmt.line),
                        line=stmt.line,
                    )
                    for param in stmt.parameters:
                        info.params.append(
                            FunctionParam(
                                param.name,
                                self.parse_type(param.type_name, param.line),
                                param.line,
                            )
                        )
                    model.functions[stmt.name] = info
                case ReturnStatement():
                    self.report(stmt.line, "return statement only allowed inside functions")

    def check_bodies(self, program: Program, model: SemanticModel) -> None:
        for stmt in program.statements:
            match stmt:
                case VariableDeclaration(initializer=Expression() as init):
                    actual = self.infer_expression(init, model.globals, model.functions)
                    declared = self.parse_type(stmt.type_name, stmt.line)
                    self.check_assignment(declared, actual, stmt.line)
                case FunctionDeclaration():
                    info = model.functions.get(stmt.name)
                    if info is not None:
                        self.check_function(info, stmt, model.globals, model.functions)


def run_semantic_checks(program: Program | None) -> tuple[SemanticModel, list[Diagnostic]]:
    """Check a program and return its semantic model with the problems found."""
    model = SemanticModel()
    if program is None:
        return model, []

    checker = _Checker()
    checker.collect_signatures(program, model)
    model.functions.setdefault("printf", FunctionInfo(return_type=SimpleType.VOID, line=0))
    checker.check_bodies(program, model)
    return model, checker.diagnostics