"""C source generation for the int/boolean subset of the language."""

from __future__ import annotations

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

_C_TYPES = {
    SimpleType.INT: "int",
    SimpleType.BOOL: "bool",
    SimpleType.VOID: "void",
}

_SUPPORTED_OPERATORS = frozenset(
    {"&&", "||", "==", "!=", ">", "<", ">=", "<=", "+", "-", "*", "/"}
)

_DECLARABLE = {"int": "int", "boolean": "bool"}

_FRIEND_UNSUPPORTED = "friend calls are not supported in C codegen yet"


def _c_type(t: SimpleType) -> str:
    return _C_TYPES.get(t, "/*unknown*/ int")


class _Failed(Exception):
    """Internal signal: a diagnostic was recorded for the current construct."""


class _Emitter:
    def __init__(self, model: SemanticModel) -> None:
        self.model = model
        self.diagnostics: list[Diagnostic] = []
        self.parts: list[str] = []

    def fail(self, line: int, message: str) -> _Failed:
        self.diagnostics.append(Diagnostic(line, message))
        return _Failed()

    def run(self, program: Program) -> str:
        self.parts.append("#include <stdio.h>\n")
        self.parts.append("#include <stdbool.h>\n")

        for stmt in program.statements:
            if isinstance(stmt, FunctionDeclaration):
                self.guarded(self.emit_function, stmt)

        self.parts.append("int main(){\n")
        for stmt in program.statements:
            match stmt:
                case VariableDeclaration():
                    self.guarded(self.emit_var_decl, stmt)
                case ExpressionStatement():
                    self.guarded(self.emit_expr_stmt, stmt)
                case FriendFunctionCall():
                    self.diagnostics.append(Diagnostic(stmt.line, _FRIEND_UNSUPPORTED))
                case ReturnStatement():
                    self.diagnostics.append(
                        Diagnostic(stmt.line, "return not allowed at top level")
                    )
        self.parts.append("return 0;\n")
        self.parts.append("}\n")
        return "".join(self.parts)

    def guarded(self, emit, node) -> None:
        try:
            emit(node)
        except _Failed:
            pass

    def emit_function(self, fn: FunctionDeclaration) -> None:
        sig = self.model.functions.get(fn.name)
        if sig is None:
            raise self.fail(fn.line, f"missing signature information for function '{fn.name}'")

        params = ", ".join(f"{_c_type(p.type)} {p.name}" for p in sig.params)
        self.parts.append(f"{_c_type(sig.return_type)} {fn.name}({params}) {{\n")
        for stmt in fn.body:
            match stmt:
                case VariableDeclaration():
                    self.guarded(self.emit_var_decl, stmt)
                case ExpressionStatement():
                    self.guarded(self.emit_expr_stmt, stmt)
                case FriendFunctionCall():
                    self.diagnostics.append(Diagnostic(stmt.line, _FRIEND_UNSUPPORTED))
                case ReturnStatement():
                    self.guarded(self.emit_return, stmt)
        self.parts.append("}\n\n")

    def emit_var_decl(self, decl: VariableDeclaration) -> None:
        if decl.type_name is None:
            raise self.fail(decl.line, "missing type in variable declaration")
        c_type = _DECLARABLE.get(decl.type_name)
        if c_type is None:
            raise self.fail(decl.line, "only 'int' and 'boolean' supported in C codegen")
        text = f"{c_type} {decl.name}"
        if decl.initializer is not None:
            text += f" = {self.emit_expression(decl.initializer)}"
        self.parts.append(text + ";\n")

    def emit_expr_stmt(self, stmt: ExpressionStatement) -> None:
        if stmt.expression is None:
            raise self.fail(stmt.line, "missing expression")
        rendered = self.emit_expression(stmt.expression)
        self.parts.append('printf("%lld\\n", (long long)(' + rendered + "));\n")

    def emit_return(self, stmt: ReturnStatement) -> None:
        if stmt.expression is None:
            self.parts.append("return;\n")
            return
        self.parts.append(f"return {self.emit_expression(stmt.expression)};\n")

    def emit_expression(self, expr: Expression) -> str:
        if not expr.operands:
            raise self.fail(expr.line, "empty expression")
        result = self.emit_primary(expr.operands[0])
        for op, operand in zip(expr.operators, expr.operands[1:]):
            if op not in _SUPPORTED_OPERATORS:
                raise self.fail(expr.line, f"operator '{op}' not supported in C codegen")
            result = f"({result} {op} {self.emit_primary(operand)})"
        return result

    def emit_primary(self, primary: Primary) -> str:
        match primary:
            case Identifier(name=name):
                return name
            case Literal(kind=kind, text=text, line=line):
                if kind in (LiteralKind.NUMBER, LiteralKind.BOOLEAN):
                    return text
                raise self.fail(line, "literal not supported")
            case FunctionCall(name=name, arguments=arguments):
                args = ", ".join(self.emit_expression(a) for a in arguments)
                return f"{name}({args})"
            case FriendFunctionCall(line=line):
                raise self.fail(line, _FRIEND_UNSUPPORTED)
            case Expression():
                return f"({self.emit_expression(primary)})"
        raise self.fail(getattr(primary, "line", 0), "unsupported primary expression")


class CCodeGenerator:
    """Turns a checked program into a standalone C translation unit."""

    def generate(self, program: Program, model: SemanticModel) -> str:
        """Return C source for the program; raises DiagnosticError on problems."""
        emitter = _Emitter(model)
        source = emitter.run(program)
        if emitter.diagnostics:
            raise DiagnosticError(emitter.diagnostics)
        return source