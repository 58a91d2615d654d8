import io

import pytest

from ezlang.diagnostics import DiagnosticError
from ezlang.interpreter import SimpleInterpreter, Value
from ezlang.semantic import run_semantic_checks
from ezlang.syntax import (
    Expression,
    ExpressionStatement,
    FriendFunctionCall,
    FunctionCall,
    FunctionDeclaration,
    Identifier,
    Literal,
    LiteralKind,
    Parameter,
    Program,
    ReturnStatement,
    VariableDeclaration,
)
from ezlang.typesys import SimpleType


def num(n, line=1):
    return Literal(LiteralKind.NUMBER, str(n), line)


def boolean(b, line=1):
    return Literal(LiteralKind.BOOLEAN, "true" if b else "false", line)


def string(text, line=1):
    return Literal(LiteralKind.STRING, f'"{text}"', line)


def ex(*parts, line=1):
    return Expression(tuple(parts[::2]), tuple(parts[1::2]), line)


def var(type_name, name, *parts, line=1):
    return VariableDeclaration(type_name, name, ex(*parts, line=line) if parts else None, line=line)


def interpreter_for(statements, **kwargs):
    program = Program(tuple(statements))
    model, _ = run_semantic_checks(program)
    out = io.StringIO()
    interp = SimpleInterpreter(out, model=model, **kwargs)
    return interp, program, out


def run(statements, **kwargs):
    interp, program, out = interpreter_for(statements, **kwargs)
    interp.execute(program)
    return interp, out


def run_failing(statements, **kwargs):
    interp, program, out = interpreter_for(statements, **kwargs)
    with pytest.raises(DiagnosticError) as info:
        interp.execute(program)
    return interp, [d.message for d in info.value.diagnostics], info.value


def test_print_variables_lists_globals():
    interp, out = run([var("int", "x", num(7)), var("boolean", "flag", boolean(True))])
    interp.print_variables()
    assert out.getvalue() == "Variable state:\n  x = 7\n  flag = true\n"


def test_print_variables_when_empty():
    interp, out = run([])
    interp.print_variables()
    assert out.getvalue() == "No variables declared.\n"


def test_default_values_without_initializer():
    interp, _ = run([var("int", "x"), var("boolean", "b")])
    assert interp.globals == {"x": Value.of_int(0), "b": Value.of_bool(False)}


def test_print_builtin_joins_arguments():
    call = FunctionCall("print", (ex(string("hello")), ex(num(42)), ex(boolean(True))))
    _, out = run([ExpressionStatement(ex(call))])
    assert out.getvalue() == "hello 42 true\n"


def test_print_renders_failed_argument_as_error_marker():
    call = FunctionCall("print", (ex(Identifier("missing")), ex(num(1))))
    interp, program, out = interpreter_for([ExpressionStatement(ex(call))])
    with pytest.raises(DiagnosticError):
        interp.execute(program)
    assert out.getvalue() == "<error> 1\n"


def test_division_truncates_toward_zero():
    interp, _ = run([var("int", "q", num(-7), "/", num(2))])
    assert interp.globals["q"] == Value.of_int(-3)


def test_division_by_zero():
    _, messages, _ = run_failing([var("int", "q", num(1), "/", num(0))])
    assert messages == ["division by zero"]


def test_arithmetic_requires_ints():
    _, messages, _ = run_failing([ExpressionStatement(ex(boolean(True), "+", num(1)))])
    assert messages == ["arithmetic operator '+' expects int operands"]


def test_logical_requires_booleans():
    _, messages, _ = run_failing([ExpressionStatement(ex(num(1), "&&", boolean(True)))])
    assert messages == ["logical operator '&&' expects boolean operands"]


def test_relational_gives_boolean():
    interp, _ = run([var("boolean", "b", num(3), "<", num(5))])
    assert interp.globals["b"] == Value.of_bool(True)


def test_equality_negation_consistent():
    interp, _ = run([
        var("boolean", "eq", num(4), "==", num(4)),
        var("boolean", "ne", num(4), "!=", num(4)),
    ])
    assert interp.globals["eq"].int_value != interp.globals["ne"].int_value


def test_unknown_identifier_reports_line():
    _, messages, error = run_failing([ExpressionStatement(ex(Identifier("y", line=3)), line=3)])
    assert messages == ["unknown identifier 'y'"]
    assert error.diagnostics[0].line == 3


def test_float_literal_rejected():
    _, messages, _ = run_failing([ExpressionStatement(ex(Literal(LiteralKind.NUMBER, "1.5")))])
    assert messages == ["floating point literals not supported yet"]


def test_unsupported_variable_type():
    _, messages, _ = run_failing([var("string", "s", string("x"))])
    assert messages == ["only 'int' and 'boolean' variables are supported in interpreter"]


def test_assignment_type_mismatch():
    _, messages, _ = run_failing([var("int", "x", boolean(True))])
    assert messages == ["cannot assign expression of type 'boolean' to variable of type 'int'"]


def test_duplicate_variable():
    _, messages, _ = run_failing([var("int", "x", num(1)), var("int", "x", num(2))])
    assert messages == ["variable 'x' already declared"]


def test_execution_continues_after_error():
    interp, messages, _ = run_failing([
        ExpressionStatement(ex(Identifier("nope"))),
        var("int", "after", num(5)),
    ])
    assert messages == ["unknown identifier 'nope'"]
    assert interp.globals == {"after": Value.of_int(5)}


def test_top_level_return_rejected():
    _, messages, _ = run_failing([ReturnStatement(ex(num(1)), line=2)])
    assert "return only valid inside functions" in messages


def identity_function():
    return FunctionDeclaration(
        "ident",
        "int",
        (Parameter("v", "int"),),
        (ReturnStatement(ex(Identifier("v"))),),
    )


def test_user_function_returns_argument():
    interp, _ = run([
        identity_function(),
        var("int", "x", FunctionCall("ident", (ex(num(41)),))),
    ])
    assert interp.globals["x"] == Value.of_int(41)


def test_user_function_wrong_argument_count():
    interp, program, _ = interpreter_for([
        identity_function(),
        ExpressionStatement(ex(FunctionCall("ident", ()))),
    ])
    with pytest.raises(DiagnosticError) as info:
        interp.execute(program)
    assert [d.message for d in info.value.diagnostics] == ["function 'ident' expects 1 argument(s)"]


def test_user_function_argument_type_mismatch():
    _, messages, _ = run_failing([
        identity_function(),
        ExpressionStatement(ex(FunctionCall("ident", (ex(boolean(False)),)))),
    ])
    assert messages == ["argument 1 type mismatch: expected 'int' got 'boolean'"]


def test_function_without_return_value():
    fn = FunctionDeclaration("f", "int", (), (ExpressionStatement(ex(num(1))),))
    _, messages, _ = run_failing([fn, ExpressionStatement(ex(FunctionCall("f", ())))])
    assert messages == ["function 'f' did not return a value"]


def test_void_function_yields_void():
    fn = FunctionDeclaration("g", "void", (), (ReturnStatement(),))
    _, out = run([fn, ExpressionStatement(ex(FunctionCall("g", ())))], verbose=True)
    assert out.getvalue() == "=> 0\n"


def test_unknown_function():
    _, messages, _ = run_failing([ExpressionStatement(ex(FunctionCall("nope", ())))])
    assert messages == ["unknown function 'nope'"]


def test_function_locals_do_not_leak():
    fn = FunctionDeclaration(
        "h",
        "int",
        (),
        (var("int", "inner", num(2)), ReturnStatement(ex(Identifier("inner")))),
    )
    interp, _ = run([fn, var("int", "x", FunctionCall("h", ()))])
    assert set(interp.globals) == {"x"}


class RecordingCaller:
    def __init__(self, result=99, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def __call__(self, path, symbol, args):
        self.calls.append((path, symbol, list(args)))
        if self.error:
            raise OSError(self.error)
        return self.result


def test_friend_call_statement_verbose(tmp_path):
    caller = RecordingCaller(result=99)
    lib = tmp_path / "libm.dylib"
    call = FriendFunctionCall("m", "mult", (ex(num(6)), ex(num(7))))
    _, out = run([call], libraries={"m": lib}, friend_caller=caller, verbose=True)
    assert out.getvalue() == "=> 99\n"
    assert caller.calls == [(lib, "mult", [6, 7])]


def test_friend_call_in_expression(tmp_path):
    caller = RecordingCaller(result=12)
    call = FriendFunctionCall("m", "f", (ex(num(1)),))
    interp, _ = run(
        [var("int", "r", call)], libraries={"m": tmp_path / "lib"}, friend_caller=caller
    )
    assert interp.globals["r"] == Value.of_int(12)


def test_friend_call_unknown_alias():
    _, messages, _ = run_failing([FriendFunctionCall("m", "f", ())])
    assert messages == ["no library found for alias 'm'"]


def test_friend_call_rejects_boolean_argument(tmp_path):
    caller = RecordingCaller()
    _, messages, _ = run_failing(
        [FriendFunctionCall("m", "f", (ex(boolean(True)),))],
        libraries={"m": tmp_path / "lib"},
        friend_caller=caller,
    )
    assert messages == ["friend calls currently only support int arguments"]
    assert caller.calls == []


def test_friend_call_too_many_arguments(tmp_path):
    args = tuple(ex(num(i)) for i in range(5))
    _, messages, _ = run_failing(
        [FriendFunctionCall("m", "f", args)],
        libraries={"m": tmp_path / "lib"},
        friend_caller=RecordingCaller(),
    )
    assert messages == ["only up to 4 int arguments supported"]


def test_friend_caller_error_becomes_diagnostic(tmp_path):
    caller = RecordingCaller(error="dlsym failed for 'f': missing")
    _, messages, _ = run_failing(
        [FriendFunctionCall("m", "f", ())],
        libraries={"m": tmp_path / "lib"},
        friend_caller=caller,
    )
    assert messages == ["dlsym failed for 'f': missing"]


def test_default_caller_reports_load_failure(tmp_path):
    _, messages, _ = run_failing(
        [FriendFunctionCall("m", "f", ())],
        libraries={"m": tmp_path / "absent.dylib"},
    )
    assert len(messages) == 1
    assert messages[0].startswith("dlopen failed: ")


def test_value_rendering():
    assert str(Value.of_bool(True)) == "true"
    assert str(Value.of_bool(False)) == "false"
    assert str(Value.of_string("abc")) == "abc"
    assert str(Value.of_int(-4)) == "-4"
    assert Value.void().type is SimpleType.VOID