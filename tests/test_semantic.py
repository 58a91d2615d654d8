from ezlang.diagnostics import Diagnostic
from ezlang.semantic import (
    FunctionInfo,
    FunctionParam,
    VariableInfo,
    run_semantic_checks,
)
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


def num(text, line=1):
    return Literal(LiteralKind.NUMBER, text, line)


def boolean(text, line=1):
    return Literal(LiteralKind.BOOLEAN, text, line)


def ident(name, line=1):
    return Identifier(name, line)


def expr(*items, line=1):
    return Expression(items[0::2], items[1::2], line=line)


def messages(diagnostics):
    return [d.message for d in diagnostics]


def add_function(line=2):
    return FunctionDeclaration(
        "add",
        "int",
        [Parameter("a", "int", line), Parameter("b", "int", line)],
        [ReturnStatement(expr(ident("a", line), "+", ident("b", line), line=line), line)],
        line=line,
    )


def test_none_program_gives_empty_model():
    model, diagnostics = run_semantic_checks(None)
    assert model.globals == {}
    assert model.functions == {}
    assert diagnostics == []


def test_valid_program_builds_model():
    program = Program(
        [
            VariableDeclaration("int", "x", expr(num("5")), line=1),
            add_function(),
            VariableDeclaration(
                "int", "y", expr(FunctionCall("add", [expr(ident("x", 3)), expr(num("1", 3))], 3), line=3), line=3
            ),
        ]
    )
    model, diagnostics = run_semantic_checks(program)
    assert diagnostics == []
    assert model.globals["x"] == VariableInfo(SimpleType.INT, 1)
    assert model.globals["y"] == VariableInfo(SimpleType.INT, 3)
    assert model.functions["add"] == FunctionInfo(
        SimpleType.INT,
        [FunctionParam("a", SimpleType.INT, 2), FunctionParam("b", SimpleType.INT, 2)],
        2,
    )


def test_printf_is_built_in_and_variadic():
    program = Program(
        [ExpressionStatement(expr(FunctionCall("printf", [expr(num("1")), expr(boolean("true"))])))]
    )
    model, diagnostics = run_semantic_checks(program)
    assert model.functions["printf"].return_type is SimpleType.VOID
    assert model.functions["printf"].params == []
    assert diagnostics == []


def test_global_initializer_type_mismatch():
    program = Program([VariableDeclaration("int", "x", expr(boolean("true"), line=4), line=4)])
    _, diagnostics = run_semantic_checks(program)
    assert diagnostics == [
        Diagnostic(4, "cannot assign expression of type 'boolean' to variable of type 'int'")
    ]


def test_duplicate_global_and_access_modifier():
    program = Program(
        [
            VariableDeclaration("int", "x", access_modifier="public", line=1),
            VariableDeclaration("boolean", "x", line=2),
        ]
    )
    model, diagnostics = run_semantic_checks(program)
    assert messages(diagnostics) == [
        "access modifiers not allowed on top-level variable declarations",
        "duplicate global variable 'x'",
    ]
    assert model.globals["x"].type is SimpleType.INT


def test_duplicate_and_protected_functions():
    first = FunctionDeclaration("f", "void", line=1)
    second = FunctionDeclaration("f", "int", access_modifier="protected", line=5)
    model, diagnostics = run_semantic_checks(Program([first, second]))
    assert diagnostics == [
        Diagnostic(5, "'protected' not supported yet"),
        Diagnostic(5, "duplicate function 'f'"),
    ]
    assert model.functions["f"].return_type is SimpleType.VOID


def test_top_level_return_is_rejected():
    _, diagnostics = run_semantic_checks(Program([ReturnStatement(line=7)]))
    assert diagnostics == [Diagnostic(7, "return statement only allowed inside functions")]


def test_missing_return_and_void_return_value():
    missing = FunctionDeclaration("f", "int", line=1)
    void_fn = FunctionDeclaration("g", "void", body=[ReturnStatement(expr(num("1", 3)), 3)], line=2)
    _, diagnostics = run_semantic_checks(Program([missing, void_fn]))
    assert diagnostics == [
        Diagnostic(1, "function 'f' is missing a return"),
        Diagnostic(3, "void function should not return a value"),
    ]


def test_bare_return_in_int_function():
    fn = FunctionDeclaration("f", "int", body=[ReturnStatement(None, 2)], line=1)
    _, diagnostics = run_semantic_checks(Program([fn]))
    assert messages(diagnostics) == ["missing return value for function returning 'int'"]


def test_unknown_identifier_and_function():
    program = Program(
        [
            VariableDeclaration("int", "x", expr(ident("nope", 2), line=2), line=2),
            VariableDeclaration("int", "y", expr(FunctionCall("missing", line=3), line=3), line=3),
        ]
    )
    _, diagnostics = run_semantic_checks(program)
    assert diagnostics == [
        Diagnostic(2, "unknown identifier 'nope'"),
        Diagnostic(3, "unknown function 'missing'"),
    ]


def test_argument_count_and_type_mismatch():
    call = FunctionCall("add", [expr(boolean("true", 4), line=4)], 4)
    program = Program([add_function(), VariableDeclaration("int", "r", expr(call, line=4), line=4)])
    _, diagnostics = run_semantic_checks(program)
    assert messages(diagnostics) == [
        "function 'add' expects 2 argument(s)",
        "argument 1 type mismatch: expected 'int' got 'boolean'",
    ]


def test_operator_rules():
    program = Program(
        [
            VariableDeclaration("int", "a", expr(num("1"), "+", boolean("true")), line=1),
            VariableDeclaration("boolean", "b", expr(num("1"), "&&", num("2")), line=1),
            VariableDeclaration("boolean", "c", expr(num("1"), "==", boolean("false")), line=1),
            VariableDeclaration("boolean", "d", expr(boolean("true"), "<", num("2")), line=1),
        ]
    )
    _, diagnostics = run_semantic_checks(program)
    assert messages(diagnostics) == [
        "arithmetic operator '+' expects int operands",
        "logical operator '&&' expects boolean operands",
        "comparison between mismatched types",
        "relational operator '<' expects int operands",
    ]


def test_unsupported_operator_yields_unknown_type():
    program = Program([VariableDeclaration("int", "a", expr(num("1"), "%", num("2")), line=1)])
    _, diagnostics = run_semantic_checks(program)
    assert messages(diagnostics) == ["operator '%' not supported yet"]


def test_unsupported_type_is_reported_in_both_passes():
    program = Program([VariableDeclaration("float", "f", expr(num("1")), line=3)])
    model, diagnostics = run_semantic_checks(program)
    assert model.globals["f"].type is SimpleType.UNKNOWN
    assert messages(diagnostics) == ["type 'float' is not supported yet"] * 2


def test_friend_call_arguments_must_be_int():
    friend = FriendFunctionCall("m", "mult", [expr(boolean("true", 2), line=2)], 2)
    fn = FunctionDeclaration("f", "void", body=[friend], line=1)
    model, diagnostics = run_semantic_checks(Program([fn]))
    assert diagnostics == [Diagnostic(2, "friend calls currently only support int arguments")]


def test_friend_call_expression_is_int():
    friend = FriendFunctionCall("m", "mult", [expr(num("2")), expr(num("3"))], 1)
    program = Program([VariableDeclaration("boolean", "b", expr(friend), line=1)])
    _, diagnostics = run_semantic_checks(program)
    assert messages(diagnostics) == [
        "cannot assign expression of type 'int' to variable of type 'boolean'"
    ]


def test_global_shadows_parameter_of_same_name():
    fn = FunctionDeclaration(
        "f",
        "int",
        [Parameter("a", "int", 2)],
        [ReturnStatement(expr(ident("a", 3), line=3), 3)],
        line=2,
    )
    program = Program([VariableDeclaration("boolean", "a", line=1), fn])
    _, diagnostics = run_semantic_checks(program)
    assert diagnostics == [Diagnostic(3, "return type mismatch: expected 'int' got 'boolean'")]


def test_duplicate_local_variable():
    fn = FunctionDeclaration(
        "f",
        "void",
        [Parameter("a", "int", 1)],
        [VariableDeclaration("int", "a", line=2)],
        line=1,
    )
    _, diagnostics = run_semantic_checks(Program([fn]))
    assert diagnostics == [Diagnostic(2, "duplicate local variable 'a'")]


def test_empty_expression_is_reported():
    fn = FunctionDeclaration("f", "void", body=[ExpressionStatement(Expression((), line=2), 2)], line=1)
    _, diagnostics = run_semantic_checks(Program([fn]))
    assert diagnostics == [Diagnostic(2, "empty expression")]