# ezlang

`ezlang` is a Python library for EZ, a small statically typed language.
An EZ program declares an environment, may borrow functions from *friend*
modules written in C, C++ or Python, and is made of variable declarations,
functions and expression statements over `int`, `boolean` and `string`
values.

The library works on programs held as syntax trees. It checks them,
interprets them, turns the `int`/`boolean` subset into C, and plans the
compile and link commands for friend modules.

## Modules

- **`ezlang.syntax`**: the program tree, made of frozen dataclasses:
  `Program`, `EnvDeclaration`, `FriendStatement`, `FunctionDeclaration`,
  `Parameter`, `VariableDeclaration`, `ExpressionStatement`,
  `ReturnStatement`, `Expression`, `Literal` (with `LiteralKind`),
  `Identifier`, `FunctionCall` and `FriendFunctionCall`. An `Expression`
  holds operands joined left to right by binary operators, with no
  precedence. It raises `ValueError` unless there is exactly one operator
  between each pair of operands. `Program.walk()` yields every node in
  source order, parents first.
- **`ezlang.bootstrap`**: `collect_bootstrap(program, base_directory)`
  returns a `BootstrapInfo` with the declared environment and its line, the
  friend modules (`FriendModule`), every friend call (`FriendCall`, with
  its argument count) and diagnostics for a repeated or incomplete
  environment declaration and for incomplete friend statements.
- **`ezlang.semantic`**: `run_semantic_checks(program)` returns a pair
  `(SemanticModel, diagnostics)`. The model holds the global variables
  (`VariableInfo`) and the function signatures (`FunctionInfo`,
  `FunctionParam`), plus a built-in variadic `printf` returning `void`. The
  checks report:
  - duplicate globals, locals and functions;
  - unknown identifiers and functions, and unsupported type names;
  - argument count and argument type mismatches;
  - operators used with the wrong operand types;
  - missing or mistyped returns, and `return` at top level;
  - access modifiers on top-level variables, and `protected` functions.
- **`ezlang.interpreter`**: `SimpleInterpreter(output, libraries, verbose,
  model, friend_caller)` runs a program with `execute(program)`. It raises
  `DiagnosticError` if any problem was found. It keeps one frame per
  function call, evaluates operators left to right, divides with truncation
  toward zero, and treats `print` and `printf` as built-ins that write their
  arguments separated by spaces. Only `int` and `boolean` variables can be
  declared. With `verbose=True` the value of each top-level expression
  statement is written as `=> value`. `print_variables()` writes the global
  state, and the `globals` property returns it as a dict of `Value`.
- **`ezlang.codegen_c`**: `CCodeGenerator().generate(program, model)`
  returns a C translation unit. Functions are emitted before `main`, and
  `main` prints the value of each top-level expression statement with
  `printf("%lld\n", ...)`. It raises `DiagnosticError` for string literals,
  friend calls, unsupported variable types and top-level `return`.
- **`ezlang.friends`**: `prepare_build_plan(modules, base_dir, calls,
  config)` creates the output directory and returns a `BuildPlan`. The plan
  can be iterated and has `len()`. It holds `BuildPlanEntry` items (module,
  source, object, compile `command`, `dylib`, `link_command`) and the
  `diagnostics` found while planning. For a Python friend it writes a C
  shim, `<alias>_shim.c`, produced by `python_shim_source(directory,
  module_name, functions)`. The link command honours the `PY_CFLAGS`,
  `PY_LDFLAGS` and `PYTHON` environment variables.
- **`ezlang.config`**: `EZConfig` holds compiler, standard, flag and
  output-directory settings. `load_text(text)` and `load_from_file(path)`
  apply settings to an existing config. `EZConfig.load_with_fallback(
  project_root)` starts from the defaults, then reads `~/.ezconfig`, then
  the nearest `.ezconfig` found walking upward from the project directory.
- **`ezlang.nix_env`**: `nix_available()`, `inside_nix_shell()`,
  `find_project_env(project_root)` (`.ez-env.nix` or `ez-env.nix`) and
  `find_builtin_env(env_type, exe_dir)` (`envs/<type>.nix` in the directory
  or its parent). `nix_run_command` and `nix_run_command_with_args` build
  `nix-shell ... --run ...` command lines. `prepare_nix_env`,
  `run_in_nix_env` and `run_in_nix_env_with_args` run them through the
  shell.
- **`ezlang.diagnostics`**: `Diagnostic(line, message)`, where line 0 means
  no particular line. `format_diagnostics` and `print_diagnostics` render a
  list of them. `DiagnosticError` carries them in its `diagnostics`
  attribute.
- **`ezlang.typesys`**: the `SimpleType` enumeration and the predicates
  `is_numeric`, `is_boolean`, `is_void` and `is_string`.
- **`ezlang.util`**: `quote(path)` and `read_file(file_path)`.

## Example

```python
import io

from ezlang.codegen_c import CCodeGenerator
from ezlang.interpreter import SimpleInterpreter
from ezlang.semantic import run_semantic_checks
from ezlang.syntax import (
    EnvDeclaration, Expression, ExpressionStatement, FunctionCall,
    Identifier, Literal, LiteralKind, Program, VariableDeclaration,
)

two = Literal(LiteralKind.NUMBER, "2")
three = Literal(LiteralKind.NUMBER, "3")
program = Program((
    EnvDeclaration("native", line=1),
    VariableDeclaration("int", "x", Expression((two, three), ("+",)), line=2),
    ExpressionStatement(
        Expression((FunctionCall("printf", (Expression((Identifier("x"),)),)),)),
        line=3,
    ),
))

model, problems = run_semantic_checks(program)
assert not problems

out = io.StringIO()
SimpleInterpreter(output=out, model=model).execute(program)
print(out.getvalue())      # 5

c_source = CCodeGenerator().generate(program, model)
```

## Friend calls in the interpreter

The interpreter does not load libraries itself. It hands every friend call
to the `friend_caller` you pass in, a callable `(library_path, symbol,
args) -> int`. Here `library_path` comes from the `libraries` mapping of
alias to path, and `args` holds at most four 32-bit `int` values. An
`OSError` raised by the caller becomes a diagnostic. Without a caller,
every friend call fails with a diagnostic.

## Configuration files

`.ezconfig` files are INI-like. Blank lines and lines starting with `#` are
ignored, and values may be wrapped in double quotes. Unknown keys are
ignored. `verbose` and `no_env` (also `no-env`) are true for `true` or `1`.

```ini
[c]
compiler = clang
standard = c11
flags = -O2

[cpp]
compiler = clang++
standard = c++17

[python]
executable = python3

[build]
output_dir = .ezenv/build
verbose = true
no_env = false
```

The defaults are `clang`/`c11` for C, `clang++`/`c++17` for C++, `python3`
for Python, and `.ezenv/build` for the output directory.

## Friend modules

A friend source is resolved relative to the program's directory. When the
name has no extension, the language supplies one: `.c`, `.cpp` or `.py`.
How a source is handled depends on its extension:

- `.c`, `.cpp`, `.cc`, `.cxx`: compiled to `<alias>.o` and linked into
  `lib<alias>.dylib`.
- `.o` or `.a`: linked into `lib<alias>.dylib`.
- `.dylib`: used as it is.

A Python module must have at least one of its functions called in the
program, because the shim exports only the functions that are used. Each
of them takes and returns `int`. Calling the same friend function with
different argument counts is reported.

## What this package does not do

- It has no parser. EZ source text is not read; programs are built as
  `ezlang.syntax` trees.
- It has no command-line tool.
- It does not run the planned compile and link commands, and it does not
  compile or run the generated C.
- It does not load dynamic libraries.
- `collect_bootstrap` does not check whether the environment is `native`,
  whether a friend language is supported, or whether aliases repeat.