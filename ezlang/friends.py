"""Build planning for friend modules written in C, C++ or Python."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ezlang.bootstrap import FriendCall, FriendModule
from ezlang.config import EZConfig
from ezlang.diagnostics import Diagnostic
from ezlang.util import StrPath, quote

_DEFAULT_EXTENSIONS = {"c": ".c", "cpp": ".cpp", "python": ".py"}
_COMPILABLE = frozenset({".c", ".cpp", ".cc", ".cxx"})


@dataclass(frozen=True)
class BuildPlanEntry:
    """How one friend module is compiled and linked into a shared library."""

    module: FriendModule
    source: Path
    object: Path
    command: str
    dylib: Path
    link_command: str


@dataclass
class BuildPlan:
    """Planned entries together with the problems found while planning."""

    entries: list[BuildPlanEntry] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[BuildPlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def python_shim_source(directory: StrPath, module_name: str, functions: Mapping[str, int]) -> str:
    """C source embedding Python that exposes ``int f(int, ...)`` wrappers."""
    lines = [
        "#include <Python.h>",
        "static PyObject* g_module = NULL;",
        "static int ensure_init() {",
        "  if (g_module) return 0;",
        "  if (!Py_IsInitialized()) Py_Initialize();",
        '  PyObject* sys_path = PySys_GetObject("path");',
        "  if (sys_path) { PyObject* p = PyUnicode_FromString(\""
        + os.fspath(directory)
        + '"); if (p) { PyList_Append(sys_path, p); Py_DECREF(p);} }',
        f'  PyObject* name = PyUnicode_FromString("{module_name}");',
        "  g_module = PyImport_Import(name); Py_DECREF(name);",
        "  if (!g_module) { PyErr_Print(); return -1; }",
        "  return 0;",
        "}",
    ]
    for fname, argc in functions.items():
        params = ", ".join(f"int a{i}" for i in range(argc))
        lines.append(f"int {fname}({params}) {{")
        lines.append("  if (ensure_init() != 0) return 0;")
        lines.append(f'  PyObject* func = PyObject_GetAttrString(g_module, "{fname}");')
        lines.append("  if (!func || !PyCallable_Check(func)) { Py_XDECREF(func); return 0; }")
        lines.append(f"  PyObject* args = PyTuple_New({argc});")
        lines.extend(
            f"  PyTuple_SET_ITEM(args, {i}, PyLong_FromLong(a{i}));" for i in range(argc)
        )
        lines.append("  PyObject* res = PyObject_CallObject(func, args);")
        lines.append("  Py_DECREF(args); Py_DECREF(func);")
        lines.append("  if (!res) { PyErr_Print(); return 0; }")
        lines.append("  long v = PyLong_AsLong(res); Py_DECREF(res);")
        lines.append("  return (int)v;")
        lines.append("}")
    return "\n".join(lines) + "\n"


def _used_functions(
    calls: Iterable[FriendCall], diagnostics: list[Diagnostic]
) -> dict[str, dict[str, int]]:
    used: dict[str, dict[str, int]] = {}
    for call in calls:
        funcs = used.setdefault(call.alias, {})
        known = funcs.get(call.func)
        if known is None:
            funcs[call.func] = call.argc
        elif known != call.argc:
            diagnostics.append(
                Diagnostic(call.line, f"inconsistent argument count for '{call.alias}.{call.func}'")
            )
    return used


def _python_link_command(shim: Path, dylib: Path, config: EZConfig) -> str:
    parts = [f"clang -std=c11 -dynamiclib {quote(shim)} -o {quote(dylib)}"]
    py_cflags = os.environ.get("PY_CFLAGS", "")
    py_ldflags = os.environ.get("PY_LDFLAGS", "")
    py_exe = os.environ.get("PYTHON") or config.python_executable
    if py_cflags:
        parts.append(py_cflags)
    if py_ldflags:
        parts.append(py_ldflags)
    if not py_cflags or not py_ldflags:
        cfg = py_exe + "-config"
        parts.append(f"$(command -v {cfg} >/dev/null 2>&1 && {cfg} --includes || true)")
        parts.append(
            f"$(command -v {cfg} >/dev/null 2>&1 && "
            f"({cfg} --ldflags --embed 2>/dev/null || {cfg} --ldflags) || true)"
        )
        parts.append(
            f"$({py_exe} -c \"import sysconfig,sys; "
            "inc=sysconfig.get_config_var('INCLUDEPY') or ''; "
            "sys.stdout.write(('-I'+inc) if inc else '')\" 2>/dev/null || true)"
        )
        parts.append(
            f"$({py_exe} -c \"import sysconfig,sys; "
            "keys=('LDFLAGS','LIBS','SYSLIBS','LINKFORSHARED'); "
            "sys.stdout.write(' '.join([sysconfig.get_config_var(k) or '' for k in keys]))\" "
            "2>/dev/null | sed -E 's/(^| )[^ ]*stack_size[^ ]*( |$)/ /g' || true)"
        )
    return " ".join(parts)


def prepare_build_plan(
    modules: Iterable[FriendModule],
    base_dir: StrPath,
    calls: Iterable[FriendCall],
    config: EZConfig,
) -> BuildPlan:
    """Plan compile and link commands for each friend module."""
    plan = BuildPlan()
    modules = list(modules)
    if not modules:
        return plan

    base = Path(base_dir)
    output_dir = base / config.output_dir
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        plan.diagnostics.append(
            Diagnostic(0, f"failed to create build directory '{output_dir}': {exc.strerror or exc}")
        )
        return plan

    used = _used_functions(calls, plan.diagnostics)

    for module in modules:
        source = base / module.source_token
        if not source.suffix and module.language in _DEFAULT_EXTENSIONS:
            source = source.with_name(source.name + _DEFAULT_EXTENSIONS[module.language])

        if not source.exists():
            plan.diagnostics.append(
                Diagnostic(module.line, f"friend source file not found: {source}")
            )
            continue

        obj = output_dir / f"{module.alias}.o"
        dylib = output_dir / f"lib{module.alias}.dylib"
        command = ""

        if module.language == "python":
            functions = used.get(module.alias)
            if not functions:
                plan.diagnostics.append(
                    Diagnostic(module.line, f"no friend functions used for alias '{module.alias}'")
                )
                continue
            shim = output_dir / f"{module.alias}_shim.c"
            try:
                shim.write_text(
                    python_shim_source(source.parent, source.stem, functions), encoding="utf-8"
                )
            except OSError:
                plan.diagnostics.append(Diagnostic(module.line, "failed to write Python shim"))
                continue
            link = _python_link_command(shim, dylib, config)
        else:
            is_c = module.language == "c"
            compiler = config.c_compiler if is_c else config.cpp_compiler
            std_flag = "-std=" + (config.c_standard if is_c else config.cpp_standard)
            extra = config.c_flags if is_c else config.cpp_flags
            flags = f"{compiler} {std_flag}" + (f" {extra}" if extra else "")

            ext = source.suffix
            if ext in _COMPILABLE:
                command = f"{flags} -c {quote(source)} -o {quote(obj)}"
                link = f"{flags} -dynamiclib {quote(source)} -o {quote(dylib)}"
            elif ext == ".o":
                obj = source
                link = f"{compiler} {std_flag} -dynamiclib {quote(obj)} -o {quote(dylib)}"
            elif ext == ".a":
                link = f"{compiler} {std_flag} -dynamiclib {quote(source)} -o {quote(dylib)}"
            elif ext == ".dylib":
                dylib = source
                link = ""
            else:
                plan.diagnostics.append(
                    Diagnostic(module.line, f"unsupported friend file extension '{ext}'")
                )
                continue

        plan.entries.append(BuildPlanEntry(module, source, obj, command, dylib, link))

    return plan