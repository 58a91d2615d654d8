"""First pass over a program: environment, friend modules and friend calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ezlang.diagnostics import Diagnostic
from ezlang.syntax import EnvDeclaration, FriendFunctionCall, FriendStatement, Program
from ezlang.util import StrPath


@dataclass(frozen=True)
class FriendModule:
    """A declared friend module: source token, language and alias."""

    source_token: str
    language: str
    alias: str
    line: int


@dataclass(frozen=True)
class FriendCall:
    """One call into a friend module, with the number of arguments passed."""

    alias: str
    func: str
    argc: int
    line: int


@dataclass
class BootstrapInfo:
    """Everything the first pass learned about a program."""

    base_directory: Path
    environment: str | None = None
    environment_line: int | None = None
    friend_modules: list[FriendModule] = field(default_factory=list)
    friend_calls: list[FriendCall] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def collect_bootstrap(program: Program, base_directory: StrPath) -> BootstrapInfo:
    """Walk the program and collect its environment and friend information."""
    info = BootstrapInfo(base_directory=Path(base_directory))
    for node in program.walk():
        match node:
            case EnvDeclaration():
                _enter_env(info, node)
            case FriendStatement():
                _enter_friend(info, node)
            case FriendFunctionCall():
                _enter_friend_call(info, node)
    return info


def _enter_env(info: BootstrapInfo, node: EnvDeclaration) -> None:
    if not node.identifier:
        info.diagnostics.append(
            Diagnostic(node.line, "environment declaration missing identifier")
        )
        return
    if info.environment is None:
        info.environment = node.identifier
        info.environment_line = node.line
    else:
        info.diagnostics.append(
            Diagnostic(node.line, f"environment already declared as '{info.environment}'")
        )


def _enter_friend(info: BootstrapInfo, node: FriendStatement) -> None:
    if not (node.source_token and node.language and node.alias):
        info.diagnostics.append(
            Diagnostic(node.line, "friend statement requires module, language, and alias")
        )
        return
    info.friend_modules.append(
        FriendModule(node.source_token, node.language, node.alias, node.line)
    )


def _enter_friend_call(info: BootstrapInfo, node: FriendFunctionCall) -> None:
    if not (node.alias and node.function):
        info.diagnostics.append(Diagnostic(node.line, "invalid friend call"))
        return
    info.friend_calls.append(
        FriendCall(node.alias, node.function, len(node.arguments), node.line)
    )