"""Locating and entering Nix environments for builds."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ezlang.util import StrPath


@dataclass(frozen=True)
class NixEnvInfo:
    """The Nix file in use and where it came from ("project" or "builtin")."""

    env_file: Path
    env_source: str


def nix_available() -> bool:
    """True when ``nix-shell`` can be found on the PATH."""
    return shutil.which("nix-shell") is not None


def inside_nix_shell() -> bool:
    """True when running inside a Nix shell already."""
    return bool(os.environ.get("IN_NIX_SHELL"))


def find_project_env(project_root: StrPath) -> Path | None:
    """Return the project's ``.ez-env.nix`` or ``ez-env.nix``, if any."""
    root = Path(project_root)
    for name in (".ez-env.nix", "ez-env.nix"):
        candidate = root / name
        if candidate.exists():
            return candidate
    return None


def find_builtin_env(env_type: str, exe_dir: StrPath) -> Path | None:
    """Return ``envs/<type>.nix`` next to or one level above ``exe_dir``."""
    directory = Path(exe_dir)
    for base in (directory, directory.parent):
        candidate = base / "envs" / f"{env_type}.nix"
        if candidate.exists():
            return candidate
    return None


def _shell_single_quote(arg: str) -> str:
    return "'" + arg.replace("'", "'\\''") + "'"


def nix_run_command(env_file: StrPath, command_line: str) -> str:
    """Shell command that runs ``command_line`` inside the given Nix file."""
    return f'nix-shell "{os.fspath(env_file)}" --run "{command_line}"'


def nix_run_command_with_args(env_file: StrPath, args: Iterable[str]) -> str:
    """Shell command that runs an argument vector inside the given Nix file."""
    return nix_run_command(env_file, " ".join(_shell_single_quote(a) for a in args))


def _system(command: str) -> int:
    return subprocess.run(command, shell=True).returncode


def prepare_nix_env(env_file: StrPath) -> bool:
    """Download and build the environment; True on success."""
    return _system(nix_run_command(env_file, "true")) == 0


def run_in_nix_env(env_file: StrPath, command_line: str) -> int:
    """Run a command line inside the environment and return its exit code."""
    return _system(nix_run_command(env_file, command_line))


def run_in_nix_env_with_args(env_file: StrPath, args: Iterable[str]) -> int:
    """Run an argument vector inside the environment and return its exit code."""
    return _system(nix_run_command_with_args(env_file, args))