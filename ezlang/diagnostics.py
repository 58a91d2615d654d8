"""Diagnostics collected while checking and running a program."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TextIO

from ezlang.util import StrPath, quote


@dataclass(frozen=True)
class Diagnostic:
    """A single problem report; line 0 means no particular line."""

    line: int
    message: str

    def __str__(self) -> str:
        if self.line:
            return f"line {self.line}: {self.message}"
        return self.message


class DiagnosticError(Exception):
    """Raised when a stage ends with one or more diagnostics."""

    def __init__(self, diagnostics: Iterable[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__("; ".join(str(d) for d in self.diagnostics))


def format_diagnostics(diagnostics: Iterable[Diagnostic], file_path: StrPath) -> str:
    """Render diagnostics as the report shown to the user; empty when none."""
    items = list(diagnostics)
    if not items:
        return ""
    lines = [f"Encountered {len(items)} issue(s) in {quote(file_path)}:"]
    lines.extend(f"  {diagnostic}" for diagnostic in items)
    return "\n".join(lines) + "\n"


def print_diagnostics(
    diagnostics: Iterable[Diagnostic],
    file_path: StrPath,
    stream: TextIO | None = None,
) -> None:
    """Write the diagnostic report to ``stream`` (standard error by default)."""
    text = format_diagnostics(diagnostics, file_path)
    if text:
        (stream if stream is not None else sys.stderr).write(text)