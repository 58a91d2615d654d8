"""Small path and file helpers shared across the toolchain."""

from __future__ import annotations

import os
from pathlib import Path

StrPath = str | os.PathLike


def quote(path: StrPath) -> str:
    """Wrap a path in double quotes for use on a shell command line."""
    return f'"{os.fspath(path)}"'


def read_file(file_path: StrPath) -> str:
    """Return the whole contents of a source file, line endings untouched.

    Raises OSError when the file cannot be opened.
    """
    path = Path(file_path)
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except OSError as exc:
        raise OSError(f"unable to open source file: {path}") from exc