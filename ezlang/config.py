"""Loading of ``.ezconfig`` files: a minimal INI-like format."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ezlang.util import StrPath

_WHITESPACE = " \t\n\r\f\v"

_STRING_KEYS = {
    ("python", "executable"): "python_executable",
    ("c", "compiler"): "c_compiler",
    ("c", "standard"): "c_standard",
    ("c", "flags"): "c_flags",
    ("cpp", "compiler"): "cpp_compiler",
    ("cpp", "standard"): "cpp_standard",
    ("cpp", "flags"): "cpp_flags",
    ("build", "output_dir"): "output_dir",
}

_BOOL_KEYS = {
    ("build", "verbose"): "verbose_build",
    ("build", "no_env"): "no_env",
    ("build", "no-env"): "no_env",
}

CONFIG_FILE_NAME = ".ezconfig"


def _unquote(text: str) -> str:
    value = text.strip(_WHITESPACE)
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


@dataclass
class EZConfig:
    """Toolchain settings, starting from built-in defaults."""

    python_executable: str = "python3"
    c_compiler: str = "clang"
    c_standard: str = "c11"
    c_flags: str = ""
    cpp_compiler: str = "clang++"
    cpp_standard: str = "c++17"
    cpp_flags: str = ""
    output_dir: str = ".ezenv/build"
    verbose_build: bool = False
    no_env: bool = False

    def load_text(self, text: str) -> None:
        """Apply every setting found in config text; unknown keys are ignored."""
        section = ""
        for raw in text.splitlines():
            line = raw.strip(_WHITESPACE)
            if not line or line.startswith("#"):
                continue
            if len(line) >= 2 and line[0] == "[" and line[-1] == "]":
                section = line[1:-1]
                continue
            key, sep, value = line.partition("=")
            if sep:
                self._set_value(section, key.strip(_WHITESPACE), _unquote(value))

    def load_from_file(self, path: StrPath) -> None:
        """Apply the settings of a config file; raises OSError if unreadable."""
        with open(path, encoding="utf-8") as handle:
            self.load_text(handle.read())

    @classmethod
    def load_with_fallback(cls, project_root: StrPath) -> EZConfig:
        """Defaults, then ``~/.ezconfig``, then the nearest project ``.ezconfig``."""
        config = cls()

        home = os.environ.get("HOME")
        if home is not None:
            config._try_load(Path(home) / CONFIG_FILE_NAME)

        current = Path(project_root)
        while True:
            candidate = current / CONFIG_FILE_NAME
            if candidate.exists():
                config._try_load(candidate)
                break
            if current.parent == current:
                break
            current = current.parent
        return config

    def _try_load(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            self.load_from_file(path)
        except OSError:
            pass

    def _set_value(self, section: str, key: str, value: str) -> None:
        if (attr := _STRING_KEYS.get((section, key))) is not None:
            setattr(self, attr, value)
        elif (attr := _BOOL_KEYS.get((section, key))) is not None:
            setattr(self, attr, value in ("true", "1"))