"""Syntax tree, checks, interpreter, C generation and friend build planning for EZ programs."""

__version__ = "0.1.0"

__all__ = [
    "bootstrap",
    "codegen_c",
    "config",
    "diagnostics",
    "friends",
    "interpreter",
    "nix_env",
    "semantic",
    "syntax",
    "typesys",
    "util",
]