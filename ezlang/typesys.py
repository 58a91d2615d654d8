"""The simplified type system shared by checking, interpretation and codegen."""

from __future__ import annotations

from enum import Enum


class SimpleType(Enum):
    """Value types known to the language; the value is the source-level name."""

    INT = "int"
    BOOL = "boolean"
    VOID = "void"
    STRING = "string"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


def is_numeric(t: SimpleType) -> bool:
    return t is SimpleType.INT


def is_boolean(t: SimpleType) -> bool:
    return t is SimpleType.BOOL


def is_void(t: SimpleType) -> bool:
    return t is SimpleType.VOID


def is_string(t: SimpleType) -> bool:
    return t is SimpleType.STRING