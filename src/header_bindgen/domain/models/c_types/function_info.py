#!/usr/bin/env python3

"""Function declaration and function pointer models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .type_info import POINTER_SIZE, TypeInfo


@dataclass(eq=False)
class ParameterInfo:
    """A function parameter; C allows unnamed parameters."""

    name: str | None
    value_type: TypeInfo


@dataclass(eq=False, kw_only=True)
class FuncDeclInfo(TypeInfo):
    """A function signature."""

    kind: ClassVar[str] = "func_decl"

    size: int = POINTER_SIZE
    return_type: TypeInfo
    args: list[ParameterInfo] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class FuncPointerInfo(TypeInfo):
    """A pointer-sized callable described by ``decl``."""

    kind: ClassVar[str] = "func_pointer"

    size: int = POINTER_SIZE
    decl: FuncDeclInfo
