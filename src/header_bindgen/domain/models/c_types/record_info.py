#!/usr/bin/env python3

"""Struct and union models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .type_info import TypeInfo


@dataclass(eq=False)
class FieldInfo:
    """A struct field or union variant at a byte offset."""

    name: str
    offset: int
    size: int
    value_type: TypeInfo


@dataclass(eq=False, kw_only=True)
class StructInfo(TypeInfo):
    """A struct with fields at oracle-reported offsets."""

    kind: ClassVar[str] = "struct"

    fields: list[FieldInfo] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class UnionInfo(TypeInfo):
    """A union; every variant sits at offset 0."""

    kind: ClassVar[str] = "union"

    variants: list[FieldInfo] = field(default_factory=list)
