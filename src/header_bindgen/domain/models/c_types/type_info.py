#!/usr/bin/env python3

"""Base type node model and the simple type variants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

POINTER_SIZE = 8


class FfiKind(str, Enum):
    """Marshal-level primitive kinds a value can cross the native boundary as."""

    INT8 = "int8_t"
    INT16 = "int16_t"
    INT32 = "int32_t"
    INT64 = "int64_t"
    UINT8 = "uint8_t"
    UINT16 = "uint16_t"
    UINT32 = "uint32_t"
    UINT64 = "uint64_t"
    FLOAT = "float"
    DOUBLE = "double"
    VOID = "void"
    CSTRING = "cstring"
    POINTER = "pointer"


@dataclass(eq=False, kw_only=True)
class TypeInfo:
    """A resolved type node.

    Nodes are shared by reference between owners (a struct field and a
    pointer may point at the same struct node) and are not mutated after
    the resolver has registered them.
    """

    kind: ClassVar[str] = "type"

    size: int
    name: str | None = None


@dataclass(eq=False, kw_only=True)
class BuiltinInfo(TypeInfo):
    """A primitive type with a fixed marshal kind."""

    kind: ClassVar[str] = "builtin"

    ffi_kind: FfiKind


@dataclass(eq=False, kw_only=True)
class AliasInfo(TypeInfo):
    """A named synonym for another type.

    ``no_emit`` marks language synonyms such as ``int`` or ``long`` that are
    transparent and never get a declaration of their own.
    """

    kind: ClassVar[str] = "alias"

    alias_to: TypeInfo
    no_emit: bool = False


@dataclass(eq=False, kw_only=True)
class PointerInfo(TypeInfo):
    """A pointer; ``base_type`` of None means an opaque handle."""

    kind: ClassVar[str] = "pointer"

    size: int = POINTER_SIZE
    base_type: TypeInfo | None = None
    is_const: bool = False


@dataclass(eq=False, kw_only=True)
class StaticArrayInfo(TypeInfo):
    """A fixed-length inline array."""

    kind: ClassVar[str] = "static_array"

    item_type: TypeInfo
    length: int


def unwrap_alias(item: TypeInfo) -> TypeInfo:
    """Follow alias chains down to the aliased node."""
    while isinstance(item, AliasInfo):
        item = item.alias_to
    return item


def unwrap_alias_and_pointer(item: TypeInfo) -> TypeInfo:
    """Strip aliases and typed pointers down to the underlying semantic node."""
    while True:
        if isinstance(item, AliasInfo):
            item = item.alias_to
        elif isinstance(item, PointerInfo) and item.base_type is not None:
            item = item.base_type
        else:
            return item
