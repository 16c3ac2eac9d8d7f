#!/usr/bin/env python3

"""C type graph models."""

from .builtin_types import CSTRING_NAME, OPAQUE_POINTER_NAME, register_builtin_types
from .enum_info import (
    PYTHON_OPERATORS,
    BinaryExpr,
    ConstantRef,
    EnumInfo,
    EnumValue,
    IntLiteral,
    ParenExpr,
    UnaryExpr,
)
from .function_info import FuncDeclInfo, FuncPointerInfo, ParameterInfo
from .record_info import FieldInfo, StructInfo, UnionInfo
from .type_graph import LazyAlias, TypeGraph
from .type_info import (
    POINTER_SIZE,
    AliasInfo,
    BuiltinInfo,
    FfiKind,
    PointerInfo,
    StaticArrayInfo,
    TypeInfo,
    unwrap_alias,
    unwrap_alias_and_pointer,
)

__all__ = [
    "AliasInfo",
    "BinaryExpr",
    "BuiltinInfo",
    "CSTRING_NAME",
    "ConstantRef",
    "EnumInfo",
    "EnumValue",
    "FfiKind",
    "FieldInfo",
    "FuncDeclInfo",
    "FuncPointerInfo",
    "IntLiteral",
    "LazyAlias",
    "OPAQUE_POINTER_NAME",
    "POINTER_SIZE",
    "PYTHON_OPERATORS",
    "ParameterInfo",
    "ParenExpr",
    "PointerInfo",
    "StaticArrayInfo",
    "StructInfo",
    "TypeGraph",
    "TypeInfo",
    "UnaryExpr",
    "UnionInfo",
    "register_builtin_types",
    "unwrap_alias",
    "unwrap_alias_and_pointer",
]
