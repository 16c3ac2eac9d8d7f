#!/usr/bin/env python3

"""Marshal-level descriptors: how a value crosses the native call boundary."""

from ....exceptions import UnmappableTypeError
from ...models.c_types import (
    BuiltinInfo,
    EnumInfo,
    FfiKind,
    FuncDeclInfo,
    FuncPointerInfo,
    PointerInfo,
    TypeInfo,
    unwrap_alias,
)

CTYPES_BY_KIND: dict[FfiKind, str] = {
    FfiKind.INT8: "_ctypes.c_int8",
    FfiKind.INT16: "_ctypes.c_int16",
    FfiKind.INT32: "_ctypes.c_int32",
    FfiKind.INT64: "_ctypes.c_int64",
    FfiKind.UINT8: "_ctypes.c_uint8",
    FfiKind.UINT16: "_ctypes.c_uint16",
    FfiKind.UINT32: "_ctypes.c_uint32",
    FfiKind.UINT64: "_ctypes.c_uint64",
    FfiKind.FLOAT: "_ctypes.c_float",
    FfiKind.DOUBLE: "_ctypes.c_double",
    FfiKind.VOID: "None",
    FfiKind.CSTRING: "_ctypes.c_char_p",
    FfiKind.POINTER: "_ctypes.c_void_p",
}

# Precompiled struct.Struct instances defined by the generated prelude.
STRUCT_FORMAT_BY_KIND: dict[FfiKind, str] = {
    FfiKind.INT8: "_I8",
    FfiKind.INT16: "_I16",
    FfiKind.INT32: "_I32",
    FfiKind.INT64: "_I64",
    FfiKind.UINT8: "_U8",
    FfiKind.UINT16: "_U16",
    FfiKind.UINT32: "_U32",
    FfiKind.UINT64: "_U64",
    FfiKind.FLOAT: "_F32",
    FfiKind.DOUBLE: "_F64",
    FfiKind.CSTRING: "_PTR",
    FfiKind.POINTER: "_PTR",
}

HOST_TYPE_BY_KIND: dict[FfiKind, str] = {
    FfiKind.INT8: "int",
    FfiKind.INT16: "int",
    FfiKind.INT32: "int",
    FfiKind.INT64: "int",
    FfiKind.UINT8: "int",
    FfiKind.UINT16: "int",
    FfiKind.UINT32: "int",
    FfiKind.UINT64: "int",
    FfiKind.FLOAT: "float",
    FfiKind.DOUBLE: "float",
    FfiKind.VOID: "None",
    FfiKind.CSTRING: "CString",
    FfiKind.POINTER: "Pointer",
}

FLOAT_KINDS = {FfiKind.FLOAT, FfiKind.DOUBLE}
ADDRESS_KINDS = {FfiKind.CSTRING, FfiKind.POINTER}


def ffi_kind_of(item: TypeInfo) -> FfiKind:
    """Marshal kind of a type node.

    Raises:
        UnmappableTypeError: For records, arrays and bare signatures, which
            cannot be passed by value through ctypes prototypes
    """
    item = unwrap_alias(item)
    if isinstance(item, BuiltinInfo):
        return item.ffi_kind
    if isinstance(item, EnumInfo):
        return FfiKind.INT32
    if isinstance(item, (PointerInfo, FuncPointerInfo)):
        return FfiKind.POINTER
    raise UnmappableTypeError(f"no marshal type for {item.kind} {item.name or '<anonymous>'}")


def marshal_type(item: TypeInfo) -> str:
    """ctypes expression describing ``item`` in a native signature."""
    return CTYPES_BY_KIND[ffi_kind_of(item)]


def restype_expr(item: TypeInfo) -> str:
    """Restype for an imported symbol.

    Strings come back as a bare address so the wrapper can return a
    ``CString`` rather than the ``bytes`` copy ``c_char_p`` would produce.
    """
    kind = ffi_kind_of(item)
    if kind is FfiKind.CSTRING:
        return CTYPES_BY_KIND[FfiKind.POINTER]
    return CTYPES_BY_KIND[kind]


def prototype_expr(decl: FuncDeclInfo) -> str:
    """``_ctypes.CFUNCTYPE(...)`` expression for a callback signature."""
    types = [marshal_type(decl.return_type), *(marshal_type(arg.value_type) for arg in decl.args)]
    return f"_ctypes.CFUNCTYPE({', '.join(types)})"


def tuple_expr(items: list[str]) -> str:
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"
