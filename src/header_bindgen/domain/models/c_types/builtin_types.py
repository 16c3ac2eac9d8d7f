#!/usr/bin/env python3

"""Built-in declarations every type graph starts with."""

from .type_graph import TypeGraph
from .type_info import POINTER_SIZE, AliasInfo, BuiltinInfo, FfiKind

CSTRING_NAME = "CString"
OPAQUE_POINTER_NAME = "opaque_pointer"

# name -> (size, marshal kind)
BUILTIN_TYPES: dict[str, tuple[int, FfiKind]] = {
    "int8_t": (1, FfiKind.INT8),
    "int16_t": (2, FfiKind.INT16),
    "int32_t": (4, FfiKind.INT32),
    "int64_t": (8, FfiKind.INT64),
    "uint8_t": (1, FfiKind.UINT8),
    "uint16_t": (2, FfiKind.UINT16),
    "uint32_t": (4, FfiKind.UINT32),
    "uint64_t": (8, FfiKind.UINT64),
    "size_t": (8, FfiKind.UINT64),
    "ssize_t": (8, FfiKind.INT64),
    "void": (0, FfiKind.VOID),
    CSTRING_NAME: (POINTER_SIZE, FfiKind.CSTRING),
    "float": (4, FfiKind.FLOAT),
    "double": (8, FfiKind.DOUBLE),
    OPAQUE_POINTER_NAME: (POINTER_SIZE, FfiKind.POINTER),
}

# Language spellings that are transparent synonyms.
NO_EMIT_ALIASES: dict[str, str] = {
    "char": "int8_t",
    "signed char": "int8_t",
    "unsigned char": "uint8_t",
    "short": "int16_t",
    "unsigned short": "uint16_t",
    "int": "int32_t",
    "unsigned int": "uint32_t",
    "long": "int64_t",
    "unsigned long": "uint64_t",
    "long long": "int64_t",
    "unsigned long long": "uint64_t",
    "bool": "uint8_t",
    "_Bool": "uint8_t",
}

# Platform typedefs that get a declaration of their own.
EMITTED_ALIASES: dict[str, str] = {
    "u_int8_t": "uint8_t",
    "u_int16_t": "uint16_t",
    "u_int32_t": "uint32_t",
    "u_int64_t": "uint64_t",
    "__int8_t": "int8_t",
    "__int16_t": "int16_t",
    "__int32_t": "int32_t",
    "__int64_t": "int64_t",
    "__uint8_t": "uint8_t",
    "__uint16_t": "uint16_t",
    "__uint32_t": "uint32_t",
    "__uint64_t": "uint64_t",
    "intptr_t": "int64_t",
    "uintptr_t": "uint64_t",
}


def register_builtin_types(graph: TypeGraph) -> None:
    """Seed ``graph`` with builtins and their synonyms."""
    for name, (size, ffi_kind) in BUILTIN_TYPES.items():
        graph.declarations[name] = BuiltinInfo(name=name, size=size, ffi_kind=ffi_kind)

    for aliases, no_emit in ((NO_EMIT_ALIASES, True), (EMITTED_ALIASES, False)):
        for name, target in aliases.items():
            target_item = graph.declarations[target]
            graph.declarations[name] = AliasInfo(
                name=name,
                size=target_item.size,
                alias_to=target_item,
                no_emit=no_emit,
            )
