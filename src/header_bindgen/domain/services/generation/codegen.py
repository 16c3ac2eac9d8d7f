#!/usr/bin/env python3

"""Emits a Python ctypes module from a resolved type graph.

Every declaration is rendered into a scratch list inside
``FailureTracker.try_do``; only a fully rendered declaration is appended
to the output, so a failing symbol never leaves half-written code behind.
"""

import keyword
from collections.abc import Callable
from dataclasses import dataclass, field

from ....exceptions import GenerationError
from ....infrastructure.logging import get_logger, log_timing
from ...models.c_types import (
    PYTHON_OPERATORS,
    AliasInfo,
    BuiltinInfo,
    EnumInfo,
    FfiKind,
    FieldInfo,
    FuncDeclInfo,
    FuncPointerInfo,
    PointerInfo,
    StaticArrayInfo,
    StructInfo,
    TypeGraph,
    TypeInfo,
    UnionInfo,
    unwrap_alias,
    unwrap_alias_and_pointer,
)
from .failure_tracker import FailureTracker
from .marshal_types import (
    ADDRESS_KINDS,
    FLOAT_KINDS,
    HOST_TYPE_BY_KIND,
    STRUCT_FORMAT_BY_KIND,
    ffi_kind_of,
    marshal_type,
    prototype_expr,
    restype_expr,
    tuple_expr,
)
from .options import GeneratorOptions
from .runtime_template import HELPERS, PRELUDE, RESERVED_NAMES

logger = get_logger(__name__)


def py_ident(name: str) -> str:
    """Module-level Python name for a C identifier.

    Keywords and names the generated prelude defines get a trailing
    underscore, as do names whose ``read_``/``write_`` marshalers would
    shadow a helper.
    """
    if keyword.iskeyword(name) or name in RESERVED_NAMES or f"read_{name}" in RESERVED_NAMES:
        return f"{name}_"
    return name


def py_member(name: str) -> str:
    """Enum member name; the class namespace only clashes with keywords."""
    return f"{name}_" if keyword.iskeyword(name) else name


def _transparent(item: TypeInfo) -> TypeInfo:
    while isinstance(item, AliasInfo) and item.no_emit:
        item = item.alias_to
    return item


def _is_void(item: TypeInfo) -> bool:
    target = unwrap_alias(item)
    return isinstance(target, BuiltinInfo) and target.ffi_kind is FfiKind.VOID


@dataclass
class GenerationResult:
    """Ordered output fragments plus the symbols that could not be generated."""

    fragments: list[str] = field(default_factory=list)
    failed_symbols: set[str] = field(default_factory=set)

    @property
    def text(self) -> str:
        return "".join(self.fragments)


@dataclass
class _WrapperArg:
    name: str
    hint: str
    call_name: str
    transform: list[str] = field(default_factory=list)


class LayoutCodeGen:
    """Walks a ``TypeGraph`` in declaration order and emits bindings."""

    def __init__(self, options: GeneratorOptions | None = None):
        self.options = options or GeneratorOptions()
        self.tracker = FailureTracker(self.options.fail_fast)
        self._readers: set[str] = set()
        self._writers: set[str] = set()
        self._renderers: dict[str, Callable[[str, TypeInfo], list[str]]] = {
            "builtin": self._render_builtin,
            "enum": self._render_enum,
            "alias": self._render_alias,
            "pointer": self._render_pointer,
            "func_decl": self._render_func_decl,
            "struct": self._render_struct,
        }

    def _line(self, out: list[str], text: str, level: int = 0) -> None:
        out.append(" " * (self.options.indent_width * level) + text + "\n")

    # ------------------------------------------------------------------
    # Type references
    # ------------------------------------------------------------------

    def type_ref(self, item: TypeInfo) -> str:
        """Host-level type hint for ``item`` (never evaluated at runtime)."""
        item = _transparent(item)
        if item.name is not None and not isinstance(item, StaticArrayInfo):
            return py_ident(item.name)
        if isinstance(item, PointerInfo):
            return self.pointer_type_ref(item)
        if isinstance(item, StaticArrayInfo):
            return f"list[{self.type_ref(item.item_type)}]"
        if isinstance(item, FuncPointerInfo):
            return self.callable_type_ref(item.decl)
        if isinstance(item, FuncDeclInfo):
            return self.callable_type_ref(item)
        if isinstance(item, UnionInfo):
            return "dict[str, Any]"
        if isinstance(item, BuiltinInfo):
            return HOST_TYPE_BY_KIND[item.ffi_kind]
        return "Any"

    def pointer_type_ref(self, item: PointerInfo) -> str:
        if item.base_type is None:
            return "Pointer"
        wrapper = "ConstPtrT" if item.is_const else "PtrT"
        return f"{wrapper}[{self.type_ref(item.base_type)}]"

    def callable_type_ref(self, decl: FuncDeclInfo) -> str:
        args = ", ".join(self.type_ref(arg.value_type) for arg in decl.args)
        return f"Callable[[{args}], {self.type_ref(decl.return_type)}]"

    def reader_expr(self, item: TypeInfo) -> str:
        """Callable expression ``(source, offset) -> value`` for ``item``.

        Raises:
            GenerationError: If the reader has not been emitted
        """
        item = _transparent(item)
        if isinstance(item, StaticArrayInfo):
            inner = self.reader_expr(item.item_type)
            return (
                f"lambda source, offset=0: read_array({inner}, source, offset, "
                f"{item.item_type.size}, {item.length})"
            )
        if isinstance(item, PointerInfo) and item.name is None:
            return "read_opaque_pointer"
        if item.name is None:
            raise GenerationError(f"anonymous {item.kind} has no reader")
        reader = f"read_{py_ident(item.name)}"
        if reader not in self._readers:
            raise GenerationError(f"{reader} is not available")
        return reader

    def writer_expr(self, item: TypeInfo) -> str:
        """Callable expression ``(value, buffer, offset) -> None`` for ``item``."""
        item = _transparent(item)
        if isinstance(item, StaticArrayInfo):
            inner = self.writer_expr(item.item_type)
            return f"lambda x, buffer, offset=0: write_array({inner}, x, buffer, offset, {item.item_type.size})"
        if isinstance(item, PointerInfo) and item.name is None:
            return "write_opaque_pointer"
        if item.name is None:
            raise GenerationError(f"anonymous {item.kind} has no writer")
        writer = f"write_{py_ident(item.name)}"
        if writer not in self._writers:
            raise GenerationError(f"{writer} is not available")
        return writer

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _render_builtin(self, name: str, item: BuiltinInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)
        host = HOST_TYPE_BY_KIND[item.ffi_kind]
        if host != name:
            self._line(out, f"{ident} = {host}")

        if item.ffi_kind is FfiKind.VOID:
            return out

        fmt = STRUCT_FORMAT_BY_KIND[item.ffi_kind]
        if self.options.readers:
            self._line(out, f"def read_{ident}(source: Any, offset: int = 0) -> {ident}:")
            if item.ffi_kind is FfiKind.CSTRING:
                self._line(out, f"return CString(_read({fmt}, source, offset))", 1)
            else:
                self._line(out, f"return _read({fmt}, source, offset)", 1)

        if self.options.writers:
            self._line(out, f"def write_{ident}(x: {ident}, buffer: Any, offset: int = 0) -> None:")
            if item.ffi_kind in ADDRESS_KINDS:
                value = "_address_of(x)"
            elif item.ffi_kind in FLOAT_KINDS:
                value = "x or 0.0"
            else:
                value = "x or 0"
            self._line(out, f"_write({fmt}, buffer, offset, {value})", 1)

        self._register_marshalers(ident)
        return out

    def _render_enum(self, name: str, item: EnumInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)
        self._line(out, f"class {ident}(_enum.IntEnum):")
        if not item.fields:
            self._line(out, "pass", 1)
        for field_name, value in item.fields.items():
            self._line(out, f"{py_member(field_name)} = {value.render(PYTHON_OPERATORS, name)}", 1)
        out.append("\n")

        if self.options.readers:
            self._line(out, f"def read_{ident}(source: Any, offset: int = 0) -> {ident}:")
            self._line(out, f"return _enum_member({ident}, _read(_U32, source, offset))", 1)
        if self.options.writers:
            self._line(out, f"def write_{ident}(x: {ident}, buffer: Any, offset: int = 0) -> None:")
            self._line(out, "_write(_U32, buffer, offset, int(x or 0) & 0xFFFFFFFF)", 1)

        self._register_marshalers(ident)
        return out

    def _render_alias(self, name: str, item: AliasInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)
        self._line(out, f'{ident}: TypeAlias = "{self.type_ref(item.alias_to)}"')
        if _is_void(item.alias_to):
            return out

        if self.options.readers:
            self._line(out, f"read_{ident} = {self.reader_expr(item.alias_to)}")
        if self.options.writers:
            self._line(out, f"write_{ident} = {self.writer_expr(item.alias_to)}")

        self._register_marshalers(ident)
        return out

    def _render_pointer(self, name: str, item: PointerInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)
        self._line(out, f'{ident}: TypeAlias = "{self.pointer_type_ref(item)}"')
        if self.options.readers:
            self._line(out, f"read_{ident} = read_opaque_pointer")
        if self.options.writers:
            self._line(out, f"write_{ident} = write_opaque_pointer")

        self._register_marshalers(ident)
        return out

    def _render_func_decl(self, name: str, item: FuncDeclInfo) -> list[str]:
        out: list[str] = []
        if self.options.func_decl_types:
            self._line(out, f'{py_ident(name)}__signature: TypeAlias = "{self.callable_type_ref(item)}"')
        # The callable binding is emitted by the wrapper pass
        return out

    def _emit_func_pointer(self, out: list[str], name: str, item: FuncPointerInfo) -> None:
        ident = py_ident(name)
        header = self.tracker.try_do(
            lambda: [f'{ident}: TypeAlias = "{self.callable_type_ref(item.decl)}"\n'],
            name,
        )
        if header is None:
            return
        out.extend(header)

        if self.options.readers:
            reader = self.tracker.try_do(lambda: self._render_func_pointer_reader(ident, item), f"read_{name}")
            if reader is not None:
                out.extend(reader)
                self._readers.add(f"read_{ident}")

        if self.options.writers:
            writer = self.tracker.try_do(lambda: self._render_func_pointer_writer(ident, item), f"write_{name}")
            if writer is not None:
                out.extend(writer)
                self._writers.add(f"write_{ident}")

    def _render_func_pointer_reader(self, ident: str, item: FuncPointerInfo) -> list[str]:
        out: list[str] = []
        prototype = prototype_expr(item.decl)
        self._line(out, f"def read_{ident}(source: Any, offset: int = 0) -> {ident}:")
        self._line(out, f"return _ctypes.cast(read_opaque_pointer(source, offset), {prototype})", 1)
        return out

    def _render_func_pointer_writer(self, ident: str, item: FuncPointerInfo) -> list[str]:
        out: list[str] = []
        prototype = prototype_expr(item.decl)
        self._line(out, f"def write_{ident}(x: {ident}, buffer: Any, offset: int = 0) -> None:")
        self._line(out, f"write_opaque_pointer(_callback_address({prototype}, x), buffer, offset)", 1)
        return out

    def _field_read(self, struct_ident: str, f: FieldInfo) -> str:
        offset = f"offset + {f.offset}"
        value_type = _transparent(f.value_type)
        if isinstance(value_type, UnionInfo):
            return f"read_{struct_ident}__{f.name}(source, {offset})"
        if isinstance(value_type, StaticArrayInfo):
            item = value_type.item_type
            return f"read_array({self.reader_expr(item)}, source, {offset}, {item.size}, {value_type.length})"
        return f"{self.reader_expr(value_type)}(source, {offset})"

    def _field_write(self, struct_ident: str, f: FieldInfo) -> str:
        offset = f"offset + {f.offset}"
        value = f'x["{f.name}"]'
        value_type = _transparent(f.value_type)
        if isinstance(value_type, UnionInfo):
            return f"write_{struct_ident}__{f.name}({value}, buffer, {offset})"
        if isinstance(value_type, StaticArrayInfo):
            item = value_type.item_type
            return f"write_array({self.writer_expr(item)}, {value}, buffer, {offset}, {item.size})"
        return f"{self.writer_expr(value_type)}({value}, buffer, {offset})"

    def _render_union_helpers(self, struct_ident: str, f: FieldInfo, union: UnionInfo) -> list[str]:
        out: list[str] = []
        helper = f"{struct_ident}__{f.name}"
        if self.options.readers:
            self._line(out, f"def read_{helper}(source: Any, offset: int = 0) -> dict[str, Any]:")
            self._line(out, "return {", 1)
            for variant in union.variants:
                self._line(out, f'"{variant.name}": {self._field_read(helper, variant)},', 2)
            self._line(out, "}", 1)
        if self.options.writers:
            self._line(out, f"def write_{helper}(x: dict[str, Any], buffer: Any, offset: int = 0) -> None:")
            if not union.variants:
                self._line(out, "pass", 1)
            for variant in union.variants:
                self._line(out, f'if "{variant.name}" in x:', 1)
                self._line(out, self._field_write(helper, variant), 2)
        return out

    def _render_struct(self, name: str, item: StructInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)

        self._line(out, f"{ident} = _typing.TypedDict(")
        self._line(out, f'"{name}",', 1)
        self._line(out, "{", 1)
        for f in item.fields:
            self._line(out, f'"{f.name}": "{self.type_ref(f.value_type)}",', 2)
        self._line(out, "},", 1)
        self._line(out, "total=False,", 1)
        self._line(out, ")")

        for f in item.fields:
            value_type = _transparent(f.value_type)
            if isinstance(value_type, UnionInfo):
                out.extend(self._render_union_helpers(ident, f, value_type))

        if self.options.readers:
            self._line(out, f"def read_{ident}(source: Any, offset: int = 0) -> {ident}:")
            self._line(out, "return {", 1)
            for f in item.fields:
                self._line(out, f'"{f.name}": {self._field_read(ident, f)},', 2)
            self._line(out, "}", 1)

        if self.options.writers:
            self._line(out, f"def write_{ident}(x: {ident}, buffer: Any, offset: int = 0) -> None:")
            if not item.fields:
                self._line(out, "pass", 1)
            for f in item.fields:
                self._line(out, f'if "{f.name}" in x:', 1)
                self._line(out, self._field_write(ident, f), 2)

        if self.options.struct_sizes:
            self._line(out, f"{ident}__ffi_size = {item.size}")

        if self.options.struct_allocs and self.options.writers:
            self._line(out, f"def alloc_{ident}(x: {ident}, buffer: Any = None) -> Any:")
            self._line(out, "if buffer is None:", 1)
            self._line(out, f"buffer = _ctypes.create_string_buffer({item.size})", 2)
            self._line(out, f"write_{ident}(x, buffer, 0)", 1)
            self._line(out, "return buffer", 1)

        self._register_marshalers(ident)
        return out

    def _register_marshalers(self, ident: str) -> None:
        if self.options.readers:
            self._readers.add(f"read_{ident}")
        if self.options.writers:
            self._writers.add(f"write_{ident}")

    # ------------------------------------------------------------------
    # Native symbols
    # ------------------------------------------------------------------

    def _signature_entry(self, name: str, decl: FuncDeclInfo) -> str:
        restype = restype_expr(decl.return_type)
        argtypes = tuple_expr([marshal_type(arg.value_type) for arg in decl.args])
        return " " * self.options.indent_width + f'"{name}": ({restype}, {argtypes}),\n'

    def generate_symbol_imports(self, graph: TypeGraph, out: list[str]) -> None:
        """Emit the library handle and one grouped signature table."""
        lib_path_var = self.options.lib_path_code(out, self.options)
        self._line(out, f"imported_lib = _ctypes.CDLL({lib_path_var})")
        out.append("\n")

        self._line(out, "_symbol_signatures = {")
        for name, item in graph.items_of_kind("func_decl"):
            entry = self.tracker.try_do(
                lambda: self._signature_entry(name, item),
                name,
                "failed to generate symbol import",
            )
            if entry is not None:
                out.append(entry)
        self._line(out, "}")
        self._line(out, "for _name, (_restype, _argtypes) in _symbol_signatures.items():")
        self._line(out, "_symbol = getattr(imported_lib, _name)", 1)
        self._line(out, "_symbol.restype = _restype", 1)
        self._line(out, "_symbol.argtypes = _argtypes", 1)
        out.append("\n")

    @staticmethod
    def _symbol_ref(name: str) -> str:
        if keyword.iskeyword(name):
            return f'getattr(imported_lib, "{name}")'
        return f"imported_lib.{name}"

    def _wrapper_arg(self, index: int, value_type: TypeInfo, arg_name: str | None) -> _WrapperArg:
        name = py_ident(arg_name or f"arg{index}")
        arg = _WrapperArg(name=name, hint=self.type_ref(value_type), call_name=name)
        if ffi_kind_of(value_type) is not FfiKind.POINTER:
            return arg

        target = unwrap_alias(value_type)
        if isinstance(target, FuncPointerInfo):
            arg.call_name = f"_{name}"
            arg.transform.append(f"_{name} = _callback_address({prototype_expr(target.decl)}, {name})")
            return arg

        pointee = unwrap_alias_and_pointer(value_type)
        if isinstance(pointee, StructInfo) and pointee.name is not None and self.options.writers:
            struct_ident = py_ident(pointee.name)
            if f"write_{struct_ident}" not in self._writers:
                raise GenerationError(f"write_{struct_ident} is not available")
            arg.hint = f"{arg.hint} | {struct_ident}"
            arg.call_name = f"_{name}"
            arg.transform.extend(
                [
                    f"_{name} = {name}",
                    f"if isinstance({name}, dict):",
                    f"{' ' * self.options.indent_width}_{name} = _ctypes.create_string_buffer({pointee.size})",
                    f"{' ' * self.options.indent_width}write_{struct_ident}({name}, _{name}, 0)",
                ]
            )
        return arg

    def _render_wrapper(self, name: str, decl: FuncDeclInfo) -> list[str]:
        out: list[str] = []
        ident = py_ident(name)
        # Unmappable return types fail the whole wrapper
        marshal_type(decl.return_type)
        args = [self._wrapper_arg(i, arg.value_type, arg.name) for i, arg in enumerate(decl.args)]
        symbol = self._symbol_ref(name)
        # Strings come back as an address
        returns_string = ffi_kind_of(decl.return_type) is FfiKind.CSTRING

        if not returns_string and not any(arg.transform for arg in args):
            self._line(out, f"{ident} = {symbol}")
            return out

        params = ", ".join(f"{arg.name}: {arg.hint}" for arg in args)
        self._line(out, f"def {ident}({params}) -> {self.type_ref(decl.return_type)}:")
        for arg in args:
            for line in arg.transform:
                self._line(out, line, 1)
        call = f"{symbol}({', '.join(arg.call_name for arg in args)})"
        self._line(out, f"return CString({call})" if returns_string else f"return {call}", 1)
        return out

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    @log_timing
    def generate_all(self, graph: TypeGraph) -> GenerationResult:
        """Generate the whole module for ``graph``."""
        self.tracker = FailureTracker(self.options.fail_fast)
        self._readers.clear()
        self._writers.clear()

        out: list[str] = [PRELUDE]
        if self.options.helpers:
            out.append(HELPERS)

        for name, item in graph.items():
            if isinstance(item, AliasInfo) and item.no_emit:
                continue
            if isinstance(item, FuncPointerInfo):
                self._emit_func_pointer(out, name, item)
                continue

            lines = self.tracker.try_do(lambda: self._render(name, item), name)
            if lines:
                out.extend(lines)
                out.append("\n")

        if self.options.func_symbols_import:
            self.generate_symbol_imports(graph, out)

        if self.options.func_wrappers:
            if not self.options.func_symbols_import:
                logger.warning("Function wrappers need the symbol import table, skipping wrappers")
            else:
                for name, item in graph.items_of_kind("func_decl"):
                    lines = self.tracker.try_do(
                        lambda: self._render_wrapper(name, item),
                        name,
                        f"failed to generate wrapper for {name}",
                    )
                    if lines:
                        out.extend(lines)

        failed = set(self.tracker.failed_symbols)
        logger.info(f"Generated {len(out)} fragments, {len(failed)} failed symbols")
        return GenerationResult(fragments=out, failed_symbols=failed)

    def _render(self, name: str, item: TypeInfo) -> list[str]:
        renderer = self._renderers.get(item.kind)
        if renderer is None:
            raise GenerationError(f"cannot generate top-level {item.kind}")
        return renderer(name, item)


def generate(graph: TypeGraph, options: GeneratorOptions | None = None) -> GenerationResult:
    """Generate bindings for ``graph``."""
    return LayoutCodeGen(options).generate_all(graph)
