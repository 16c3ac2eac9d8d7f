"""Tests for resolving clang declaration nodes into a type graph."""

from pathlib import Path

import pytest

from header_bindgen.domain.models.c_types import (
    AliasInfo,
    BuiltinInfo,
    EnumInfo,
    FfiKind,
    FuncDeclInfo,
    FuncPointerInfo,
    PointerInfo,
    StaticArrayInfo,
    StructInfo,
    UnionInfo,
    unwrap_alias,
)
from header_bindgen.domain.services.parsing import AstResolver, resolve
from header_bindgen.exceptions import (
    DeclarationNotFoundError,
    MixedEnumCounterError,
    UnknownMemberShapeError,
    UnresolvedLazyAliasError,
)
from tests.clang_ast import (
    binary,
    builtin_type,
    decl_ref,
    enum_constant,
    enum_decl,
    field,
    func_pointer_typedef,
    function,
    int_literal,
    param,
    pointer_type,
    record,
    record_type,
    typedef,
    typedef_type,
)
from tests.conftest import FakeLayoutOracle


def point_oracle() -> FakeLayoutOracle:
    return FakeLayoutOracle(
        sizes={"Point": 8},
        offsets={("Point", "x"): 0, ("Point", "y"): 4},
    )


def point_decl() -> dict:
    return record("Point", [field("x", "int"), field("y", "int")])


class TestEnums:
    """Enum counters and symbolic values."""

    @pytest.mark.unit
    def test_counter_continues_after_literal(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            enum_decl(
                "Counter",
                [
                    enum_constant("A"),
                    enum_constant("B"),
                    enum_constant("C", int_literal(10)),
                    enum_constant("D"),
                ],
            )
        ]
        graph = resolve(nodes, header_path, fake_oracle)

        counter = graph.get("Counter")
        assert isinstance(counter, EnumInfo)
        assert counter.size == 4
        assert {name: value.value for name, value in counter.fields.items()} == {
            "A": "0",
            "B": "1",
            "C": "10",
            "D": "11",
        }

    @pytest.mark.unit
    def test_implicit_member_after_expression_is_rejected(
        self, header_path: Path, fake_oracle: FakeLayoutOracle
    ) -> None:
        nodes = [
            enum_decl(
                "Flags",
                [
                    enum_constant("FLAG_A", binary("<<", int_literal(1), int_literal(2))),
                    enum_constant("FLAG_B"),
                ],
            )
        ]
        with pytest.raises(MixedEnumCounterError):
            resolve(nodes, header_path, fake_oracle)

    @pytest.mark.unit
    def test_expressions_reference_earlier_constants(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            enum_decl("Color", [enum_constant("RED"), enum_constant("GREEN")]),
            enum_decl(
                "Palette",
                [
                    enum_constant("WARM", binary("|", decl_ref("RED"), int_literal(16))),
                    enum_constant("ALL", binary("|", decl_ref("WARM"), decl_ref("GREEN"))),
                ],
            ),
        ]
        graph = resolve(nodes, header_path, fake_oracle)
        palette = graph.get("Palette")
        assert isinstance(palette, EnumInfo)
        assert palette.fields["WARM"].render(enum_name="Palette") == "((Color.RED) | (16))"
        assert palette.fields["ALL"].render(enum_name="Palette") == "((WARM) | (Color.GREEN))"

    @pytest.mark.unit
    def test_anonymous_enum_adopts_typedef_name(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            enum_decl(None, [enum_constant("MODE_OFF"), enum_constant("MODE_ON")], at=8),
            typedef("Mode", "enum Mode", at=30, begin=0),
        ]
        graph = resolve(nodes, header_path, fake_oracle)

        mode = graph.get("Mode")
        assert isinstance(mode, EnumInfo)
        assert list(mode.fields) == ["MODE_OFF", "MODE_ON"]

    @pytest.mark.unit
    def test_unwrapped_anonymous_enum_is_skipped(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            enum_decl(None, [enum_constant("LONELY")], at=8),
            typedef("Later", "int", at=40, begin=40),
        ]
        graph = resolve(nodes, header_path, fake_oracle)
        assert not list(graph.items_of_kind("enum"))
        assert isinstance(graph.get("Later"), AliasInfo)


class TestRecords:
    """Struct layout, nested records and anonymous members."""

    @pytest.mark.unit
    def test_struct_fields_use_oracle_layout(self, header_path: Path) -> None:
        graph = resolve([point_decl()], header_path, point_oracle())

        point = graph.get("Point")
        assert isinstance(point, StructInfo)
        assert point.size == 8
        assert [f.name for f in point.fields] == ["x", "y"]
        assert [(f.offset, f.size) for f in point.fields] == [(0, 4), (4, 4)]

        # "int" is a transparent synonym of int32_t
        x_type = point.fields[0].value_type
        assert isinstance(x_type, BuiltinInfo)
        assert x_type.ffi_kind is FfiKind.INT32

    @pytest.mark.unit
    def test_forward_declaration_is_not_registered(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        graph = resolve([record("Opaque", None)], header_path, fake_oracle)
        assert "Opaque" not in graph
        assert fake_oracle.query_count == 0

    @pytest.mark.unit
    def test_array_and_string_fields(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(
            sizes={"Named": 24},
            offsets={("Named", "name"): 0, ("Named", "values"): 8},
        )
        nodes = [record("Named", [field("name", "const char *"), field("values", "uint16_t[4]")])]
        graph = resolve(nodes, header_path, oracle)

        named = graph.get("Named")
        assert isinstance(named, StructInfo)
        name_type, values_type = (f.value_type for f in named.fields)
        assert isinstance(name_type, BuiltinInfo) and name_type.ffi_kind is FfiKind.CSTRING
        assert isinstance(values_type, StaticArrayInfo)
        assert values_type.length == 4
        assert values_type.size == 8

    @pytest.mark.unit
    def test_named_anonymous_union_becomes_one_field(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(
            sizes={"Value": 8},
            offsets={("Value", "tag"): 0, ("Value", "data"): 4},
            field_sizes={("Value", "data"): 4},
        )
        nodes = [
            record(
                "Value",
                [
                    field("tag", "int", at=10),
                    record(None, [field("i", "int", at=36), field("f", "float", at=44)], tag="union", at=30),
                    field("data", "union (unnamed union at mylib.h:3:5)", at=52, begin=30),
                ],
            )
        ]
        graph = resolve(nodes, header_path, oracle)

        value = graph.get("Value")
        assert isinstance(value, StructInfo)
        assert [f.name for f in value.fields] == ["tag", "data"]

        data = value.fields[1]
        assert (data.offset, data.size) == (4, 4)
        assert isinstance(data.value_type, UnionInfo)
        assert [(v.name, v.offset) for v in data.value_type.variants] == [("i", 0), ("f", 0)]

    @pytest.mark.unit
    def test_unnamed_anonymous_members_are_flattened(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(
            sizes={"Packet": 8},
            offsets={("Packet", "kind"): 0, ("Packet", "u32"): 4, ("Packet", "f32"): 4},
        )
        nodes = [
            record(
                "Packet",
                [
                    field("kind", "int", at=10),
                    record(None, [field("u32", "uint32_t", at=36), field("f32", "float", at=48)], tag="union", at=30),
                    field(None, "union (unnamed union at mylib.h:3:5)", at=30, implicit=True),
                    {"kind": "IndirectFieldDecl", "name": "u32"},
                    {"kind": "IndirectFieldDecl", "name": "f32"},
                ],
            )
        ]
        graph = resolve(nodes, header_path, oracle)

        packet = graph.get("Packet")
        assert isinstance(packet, StructInfo)
        assert [f.name for f in packet.fields] == ["kind", "u32", "f32"]
        assert [f.offset for f in packet.fields] == [0, 4, 4]

    @pytest.mark.unit
    def test_anonymous_struct_with_field_name_is_rejected(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(sizes={"Outer": 8})
        nodes = [
            record(
                "Outer",
                [
                    record(None, [field("a", "int", at=20)], tag="struct", at=10),
                    field("pos", "struct (unnamed struct at mylib.h:2:5)", at=30, begin=10),
                ],
            )
        ]
        with pytest.raises(UnknownMemberShapeError):
            resolve(nodes, header_path, oracle)

    @pytest.mark.unit
    def test_nested_named_record_is_hoisted(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(
            sizes={"Outer": 4, "Outer::Inner": 4},
            offsets={("Outer::Inner", "v"): 0, ("Outer", "inner"): 0},
        )
        nodes = [
            record(
                "Outer",
                [
                    record("Inner", [field("v", "int")]),
                    field("inner", "struct Inner"),
                ],
            )
        ]
        graph = resolve(nodes, header_path, oracle)

        assert list(graph.items_of_kind("struct")) == [("Inner", graph.get("Inner")), ("Outer", graph.get("Outer"))]
        outer = graph.get("Outer")
        assert isinstance(outer, StructInfo)
        inner_type = outer.fields[0].value_type
        assert isinstance(inner_type, AliasInfo)
        assert inner_type.alias_to is graph.get("Inner")
        assert ("sizeof", "Outer::Inner") in oracle.queries

    @pytest.mark.unit
    def test_anonymous_struct_adopts_typedef_name(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(sizes={"Vec2": 8}, offsets={("Vec2", "x"): 0, ("Vec2", "y"): 4})
        nodes = [
            record(None, [field("x", "float", at=20), field("y", "float", at=30)], at=8),
            typedef("Vec2", "struct Vec2", at=40, begin=0),
        ]
        graph = resolve(nodes, header_path, oracle)
        assert isinstance(graph.get("Vec2"), StructInfo)

    @pytest.mark.unit
    def test_unknown_field_type_aborts(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(sizes={"Broken": 4})
        nodes = [record("Broken", [field("mystery", "Unknown")])]
        with pytest.raises(DeclarationNotFoundError) as excinfo:
            resolve(nodes, header_path, oracle)
        assert excinfo.value.name == "Unknown"


class TestPointers:
    """Pointer typedefs and pointer reuse."""

    @pytest.mark.unit
    def test_fields_reuse_named_const_pointer(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(
            sizes={"Point": 8, "Segment": 24},
            offsets={
                ("Point", "x"): 0,
                ("Point", "y"): 4,
                ("Segment", "start"): 0,
                ("Segment", "end"): 8,
                ("Segment", "scratch"): 16,
            },
        )
        nodes = [
            point_decl(),
            typedef("PointConstPtr", "const struct Point *"),
            record(
                "Segment",
                [
                    field("start", "const Point *"),
                    field("end", "const Point *"),
                    field("scratch", "Point *"),
                ],
            ),
        ]
        graph = resolve(nodes, header_path, oracle)

        named = graph.get("PointConstPtr")
        assert isinstance(named, PointerInfo)
        assert named.is_const
        assert named.base_type is not None and named.base_type.name == "Point"
        assert "PointConstPtr" in graph.pointer_symbol_names

        segment = graph.get("Segment")
        assert isinstance(segment, StructInfo)
        start, end, scratch = (f.value_type for f in segment.fields)
        assert isinstance(start, AliasInfo) and start.alias_to is named
        assert isinstance(end, AliasInfo) and end.alias_to is named

        # Constness must match for reuse
        assert isinstance(scratch, PointerInfo)
        assert scratch.name is None
        assert not scratch.is_const

    @pytest.mark.unit
    def test_pointer_to_unknown_type_is_opaque(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        graph = resolve([typedef("Handle", "struct Impl *")], header_path, fake_oracle)
        handle = graph.get("Handle")
        assert isinstance(handle, PointerInfo)
        assert handle.base_type is None

    @pytest.mark.unit
    def test_function_pointer_typedef(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            func_pointer_typedef(
                "Callback",
                "int (*)(void *, int)",
                builtin_type("int"),
                [pointer_type("void *"), builtin_type("int")],
            )
        ]
        graph = resolve(nodes, header_path, fake_oracle)

        callback = graph.get("Callback")
        assert isinstance(callback, FuncPointerInfo)
        assert callback.size == 8
        assert isinstance(callback.decl.return_type, BuiltinInfo)
        assert callback.decl.return_type.ffi_kind is FfiKind.INT32
        assert isinstance(callback.decl.args[0].value_type, PointerInfo)
        assert graph.function_pointer_symbol_names == {"Callback"}
        assert "Callback" in graph.pointer_symbol_names


class TestTypedefs:
    """Aliases, lazy aliases and duplicate names."""

    @pytest.mark.unit
    def test_plain_alias(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        graph = resolve([typedef("handle_t", "uint32_t", inner=[typedef_type("uint32_t")])], header_path, fake_oracle)
        handle = graph.get("handle_t")
        assert isinstance(handle, AliasInfo)
        assert handle.size == 4
        assert handle.alias_to.name == "uint32_t"

    @pytest.mark.unit
    def test_lazy_alias_resolves_when_tag_is_declared(self, header_path: Path) -> None:
        oracle = FakeLayoutOracle(sizes={"Node": 8}, offsets={("Node", "next"): 0})
        nodes = [
            record("Node", None),
            typedef("NodeRef", "struct Node", inner=[record_type("Node")]),
            record("Node", [field("next", "struct Node *")]),
        ]
        graph = resolve(nodes, header_path, oracle)

        node_ref = graph.get("NodeRef")
        assert isinstance(node_ref, AliasInfo)
        assert node_ref.alias_to is graph.get("Node")
        assert node_ref.size == 8
        assert list(graph.declarations)[-2:] == ["Node", "NodeRef"]

    @pytest.mark.unit
    def test_dangling_lazy_alias_is_fatal(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [typedef("GhostRef", "struct Ghost", inner=[record_type("Ghost")])]
        with pytest.raises(UnresolvedLazyAliasError) as excinfo:
            resolve(nodes, header_path, fake_oracle)
        assert excinfo.value.pending == {"GhostRef": "Ghost"}

    @pytest.mark.unit
    def test_unknown_non_tag_typedef_is_skipped(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        graph = resolve([typedef("weird_t", "__m128")], header_path, fake_oracle)
        assert "weird_t" not in graph

    @pytest.mark.unit
    def test_same_name_alias_is_not_registered(self, header_path: Path) -> None:
        graph = resolve([point_decl(), typedef("Point", "struct Point")], header_path, point_oracle())
        assert isinstance(graph.get("Point"), StructInfo)

    @pytest.mark.unit
    def test_duplicate_name_later_wins_and_moves_last(self, header_path: Path) -> None:
        nodes = [
            typedef("Handle", "int"),
            point_decl(),
            typedef("Handle", "Point *"),
        ]
        graph = resolve(nodes, header_path, point_oracle())

        assert isinstance(graph.get("Handle"), PointerInfo)
        assert list(graph.declarations)[-2:] == ["Point", "Handle"]

    @pytest.mark.unit
    def test_alias_declared_with_using(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        nodes = [
            typedef("Length", "uint64_t"),
            typedef("Distance", "Length", alias_decl_id="0x1234"),
        ]
        graph = resolve(nodes, header_path, fake_oracle)
        distance = graph.get("Distance")
        assert isinstance(distance, AliasInfo)
        assert distance.alias_to is graph.get("Length")


class TestFunctions:
    """Function declarations."""

    @pytest.mark.unit
    def test_function_signature(self, header_path: Path) -> None:
        nodes = [
            point_decl(),
            function("point_scale", "Point", [param("p", "Point *"), param(None, "double")]),
        ]
        graph = resolve(nodes, header_path, point_oracle())

        decl = graph.get("point_scale")
        assert isinstance(decl, FuncDeclInfo)
        assert isinstance(decl.return_type, AliasInfo) and decl.return_type.name == "Point"
        assert [arg.name for arg in decl.args] == ["p", None]
        assert isinstance(decl.args[0].value_type, PointerInfo)
        assert isinstance(unwrap_alias(decl.args[1].value_type), BuiltinInfo)

    @pytest.mark.unit
    def test_variadic_function_binds_fixed_arguments(self, header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
        graph = resolve(
            [function("log_message", "void", [param("fmt", "const char *")], variadic=True)],
            header_path,
            fake_oracle,
        )
        decl = graph.get("log_message")
        assert isinstance(decl, FuncDeclInfo)
        assert len(decl.args) == 1


@pytest.mark.unit
def test_builtins_are_seeded(header_path: Path, fake_oracle: FakeLayoutOracle) -> None:
    resolver = AstResolver(header_path, fake_oracle)
    graph = resolver.resolve([])

    assert isinstance(graph.get("uint64_t"), BuiltinInfo)
    long_alias = graph.get("long")
    assert isinstance(long_alias, AliasInfo) and long_alias.no_emit
    assert not graph.get("uintptr_t").no_emit
    assert resolver.lookup("int") is graph.get("int32_t")
