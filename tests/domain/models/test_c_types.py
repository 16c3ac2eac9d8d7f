"""Tests for the C type graph models."""

import pytest

from header_bindgen.domain.models.c_types import (
    PYTHON_OPERATORS,
    AliasInfo,
    BinaryExpr,
    BuiltinInfo,
    ConstantRef,
    FfiKind,
    IntLiteral,
    ParenExpr,
    PointerInfo,
    StructInfo,
    TypeGraph,
    UnaryExpr,
    register_builtin_types,
    unwrap_alias,
    unwrap_alias_and_pointer,
)


@pytest.mark.unit
def test_builtin_registration() -> None:
    graph = TypeGraph()
    register_builtin_types(graph)

    cstring = graph.get("CString")
    assert isinstance(cstring, BuiltinInfo)
    assert (cstring.size, cstring.ffi_kind) == (8, FfiKind.CSTRING)

    char = graph.get("char")
    assert isinstance(char, AliasInfo) and char.no_emit
    assert char.alias_to is graph.get("int8_t")

    intptr = graph.get("intptr_t")
    assert isinstance(intptr, AliasInfo) and not intptr.no_emit
    assert intptr.size == 8


@pytest.mark.unit
def test_unwrap_helpers() -> None:
    point = StructInfo(name="Point", size=8)
    alias = AliasInfo(name="PointT", size=8, alias_to=AliasInfo(name="Point", size=8, alias_to=point))
    pointer = PointerInfo(name="PointPtr", base_type=alias)

    assert unwrap_alias(alias) is point
    assert unwrap_alias(pointer) is pointer
    assert unwrap_alias_and_pointer(AliasInfo(name="P", size=8, alias_to=pointer)) is point
    # Opaque pointers stop the walk
    opaque = PointerInfo()
    assert unwrap_alias_and_pointer(opaque) is opaque


@pytest.mark.unit
def test_graph_keeps_declaration_order() -> None:
    graph = TypeGraph()
    graph.declarations["B"] = StructInfo(name="B", size=1)
    graph.declarations["A"] = PointerInfo(name="A")
    graph.declarations["C"] = StructInfo(name="C", size=1)

    assert [name for name, _ in graph.items()] == ["B", "A", "C"]
    assert [name for name, _ in graph.items_of_kind("struct")] == ["B", "C"]
    assert "A" in graph and len(graph) == 3


@pytest.mark.unit
def test_enum_value_kinds_and_rendering() -> None:
    literal = IntLiteral("4")
    ref = ConstantRef("OTHER", "Other")
    expr = UnaryExpr("!", ParenExpr(BinaryExpr("&&", literal, ref)))

    assert (literal.kind, ref.kind, expr.kind) == ("int", "alias", "expr")
    assert expr.value == "(! (((4) && (OTHER))))"
    assert expr.render(PYTHON_OPERATORS, "Mine") == "(not (((4) and (Other.OTHER))))"
    assert ref.render(PYTHON_OPERATORS, "Other") == "OTHER"
