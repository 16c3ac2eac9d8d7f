"""Tests for top-level declaration skip rules and enclosure checks."""

import pytest

from header_bindgen.domain.services.parsing import DeclarationFilter, encloses, source_position
from tests.clang_ast import builtin_type, field, loc, record, record_type, typedef


@pytest.mark.unit
def test_source_position_prefers_offset() -> None:
    assert source_position({"offset": 12, "line": 3, "col": 4}) == (12,)
    assert source_position({"line": 3, "col": 4}) == (3, 4)
    assert source_position({"expansionLoc": {"offset": 99}, "spellingLoc": {"offset": 1}}) == (99,)
    assert source_position({}) is None
    assert source_position(None) is None


@pytest.mark.unit
def test_encloses_trailing_declaration() -> None:
    anonymous = record(None, [], tag="union", at=20)
    assert encloses(field("data", "union (unnamed)", at=40, begin=10), anonymous)
    assert encloses(field("data", "union (unnamed)", at=40, begin=20), anonymous)
    assert not encloses(field("data", "int", at=40, begin=30), anonymous)
    assert not encloses(None, anonymous)


@pytest.mark.unit
def test_encloses_mixed_position_kinds_is_false() -> None:
    outer = {"range": {"begin": {"line": 1, "col": 1}}}
    inner = {"loc": {"offset": 5}}
    assert not encloses(outer, inner)


class TestDeclarationFilter:
    """Test suite for DeclarationFilter."""

    @pytest.fixture
    def decl_filter(self) -> DeclarationFilter:
        return DeclarationFilter("include/mylib.h")

    @pytest.mark.unit
    def test_declarations_of_target_header_are_kept(self, decl_filter: DeclarationFilter) -> None:
        node = record("Point", [])
        node["loc"] = loc(0, file="include/mylib.h")
        assert not decl_filter.should_skip(node, set())

    @pytest.mark.unit
    def test_transitively_included_declarations_are_skipped(self, decl_filter: DeclarationFilter) -> None:
        foreign = record("_IO_FILE", [])
        foreign["loc"] = loc(0, file="/usr/include/libio.h", included_from="/usr/include/stdio.h")
        assert decl_filter.should_skip(foreign, set())

        # clang omits the file when it did not change; the last one still applies
        follower = typedef("FILE", "struct _IO_FILE")
        assert decl_filter.should_skip(follower, set())

    @pytest.mark.unit
    def test_directly_included_declarations_are_kept(self, decl_filter: DeclarationFilter) -> None:
        node = typedef("handle_t", "int")
        node["loc"] = loc(0, file="include/types.h", included_from="include/mylib.h")
        assert not decl_filter.should_skip(node, set())

    @pytest.mark.unit
    def test_returning_to_target_header_resets_inclusion(self, decl_filter: DeclarationFilter) -> None:
        foreign = record("Other", [])
        foreign["loc"] = loc(0, file="/usr/include/other.h", included_from="/usr/include/stdlib.h")
        assert decl_filter.should_skip(foreign, set())

        local = record("Point", [])
        local["loc"] = loc(100, file="include/mylib.h")
        assert not decl_filter.should_skip(local, set())

    @pytest.mark.unit
    def test_implicit_and_internal_names_are_skipped(self, decl_filter: DeclarationFilter) -> None:
        implicit = typedef("__int128_t", "__int128")
        implicit["isImplicit"] = True
        assert decl_filter.should_skip(implicit, set())
        assert decl_filter.should_skip(typedef("__builtin_va_list", "char *"), set())
        assert decl_filter.should_skip(typedef("__NSConstantString", "struct __NSConstantString_tag"), set())

    @pytest.mark.unit
    def test_self_synonym_typedefs_are_skipped(self, decl_filter: DeclarationFilter) -> None:
        assert decl_filter.should_skip(typedef("Foo", "Foo"), set())
        assert decl_filter.should_skip(typedef("Foo", "struct Foo", inner=[record_type("Foo")]), set())
        assert not decl_filter.should_skip(typedef("FooT", "struct Foo", inner=[record_type("Foo")]), set())

    @pytest.mark.unit
    def test_builtin_redeclaration_is_skipped_only_when_known(self, decl_filter: DeclarationFilter) -> None:
        node = typedef("size_t", "unsigned long", inner=[builtin_type("unsigned long")])
        assert decl_filter.should_skip(node, {"size_t"})

        custom = typedef("counter_t", "unsigned long", inner=[builtin_type("unsigned long")])
        assert not decl_filter.should_skip(custom, {"size_t"})
