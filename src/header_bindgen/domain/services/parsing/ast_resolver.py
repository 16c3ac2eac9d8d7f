#!/usr/bin/env python3

"""Builds the type graph of one header from clang's JSON AST.

Declarations are resolved strictly in input order. The only forward
reference C allows at this level, a typedef naming a struct tag that is
defined further down, is parked as a lazy alias and promoted the moment
the tag is registered.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ....exceptions import (
    DeclarationNotFoundError,
    MixedEnumCounterError,
    ResolutionError,
    UnknownMemberShapeError,
    UnresolvedLazyAliasError,
)
from ....infrastructure.logging import get_logger, log_timing
from ...models.c_types import (
    CSTRING_NAME,
    AliasInfo,
    EnumInfo,
    EnumValue,
    FieldInfo,
    FuncDeclInfo,
    FuncPointerInfo,
    IntLiteral,
    LazyAlias,
    ParameterInfo,
    PointerInfo,
    StaticArrayInfo,
    StructInfo,
    TypeGraph,
    TypeInfo,
    UnionInfo,
    register_builtin_types,
)
from .declaration_filter import DeclarationFilter, encloses
from .enum_evaluator import EnumEvaluator
from .layout_oracle import LayoutOracle
from .qual_type_parser import (
    ArrayShape,
    CStringShape,
    NameShape,
    PointerShape,
    normalize_name,
    parse_qual_type,
)

logger = get_logger(__name__)

RECORD_KINDS = {"RecordDecl", "CXXRecordDecl"}
WRAPPER_TYPE_KINDS = {"ElaboratedType", "QualType", "ParenType"}
LAZY_TAG_PREFIXES = ("struct ", "union ")


def _qual_type(node: dict[str, Any]) -> str:
    return (node.get("type") or {}).get("qualType", "")


def _is_skippable_member(node: dict[str, Any]) -> bool:
    kind = node.get("kind", "")
    return kind == "FullComment" or kind.endswith("Attr")


class AstResolver:
    """Resolves clang declaration nodes into a ``TypeGraph``.

    Any name that cannot be found aborts the whole run: later lookups
    would otherwise silently depend on a broken graph.
    """

    def __init__(self, header_path: str | Path, oracle: LayoutOracle):
        self.header_path = Path(header_path)
        self.oracle = oracle
        self.graph = TypeGraph()
        self.filter = DeclarationFilter(header_path)
        self.constant_owners: dict[str, str] = {}
        self.evaluator = EnumEvaluator(self.constant_owners)
        self._lazy_aliases: dict[str, list[LazyAlias]] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, name: str, item: TypeInfo) -> TypeInfo:
        """Add a declaration, promoting any typedefs that waited for it.

        A colliding name replaces the earlier entry and moves to the end
        of the declaration order.
        """
        if name in self.graph.declarations:
            logger.warning(f'Overwriting declaration "{name}" ({self.graph.declarations[name].kind} -> {item.kind})')
            del self.graph.declarations[name]
        self.graph.declarations[name] = item
        logger.debug(f"Registered {item.kind} {name}")

        for waiter in self._lazy_aliases.pop(name, []):
            logger.debug(f"Resolved lazy alias {waiter.name} -> {name}")
            self.register(waiter.name, AliasInfo(name=waiter.name, size=item.size, alias_to=item))
        return item

    @staticmethod
    def alias_ref(item: TypeInfo) -> TypeInfo:
        """Lightweight per-use wrapper around a registered declaration.

        Transparent language synonyms (``int``, ``long``...) collapse to
        their target instead.
        """
        if isinstance(item, AliasInfo) and item.no_emit:
            return item.alias_to
        return AliasInfo(name=item.name, size=item.size, alias_to=item)

    def lookup(self, name: str, make_alias: bool = True) -> TypeInfo:
        item = self.graph.get(name)
        if item is None:
            raise DeclarationNotFoundError(name)
        return self.alias_ref(item) if make_alias else item

    def find_pointer(self, base_name: str, is_const: bool) -> PointerInfo | None:
        """Find a named pointer declaration to ``base_name`` with the same constness."""
        for item in self.graph.declarations.values():
            if (
                isinstance(item, PointerInfo)
                and item.name is not None
                and item.base_type is not None
                and item.base_type.name == base_name
                and item.is_const == is_const
            ):
                return item
        return None

    # ------------------------------------------------------------------
    # Qualified type strings
    # ------------------------------------------------------------------

    def resolve_qual_type(self, qual_type: str) -> TypeInfo:
        """Resolve a rendered type string such as ``const Foo *`` or ``Foo[8]``."""
        shape = parse_qual_type(qual_type)

        if isinstance(shape, ArrayShape):
            item_type = self.resolve_qual_type(shape.element)
            return StaticArrayInfo(
                name=qual_type.strip(),
                size=item_type.size * shape.length,
                item_type=item_type,
                length=shape.length,
            )

        if isinstance(shape, CStringShape):
            return self.lookup(CSTRING_NAME, make_alias=False)

        if isinstance(shape, PointerShape):
            return self._resolve_pointer(shape)

        assert isinstance(shape, NameShape)
        return self.lookup(shape.name)

    def _resolve_pointer(self, shape: PointerShape) -> TypeInfo:
        existing = self.find_pointer(shape.base, shape.is_const)
        if existing is not None:
            return self.alias_ref(existing)
        return PointerInfo(base_type=self._resolve_pointee(shape.base), is_const=shape.is_const)

    def _resolve_pointee(self, base: str) -> TypeInfo | None:
        """Resolve a pointee spelling; None marks an opaque (unknown) pointee."""
        if "*" in base or base.endswith("]"):
            return self.resolve_qual_type(base)
        name = normalize_name(base)
        if name not in self.graph:
            return None
        return self.lookup(name)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @log_timing
    def resolve(self, nodes: Sequence[dict[str, Any]]) -> TypeGraph:
        """Resolve the top-level declaration nodes of one header.

        Raises:
            ResolutionError: On any reference that cannot be resolved
            LayoutQueryError: If the layout oracle cannot answer a query
        """
        register_builtin_types(self.graph)

        index = 0
        while index < len(nodes):
            node = nodes[index]
            index += 1

            if self.filter.should_skip(node, self.graph.declarations):
                continue

            kind = node.get("kind")
            following = nodes[index] if index < len(nodes) else None

            if kind == "EnumDecl":
                index += self._resolve_enum_decl(node, following)
            elif kind in RECORD_KINDS:
                index += self._resolve_top_level_record(node, following)
            elif kind == "TypedefDecl":
                self._resolve_typedef(node)
            elif kind == "FunctionDecl":
                self._resolve_function(node)
            else:
                logger.info(f"Unknown statement {kind} {node.get('name', '')!r}, skipping")

        if self._lazy_aliases:
            pending = {
                waiter.name: waiter.target_name
                for waiters in self._lazy_aliases.values()
                for waiter in waiters
            }
            raise UnresolvedLazyAliasError(pending)

        logger.info(f'Resolved {len(self.graph)} declarations from "{self.header_path}"')
        return self.graph

    def _adopt_name(self, node: dict[str, Any], following: dict[str, Any] | None) -> str | None:
        """Name of the typedef that immediately wraps an anonymous declaration."""
        if following is not None and following.get("kind") == "TypedefDecl" and encloses(following, node):
            return following.get("name")
        return None

    def _resolve_enum_decl(self, node: dict[str, Any], following: dict[str, Any] | None) -> int:
        """Resolve an enum; returns how many extra nodes were consumed."""
        name = node.get("name")
        consumed = 0
        if not name:
            name = self._adopt_name(node, following)
            if name is None:
                logger.info(f"Unnamed enum at {node.get('loc')} is not wrapped by a typedef, skipping")
                return 0
            consumed = 1

        self.register(name, self.resolve_enum(name, node.get("inner") or []))
        return consumed

    def resolve_enum(self, name: str, members: Sequence[dict[str, Any]]) -> EnumInfo:
        """Evaluate enum members, continuing the counter after integer literals.

        Raises:
            MixedEnumCounterError: If an implicit member follows an expression
        """
        fields: dict[str, EnumValue] = {}
        counter: int | None = 0
        for member in members:
            if member.get("kind") != "EnumConstantDecl":
                continue
            member_name = member["name"]

            if member.get("inner"):
                value = self.evaluator.evaluate(member["inner"], name)
                counter = int(value.literal) + 1 if isinstance(value, IntLiteral) else None
            else:
                if counter is None:
                    raise MixedEnumCounterError(
                        f'enum "{name}" has implicit member "{member_name}" after a non-literal value'
                    )
                value = IntLiteral(str(counter))
                counter += 1

            fields[member_name] = value
            self.constant_owners[member_name] = name

        return EnumInfo(name=name, fields=fields)

    def _resolve_top_level_record(self, node: dict[str, Any], following: dict[str, Any] | None) -> int:
        name = node.get("name")
        consumed = 0
        if not name:
            name = self._adopt_name(node, following)
            if name is None:
                logger.info(f"Unnamed {node.get('tagUsed', 'record')} at {node.get('loc')} is not wrapped by a typedef, skipping")
                return 0
            consumed = 1

        if node.get("inner") is None:
            logger.debug(f"Skipping forward declaration of {name}")
            return consumed

        self.resolve_record(node, name)
        return consumed

    def resolve_record(self, node: dict[str, Any], name: str, layout_name: str | None = None) -> StructInfo:
        """Resolve a struct (or top-level union) definition and register it.

        Args:
            node: The RecordDecl node
            name: Declaration name in the graph
            layout_name: Spelling for layout queries, if it differs from ``name``
        """
        layout_name = layout_name or name
        size = self.oracle.size_of(layout_name)
        fields: list[FieldInfo] = []

        members = node.get("inner") or []
        index = 0
        while index < len(members):
            member = members[index]
            index += 1
            kind = member.get("kind")

            if _is_skippable_member(member) or kind == "IndirectFieldDecl":
                continue

            if kind in RECORD_KINDS:
                if member.get("name"):
                    # Nested named record: hoist it as its own declaration
                    if member.get("inner") is not None:
                        nested_name = member["name"]
                        self.resolve_record(member, nested_name, f"{layout_name}::{nested_name}")
                    continue

                following = members[index] if index < len(members) else None
                if self._is_trailing_field(following, member):
                    assert following is not None
                    fields.append(self._resolve_named_union(member, following["name"], layout_name))
                    index += 1
                else:
                    fields.extend(self._flatten_anonymous_member(member, layout_name))
                continue

            if kind != "FieldDecl":
                raise UnknownMemberShapeError(f'unknown member kind {kind!r} in "{name}"')

            if not member.get("name"):
                if member.get("isImplicit"):
                    continue
                raise UnknownMemberShapeError(f'unnamed member in "{name}": {member!r}')

            fields.append(self._resolve_field(member, layout_name))

        struct = StructInfo(name=name, size=size, fields=fields)
        self.register(name, struct)
        return struct

    @staticmethod
    def _is_trailing_field(following: dict[str, Any] | None, record: dict[str, Any]) -> bool:
        return (
            following is not None
            and following.get("kind") == "FieldDecl"
            and bool(following.get("name"))
            and not following.get("isImplicit")
            and encloses(following, record)
        )

    def _resolve_field(self, member: dict[str, Any], layout_name: str) -> FieldInfo:
        field_name = member["name"]
        value_type = self.resolve_qual_type(_qual_type(member))
        offset = self.oracle.offset_of(layout_name, field_name)
        return FieldInfo(name=field_name, offset=offset, size=value_type.size, value_type=value_type)

    def _union_variants(self, union: dict[str, Any]) -> list[FieldInfo]:
        variants: list[FieldInfo] = []
        for variant in union.get("inner") or []:
            if _is_skippable_member(variant):
                continue
            if variant.get("kind") != "FieldDecl" or not variant.get("name"):
                raise UnknownMemberShapeError(f"unsupported union variant {variant!r}")
            value_type = self.resolve_qual_type(_qual_type(variant))
            variants.append(FieldInfo(name=variant["name"], offset=0, size=value_type.size, value_type=value_type))
        return variants

    def _resolve_named_union(self, union: dict[str, Any], field_name: str, layout_name: str) -> FieldInfo:
        """``union {...} field;`` becomes a single union-typed field."""
        if union.get("tagUsed") != "union":
            raise UnknownMemberShapeError(f'anonymous {union.get("tagUsed")} field "{field_name}" in "{layout_name}"')

        variants = self._union_variants(union)
        offset = self.oracle.offset_of(layout_name, field_name)
        size = self.oracle.field_size_of(layout_name, field_name)
        return FieldInfo(
            name=field_name,
            offset=offset,
            size=size,
            value_type=UnionInfo(size=size, variants=variants),
        )

    def _flatten_anonymous_member(self, record: dict[str, Any], layout_name: str) -> list[FieldInfo]:
        """Members of a C11 anonymous struct/union are fields of the enclosing record."""
        fields: list[FieldInfo] = []
        for member in record.get("inner") or []:
            kind = member.get("kind")
            if _is_skippable_member(member) or kind == "IndirectFieldDecl":
                continue
            if kind in RECORD_KINDS and not member.get("name"):
                fields.extend(self._flatten_anonymous_member(member, layout_name))
                continue
            if kind != "FieldDecl":
                raise UnknownMemberShapeError(f"unsupported anonymous member {member!r}")
            if not member.get("name"):
                continue
            fields.append(self._resolve_field(member, layout_name))
        return fields

    # ------------------------------------------------------------------
    # Typedefs
    # ------------------------------------------------------------------

    @staticmethod
    def _function_prototype(node: dict[str, Any]) -> dict[str, Any] | None:
        """The FunctionProtoType of a ``typedef R (*name)(...)``, if that is its shape."""
        inner = node.get("inner") or []
        if not inner or inner[0].get("kind") != "PointerType":
            return None
        paren = (inner[0].get("inner") or [{}])[0]
        if paren.get("kind") != "ParenType":
            return None
        proto = (paren.get("inner") or [{}])[0]
        if proto.get("kind") != "FunctionProtoType":
            return None
        return proto

    def _resolve_typedef(self, node: dict[str, Any]) -> None:
        name = node["name"]
        qual_type = _qual_type(node)

        if (node.get("type") or {}).get("typeAliasDeclId"):
            target = self.lookup(normalize_name(qual_type), make_alias=False)
            self._register_alias(name, target)
            return

        proto = self._function_prototype(node)
        if proto is not None:
            self._resolve_function_pointer(name, proto)
            return

        shape = parse_qual_type(qual_type)
        if isinstance(shape, PointerShape):
            self.register(
                name,
                PointerInfo(name=name, base_type=self._resolve_pointee(shape.base), is_const=shape.is_const),
            )
            self.graph.pointer_symbol_names.add(name)
            return

        try:
            target = self.resolve_qual_type(qual_type)
        except DeclarationNotFoundError:
            if qual_type.startswith(LAZY_TAG_PREFIXES):
                tag = normalize_name(qual_type)
                logger.debug(f"Deferring typedef {name} until {tag} is declared")
                self._lazy_aliases.setdefault(tag, []).append(LazyAlias(name=name, target_name=tag))
                return
            logger.info(f"Unknown typedef {name} -> {qual_type!r}, skipping")
            return

        self._register_alias(name, target)

    def _register_alias(self, name: str, target: TypeInfo) -> None:
        if target.name == name:
            logger.debug(f"Skipping self-alias {name}")
            return
        self.register(name, AliasInfo(name=name, size=target.size, alias_to=target))

    def extract_type(self, node: dict[str, Any]) -> TypeInfo:
        """Resolve a type node of a function prototype."""
        kind = node.get("kind")

        if kind == "BuiltinType":
            item = self.lookup(_qual_type(node), make_alias=False)
            if isinstance(item, AliasInfo) and item.no_emit:
                return item.alias_to
            return item

        if kind == "TypedefType":
            return self.lookup(node["decl"]["name"])

        if kind == "PointerType":
            return self.resolve_qual_type(_qual_type(node))

        if kind in ("RecordType", "EnumType"):
            return self.lookup(node["decl"]["name"])

        if kind in WRAPPER_TYPE_KINDS:
            return self.extract_type(node["inner"][0])

        raise ResolutionError(f"unknown type node {kind!r} in function prototype")

    def _resolve_function_pointer(self, name: str, proto: dict[str, Any]) -> None:
        type_nodes = proto.get("inner") or []
        if not type_nodes:
            raise ResolutionError(f'function pointer "{name}" has no return type')

        return_type = self.extract_type(type_nodes[0])
        args = [ParameterInfo(name=arg.get("name"), value_type=self.extract_type(arg)) for arg in type_nodes[1:]]
        decl = FuncDeclInfo(name=name, return_type=return_type, args=args)

        self.register(name, FuncPointerInfo(name=name, decl=decl))
        self.graph.pointer_symbol_names.add(name)
        self.graph.function_pointer_symbol_names.add(name)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _resolve_function(self, node: dict[str, Any]) -> None:
        name = node["name"]
        return_type = self.resolve_qual_type(_qual_type(node).split("(")[0].strip())

        args: list[ParameterInfo] = []
        for item in node.get("inner") or []:
            if item.get("kind") != "ParmVarDecl":
                continue
            args.append(ParameterInfo(name=item.get("name"), value_type=self.resolve_qual_type(_qual_type(item))))

        if node.get("variadic"):
            logger.debug(f"Variadic arguments of {name} are not bound")

        self.register(name, FuncDeclInfo(name=name, return_type=return_type, args=args))


def resolve(nodes: Sequence[dict[str, Any]], header_path: str | Path, oracle: LayoutOracle) -> TypeGraph:
    """Resolve a header's top-level AST nodes into a type graph."""
    return AstResolver(header_path, oracle).resolve(nodes)
