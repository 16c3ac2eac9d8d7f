#!/usr/bin/env python3

"""The resolved type graph of one header."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from .type_info import TypeInfo


@dataclass
class LazyAlias:
    """A typedef waiting for a struct/union tag that has not been declared yet."""

    name: str
    target_name: str


@dataclass
class TypeGraph:
    """Name-keyed registry of resolved type nodes.

    ``declarations`` preserves declaration order, which is also the order
    the code generator emits in.
    """

    declarations: dict[str, TypeInfo] = field(default_factory=dict)
    pointer_symbol_names: set[str] = field(default_factory=set)
    function_pointer_symbol_names: set[str] = field(default_factory=set)

    def __contains__(self, name: object) -> bool:
        return name in self.declarations

    def __len__(self) -> int:
        return len(self.declarations)

    def get(self, name: str) -> TypeInfo | None:
        return self.declarations.get(name)

    def items(self) -> Iterator[tuple[str, TypeInfo]]:
        yield from self.declarations.items()

    def items_of_kind(self, kind: str) -> Iterator[tuple[str, TypeInfo]]:
        """Iterate declarations whose node kind is ``kind``."""
        for name, item in self.declarations.items():
            if item.kind == kind:
                yield name, item
