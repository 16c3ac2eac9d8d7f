#!/usr/bin/env python3

"""Enum model and symbolic enum values.

Enum initializers are kept as an expression tree instead of being folded
to a number, so generated code repeats the header's own computation
(shifts, ORs, negation, parentheses) rather than a precomputed constant.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import ClassVar

from .type_info import TypeInfo

C_OPERATORS: Mapping[str, str] = {}

# Operators whose Python spelling differs from C.
PYTHON_OPERATORS: Mapping[str, str] = {
    "/": "//",
    "!": "not",
    "&&": "and",
    "||": "or",
}


class EnumValue:
    """Base of the enum value tree."""

    kind: ClassVar[str] = "expr"

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        raise NotImplementedError

    @property
    def value(self) -> str:
        """C rendering of this value."""
        return self.render()


@dataclass(frozen=True)
class IntLiteral(EnumValue):
    kind: ClassVar[str] = "int"

    literal: str

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        return self.literal


@dataclass(frozen=True)
class ConstantRef(EnumValue):
    """Reference to another enum constant; ``enum_name`` is its owner."""

    kind: ClassVar[str] = "alias"

    name: str
    enum_name: str | None = None

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        if enum_name is not None and self.enum_name is not None and self.enum_name != enum_name:
            return f"{self.enum_name}.{self.name}"
        return self.name


@dataclass(frozen=True)
class ParenExpr(EnumValue):
    inner: EnumValue

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        return f"({self.inner.render(operators, enum_name)})"


@dataclass(frozen=True)
class UnaryExpr(EnumValue):
    opcode: str
    operand: EnumValue

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        opcode = operators.get(self.opcode, self.opcode)
        return f"({opcode} {self.operand.render(operators, enum_name)})"


@dataclass(frozen=True)
class BinaryExpr(EnumValue):
    opcode: str
    lhs: EnumValue
    rhs: EnumValue

    def render(self, operators: Mapping[str, str] = C_OPERATORS, enum_name: str | None = None) -> str:
        opcode = operators.get(self.opcode, self.opcode)
        lhs = self.lhs.render(operators, enum_name)
        rhs = self.rhs.render(operators, enum_name)
        return f"(({lhs}) {opcode} ({rhs}))"


@dataclass(eq=False, kw_only=True)
class EnumInfo(TypeInfo):
    """A C enum; always 4 bytes wide."""

    kind: ClassVar[str] = "enum"

    size: int = 4
    fields: dict[str, EnumValue] = field(default_factory=dict)
