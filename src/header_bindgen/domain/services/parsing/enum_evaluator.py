#!/usr/bin/env python3

"""Turns clang enum initializer expressions into symbolic enum values."""

from collections.abc import Mapping
from typing import Any

from ....exceptions import UnknownEnumExpressionError
from ...models.c_types import BinaryExpr, ConstantRef, EnumValue, IntLiteral, ParenExpr, UnaryExpr

TRANSPARENT_KINDS = {"ConstantExpr", "ImplicitCastExpr"}


class EnumEvaluator:
    """Evaluates initializer trees without folding them to numbers.

    ``constant_owners`` maps already-resolved enum constants to the enum
    that declares them, so cross-enum references can be qualified.
    """

    def __init__(self, constant_owners: Mapping[str, str] | None = None):
        self.constant_owners = constant_owners if constant_owners is not None else {}

    def evaluate(self, node: Any, enum_name: str | None = None) -> EnumValue:
        if isinstance(node, list):
            if not node:
                raise UnknownEnumExpressionError("empty enum initializer")
            return self.evaluate(node[0], enum_name)

        kind = node.get("kind")

        if kind in TRANSPARENT_KINDS:
            return self.evaluate(node.get("inner") or [], enum_name)

        if kind == "IntegerLiteral":
            return IntLiteral(str(node["value"]))

        if kind == "ParenExpr":
            return ParenExpr(self.evaluate(node["inner"], enum_name))

        if kind == "UnaryOperator":
            return UnaryExpr(node["opcode"], self.evaluate(node["inner"], enum_name))

        if kind == "BinaryOperator":
            inner = node["inner"]
            return BinaryExpr(
                node["opcode"],
                self.evaluate(inner[0], enum_name),
                self.evaluate(inner[1], enum_name),
            )

        if kind == "DeclRefExpr":
            name = node["referencedDecl"]["name"]
            return ConstantRef(name, self.constant_owners.get(name, enum_name))

        raise UnknownEnumExpressionError(f"unknown enum value expression {kind!r}: {node!r}")
