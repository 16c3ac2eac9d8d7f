#!/usr/bin/env python3

"""Resolution of clang declaration trees into type graphs."""

from .ast_resolver import AstResolver, resolve
from .declaration_filter import DeclarationFilter, encloses, source_position
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

__all__ = [
    "ArrayShape",
    "AstResolver",
    "CStringShape",
    "DeclarationFilter",
    "EnumEvaluator",
    "LayoutOracle",
    "NameShape",
    "PointerShape",
    "encloses",
    "normalize_name",
    "parse_qual_type",
    "resolve",
    "source_position",
]
