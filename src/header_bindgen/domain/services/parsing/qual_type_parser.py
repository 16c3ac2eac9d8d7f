#!/usr/bin/env python3

"""Pattern rules for clang's rendered qualified-type strings.

The rules are tried in a fixed order: static array suffix, then the
``const char *`` string special case, then const pointer, then pointer,
then a bare name.
"""

import re
from dataclasses import dataclass

ARRAY_RE = re.compile(r"^(.+?)\s*\[(\d+)\]((?:\[\d+\])*)$")
CONST_POINTER_RE = re.compile(r"^const (?:(?:struct|union|enum)\s+)?(\w+) \*$")
POINTER_RE = re.compile(r"^(?:(?:struct|union|enum)\s+)?(.+?)\s*\*\s*(?:const)?$")

CSTRING_SPELLING = "const char *"

_QUALIFIER_PREFIXES = ("struct ", "union ", "enum ", "const ", "volatile ")
_QUALIFIER_SUFFIXES = (" const", " volatile")


@dataclass(frozen=True)
class ArrayShape:
    element: str
    length: int


@dataclass(frozen=True)
class CStringShape:
    pass


@dataclass(frozen=True)
class PointerShape:
    """``base`` is the pointee spelling; it may itself be a pointer spelling."""

    base: str
    is_const: bool


@dataclass(frozen=True)
class NameShape:
    name: str


QualTypeShape = ArrayShape | CStringShape | PointerShape | NameShape


def normalize_name(spelling: str) -> str:
    """Strip elaborated tags and cv-qualifiers from a bare type spelling."""
    name = spelling.strip()
    changed = True
    while changed:
        changed = False
        for prefix in _QUALIFIER_PREFIXES:
            if name.startswith(prefix):
                name = name[len(prefix):].lstrip()
                changed = True
        for suffix in _QUALIFIER_SUFFIXES:
            if name.endswith(suffix):
                name = name[: -len(suffix)].rstrip()
                changed = True
    return name


def parse_qual_type(qual_type: str) -> QualTypeShape:
    """Classify a qualified-type string.

    Examples:
        >>> parse_qual_type("Foo[8]")
        ArrayShape(element='Foo', length=8)

        >>> parse_qual_type("int[2][3]")
        ArrayShape(element='int[3]', length=2)

        >>> parse_qual_type("const struct Foo *")
        PointerShape(base='Foo', is_const=True)
    """
    spelling = qual_type.strip()

    match = ARRAY_RE.match(spelling)
    if match:
        element = match.group(1).strip() + match.group(3)
        return ArrayShape(element=element, length=int(match.group(2)))

    if spelling == CSTRING_SPELLING:
        return CStringShape()

    match = CONST_POINTER_RE.match(spelling)
    if match:
        return PointerShape(base=match.group(1), is_const=True)

    match = POINTER_RE.match(spelling)
    if match:
        base = match.group(1).strip()
        is_const = False
        if "*" not in base and base.startswith("const "):
            base = normalize_name(base)
            is_const = True
        return PointerShape(base=base, is_const=is_const)

    return NameShape(name=normalize_name(spelling))
