#!/usr/bin/env python3

"""Skip rules for top-level declarations and anonymous-name adoption.

clang's JSON dump only writes ``file`` (and ``includedFrom``) on a location
when the file differs from the previously printed location, so the filter
remembers the last file it saw while walking the top-level nodes in order.
"""

from collections.abc import Container
from pathlib import Path
from typing import Any

from ....infrastructure.logging import get_logger

logger = get_logger(__name__)

INTERNAL_PREFIXES = ("__NS", "__builtin_")


def _location_file(loc: dict[str, Any] | None) -> tuple[str | None, str | None]:
    """Return ``(file, includedFrom file)`` recorded on a location, if any."""
    if not loc:
        return None, None
    if "expansionLoc" in loc:
        loc = loc["expansionLoc"]
    included_from = loc.get("includedFrom")
    return loc.get("file"), included_from.get("file") if included_from else None


def source_position(loc: dict[str, Any] | None) -> tuple[int, ...] | None:
    """Comparable position of a location: byte offset, else ``(line, col)``."""
    if not loc:
        return None
    if "expansionLoc" in loc:
        loc = loc["expansionLoc"]
    if "offset" in loc:
        return (loc["offset"],)
    if "line" in loc and "col" in loc:
        return (loc["line"], loc["col"])
    return None


def encloses(outer: dict[str, Any] | None, inner: dict[str, Any]) -> bool:
    """Whether ``outer`` (a typedef or field) begins at or before ``inner``.

    This is how ``typedef enum {...} Name;`` and
    ``union {...} name;`` are recognized: the trailing declaration's range
    starts at the keyword that opens the anonymous one.
    """
    if not outer:
        return False
    begin = source_position((outer.get("range") or {}).get("begin"))
    position = source_position(inner.get("loc"))
    if begin is None or position is None or len(begin) != len(position):
        return False
    return begin <= position


class DeclarationFilter:
    """Decides which top-level nodes belong to the target header."""

    def __init__(self, header_path: str | Path):
        self.header_name = Path(header_path).name
        self._current_file: str | None = None
        self._current_included_from: str | None = None

    def _track_file(self, node: dict[str, Any]) -> None:
        for loc in (node.get("loc"), (node.get("range") or {}).get("begin")):
            file, included_from = _location_file(loc)
            if file is not None:
                self._current_file = file
                self._current_included_from = included_from

    def is_foreign(self, node: dict[str, Any]) -> bool:
        """Whether the node was pulled in through another file's ``#include``.

        Declarations included directly by the target header are kept.
        """
        self._track_file(node)
        if self._current_included_from is None:
            return False
        return Path(self._current_included_from).name != self.header_name

    def should_skip(self, node: dict[str, Any], known_names: Container[str]) -> bool:
        """Apply every skip rule to one top-level node."""
        if self.is_foreign(node):
            return True

        if node.get("isImplicit"):
            return True

        name = node.get("name") or ""
        if name.startswith(INTERNAL_PREFIXES):
            return True

        if node.get("kind") == "TypedefDecl":
            return self._is_self_synonym(node, known_names)

        return False

    @staticmethod
    def _is_self_synonym(node: dict[str, Any], known_names: Container[str]) -> bool:
        name = node.get("name")
        qual_type = (node.get("type") or {}).get("qualType")
        if name == qual_type:
            return True

        inner = node.get("inner") or []
        if not inner:
            return False
        first = inner[0]

        # typedef unsigned long size_t; when size_t is already a builtin
        if first.get("kind") == "BuiltinType" and name in known_names:
            logger.debug(f"Skipping builtin re-declaration {name}")
            return True

        # typedef struct Foo Foo;
        if first.get("kind") == "ElaboratedType":
            decl = ((first.get("inner") or [{}])[0]).get("decl") or {}
            if decl.get("name") == name:
                return True

        return False
