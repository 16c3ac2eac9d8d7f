#!/usr/bin/env python3

"""Layout oracle backed by the DWARF debug info of a single compiled probe.

Instead of one probe program per query, the header is compiled once with
``-g -fno-eliminate-unused-debug-types`` and every named struct, union,
enum, typedef and base type is indexed from the object's DIEs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from elftools.elf.elffile import ELFFile

from ...domain.models.c_types import POINTER_SIZE
from ...domain.repositories.cache import LayoutCache
from ...exceptions import LayoutQueryError
from ..logging import get_logger, log_timing
from .clang_driver import ClangDriver
from .dwarf_location import parse_location_offset

logger = get_logger(__name__)

MAX_CHAIN_DEPTH = 32

NAMED_TYPE_TAGS = {
    "DW_TAG_base_type",
    "DW_TAG_class_type",
    "DW_TAG_enumeration_type",
    "DW_TAG_structure_type",
    "DW_TAG_typedef",
    "DW_TAG_union_type",
}
RECORD_TAGS = {"DW_TAG_structure_type", "DW_TAG_union_type", "DW_TAG_class_type"}
TRANSPARENT_TAGS = {
    "DW_TAG_typedef",
    "DW_TAG_const_type",
    "DW_TAG_volatile_type",
    "DW_TAG_restrict_type",
    "DW_TAG_atomic_type",
}
POINTER_TAGS = {"DW_TAG_pointer_type", "DW_TAG_reference_type", "DW_TAG_rvalue_reference_type"}

_PROBE_TEMPLATE = '#include "{header}"\n'


@dataclass
class TypeLayout:
    """Size and member placement of one named type."""

    size: int
    members: dict[str, tuple[int, int]] = field(default_factory=dict)


def _die_name(die: Any) -> str | None:
    attr = die.attributes.get("DW_AT_name")
    if attr is None:
        return None
    value = attr.value
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)


def _referenced_type(die: Any) -> Any | None:
    if "DW_AT_type" not in die.attributes:
        return None
    return die.get_DIE_from_attribute("DW_AT_type")


def _strip_transparent(die: Any) -> Any | None:
    """Follow typedef and cv-qualifier links down to the underlying type DIE."""
    depth = 0
    while die is not None and die.tag in TRANSPARENT_TAGS:
        depth += 1
        if depth > MAX_CHAIN_DEPTH:
            raise LayoutQueryError(f"type chain too deep at {_die_name(die)!r}")
        die = _referenced_type(die)
    return die


def _array_length(die: Any) -> int:
    length = 1
    for child in die.iter_children():
        if child.tag != "DW_TAG_subrange_type":
            continue
        if "DW_AT_count" in child.attributes:
            length *= child.attributes["DW_AT_count"].value
        elif "DW_AT_upper_bound" in child.attributes:
            length *= child.attributes["DW_AT_upper_bound"].value + 1
        else:
            # Flexible array member
            return 0
    return length


def type_byte_size(die: Any | None, depth: int = 0) -> int:
    """Compute the byte size of a type DIE."""
    if die is None:
        raise LayoutQueryError("cannot size an unknown (void) type")
    if depth > MAX_CHAIN_DEPTH:
        raise LayoutQueryError(f"type chain too deep at {_die_name(die)!r}")

    if "DW_AT_byte_size" in die.attributes:
        return die.attributes["DW_AT_byte_size"].value

    if die.tag in TRANSPARENT_TAGS or die.tag == "DW_TAG_enumeration_type":
        return type_byte_size(_referenced_type(die), depth + 1)

    if die.tag in POINTER_TAGS:
        return POINTER_SIZE

    if die.tag == "DW_TAG_array_type":
        return type_byte_size(_referenced_type(die), depth + 1) * _array_length(die)

    raise LayoutQueryError(f"no byte size for {die.tag} {_die_name(die)!r}")


def collect_members(record: Any, base_offset: int = 0) -> dict[str, tuple[int, int]]:
    """Collect ``name -> (offset, size)`` for a record DIE.

    Members of anonymous nested records are exposed at their absolute
    offset, the way C lets you access them.
    """
    members: dict[str, tuple[int, int]] = {}
    for child in record.iter_children():
        if child.tag != "DW_TAG_member":
            continue

        member_type = _referenced_type(child)
        name = _die_name(child)

        # Union members carry no location
        location = child.attributes.get("DW_AT_data_member_location")
        offset = 0 if location is None else parse_location_offset(location.value)
        if offset is None:
            raise LayoutQueryError(f"member {name!r} of {_die_name(record)!r} has no constant offset: {location.value!r}")

        if name is None:
            inner = _strip_transparent(member_type)
            if inner is not None and inner.tag in RECORD_TAGS:
                members.update(collect_members(inner, base_offset + offset))
            continue

        # Bitfields have no addressable offset
        if "DW_AT_bit_size" in child.attributes:
            continue

        members[name] = (base_offset + offset, type_byte_size(member_type))
    return members


def build_layout(die: Any) -> TypeLayout:
    size = type_byte_size(die)
    record = _strip_transparent(die)
    members = collect_members(record) if record is not None and record.tag in RECORD_TAGS else {}
    return TypeLayout(size=size, members=members)


class DwarfLayoutOracle:
    """Answers sizeof/offsetof questions from DWARF debug info.

    The probe object is compiled lazily on the first uncached query; every
    DIE is turned into a ``TypeLayout`` up front so the ELF file can be
    closed immediately.
    """

    def __init__(self, header_path: str | Path, driver: ClangDriver, cache: LayoutCache | None = None):
        self.header_path = str(header_path)
        self.driver = driver
        self.cache = cache if cache is not None else LayoutCache()
        self.query_count = 0
        self._layouts: dict[str, TypeLayout] | None = None

    @log_timing
    def _load_layouts(self) -> dict[str, TypeLayout]:
        probe_header = Path(self.header_path).resolve().as_posix()
        obj_path = self.driver.compile_object(_PROBE_TEMPLATE.format(header=probe_header))

        layouts: dict[str, TypeLayout] = {}
        with open(obj_path, "rb") as f:
            elf = ELFFile(f)
            if not elf.has_dwarf_info():
                raise LayoutQueryError(f"probe object {obj_path} carries no DWARF info")

            dwarf_info = elf.get_dwarf_info()
            for cu in dwarf_info.iter_CUs():
                for die in cu.iter_DIEs():
                    if die.tag not in NAMED_TYPE_TAGS or "DW_AT_declaration" in die.attributes:
                        continue
                    name = _die_name(die)
                    if name is None or name in layouts:
                        continue
                    try:
                        layouts[name] = build_layout(die)
                    except LayoutQueryError as e:
                        logger.debug(f"Skipping {name}: {e}")

        logger.info(f"Indexed {len(layouts)} types from DWARF info")
        return layouts

    def _layout(self, type_name: str) -> TypeLayout:
        if self._layouts is None:
            self._layouts = self._load_layouts()
        self.query_count += 1

        # Nested records are indexed by their own name, not "Outer::Inner"
        for candidate in (type_name, type_name.split()[-1], type_name.split("::")[-1]):
            layout = self._layouts.get(candidate)
            if layout is not None:
                return layout
        raise LayoutQueryError(f'type "{type_name}" not found in DWARF info')

    def _member(self, type_name: str, field_name: str) -> tuple[int, int]:
        member = self._layout(type_name).members.get(field_name)
        if member is None:
            raise LayoutQueryError(f'field "{field_name}" not found in "{type_name}"')
        return member

    def size_of(self, type_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name)
        cached = self.cache.get_size(key)
        if cached is not None:
            return cached

        size = self._layout(type_name).size
        self.cache.put_size(key, size)
        return size

    def offset_of(self, type_name: str, field_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name, field_name)
        cached = self.cache.get_offset(key)
        if cached is not None:
            return cached

        offset = self._member(type_name, field_name)[0]
        self.cache.put_offset(key, offset)
        return offset

    def field_size_of(self, type_name: str, field_name: str) -> int:
        key = LayoutCache.make_key(self.header_path, type_name, field_name)
        cached = self.cache.get_size(key)
        if cached is not None:
            return cached

        size = self._member(type_name, field_name)[1]
        self.cache.put_size(key, size)
        return size
