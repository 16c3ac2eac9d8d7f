#!/usr/bin/env python3

"""clang toolchain collaborators: AST dump and layout oracles."""

from .clang_driver import ClangDriver
from .dwarf_layout_oracle import DwarfLayoutOracle
from .probe_layout_oracle import ProbeLayoutOracle

__all__ = [
    "ClangDriver",
    "DwarfLayoutOracle",
    "ProbeLayoutOracle",
]
